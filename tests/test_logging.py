"""
Tests for the structured logging package.

Tests cover:
- LogLevel values and coerce_level() inputs
- Level gating of the helper functions
- Request id propagation into records
- JsonlFormatter and ColoredConsoleFormatter output
- JSONL file output when a log directory is configured
"""
from __future__ import annotations

import json
import logging

import pytest

from tts_relay.core.logging import (
    ColoredConsoleFormatter,
    JsonlFormatter,
    LogLevel,
    coerce_level,
    configure_logging,
    debug,
    error,
    fail,
    get_level,
    get_logger,
    get_request_id,
    info,
    set_request_id,
    verbose,
)
from tts_relay.core.logging.context import set_level


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=0)
        self.records = []

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    """Attach a collecting handler to a private logger."""
    logger = logging.getLogger("tts-relay.test-capture")
    handler = ListHandler()
    logger.addHandler(handler)
    previous = get_level()
    yield logger, handler.records
    logger.removeHandler(handler)
    set_level(previous)
    set_request_id("-")


def make_record(**attrs):
    record = logging.LogRecord("tts-relay.test", logging.INFO, __file__, 1, "tts_success", None, None)
    for k, v in attrs.items():
        setattr(record, k, v)
    return record


class TestLevels:
    """LogLevel and coerce_level()."""

    def test_values_and_ordering(self):
        assert LogLevel.MINIMAL == 1
        assert LogLevel.DEBUG == 4
        assert LogLevel.MINIMAL < LogLevel.NORMAL < LogLevel.VERBOSE < LogLevel.DEBUG

    @pytest.mark.parametrize("value,expected", [
        (1, LogLevel.MINIMAL),
        (3, LogLevel.VERBOSE),
        ("debug", LogLevel.DEBUG),
        ("4", LogLevel.DEBUG),
        ("INFO", LogLevel.NORMAL),
        ("warning", LogLevel.MINIMAL),
        (logging.WARNING, LogLevel.MINIMAL),
        ("nonsense", LogLevel.NORMAL),
        (None, LogLevel.NORMAL),
    ])
    def test_coerce(self, value, expected):
        assert coerce_level(value) == expected


class TestHelpers:
    """Level gating and record fields."""

    def test_normal_level_drops_verbose(self, captured):
        logger, records = captured
        set_level(LogLevel.NORMAL)

        info(logger, "shown")
        verbose(logger, "hidden")
        debug(logger, "hidden too")

        assert [r.getMessage() for r in records] == ["shown"]

    def test_minimal_level_keeps_failures(self, captured):
        logger, records = captured
        set_level(LogLevel.MINIMAL)

        info(logger, "hidden")
        error(logger, "kept")
        fail(logger, "kept too")

        assert [r.tag for r in records] == ["ERROR", "FAIL"]

    def test_fields_and_request_id(self, captured):
        logger, records = captured
        set_level(LogLevel.DEBUG)
        set_request_id("abc123def456")

        info(logger, "tts_request", voice_id="v1", text_length=5, seconds=0.25)

        record = records[-1]
        assert record.request_id == "abc123def456"
        assert record.seconds == 0.25
        assert record.extra_data == {"voice_id": "v1", "text_length": 5}
        assert get_request_id() == "abc123def456"

    def test_credentials_are_masked(self, captured):
        logger, records = captured
        set_level(LogLevel.DEBUG)

        debug(logger, "tts_payload", payload={"text": "hi", "xi-api-key": "sk-secret"}, api_key="sk-secret")

        extra = records[-1].extra_data
        assert extra["api_key"] == "***"
        assert extra["payload"] == {"text": "hi", "xi-api-key": "***"}

    def test_long_text_is_previewed(self, captured):
        logger, records = captured
        set_level(LogLevel.DEBUG)

        debug(logger, "tts_payload", payload={"text": "x" * 5000})

        text = records[-1].extra_data["payload"]["text"]
        assert text == "x" * 80 + "..."

    def test_get_logger_name(self):
        assert get_logger("tts-relay.x").name == "tts-relay.x"


class TestFormatters:
    """JsonlFormatter and ColoredConsoleFormatter."""

    def test_jsonl(self):
        record = make_record(tag="SUCCESS", request_id="rid1", seconds=1.5, extra_data={"size_bytes": 10}, numeric_level=2)

        payload = json.loads(JsonlFormatter().format(record))

        assert payload["message"] == "tts_success"
        assert payload["tag"] == "SUCCESS"
        assert payload["request_id"] == "rid1"
        assert payload["seconds"] == 1.5
        assert payload["extra"] == {"size_bytes": 10}
        assert payload["level"] == 2
        assert payload["logger"] == "tts-relay.test"

    def test_jsonl_without_extras(self):
        payload = json.loads(JsonlFormatter().format(make_record()))

        assert "seconds" not in payload
        assert "extra" not in payload
        assert payload["request_id"] == "-"

    def test_console(self, monkeypatch):
        from tts_relay.core.logging import colors

        monkeypatch.setattr(colors, "USE_COLORS", False)
        record = make_record(tag="INFO", request_id="rid2", seconds=0.1234, extra_data={"status": 404})

        line = ColoredConsoleFormatter().format(record)

        assert "[ INFO  ]" in line
        assert "(rid2)" in line
        assert "tts_success" in line
        assert "0.123s" in line
        assert "status=404" in line
        assert "\033[" not in line


class TestJsonlFile:
    """configure_logging() with a log directory."""

    @pytest.fixture
    def log_dir(self, tmp_path, monkeypatch):
        directory = tmp_path / "logs"
        monkeypatch.setenv("TTS_RELAY_LOG_DIR", str(directory))
        monkeypatch.setenv("TTS_RELAY_JSONL_FILE", "test.jsonl")
        yield directory
        monkeypatch.delenv("TTS_RELAY_LOG_DIR")
        monkeypatch.delenv("TTS_RELAY_JSONL_FILE")
        configure_logging(force=True)

    def test_records_written(self, log_dir):
        configure_logging(level=2, force=True)
        logger = get_logger("tts-relay.file-test")

        info(logger, "written_to_file", key="value")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = (log_dir / "test.jsonl").read_text(encoding="utf-8").splitlines()
        payloads = [json.loads(line) for line in lines]
        assert any(p["message"] == "written_to_file" and p["extra"] == {"key": "value"} for p in payloads)
