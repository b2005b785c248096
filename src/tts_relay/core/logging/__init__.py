"""
tts-relay Structured Logging Module.

Every log call carries a short event name plus key-value fields:

    from tts_relay.core.logging import get_logger, info, fail

    log = get_logger("tts-relay.mymodule")
    info(log, "tts_request", voice_id="21m00Tcm4TlvDq8ikWAM", text_length=42)
    fail(log, "synthesize_failed", status_code=429)

Records go to a colored console handler and, when a log directory is
configured, to a rotating JSONL file. The request id set by the API layer
is attached to every record emitted while that request is being served.

Fields named like credentials (api_key, xi-api-key, authorization) are
masked, and long ``text`` fields are cut to a preview, so payload dumps at
DEBUG level never leak the API key or a whole 5000-character input.

Log Levels:
    1 = MINIMAL  - Startup, shutdown, errors
    2 = NORMAL   - Request lifecycle (default)
    3 = VERBOSE  - Per-file sweep decisions
    4 = DEBUG    - Payloads and storage writes

Configuration:
    export TTS_RELAY_LOG_LEVEL=3
    export TTS_RELAY_LOG_DIR=logs
    export TTS_RELAY_NO_COLOR=1

Module Structure:
    - levels.py: LogLevel enum and level mapping
    - colors.py: ANSI colors and terminal detection
    - context.py: Request id and configuration state
    - formatters.py: JsonlFormatter and ColoredConsoleFormatter
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from . import colors
from .colors import supports_color
from .context import (
    get_level,
    get_level_name,
    get_request_id,
    is_configured,
    read_logging_config,
    set_configured,
    set_level,
    set_request_id,
)
from .formatters import ColoredConsoleFormatter, JsonlFormatter
from .levels import LEVEL_MAP, LogLevel, coerce_level

_SECRET_KEYS = frozenset({"api_key", "xi-api-key", "xi_api_key", "authorization"})
TEXT_PREVIEW_CHARS = 80


def _console_handler(level: LogLevel) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(LEVEL_MAP[level])
    handler.setFormatter(ColoredConsoleFormatter())
    return handler


def _file_handler(config: Mapping[str, Any]) -> logging.Handler:
    log_dir = Path(config["log_dir"])
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / str(config.get("jsonl_file") or "tts-relay.jsonl"),
        maxBytes=int(config.get("rotate_max_bytes", 10 * 1024 * 1024)),
        backupCount=int(config.get("rotate_backup_count", 5)),
        encoding="utf-8",
        delay=True,
    )
    # The file keeps everything the level gate lets through
    handler.setLevel(logging.NOTSET)
    handler.setFormatter(JsonlFormatter())
    return handler


def configure_logging(
    level: Optional[int | str | LogLevel] = None,
    force: bool = False,
    settings_path: Optional[str] = None,
) -> None:
    """
    Install the console (and optional JSONL file) handlers on the root logger.

    Args:
        level: Overrides the settings file and TTS_RELAY_LOG_LEVEL when given.
        force: Reconfigure even if logging was already configured.
        settings_path: Settings file whose ``logging`` section applies
            (default: $TTS_RELAY_SETTINGS or config/settings.yaml).
    """
    if is_configured() and not force:
        return

    colors.USE_COLORS = supports_color()

    config = read_logging_config(settings_path)
    current = coerce_level(level if level is not None else config.get("level", LogLevel.NORMAL))
    set_level(current)

    root = logging.getLogger()
    root.setLevel(logging.NOTSET)
    root.handlers = [_console_handler(current)]
    if config.get("log_dir"):
        root.addHandler(_file_handler(config))

    set_configured(True)


def _sanitize(fields: Dict[str, Any]) -> Dict[str, Any]:
    clean: Dict[str, Any] = {}
    for key, value in fields.items():
        if key.lower() in _SECRET_KEYS:
            clean[key] = "***"
        elif isinstance(value, Mapping):
            clean[key] = _sanitize(dict(value))
        elif key == "text" and isinstance(value, str) and len(value) > TEXT_PREVIEW_CHARS:
            clean[key] = value[:TEXT_PREVIEW_CHARS] + "..."
        else:
            clean[key] = value
    return clean


def _log(
    logger: logging.Logger,
    level: int,
    tag: str,
    msg: str,
    numeric_level: int,
    fields: Dict[str, Any],
) -> None:
    if numeric_level > get_level():
        return

    seconds = fields.pop("seconds", None)
    exc_info = fields.pop("exc_info", None)
    logger.log(
        level,
        msg,
        exc_info=exc_info,
        extra={
            "tag": tag,
            "request_id": get_request_id(),
            "seconds": seconds,
            "extra_data": _sanitize(fields) or None,
            "numeric_level": numeric_level,
        },
    )


def get_logger(name: str = "tts-relay") -> logging.Logger:
    """Return a named logger; configures logging on first use."""
    configure_logging()
    return logging.getLogger(name)


def info(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Request lifecycle event."""
    _log(logger, logging.INFO, "INFO", msg, LogLevel.NORMAL, fields)


def warn(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Rejected input, rate limiting, skipped files."""
    _log(logger, logging.WARNING, "WARN", msg, LogLevel.NORMAL, fields)


def error(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Failure visible to a client. Shown even at MINIMAL."""
    _log(logger, logging.ERROR, "ERROR", msg, LogLevel.MINIMAL, fields)


def success(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.INFO, "SUCCESS", msg, LogLevel.NORMAL, fields)


def fail(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Classified remote or validation failure. Shown even at MINIMAL."""
    _log(logger, logging.ERROR, "FAIL", msg, LogLevel.MINIMAL, fields)


def verbose(logger: logging.Logger, msg: str, **fields: Any) -> None:
    _log(logger, logging.DEBUG, "INFO", msg, LogLevel.VERBOSE, fields)


def debug(logger: logging.Logger, msg: str, **fields: Any) -> None:
    """Payload dumps; credentials are masked."""
    _log(logger, logging.DEBUG - 5, "DEBUG", msg, LogLevel.DEBUG, fields)


__all__ = [
    "LogLevel",
    "coerce_level",
    "ColoredConsoleFormatter",
    "JsonlFormatter",
    "configure_logging",
    "get_logger",
    "get_level",
    "get_level_name",
    "get_request_id",
    "set_request_id",
    "info",
    "warn",
    "error",
    "success",
    "fail",
    "verbose",
    "debug",
]
