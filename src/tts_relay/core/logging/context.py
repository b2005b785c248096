"""
Request correlation and logging state.

The request id lives in a ContextVar so concurrent requests served from
the FastAPI thread pool each see their own id. The remaining state
(configured flag, current level, resolved config) is process-wide.

Environment Variables:
    - TTS_RELAY_LOG_LEVEL: Log level (1-4 or name)
    - TTS_RELAY_LOG_DIR: Directory for the JSONL log file
    - TTS_RELAY_JSONL_FILE: JSONL filename (default tts-relay.jsonl)
    - TTS_RELAY_LOG_ROTATE_BYTES: Max file size before rotation
    - TTS_RELAY_LOG_ROTATE_BACKUP: Rotated files to keep
"""
from __future__ import annotations

import os
from contextvars import ContextVar
from typing import Any, Dict, Optional

from .levels import LEVEL_NAMES, LogLevel

# "-" marks log records emitted outside of a request
_request_id: ContextVar[str] = ContextVar("request_id", default="-")

_configured: bool = False
_current_level: LogLevel = LogLevel.NORMAL


def get_request_id() -> str:
    """Return the request id bound to the current context."""
    return _request_id.get()


def set_request_id(rid: str) -> None:
    """Bind a request id to the current context."""
    _request_id.set(rid)


def get_level() -> LogLevel:
    return _current_level


def set_level(level: LogLevel) -> None:
    global _current_level
    _current_level = level


def get_level_name() -> str:
    return LEVEL_NAMES.get(_current_level, "NORMAL")


def is_configured() -> bool:
    return _configured


def set_configured(value: bool) -> None:
    global _configured
    _configured = value


def read_logging_config(settings_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Resolve the logging configuration.

    Priority (highest first):
        1. TTS_RELAY_LOG_* environment variables
        2. The ``logging`` section of the settings file
        3. Defaults applied by configure_logging()
    """
    from tts_relay.core.config import load_settings

    cfg: Dict[str, Any] = dict(load_settings(settings_path).logging)

    if os.getenv("TTS_RELAY_LOG_LEVEL"):
        cfg["level"] = os.environ["TTS_RELAY_LOG_LEVEL"]
    if os.getenv("TTS_RELAY_LOG_DIR"):
        cfg["log_dir"] = os.environ["TTS_RELAY_LOG_DIR"]
    if os.getenv("TTS_RELAY_JSONL_FILE"):
        cfg["jsonl_file"] = os.environ["TTS_RELAY_JSONL_FILE"]
    for env_name, key in (
        ("TTS_RELAY_LOG_ROTATE_BYTES", "rotate_max_bytes"),
        ("TTS_RELAY_LOG_ROTATE_BACKUP", "rotate_backup_count"),
    ):
        value = os.getenv(env_name)
        if value and value.isdigit():
            cfg[key] = int(value)

    return cfg
