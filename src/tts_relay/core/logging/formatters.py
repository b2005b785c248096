"""
Log formatters.

    JsonlFormatter: one JSON object per line, for the rotating log file.
        {"ts": "...", "level": 2, "tag": "SUCCESS", "message": "tts_success",
         "request_id": "a1b2c3d4e5f6", "logger": "tts-relay.service",
         "seconds": 1.42, "extra": {"filename": "tts_....mp3", "size_bytes": 20480}}

    ColoredConsoleFormatter: a single human-readable line.
        14:30:05 [SUCCESS] (a1b2c3d4e5f6) tts_success 1.420s filename=tts_....mp3 size_bytes=20480

Both read the structured attributes that tts_relay.core.logging attaches to
each record: tag, request_id, seconds, extra_data, numeric_level.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict

from . import colors
from .colors import Colors, get_tag_color

# Remote synthesis of a paragraph usually takes 1-3 s
_FAST_SECONDS = 0.5
_SLOW_SECONDS = 3.0


def _structured(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        "tag": getattr(record, "tag", record.levelname),
        "request_id": getattr(record, "request_id", "-"),
        "seconds": getattr(record, "seconds", None),
        "extra": getattr(record, "extra_data", None) or {},
    }


class JsonlFormatter(logging.Formatter):
    """Format records as JSON Lines."""

    def format(self, record: logging.LogRecord) -> str:
        s = _structured(record)
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": getattr(record, "numeric_level", 2),
            "tag": s["tag"],
            "message": record.getMessage(),
            "request_id": s["request_id"],
            "logger": record.name,
        }
        if s["seconds"] is not None:
            payload["seconds"] = s["seconds"]
        if s["extra"]:
            payload["extra"] = s["extra"]
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Format records as ``HH:MM:SS [ TAG ] (rid) message 0.123s key=value``."""

    @staticmethod
    def _timing_color(seconds: float) -> str:
        if seconds < _FAST_SECONDS:
            return Colors.GREEN
        if seconds < _SLOW_SECONDS:
            return Colors.YELLOW
        return Colors.RED

    def format(self, record: logging.LogRecord) -> str:
        s = _structured(record)
        paint = colors.colorize

        parts = [
            paint(datetime.fromtimestamp(record.created).strftime("%H:%M:%S"), Colors.DIM),
            paint(f"[{s['tag']:^7}]", get_tag_color(s["tag"])),
        ]
        if s["request_id"] != "-":
            parts.append(paint(f"({s['request_id']})", Colors.DIM))
        parts.append(record.getMessage())
        if s["seconds"] is not None:
            parts.append(paint(f"{s['seconds']:.3f}s", self._timing_color(s["seconds"])))
        for key, value in s["extra"].items():
            parts.append(paint(f"{key}={value}", Colors.BLUE if key in ("status", "status_code") else Colors.DIM))

        line = " ".join(parts)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line
