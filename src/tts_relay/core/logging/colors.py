"""
ANSI colors for console log output.

Colors are off when stdout is not a TTY, when NO_COLOR is set
(https://no-color.org/), or when TTS_RELAY_NO_COLOR=1. configure_logging()
re-evaluates USE_COLORS, so colorize() always reads it at call time.
"""
from __future__ import annotations

import os
import sys


class Colors:
    """ANSI escape codes used by the console formatter."""
    RESET = "\033[0m"
    DIM = "\033[2m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    GRAY = "\033[90m"
    BOLD_GREEN = "\033[1;32m"
    BOLD_RED = "\033[1;31m"
    BOLD_YELLOW = "\033[1;33m"


# Log tag -> color; unknown tags stay uncolored
_TAG_COLORS = {
    "SUCCESS": Colors.BOLD_GREEN,
    "FAIL": Colors.BOLD_RED,
    "ERROR": Colors.BOLD_RED,
    "WARN": Colors.BOLD_YELLOW,
    "INFO": Colors.CYAN,
    "DEBUG": Colors.GRAY,
}


def supports_color() -> bool:
    """True when console output should carry ANSI escapes."""
    if os.getenv("TTS_RELAY_NO_COLOR") == "1" or os.getenv("NO_COLOR"):
        return False
    stream_isatty = getattr(sys.stdout, "isatty", None)
    return bool(stream_isatty and stream_isatty())


USE_COLORS = supports_color()


def colorize(text: str, color: str) -> str:
    if not USE_COLORS or not color:
        return text
    return f"{color}{text}{Colors.RESET}"


def get_tag_color(tag: str) -> str:
    return _TAG_COLORS.get(tag.upper(), "")
