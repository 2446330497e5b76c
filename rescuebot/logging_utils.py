"""Logging utilities for RescueBot missions.

Provides color-coded console output to distinguish deterministic control work from
oracle calls, and echoes structured ``LogEntry`` records to the terminal.
"""

import os
from enum import Enum

from rescuebot.schemas import LogEntry, LogSeverity


class Color(Enum):
    """ANSI color codes for terminal output."""

    # Colors for operation types
    BLUE = "\033[94m"      # Deterministic operations (physics, perception, planning)
    YELLOW = "\033[93m"    # Oracle calls (decision requests)
    RED = "\033[91m"       # Errors and retries
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if RESCUEBOT_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("RESCUEBOT_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def log_deterministic(message: str) -> None:
    """Log a deterministic operation (blue)."""
    print(colored(message, Color.BLUE))


def log_oracle(message: str) -> None:
    """Log an oracle operation (yellow)."""
    print(colored(message, Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error or retry (red)."""
    print(colored(message, Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    print(colored(message, Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    print(colored(message, Color.CYAN))


# Markers for operation types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"
LOG_TAG_ORACLE = "[AI]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"

_SEVERITY_STYLE = {
    LogSeverity.INFO: (Color.CYAN, LOG_TAG_INFO),
    LogSeverity.WARNING: (Color.YELLOW, LOG_TAG_ERROR),
    LogSeverity.ERROR: (Color.RED, LOG_TAG_ERROR),
    LogSeverity.SUCCESS: (Color.GREEN, LOG_TAG_SUCCESS),
}


def format_log_entry(entry: LogEntry) -> str:
    """Render a LogEntry as a single tagged, colorized console line."""

    color, tag = _SEVERITY_STYLE[entry.severity]
    stamp = entry.timestamp.strftime("%H:%M:%S")
    line = f"  {tag} {stamp} [{entry.source.value}] {entry.message}"
    return colored(line, color, bold=entry.severity is LogSeverity.ERROR)


def echo_log_entry(entry: LogEntry) -> None:
    """Print a LogEntry to the console."""
    print(format_log_entry(entry))


def verbose_enabled() -> bool:
    """Return True when RESCUEBOT_VERBOSE requests console echo of mission logs."""
    return os.getenv("RESCUEBOT_VERBOSE", "").lower() in ("1", "true", "yes")
