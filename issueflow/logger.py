"""
Logging module for issueflow.

Provides a simple interface to configure and retrieve loggers using Python's
built-in logging module.
"""

from __future__ import annotations

import contextvars
import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler

DEFAULT_CONTEXT = "issueflow"

# Context variable for the repository being evaluated (thread-safe)
_repo_context: contextvars.ContextVar[str] = contextvars.ContextVar(
    "repo_context", default=DEFAULT_CONTEXT
)


def set_repo_context(repo: str | None = None, issue_number: int | None = None) -> None:
    """Set the current repository context for logging.

    Args:
        repo: Repository in 'owner/repo' format
        issue_number: Optional issue number, appended as '#N'
    """
    if not repo:
        _repo_context.set(DEFAULT_CONTEXT)
    elif issue_number is not None:
        _repo_context.set(f"{repo}#{issue_number}")
    else:
        _repo_context.set(repo)


def clear_repo_context() -> None:
    """Clear the repository context, resetting to issueflow."""
    _repo_context.set(DEFAULT_CONTEXT)


def get_repo_context() -> str:
    """Get the current repository context string."""
    return _repo_context.get()


# ANSI color codes
class Colors:
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    GRAY = "\033[90m"
    ORANGE = "\033[38;5;208m"


# Semantic color categories for INFO logs
# Keywords that indicate specific event types
SEMANTIC_COLORS = {
    # Generating/Loading - Green
    "loading": ("green", ">>>"),
    "generating": ("green", ">>>"),
    "writing": ("green", ">>>"),
    # Completion - Green
    "completed": ("green", "✓"),
    "generated": ("green", "✓"),
    "valid config": ("green", "✓"),
    # Plans - Blue
    "label sync plan": ("blue", "⇄"),
    "column sync plan": ("blue", "⇄"),
    # Escalation - Magenta
    "escalat": ("magenta", "⬆"),
    # SLA - Yellow
    "blocked": ("yellow", "→"),
    "warning": ("yellow", "→"),
    # Skipping - Gray
    "skipping": ("gray", "⊘"),
    "no issues": ("gray", "⊘"),
    "already": ("gray", "⊘"),
    # Inference - Orange
    "inferred": ("orange", "⚙"),
}


class DateRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that adds date (yyyy-mm-dd) to backup filenames."""

    def rotation_filename(self, default_name: str) -> str:
        """Generate backup filename with date."""
        # default_name is like "issueflow.log.1"
        # We want "issueflow.2024-01-15.log.1"
        base = self.baseFilename
        dirname = os.path.dirname(base)
        basename = os.path.basename(base)

        suffix = default_name[len(base) :]
        date_str = datetime.now().strftime("%Y-%m-%d")

        if "." in basename:
            name_part, ext = basename.rsplit(".", 1)
            new_name = f"{name_part}.{date_str}.{ext}{suffix}"
        else:
            new_name = f"{basename}.{date_str}{suffix}"

        return os.path.join(dirname, new_name)


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors based on log level and semantic content."""

    COLOR_MAP = {
        "green": Colors.GREEN,
        "blue": Colors.BLUE,
        "magenta": Colors.MAGENTA,
        "yellow": Colors.YELLOW,
        "gray": Colors.GRAY,
        "red": Colors.RED,
        "orange": Colors.ORANGE,
    }

    def _get_semantic_color(self, message: str) -> tuple[str, str] | None:
        """
        Determine semantic color based on message content.

        Returns tuple of (color_name, prefix_symbol) or None if no match.
        """
        message_lower = message.lower()
        for keyword, (color, prefix) in SEMANTIC_COLORS.items():
            if keyword in message_lower:
                return (color, prefix)
        return None

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)

        if record.levelno >= logging.ERROR:
            return f"{Colors.RED}{message}{Colors.RESET}"
        elif record.levelno >= logging.WARNING:
            return f"{Colors.YELLOW}{message}{Colors.RESET}"

        if record.levelno == logging.INFO:
            semantic = self._get_semantic_color(record.getMessage())
            if semantic:
                color_name, prefix = semantic
                color_code = self.COLOR_MAP.get(color_name, "")
                return f"{color_code}{prefix} {message}{Colors.RESET}"

        return message


class ContextAwareFormatter(ColoredFormatter):
    """Formatter that injects the repository context from contextvars."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with repository context."""
        record.repo_context = get_repo_context()
        return super().format(record)


class PlainContextAwareFormatter(logging.Formatter):
    """Plain formatter (no colors) that injects the repository context."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with repository context."""
        record.repo_context = get_repo_context()
        return super().format(record)


LOG_FORMAT = "[%(asctime)s] %(levelname)s %(repo_context)s %(name)s: %(message)s"


def setup_logging(
    log_file: str | None = None,
    log_size: int = 10 * 1024 * 1024,
    log_backups: int = 5,
    quiet: bool = False,
) -> None:
    """
    Configure the root logger with a standard format and level.

    The log level can be configured via the LOG_LEVEL environment variable.
    Default level is INFO.

    Args:
        log_file: Path to log file. No file handler is added when empty.
        log_size: Max size in bytes before rotation. Default: 10MB
        log_backups: Number of backup files to keep. Default: 5
        quiet: If True, only WARNING and above reach the console. Used when
               a command writes machine-readable output to stdout.

    Output: stdout for INFO/DEBUG (unless quiet), stderr for WARNING+, and file.
    """
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    formatter = ContextAwareFormatter(LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    if not quiet:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(logging.DEBUG)
        stdout_handler.addFilter(lambda record: record.levelno < logging.WARNING)
        stdout_handler.setFormatter(formatter)
        root_logger.addHandler(stdout_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)
    root_logger.addHandler(stderr_handler)

    if log_file:
        try:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = DateRotatingFileHandler(
                log_file,
                maxBytes=log_size,
                backupCount=log_backups,
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(PlainContextAwareFormatter(LOG_FORMAT))
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"[logger] Failed to create file handler: {e}", file=sys.stderr)


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger with the specified name.

    Args:
        name: The name for the logger, typically __name__ of the calling module

    Returns:
        A configured Logger instance
    """
    return logging.getLogger(name)


def is_debug_mode() -> bool:
    """Check if logging is set to DEBUG level."""
    return logging.getLogger().level <= logging.DEBUG
