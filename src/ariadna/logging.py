"""Logging configuration for ariadna-tools.

stdout carries the JSON result that workflows parse, so every log record goes
to stderr (and optionally to a session file):
- Default: WARNING level (quiet operation)
- --debug flag: DEBUG level with full context
- ARIADNA_DEBUG=true or ARIADNA_LOG_LEVEL=DEBUG env vars: Override for CI/scripting
- Persistent logs: Stored in ~/.ariadna/logs/ with session rotation

Usage:
    from ariadna.logging import configure_logging
    configure_logging(debug=debug)

Priority for level resolution (highest to lowest):
    1. Explicit `level` parameter (programmatic override)
    2. ARIADNA_LOG_LEVEL env var (any level: DEBUG, INFO, WARNING, etc.)
    3. ARIADNA_DEBUG=true env var (simple boolean)
    4. `debug=True` parameter (--debug flag)
    5. WARNING (default)
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

_DEBUG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
_DEFAULT_FORMAT = "%(name)s: %(message)s"

_MAX_LOG_SESSIONS = 10


def _get_log_directory() -> Path:
    """Get or create the persistent log directory (~/.ariadna/logs)."""
    log_dir = Path.home() / ".ariadna" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _cleanup_old_logs(log_dir: Path, max_sessions: int = _MAX_LOG_SESSIONS) -> None:
    """Remove old session logs, keeping only the most recent N.

    Args:
        log_dir: Directory containing log files
        max_sessions: Maximum number of session logs to retain
    """
    if not log_dir.exists():
        return

    log_files = sorted(
        log_dir.glob("session_*.log"),
        key=lambda p: p.stat().st_mtime,
        reverse=True,
    )

    for old_log in log_files[max_sessions:]:
        try:
            old_log.unlink()
        except OSError:
            pass


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: object = None,
    persist: bool = False,
) -> None:
    """Configure logging for the CLI.

    Args:
        debug: Enable DEBUG level with detailed format
        level: Override log level (int or string like "DEBUG", "INFO")
        stream: Output stream (default: stderr)
        persist: Also write a session log under ~/.ariadna/logs/
    """
    resolved_level: int
    if level is not None:
        resolved_level = _parse_level(level)
    elif env_level := os.environ.get("ARIADNA_LOG_LEVEL"):
        resolved_level = _parse_level(env_level)
    elif os.environ.get("ARIADNA_DEBUG", "").lower() in ("true", "1", "yes"):
        resolved_level = logging.DEBUG
    elif debug:
        resolved_level = logging.DEBUG
    else:
        resolved_level = logging.WARNING

    console_format = _DEBUG_FORMAT if resolved_level <= logging.DEBUG else _DEFAULT_FORMAT

    root_logger = logging.getLogger()
    # File handler needs DEBUG records; the console handler filters on its own level
    root_logger.setLevel(logging.DEBUG if persist else resolved_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(console_handler)

    if persist:
        try:
            log_dir = _get_log_directory()
            _cleanup_old_logs(log_dir)

            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            log_file = log_dir / f"session_{timestamp}.log"

            file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(_DEBUG_FORMAT))
            root_logger.addHandler(file_handler)
        except OSError as e:
            sys.stderr.write(f"Warning: Could not enable persistent logging: {e}\n")

    logging.getLogger(__name__).debug(
        "Logging configured: level=%s, debug=%s, persist=%s",
        logging.getLevelName(resolved_level),
        debug,
        persist,
    )


def _parse_level(level: int | str) -> int:
    """Parse log level from int or string."""
    if isinstance(level, int):
        return level
    numeric = getattr(logging, level.upper(), None)
    if isinstance(numeric, int):
        return numeric
    try:
        return int(level)
    except ValueError:
        return logging.WARNING
