"""Shared helpers for planning files.

Provides:
- Slugs and phase-number normalization
- UTC timestamps in the formats planning documents use
- Safe reads and atomic writes
- Text progress bars
"""

import logging
import math
import os
import re
import tempfile
from datetime import UTC, datetime
from pathlib import Path

logger = logging.getLogger(__name__)

PHASE_NUMBER_RE = re.compile(r"^(\d+(?:\.\d+)?)")
PHASE_DIR_RE = re.compile(r"^(\d+(?:\.\d+)?)-?(.*)$")


def slugify(text: str) -> str:
    """Convert a description to a filesystem-safe slug.

    Args:
        text: Human-readable text

    Returns:
        Lowercase slug with hyphens (empty when nothing alphanumeric remains)

    Example:
        >>> slugify("Add OAuth Login!")
        'add-oauth-login'
    """
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return slug.strip("-")


def normalize_phase(phase: str | int | float) -> str:
    """Zero-pad the integer part of a phase number.

    Examples:
        >>> normalize_phase("1")
        '01'
        >>> normalize_phase("2.1")
        '02.1'
        >>> normalize_phase("setup")
        'setup'
    """
    text = str(phase)
    match = PHASE_NUMBER_RE.match(text)
    if not match:
        return text

    whole, _, decimal = match.group(1).partition(".")
    padded = whole.rjust(2, "0")
    return f"{padded}.{decimal}" if decimal else padded


def phase_sort_key(name: str) -> float:
    """Numeric sort key for a phase directory name (0 when unnumbered)."""
    match = PHASE_NUMBER_RE.match(name)
    return float(match.group(1)) if match else 0.0


def split_phase_dir(name: str) -> tuple[str, str | None]:
    """Split `02.1-oauth-flow` into ("02.1", "oauth-flow")."""
    match = PHASE_DIR_RE.match(name)
    if not match:
        return name, None
    return match.group(1), match.group(2) or None


def utc_now() -> datetime:
    """Current time in UTC, truncated to seconds."""
    return datetime.now(UTC).replace(microsecond=0)


def iso_timestamp(dt: datetime | None = None) -> str:
    """Format as `2026-01-31T12:00:00Z`."""
    dt = dt or utc_now()
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def today(dt: datetime | None = None) -> str:
    """Format as `2026-01-31`."""
    dt = dt or utc_now()
    return dt.strftime("%Y-%m-%d")


def filename_timestamp(dt: datetime | None = None) -> str:
    """Format as `2026-01-31T12-00-00` (safe in file names)."""
    dt = dt or utc_now()
    return dt.strftime("%Y-%m-%dT%H-%M-%S")


def read_text_safe(path: Path) -> str | None:
    """Read a file, returning None if it is missing or unreadable."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


def write_text_atomic(path: Path, content: str) -> None:
    """Write text via temp file + rename so readers never see a partial file.

    Raises:
        OSError: If the file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(suffix=".tmp", prefix=path.stem + "_", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    logger.debug("Wrote %s (%d bytes)", path, len(content))


def path_kind(path: Path) -> str | None:
    """Classify `path` as "directory" or "file" (None when missing)."""
    if path.is_dir():
        return "directory"
    if path.exists():
        return "file"
    return None


def progress_bar(percent: int, width: int) -> str:
    """Render a block progress bar like `████░░░░░░`."""
    filled = min(max(round_half_up(percent / 100 * width), 0), width)
    return "█" * filled + "░" * (width - filled)


def percent_of(done: int, total: int) -> int:
    """Rounded completion percentage (0 when there is nothing to do)."""
    if total <= 0:
        return 0
    return round_half_up(done / total * 100)


def round_half_up(value: float) -> int:
    """Round non-negative values with .5 going up (12.5 -> 13)."""
    return math.floor(value + 0.5)
