"""Pending and completed todos under `.planning/todos`."""

import logging
import re
import shutil
from pathlib import Path
from typing import Any

from ariadna.errors import usage_error
from ariadna.utils import read_text_safe

logger = logging.getLogger(__name__)

TODOS_RELPATH = Path(".planning") / "todos"
PENDING_RELPATH = TODOS_RELPATH / "pending"
COMPLETED_RELPATH = TODOS_RELPATH / "completed"


def _field(content: str, name: str, default: str) -> str:
    m = re.search(rf"^{name}:\s*(.+)$", content, re.IGNORECASE | re.MULTILINE)
    return m.group(1).strip() if m else default


def pending_todos(root: Path, area: str | None = None) -> list[dict[str, str]]:
    """Pending todos, optionally restricted to one area."""
    pending_dir = root / PENDING_RELPATH
    if not pending_dir.is_dir():
        return []

    todos = []
    for path in sorted(pending_dir.glob("*.md")):
        content = read_text_safe(path)
        if content is None:
            logger.warning("Skipping unreadable todo %s", path)
            continue
        todo_area = _field(content, "area", "general")
        if area and todo_area != area:
            continue
        todos.append(
            {
                "file": path.name,
                "created": _field(content, "created", "unknown"),
                "title": _field(content, "title", "Untitled"),
                "area": todo_area,
                "path": str(PENDING_RELPATH / path.name),
            }
        )
    return todos


def list_todos(root: Path, area: str | None = None) -> dict[str, Any]:
    todos = pending_todos(root, area)
    return {"count": len(todos), "todos": todos}


def complete(root: Path, filename: str | None) -> dict[str, Any]:
    """Move a pending todo into `todos/completed`."""
    if not filename:
        raise usage_error("filename required")

    pending = root / PENDING_RELPATH / filename
    if not pending.exists():
        return {"completed": False, "reason": "not_found"}

    completed_dir = root / COMPLETED_RELPATH
    completed_dir.mkdir(parents=True, exist_ok=True)
    shutil.move(pending, completed_dir / filename)
    logger.info("Completed todo %s", filename)
    return {"completed": True, "file": filename}
