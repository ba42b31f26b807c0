"""Result output for CLI commands.

Every command prints one pretty JSON document on stdout. When `--raw` was
given anywhere on the command line and the command defines a raw value,
that bare value is printed instead so shell workflows can capture it.
"""

import json
from pathlib import Path
from typing import Any

import click


def _root_obj() -> dict[str, Any]:
    ctx = click.get_current_context()
    obj = ctx.find_root().obj
    return obj if isinstance(obj, dict) else {}


def project_root() -> Path:
    """Project directory commands operate on (the working directory by default)."""
    return Path(_root_obj().get("root") or Path.cwd())


def raw_requested() -> bool:
    return bool(_root_obj().get("raw"))


def to_raw(value: Any) -> str:
    """Render a value for raw output: lowercase booleans, empty None, JSON for collections."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def emit(result: Any, raw_value: Any = None) -> None:
    """Print a command result.

    Args:
        result: JSON-serializable payload
        raw_value: Value printed instead under --raw (None means the command
            has no raw form and prints JSON regardless)
    """
    if raw_requested() and raw_value is not None:
        click.echo(to_raw(raw_value), nl=False)
        return
    click.echo(json.dumps(result, indent=2, ensure_ascii=False))


def split_csv(value: str | None) -> list[str]:
    """`"a, b,c"` -> ["a", "b", "c"]."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]
