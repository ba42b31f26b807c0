"""Small utilities used by workflows.

Provides:
- ariadna-tools commit <message> [--files f ...] [--amend]
- ariadna-tools generate-slug <text>
- ariadna-tools current-timestamp [date|filename|full]
- ariadna-tools list-todos [area]
- ariadna-tools todo complete <file>
- ariadna-tools verify-path-exists <path>
"""

from pathlib import Path

import click

from ariadna import git, todos
from ariadna.cli.output import emit, project_root
from ariadna.errors import usage_error
from ariadna.utils import filename_timestamp, iso_timestamp, path_kind, slugify, today

SKIPPED_REASONS = frozenset({"skipped_commit_docs_false", "skipped_gitignored", "nothing_to_commit"})


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("message", required=False)
@click.argument("rest", nargs=-1, type=click.UNPROCESSED)
@click.option("--amend", is_flag=True, help="Amend the previous commit")
def commit(message: str | None, rest: tuple[str, ...], amend: bool) -> None:
    """Stage and commit planning documents.

    Without --files the whole .planning/ directory is staged.

    Example:

        ariadna-tools commit "docs(03): add plans" --files .planning/phases/03-api
    """
    files: list[str] = []
    if "--files" in rest:
        files = [a for a in rest[rest.index("--files") + 1:] if not a.startswith("--")]

    result = git.commit(project_root(), message, files, amend=amend)
    if result["committed"]:
        raw = result["hash"]
    elif result["reason"] in SKIPPED_REASONS:
        raw = "skipped"
    else:
        raw = "failed"
    emit(result, raw)


@click.command(name="generate-slug")
@click.argument("text", required=False)
def generate_slug(text: str | None) -> None:
    """Lowercase, dash-separated slug of TEXT."""
    if not text:
        raise usage_error("text required for slug generation")
    slug = slugify(text)
    emit({"slug": slug}, slug)


@click.command(name="current-timestamp")
@click.argument("fmt", metavar="[date|filename|full]", required=False, default="full")
def current_timestamp(fmt: str) -> None:
    """Current UTC time."""
    if fmt == "date":
        stamp = today()
    elif fmt == "filename":
        stamp = filename_timestamp()
    else:
        stamp = iso_timestamp()
    emit({"timestamp": stamp}, stamp)


@click.command(name="list-todos")
@click.argument("area", required=False)
def list_todos(area: str | None) -> None:
    """Pending todos, optionally for one area (raw: the count)."""
    result = todos.list_todos(project_root(), area)
    emit(result, str(result["count"]))


@click.group()
def todo() -> None:
    """Manage .planning/todos."""


@todo.command(name="complete")
@click.argument("filename", metavar="FILE", required=False)
def todo_complete(filename: str | None) -> None:
    """Move a pending todo to todos/completed."""
    result = todos.complete(project_root(), filename)
    emit(result, result["completed"])


@click.command(name="verify-path-exists")
@click.argument("path", required=False)
def verify_path_exists(path: str | None) -> None:
    """Whether PATH exists, and whether it is a file or directory."""
    if not path:
        raise usage_error("path required for verification")
    target = Path(path)
    kind = path_kind(target if target.is_absolute() else project_root() / target)
    emit({"exists": kind is not None, "type": kind}, kind is not None)
