"""ROADMAP.md and progress commands."""

import click

from ariadna import roadmap as roadmap_ops
from ariadna.cli.output import emit, project_root


@click.group()
def roadmap() -> None:
    """Read .planning/ROADMAP.md."""


@roadmap.command(name="get-phase")
@click.argument("phase", required=False)
def get_phase(phase: str | None) -> None:
    """Print one phase section (raw: the section text)."""
    result = roadmap_ops.get_phase(project_root(), phase)
    emit(result, result.get("section", ""))


@roadmap.command()
def analyze() -> None:
    """Compare roadmap phases with their directories on disk."""
    emit(roadmap_ops.analyze(project_root()))


@click.command()
@click.argument("fmt", metavar="[json|table|bar]", required=False, default="json")
def progress(fmt: str) -> None:
    """Overall plan completion.

    `table` and `bar` print rendered text; `json` prints per-phase counts.
    """
    result = roadmap_ops.progress(project_root(), fmt)
    if "rendered" in result:
        emit(result, result["rendered"])
    elif "bar" in result:
        emit(result, result["bar"])
    else:
        emit(result)
