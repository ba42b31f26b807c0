"""STATE.md commands.

Provides:
- ariadna-tools state load|get|update|patch|advance-plan|record-metric|
  update-progress|add-decision|add-blocker|resolve-blocker|record-session
- ariadna-tools state-snapshot: All **Field:** values
- ariadna-tools summary-extract <path>: SUMMARY frontmatter
- ariadna-tools history-digest: Aggregated SUMMARY history
"""

import click

from ariadna import state as state_ops
from ariadna.cli.output import emit, project_root, raw_requested, split_csv, to_raw
from ariadna.errors import usage_error


def _flag(result: dict, key: str):
    """Raw "true"/"false" for results that carry `key`, else no raw form."""
    return result[key] if key in result else None


@click.group()
def state() -> None:
    """Read and update .planning/STATE.md."""


@state.command()
def load() -> None:
    """Config plus STATE.md content and existence flags."""
    result = state_ops.load(project_root())
    if raw_requested():
        lines = [f"{k}={to_raw(v)}" for k, v in result["config"].items()]
        lines += [f"{k}={to_raw(result[k])}" for k in ("config_exists", "roadmap_exists", "state_exists")]
        click.echo("\n".join(lines), nl=False)
        return
    emit(result)


@state.command()
@click.argument("section", required=False)
def get(section: str | None) -> None:
    """Print STATE.md, or one field or section of it."""
    result = state_ops.get(project_root(), section)
    if not section:
        emit(result, result["content"])
    else:
        emit(result, result.get(section, ""))


@state.command()
@click.argument("field", required=False)
@click.argument("value", required=False)
def update(field: str | None, value: str | None) -> None:
    """Set one **Field:** value."""
    emit(state_ops.update(project_root(), field, value))


@state.command(context_settings={"ignore_unknown_options": True, "allow_extra_args": True})
@click.argument("pairs", nargs=-1, type=click.UNPROCESSED)
def patch(pairs: tuple[str, ...]) -> None:
    """Set several fields at once.

    Example:

        ariadna-tools state patch --Status "In progress" --"Current Plan" 2
    """
    patches: dict[str, str] = {}
    i = 0
    while i < len(pairs):
        if pairs[i].startswith("--"):
            if i + 1 >= len(pairs):
                raise usage_error(f"Missing value for {pairs[i]}")
            patches[pairs[i][2:]] = pairs[i + 1]
            i += 2
        else:
            i += 1

    result = state_ops.patch(project_root(), patches)
    emit(result, bool(result["updated"]))


@state.command(name="advance-plan")
def advance_plan() -> None:
    """Move to the next plan of the current phase."""
    result = state_ops.advance_plan(project_root())
    emit(result, _flag(result, "advanced"))


@state.command(name="record-metric")
@click.option("--phase", help="Phase number")
@click.option("--plan", help="Plan number")
@click.option("--duration", help="Execution time (e.g. 12min)")
@click.option("--tasks", help="Tasks completed")
@click.option("--files", help="Files touched")
def record_metric(phase, plan, duration, tasks, files) -> None:
    """Append a row to the Performance Metrics table."""
    result = state_ops.record_metric(project_root(), phase, plan, duration, tasks, files)
    emit(result, _flag(result, "recorded"))


@state.command(name="update-progress")
def update_progress() -> None:
    """Recompute the Progress bar from plans and summaries on disk."""
    result = state_ops.update_progress(project_root())
    if "bar" in result:
        emit(result, result["bar"])
    else:
        emit(result, _flag(result, "updated"))


@state.command(name="add-decision")
@click.option("--summary", help="What was decided")
@click.option("--phase", help="Phase the decision belongs to")
@click.option("--rationale", help="Why")
def add_decision(summary, phase, rationale) -> None:
    """Record a decision under the Decisions section."""
    result = state_ops.add_decision(project_root(), summary, phase, rationale)
    emit(result, _flag(result, "added"))


@state.command(name="add-blocker")
@click.argument("text_arg", required=False)
@click.option("--text", help="Blocker description")
def add_blocker(text_arg, text) -> None:
    """Add a blocker."""
    result = state_ops.add_blocker(project_root(), text or text_arg)
    emit(result, _flag(result, "added"))


@state.command(name="resolve-blocker")
@click.argument("text_arg", required=False)
@click.option("--text", help="Text identifying the blocker")
def resolve_blocker(text_arg, text) -> None:
    """Remove blockers matching the given text."""
    result = state_ops.resolve_blocker(project_root(), text or text_arg)
    emit(result, _flag(result, "resolved"))


@state.command(name="record-session")
@click.option("--stopped-at", help="Where work stopped")
@click.option("--resume-file", help="File to resume from")
def record_session(stopped_at, resume_file) -> None:
    """Stamp the session continuity fields."""
    result = state_ops.record_session(project_root(), stopped_at, resume_file)
    emit(result, _flag(result, "recorded"))


@click.command(name="state-snapshot")
def state_snapshot() -> None:
    """Every **Field:** value pair in STATE.md."""
    emit(state_ops.snapshot(project_root()))


@click.command(name="summary-extract")
@click.argument("path", required=False)
@click.option("--fields", help="Comma-separated fields to keep")
def summary_extract(path, fields) -> None:
    """Frontmatter of a SUMMARY file."""
    emit(state_ops.summary_extract(project_root(), path, split_csv(fields) or None))


@click.command(name="history-digest")
def history_digest() -> None:
    """What each phase provided, affected and decided (from SUMMARY files)."""
    emit(state_ops.history_digest(project_root()))
