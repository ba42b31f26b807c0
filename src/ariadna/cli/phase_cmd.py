"""Phase directory commands.

Provides:
- ariadna-tools find-phase <phase>
- ariadna-tools phase-plan-index <phase>: Plans with waves, domains and task counts
- ariadna-tools phase next-decimal|add|insert|remove|complete
- ariadna-tools phases list
- ariadna-tools milestone complete <version>
"""

import click

from ariadna import phases as phase_ops
from ariadna.cli.output import emit, project_root


@click.command(name="find-phase")
@click.argument("phase", required=False)
def find_phase_cmd(phase: str | None) -> None:
    """Locate a phase directory (raw: its path)."""
    result = phase_ops.find(project_root(), phase)
    emit(result, result["directory"] or "")


@click.command(name="phase-plan-index")
@click.argument("phase", required=False)
def phase_plan_index(phase: str | None) -> None:
    """Index a phase's plans, grouped into execution waves."""
    emit(phase_ops.plan_index(project_root(), phase))


@click.group()
def phase() -> None:
    """Create, number and retire phase directories."""


@phase.command(name="next-decimal")
@click.argument("base", required=False)
def next_decimal(base: str | None) -> None:
    """Next free decimal phase after BASE (e.g. 06 -> 06.3)."""
    result = phase_ops.next_decimal(project_root(), base)
    emit(result, result["next"])


@phase.command()
@click.argument("description", nargs=-1)
def add(description: tuple[str, ...]) -> None:
    """Append a new integer phase."""
    result = phase_ops.add(project_root(), " ".join(description))
    emit(result, result["phase"])


@phase.command()
@click.argument("after", required=False)
@click.argument("description", nargs=-1)
def insert(after: str | None, description: tuple[str, ...]) -> None:
    """Insert a decimal phase after AFTER."""
    result = phase_ops.insert(project_root(), after, " ".join(description))
    emit(result, result.get("phase", False))


@phase.command()
@click.argument("phase_id", metavar="PHASE", required=False)
@click.option("--force", is_flag=True, help="Remove even if the phase holds documents")
def remove(phase_id: str | None, force: bool) -> None:
    """Delete a phase directory."""
    result = phase_ops.remove(project_root(), phase_id, force=force)
    emit(result, result["removed"])


@phase.command()
@click.argument("phase_id", metavar="PHASE", required=False)
def complete(phase_id: str | None) -> None:
    """Mark a phase complete in ROADMAP.md."""
    result = phase_ops.complete(project_root(), phase_id)
    emit(result, result["completed"])


@click.group()
def phases() -> None:
    """Inspect phase directories."""


@phases.command(name="list")
@click.option("--type", "file_type", help="List files instead: plans, summaries or all")
@click.option("--phase", "phase_id", help="Restrict to one phase")
def list_cmd(file_type: str | None, phase_id: str | None) -> None:
    """List phase directories in numeric order."""
    result = phase_ops.list_phases(project_root(), file_type, phase_id)
    emit(result, "\n".join(result.get("files", result.get("directories", []))))


@click.group()
def milestone() -> None:
    """Milestone bookkeeping."""


@milestone.command(name="complete")
@click.argument("version", required=False)
@click.option("--name", help="Milestone name (default: v<VERSION>)")
def milestone_complete(version: str | None, name: str | None) -> None:
    """Record a completed milestone under .planning/milestones."""
    result = phase_ops.milestone_complete(project_root(), version, name)
    emit(result, result["archived"])
