"""Workflow context bundles.

`ariadna-tools init <workflow> [args] [--include state,roadmap,...]` prints
everything a workflow needs in one JSON document: resolved models, config
flags, phase details, existence checks and, on request, file contents.
"""

import click

from ariadna import workflows
from ariadna.cli.output import emit, project_root, split_csv


@click.command()
@click.argument("workflow", required=False)
@click.argument("args", nargs=-1)
@click.option("--include", help="Comma-separated planning files to inline (state, roadmap, config, ...)")
def init(workflow: str | None, args: tuple[str, ...], include: str | None) -> None:
    """Build the context bundle for WORKFLOW.

    \b
    Workflows: execute-phase, plan-phase, new-project, new-milestone, quick,
    resume, verify-work, phase-op, todos, milestone-op, map-codebase, progress
    """
    emit(workflows.run(project_root(), workflow, list(args), split_csv(include)))
