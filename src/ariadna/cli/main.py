"""Main CLI entry point.

Workflows call the tool as:
    ariadna-tools <command> [args] [--raw]

`--raw` may appear anywhere on the command line; it switches commands that
have a bare value (a path, a model name, a slug) to print just that value.
"""

from __future__ import annotations

from pathlib import Path

import click

from ariadna import __version__
from ariadna.cli.error_handler import handle_error
from ariadna.errors import AriadnaError
from ariadna.logging import configure_logging


class RawFlagGroup(click.Group):
    """Group that accepts `--raw` at any position and routes failures to the error handler."""

    def parse_args(self, ctx, args):
        """Strip `--raw` from the arguments before click sees them."""
        ctx.ensure_object(dict)
        if "--raw" in args:
            ctx.obj["raw"] = True
            args = [a for a in args if a != "--raw"]
        return super().parse_args(ctx, args)

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except (AriadnaError, OSError) as e:
            handle_error(e)


@click.group(cls=RawFlagGroup)
@click.option("--debug", is_flag=True, help="Log debug output to stderr")
@click.option("--log-file", is_flag=True, help="Also keep a session log under ~/.ariadna/logs")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx, debug: bool, log_file: bool) -> None:
    """Ariadna planning tools.

    \b
    Read and update a project's .planning directory:

        ariadna-tools init execute-phase 3
        ariadna-tools find-phase 2.1 --raw
        ariadna-tools state advance-plan
        ariadna-tools phase-plan-index 3

    Results are printed as JSON; add --raw for the bare value.
    """
    configure_logging(debug=debug, persist=log_file)
    ctx.ensure_object(dict)
    ctx.obj.setdefault("root", Path.cwd())


# Register command modules
from ariadna.cli import config_cmd  # noqa: E402

main.add_command(config_cmd.config_ensure_section)
main.add_command(config_cmd.config_set)
main.add_command(config_cmd.config_get)
main.add_command(config_cmd.resolve_model_cmd)

from ariadna.cli import state_cmd  # noqa: E402

main.add_command(state_cmd.state)
main.add_command(state_cmd.state_snapshot)
main.add_command(state_cmd.summary_extract)
main.add_command(state_cmd.history_digest)

from ariadna.cli import phase_cmd  # noqa: E402

main.add_command(phase_cmd.find_phase_cmd)
main.add_command(phase_cmd.phase_plan_index)
main.add_command(phase_cmd.phase)
main.add_command(phase_cmd.phases)
main.add_command(phase_cmd.milestone)

from ariadna.cli import roadmap_cmd  # noqa: E402

main.add_command(roadmap_cmd.roadmap)
main.add_command(roadmap_cmd.progress)

from ariadna.cli import docs_cmd  # noqa: E402

main.add_command(docs_cmd.frontmatter_group)
main.add_command(docs_cmd.template)
main.add_command(docs_cmd.scaffold)

from ariadna.cli import verify_cmd  # noqa: E402

main.add_command(verify_cmd.verify)
main.add_command(verify_cmd.validate)
main.add_command(verify_cmd.verify_summary)

from ariadna.cli import util_cmd  # noqa: E402

main.add_command(util_cmd.commit)
main.add_command(util_cmd.generate_slug)
main.add_command(util_cmd.current_timestamp)
main.add_command(util_cmd.list_todos)
main.add_command(util_cmd.todo)
main.add_command(util_cmd.verify_path_exists)

from ariadna.cli import init_cmd  # noqa: E402

main.add_command(init_cmd.init)
