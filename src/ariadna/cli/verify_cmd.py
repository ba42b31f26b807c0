"""Verification commands.

Provides:
- ariadna-tools verify plan-structure|phase-completeness|references|commits|artifacts|key-links
- ariadna-tools validate consistency
- ariadna-tools verify-summary <path>
"""

import click

from ariadna import verification
from ariadna.cli.output import emit, project_root


def _verdict(result: dict, key: str, yes: str = "valid", no: str = "invalid") -> str | None:
    """Raw word for a pass/fail key; payloads without the key (errors) print as JSON."""
    if key not in result:
        return None
    return yes if result[key] else no


@click.group()
def verify() -> None:
    """Check plans, phases and must-haves against the repository."""


@verify.command(name="plan-structure")
@click.argument("file", required=False)
def plan_structure(file: str | None) -> None:
    """Required frontmatter and well-formed <task> elements in a PLAN."""
    result = verification.plan_structure(project_root(), file)
    emit(result, _verdict(result, "valid"))


@verify.command(name="phase-completeness")
@click.argument("phase", required=False)
def phase_completeness(phase: str | None) -> None:
    """Every PLAN in a phase has a SUMMARY."""
    result = verification.phase_completeness(project_root(), phase)
    emit(result, _verdict(result, "complete", "complete", "incomplete"))


@verify.command()
@click.argument("file", required=False)
def references(file: str | None) -> None:
    """@-references and backticked paths in a document exist."""
    result = verification.references(project_root(), file)
    emit(result, _verdict(result, "valid"))


@verify.command()
@click.argument("hashes", nargs=-1)
def commits(hashes: tuple[str, ...]) -> None:
    """Commit hashes resolve in git history."""
    result = verification.commits(project_root(), list(hashes))
    emit(result, _verdict(result, "all_valid"))


@verify.command()
@click.argument("plan", required=False)
def artifacts(plan: str | None) -> None:
    """must_haves.artifacts exist with the expected content."""
    result = verification.artifacts(project_root(), plan)
    emit(result, _verdict(result, "all_passed"))


@verify.command(name="key-links")
@click.argument("plan", required=False)
def key_links(plan: str | None) -> None:
    """must_haves.key_links are wired between files."""
    result = verification.key_links(project_root(), plan)
    emit(result, _verdict(result, "all_verified"))


@click.group()
def validate() -> None:
    """Whole-project checks."""


@validate.command()
def consistency() -> None:
    """Phase numbering and disk/roadmap agreement."""
    result = verification.consistency(project_root())
    emit(result, _verdict(result, "passed", "passed", "failed"))


@click.command(name="verify-summary")
@click.argument("path", required=False)
@click.option("--check-count", type=int, default=verification.DEFAULT_CHECK_COUNT, show_default=True,
              help="How many mentioned files to spot-check")
def verify_summary(path: str | None, check_count: int) -> None:
    """Spot-check a SUMMARY against the repository."""
    result = verification.verify_summary(project_root(), path, check_count)
    emit(result, _verdict(result, "passed", "passed", "failed"))
