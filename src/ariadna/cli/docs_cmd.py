"""Frontmatter, template and scaffold commands.

Provides:
- ariadna-tools frontmatter get|set|merge|validate <file>
- ariadna-tools template select <plan-path>
- ariadna-tools template fill <summary|plan|verification> --phase N
- ariadna-tools scaffold <context|uat|verification|phase-dir>
"""

from pathlib import Path

import click

from ariadna import frontmatter, templates
from ariadna.cli.output import emit, project_root
from ariadna.errors import usage_error


def _resolve(file: str | None) -> Path:
    if not file:
        raise usage_error("file path required")
    return project_root() / file


@click.group(name="frontmatter")
def frontmatter_group() -> None:
    """Read and edit YAML frontmatter of planning documents."""


@frontmatter_group.command()
@click.argument("file", required=False)
@click.option("--field", help="Return only this field")
def get(file: str | None, field: str | None) -> None:
    """Print a file's frontmatter as JSON."""
    result = frontmatter.get_fields(_resolve(file), field, display=file)
    if field:
        emit(result, "" if result[field] is None else result[field])
    else:
        emit(result)


@frontmatter_group.command(name="set")
@click.argument("file", required=False)
@click.option("--field", help="Field to set")
@click.option("--value", help="New value (true/false and numbers are coerced)")
def set_cmd(file: str | None, field: str | None, value: str | None) -> None:
    """Set one frontmatter field."""
    result = frontmatter.set_field(_resolve(file), field, value, display=file)
    emit(result, True)


@frontmatter_group.command()
@click.argument("file", required=False)
@click.option("--data", help="JSON object to merge")
def merge(file: str | None, data: str | None) -> None:
    """Merge a JSON object into the frontmatter."""
    result = frontmatter.merge_fields(_resolve(file), data, display=file)
    emit(result, True)


@frontmatter_group.command()
@click.argument("file", required=False)
@click.option("--schema", help="plan, summary or verification")
def validate(file: str | None, schema: str | None) -> None:
    """Check required frontmatter fields for a document type."""
    result = frontmatter.validate_file(_resolve(file), schema, display=file)
    emit(result, result["valid"])


@click.group()
def template() -> None:
    """Pick and fill document templates."""


@template.command()
@click.argument("plan_path", metavar="PLAN_PATH", required=False)
def select(plan_path: str | None) -> None:
    """Choose a SUMMARY template (minimal, standard, complex) for a plan."""
    result = templates.select(project_root(), plan_path)
    emit(result, result["template"])


@template.command()
@click.argument("template_type", metavar="TYPE", required=False)
@click.option("--phase", help="Phase identifier")
@click.option("--plan", help="Plan number (default 01)")
@click.option("--name", help="Phase name used in headings")
@click.option("--type", "plan_type", help="Plan type (default execute)")
@click.option("--wave", help="Plan wave (default 1)")
@click.option("--fields", help="JSON object merged into the frontmatter")
def fill(template_type, phase, plan, name, plan_type, wave, fields) -> None:
    """Write a summary, plan or verification skeleton into a phase."""
    result = templates.fill(project_root(), template_type, phase, plan, name, plan_type, wave, fields)
    emit(result, result.get("path") if result.get("created") else None)


@click.command()
@click.argument("kind", metavar="TYPE", required=False)
@click.option("--phase", help="Phase identifier")
@click.option("--name", help="Phase name (phase-dir only)")
def scaffold(kind: str | None, phase: str | None, name: str | None) -> None:
    """Create a CONTEXT, UAT or VERIFICATION document, or a phase directory."""
    result = templates.scaffold(project_root(), kind, phase, name)
    emit(result, result["path"] if result["created"] else "exists")
