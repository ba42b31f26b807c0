"""Configuration and model profile commands.

Provides:
- ariadna-tools config-ensure-section: Create .planning/config.json with defaults
- ariadna-tools config-set <key.path> <value>: Set a value (dot notation)
- ariadna-tools config-get [key]: Show the effective configuration
- ariadna-tools resolve-model <agent>: Model for an agent under the current profile
"""

import click

from ariadna import config, models
from ariadna.cli.output import emit, project_root, to_raw
from ariadna.errors import AriadnaError, ErrorCode


@click.command(name="config-ensure-section")
def config_ensure_section() -> None:
    """Create .planning/config.json with default settings if missing."""
    result = config.ensure_section(project_root())
    emit(result, "created" if result["created"] else "exists")


@click.command(name="config-set")
@click.argument("key", required=False)
@click.argument("value", required=False)
def config_set(key: str | None, value: str | None) -> None:
    """Set a configuration value using dot notation.

    Values "true", "false" and plain integers are stored as JSON booleans
    and numbers.

    Examples:

        ariadna-tools config-set model_profile quality
        ariadna-tools config-set workflow.research false
    """
    result = config.set_value(project_root(), key, value)
    emit(result, f"{key}={to_raw(result['value'])}")


@click.command(name="config-get")
@click.argument("key", required=False)
def config_get(key: str | None) -> None:
    """Show the effective configuration (file, defaults and ARIADNA_* overrides)."""
    effective = config.load_config(project_root()).to_dict()
    if not key:
        emit(effective)
        return

    if key not in effective:
        raise AriadnaError(
            ErrorCode.ARGUMENT_INVALID,
            {"detail": f"Unknown config key: {key}. Available: {', '.join(effective)}"},
        )
    emit({key: effective[key]}, effective[key])


@click.command(name="resolve-model")
@click.argument("agent", required=False)
def resolve_model_cmd(agent: str | None) -> None:
    """Resolve the model an agent runs on (e.g. ariadna-planner)."""
    result = models.resolve(project_root(), agent)
    emit(result, result["model"])
