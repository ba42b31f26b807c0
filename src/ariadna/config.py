"""Planning configuration management.

Loads `.planning/config.json` with sensible defaults. Settings may be written
flat (`"commit_docs": false`) or grouped into sections (`"planning"`, `"git"`,
`"workflow"`); a flat key wins over its sectioned form. Any setting can be
overridden with an environment variable (ARIADNA_*).

Priority (highest to lowest):
1. Environment variables (ARIADNA_MODEL_PROFILE, ARIADNA_COMMIT_DOCS, ...)
2. .planning/config.json
3. Built-in defaults
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from ariadna.errors import AriadnaError, ErrorCode, usage_error
from ariadna.utils import write_text_atomic

logger = logging.getLogger(__name__)

CONFIG_RELPATH = ".planning/config.json"

# Sectioned location of each setting: key -> (section, field)
_NESTED_KEYS: dict[str, tuple[str, str]] = {
    "commit_docs": ("planning", "commit_docs"),
    "search_gitignored": ("planning", "search_gitignored"),
    "branching_strategy": ("git", "branching_strategy"),
    "phase_branch_template": ("git", "phase_branch_template"),
    "milestone_branch_template": ("git", "milestone_branch_template"),
    "research": ("workflow", "research"),
    "plan_checker": ("workflow", "plan_check"),
    "verifier": ("workflow", "verifier"),
}


@dataclass
class PlanningConfig:
    """Effective workflow configuration for a project."""

    model_profile: str = "balanced"
    """Model profile for agents: quality, balanced or budget."""

    commit_docs: bool = True
    """Commit planning documents after each step."""

    search_gitignored: bool = False
    """Include git-ignored files when mapping the codebase."""

    branching_strategy: str = "none"
    """none, phase or milestone."""

    phase_branch_template: str = "ariadna/phase-{phase}-{slug}"
    """Branch name template when branching per phase."""

    milestone_branch_template: str = "ariadna/{milestone}-{slug}"
    """Branch name template when branching per milestone."""

    research: bool = True
    """Run the phase researcher before planning."""

    plan_checker: bool = True
    """Run the plan checker after planning."""

    verifier: bool = True
    """Run the verifier after execution."""

    parallelization: bool = True
    """Execute plans of the same wave in parallel."""

    team_execution: Any = None
    """Passed through to execution workflows when set."""

    execution_mode: Any = None
    """Passed through to execution workflows when set."""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-ready dict."""
        return asdict(self)


def default_config_document() -> dict[str, Any]:
    """The config.json written for a new project."""
    defaults = PlanningConfig()
    return {
        "model_profile": defaults.model_profile,
        "commit_docs": defaults.commit_docs,
        "search_gitignored": defaults.search_gitignored,
        "branching_strategy": defaults.branching_strategy,
        "phase_branch_template": defaults.phase_branch_template,
        "milestone_branch_template": defaults.milestone_branch_template,
        "workflow": {
            "research": defaults.research,
            "plan_check": defaults.plan_checker,
            "verifier": defaults.verifier,
        },
        "parallelization": defaults.parallelization,
    }


def _lookup(parsed: dict[str, Any], key: str) -> Any:
    """Read a setting flat first, then from its section."""
    if key in parsed:
        return parsed[key]
    nested = _NESTED_KEYS.get(key)
    if nested:
        section = parsed.get(nested[0])
        if isinstance(section, dict):
            return section.get(nested[1])
    return None


def _coerce_env(value: str) -> Any:
    """Type coercion for environment overrides."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit():
        return int(value)
    return value


def _apply_env_overrides(values: dict[str, Any]) -> dict[str, Any]:
    """Apply ARIADNA_<KEY> environment overrides.

    Examples:
        ARIADNA_MODEL_PROFILE=quality
        ARIADNA_COMMIT_DOCS=false
    """
    for f in fields(PlanningConfig):
        env_value = os.environ.get(f"ARIADNA_{f.name.upper()}")
        if env_value is not None:
            values[f.name] = _coerce_env(env_value)
            logger.debug("Config override from environment: %s=%s", f.name, env_value)
    return values


def _resolve(parsed: dict[str, Any]) -> dict[str, Any]:
    """Merge a parsed config.json over the defaults."""
    defaults = PlanningConfig()
    values: dict[str, Any] = {}

    for f in fields(PlanningConfig):
        if f.name == "parallelization":
            continue
        raw = _lookup(parsed, f.name)
        # Explicit false must survive, so only None falls back
        values[f.name] = getattr(defaults, f.name) if raw is None else raw

    # model_profile and templates treat empty strings as unset
    for key in ("model_profile", "branching_strategy", "phase_branch_template", "milestone_branch_template"):
        if not values[key]:
            values[key] = getattr(defaults, key)

    parallel = parsed.get("parallelization")
    if isinstance(parallel, dict) and "enabled" in parallel:
        values["parallelization"] = parallel["enabled"]
    elif isinstance(parallel, bool):
        values["parallelization"] = parallel
    else:
        values["parallelization"] = defaults.parallelization

    return values


def load_config(root: Path) -> PlanningConfig:
    """Load the effective configuration for the project at `root`.

    A missing or unparseable config.json yields the defaults (plus
    environment overrides).
    """
    config_path = root / CONFIG_RELPATH
    parsed: dict[str, Any] = {}

    if config_path.exists():
        try:
            loaded = json.loads(config_path.read_text(encoding="utf-8"))
            if isinstance(loaded, dict):
                parsed = loaded
            else:
                logger.warning("Ignoring %s: top level is not an object", config_path)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable %s: %s", config_path, e)

    return PlanningConfig(**_apply_env_overrides(_resolve(parsed)))


def ensure_section(root: Path) -> dict[str, Any]:
    """Create `.planning/config.json` with defaults if it does not exist."""
    config_path = root / CONFIG_RELPATH
    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.exists():
        return {"created": False, "reason": "already_exists"}

    write_text_atomic(config_path, json.dumps(default_config_document(), indent=2))
    logger.info("Created %s", config_path)
    return {"created": True, "path": CONFIG_RELPATH}


def _parse_setting(value: str | None) -> Any:
    if value == "true":
        return True
    if value == "false":
        return False
    if value is not None and value.isdigit():
        return int(value)
    return value


def set_value(root: Path, key_path: str | None, value: str | None) -> dict[str, Any]:
    """Set a dotted key in config.json, creating sections as needed.

    Raises:
        AriadnaError: If no key is given or the existing file is not valid JSON
    """
    if not key_path:
        raise usage_error("Usage: config-set <key.path> <value>")

    config_path = root / CONFIG_RELPATH
    document: dict[str, Any] = {}
    if config_path.exists():
        try:
            document = json.loads(config_path.read_text(encoding="utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise AriadnaError(ErrorCode.CONFIG_INVALID, {"detail": str(e)}, cause=e) from e

    parsed_value = _parse_setting(value)
    keys = key_path.split(".")
    current = document
    for key in keys[:-1]:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]
    current[keys[-1]] = parsed_value

    write_text_atomic(config_path, json.dumps(document, indent=2))
    return {"updated": True, "key": key_path, "value": parsed_value}
