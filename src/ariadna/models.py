"""Agent model profiles.

Each ariadna agent runs on a model chosen by the project's `model_profile`
(quality, balanced or budget).
"""

from pathlib import Path
from typing import Any

from ariadna.config import load_config
from ariadna.errors import usage_error

DEFAULT_MODEL = "sonnet"

PROFILES: dict[str, dict[str, str]] = {
    "ariadna-planner": {"quality": "opus", "balanced": "opus", "budget": "sonnet"},
    "ariadna-roadmapper": {"quality": "opus", "balanced": "sonnet", "budget": "sonnet"},
    "ariadna-executor": {"quality": "opus", "balanced": "sonnet", "budget": "sonnet"},
    "ariadna-phase-researcher": {"quality": "opus", "balanced": "sonnet", "budget": "haiku"},
    "ariadna-project-researcher": {"quality": "opus", "balanced": "sonnet", "budget": "haiku"},
    "ariadna-research-synthesizer": {"quality": "sonnet", "balanced": "sonnet", "budget": "haiku"},
    "ariadna-debugger": {"quality": "opus", "balanced": "sonnet", "budget": "sonnet"},
    "ariadna-codebase-mapper": {"quality": "sonnet", "balanced": "haiku", "budget": "haiku"},
    "ariadna-verifier": {"quality": "sonnet", "balanced": "sonnet", "budget": "haiku"},
    "ariadna-plan-checker": {"quality": "sonnet", "balanced": "sonnet", "budget": "haiku"},
    "ariadna-integration-checker": {"quality": "sonnet", "balanced": "sonnet", "budget": "haiku"},
    "ariadna-backend-executor": {"quality": "opus", "balanced": "sonnet", "budget": "sonnet"},
    "ariadna-frontend-executor": {"quality": "opus", "balanced": "sonnet", "budget": "sonnet"},
    "ariadna-test-executor": {"quality": "opus", "balanced": "sonnet", "budget": "sonnet"},
}


def resolve_model(agent: str, profile: str = "balanced") -> str:
    """Model for an agent under a profile.

    Unknown agents get the default model; unknown profiles fall back to the
    agent's balanced entry.
    """
    models = PROFILES.get(agent)
    if not models:
        return DEFAULT_MODEL
    return models.get(profile) or models.get("balanced") or DEFAULT_MODEL


def resolve(root: Path, agent: str | None) -> dict[str, Any]:
    """Resolve an agent's model using the project's configured profile."""
    if not agent:
        raise usage_error("agent-type required")

    profile = load_config(root).model_profile or "balanced"
    if agent not in PROFILES:
        return {"model": DEFAULT_MODEL, "profile": profile, "unknown_agent": True}
    return {"model": resolve_model(agent, profile), "profile": profile}
