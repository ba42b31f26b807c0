"""Context bundles for workflow entry points (`init <workflow>`).

Each bundle gathers what an agent workflow needs to start in one JSON
object: resolved models, the relevant config switches, phase and milestone
details, and existence flags for planning files. `includes` adds the raw
content of selected documents.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

from ariadna.config import PlanningConfig, load_config
from ariadna.errors import usage_error
from ariadna.models import resolve_model
from ariadna.phases import PhaseInfo, find_phase, has_artifact, is_plan_file, is_summary_file, list_phase_dirs, phases_dir
from ariadna.roadmap import milestone_info
from ariadna.todos import COMPLETED_RELPATH, PENDING_RELPATH, pending_todos
from ariadna.utils import iso_timestamp, read_text_safe, slugify, split_phase_dir, today, utc_now

logger = logging.getLogger(__name__)

WORKFLOWS = (
    "execute-phase",
    "plan-phase",
    "new-project",
    "new-milestone",
    "quick",
    "resume",
    "verify-work",
    "phase-op",
    "todos",
    "milestone-op",
    "map-codebase",
    "progress",
)

SOURCE_EXTENSIONS = frozenset({".ts", ".js", ".py", ".go", ".rs", ".swift", ".java", ".rb"})
PACKAGE_FILES = ("package.json", "requirements.txt", "Cargo.toml", "go.mod", "Package.swift", "Gemfile")
SKIP_DIRS = frozenset({"node_modules", ".git"})
CODE_SCAN_DEPTH = 3

QUICK_SLUG_LENGTH = 40

# Include name -> file under .planning
_PLANNING_INCLUDES = {
    "state": "STATE.md",
    "roadmap": "ROADMAP.md",
    "config": "config.json",
    "requirements": "REQUIREMENTS.md",
    "project": "PROJECT.md",
}
# Include name -> artifact kind inside the phase directory
_PHASE_INCLUDES = {
    "context": "CONTEXT",
    "research": "RESEARCH",
    "verification": "VERIFICATION",
    "uat": "UAT",
}


def _exists(root: Path, relpath: str) -> bool:
    return (root / relpath).exists()


def _model(config: PlanningConfig, agent: str) -> str:
    return resolve_model(agent, config.model_profile or "balanced")


def _planning_includes(root: Path, includes: list[str], allowed: tuple[str, ...]) -> dict[str, str | None]:
    return {
        f"{name}_content": read_text_safe(root / ".planning" / _PLANNING_INCLUDES[name])
        for name in allowed
        if name in includes
    }


def _phase_fields(info: PhaseInfo | None) -> dict[str, Any]:
    return {
        "phase_found": info is not None,
        "phase_dir": info.directory if info else None,
        "phase_number": info.phase_number if info else None,
        "phase_name": info.phase_name if info else None,
    }


def _branch_name(config: PlanningConfig, info: PhaseInfo | None, milestone: dict[str, str]) -> str | None:
    if config.branching_strategy == "phase" and info:
        return config.phase_branch_template.replace("{phase}", info.phase_number).replace(
            "{slug}", info.phase_slug or "phase"
        )
    if config.branching_strategy == "milestone":
        return config.milestone_branch_template.replace("{milestone}", milestone["version"]).replace(
            "{slug}", slugify(milestone["name"]) or "milestone"
        )
    return None


def execute_phase(root: Path, phase: str | None, includes: list[str]) -> dict[str, Any]:
    if not phase:
        raise usage_error("phase required for init execute-phase")

    config = load_config(root)
    info = find_phase(root, phase)
    milestone = milestone_info(root)
    plans = info.plans if info else []
    incomplete = info.incomplete_plans if info else []

    result = {
        "executor_model": _model(config, "ariadna-executor"),
        "verifier_model": _model(config, "ariadna-verifier"),
        "commit_docs": config.commit_docs,
        "parallelization": config.parallelization,
        "branching_strategy": config.branching_strategy,
        "phase_branch_template": config.phase_branch_template,
        "milestone_branch_template": config.milestone_branch_template,
        "verifier_enabled": config.verifier,
        **_phase_fields(info),
        "phase_slug": info.phase_slug if info else None,
        "plans": plans,
        "summaries": info.summaries if info else [],
        "incomplete_plans": incomplete,
        "plan_count": len(plans),
        "incomplete_count": len(incomplete),
        "branch_name": _branch_name(config, info, milestone),
        "milestone_version": milestone["version"],
        "milestone_name": milestone["name"],
        "milestone_slug": slugify(milestone["name"]),
        "team_execution": config.team_execution,
        "execution_mode": config.execution_mode,
        "backend_executor_model": _model(config, "ariadna-backend-executor"),
        "frontend_executor_model": _model(config, "ariadna-frontend-executor"),
        "test_executor_model": _model(config, "ariadna-test-executor"),
        "state_exists": _exists(root, ".planning/STATE.md"),
        "roadmap_exists": _exists(root, ".planning/ROADMAP.md"),
        "config_exists": _exists(root, ".planning/config.json"),
    }
    result.update(_planning_includes(root, includes, ("state", "config", "roadmap")))
    return result


def plan_phase(root: Path, phase: str | None, includes: list[str]) -> dict[str, Any]:
    if not phase:
        raise usage_error("phase required for init plan-phase")

    config = load_config(root)
    info = find_phase(root, phase)
    plan_count = len(info.plans) if info else 0

    result = {
        "researcher_model": _model(config, "ariadna-phase-researcher"),
        "planner_model": _model(config, "ariadna-planner"),
        "checker_model": _model(config, "ariadna-plan-checker"),
        "research_enabled": config.research,
        "plan_checker_enabled": config.plan_checker,
        "commit_docs": config.commit_docs,
        **_phase_fields(info),
        "phase_slug": info.phase_slug if info else None,
        "padded_phase": info.phase_number.rjust(2, "0") if info else None,
        "has_research": info.has_research if info else False,
        "has_context": info.has_context if info else False,
        "has_plans": plan_count > 0,
        "plan_count": plan_count,
        "planning_exists": _exists(root, ".planning"),
        "roadmap_exists": _exists(root, ".planning/ROADMAP.md"),
    }
    result.update(_planning_includes(root, includes, ("state", "roadmap", "requirements")))

    if info:
        phase_path = root / info.directory
        files = sorted(p.name for p in phase_path.iterdir())
        for name, kind in _PHASE_INCLUDES.items():
            if name not in includes:
                continue
            match = next((f for f in files if f.endswith(f"-{kind}.md") or f == f"{kind}.md"), None)
            if match:
                result[f"{name}_content"] = read_text_safe(phase_path / match)
    return result


def _has_source_files(root: Path, max_depth: int = CODE_SCAN_DEPTH) -> bool:
    """True when a source file sits within `max_depth` levels of `root`."""
    for dirpath, dirnames, filenames in os.walk(root):
        depth = len(Path(dirpath).relative_to(root).parts)
        if depth >= max_depth - 1:
            dirnames[:] = []
        else:
            dirnames[:] = [d for d in dirnames if d not in SKIP_DIRS]
        if any(Path(f).suffix in SOURCE_EXTENSIONS for f in filenames):
            return True
    return False


def new_project(root: Path) -> dict[str, Any]:
    config = load_config(root)
    has_code = _has_source_files(root)
    has_package_file = any((root / f).exists() for f in PACKAGE_FILES)
    has_codebase_map = _exists(root, ".planning/codebase")

    return {
        "researcher_model": _model(config, "ariadna-project-researcher"),
        "synthesizer_model": _model(config, "ariadna-research-synthesizer"),
        "roadmapper_model": _model(config, "ariadna-roadmapper"),
        "commit_docs": config.commit_docs,
        "project_exists": _exists(root, ".planning/PROJECT.md"),
        "has_codebase_map": has_codebase_map,
        "planning_exists": _exists(root, ".planning"),
        "has_existing_code": has_code,
        "has_package_file": has_package_file,
        "is_brownfield": has_code or has_package_file,
        "needs_codebase_map": (has_code or has_package_file) and not has_codebase_map,
        "has_git": _exists(root, ".git"),
    }


def new_milestone(root: Path) -> dict[str, Any]:
    config = load_config(root)
    milestone = milestone_info(root)
    return {
        "researcher_model": _model(config, "ariadna-project-researcher"),
        "synthesizer_model": _model(config, "ariadna-research-synthesizer"),
        "roadmapper_model": _model(config, "ariadna-roadmapper"),
        "commit_docs": config.commit_docs,
        "research_enabled": config.research,
        "current_milestone": milestone["version"],
        "current_milestone_name": milestone["name"],
        "project_exists": _exists(root, ".planning/PROJECT.md"),
        "roadmap_exists": _exists(root, ".planning/ROADMAP.md"),
        "state_exists": _exists(root, ".planning/STATE.md"),
    }


def quick(root: Path, description: str | None) -> dict[str, Any]:
    """Bundle for an ad-hoc task numbered under `.planning/quick`."""
    config = load_config(root)
    now = utc_now()
    slug = slugify(description)[:QUICK_SLUG_LENGTH] if description else None

    quick_dir = root / ".planning" / "quick"
    numbers = []
    if quick_dir.is_dir():
        numbers = [int(m.group(1)) for p in quick_dir.iterdir() if (m := re.match(r"^(\d+)-", p.name))]
    next_num = max(numbers) + 1 if numbers else 1

    return {
        "planner_model": _model(config, "ariadna-planner"),
        "executor_model": _model(config, "ariadna-executor"),
        "commit_docs": config.commit_docs,
        "next_num": next_num,
        "slug": slug,
        "description": description or None,
        "date": today(now),
        "timestamp": iso_timestamp(now),
        "quick_dir": ".planning/quick",
        "task_dir": f".planning/quick/{next_num}-{slug}" if slug else None,
        "roadmap_exists": _exists(root, ".planning/ROADMAP.md"),
        "planning_exists": _exists(root, ".planning"),
    }


def resume(root: Path) -> dict[str, Any]:
    config = load_config(root)
    agent_file = root / ".planning" / "current-agent-id.txt"
    agent_id = read_text_safe(agent_file)
    agent_id = agent_id.strip() if agent_id is not None else None

    return {
        "state_exists": _exists(root, ".planning/STATE.md"),
        "roadmap_exists": _exists(root, ".planning/ROADMAP.md"),
        "project_exists": _exists(root, ".planning/PROJECT.md"),
        "planning_exists": _exists(root, ".planning"),
        "has_interrupted_agent": agent_id is not None,
        "interrupted_agent_id": agent_id,
        "commit_docs": config.commit_docs,
    }


def verify_work(root: Path, phase: str | None) -> dict[str, Any]:
    if not phase:
        raise usage_error("phase required for init verify-work")

    config = load_config(root)
    info = find_phase(root, phase)
    return {
        "planner_model": _model(config, "ariadna-planner"),
        "checker_model": _model(config, "ariadna-plan-checker"),
        "commit_docs": config.commit_docs,
        **_phase_fields(info),
        "has_verification": info.has_verification if info else False,
    }


def phase_op(root: Path, phase: str | None) -> dict[str, Any]:
    config = load_config(root)
    info = find_phase(root, phase)
    plan_count = len(info.plans) if info else 0
    return {
        "commit_docs": config.commit_docs,
        **_phase_fields(info),
        "phase_slug": info.phase_slug if info else None,
        "padded_phase": info.phase_number.rjust(2, "0") if info else None,
        "has_research": info.has_research if info else False,
        "has_context": info.has_context if info else False,
        "has_plans": plan_count > 0,
        "has_verification": info.has_verification if info else False,
        "plan_count": plan_count,
        "roadmap_exists": _exists(root, ".planning/ROADMAP.md"),
        "planning_exists": _exists(root, ".planning"),
    }


def todos(root: Path, area: str | None) -> dict[str, Any]:
    config = load_config(root)
    now = utc_now()
    pending = pending_todos(root, area)
    return {
        "commit_docs": config.commit_docs,
        "date": today(now),
        "timestamp": iso_timestamp(now),
        "todo_count": len(pending),
        "todos": pending,
        "area_filter": area,
        "pending_dir": str(PENDING_RELPATH),
        "completed_dir": str(COMPLETED_RELPATH),
        "planning_exists": _exists(root, ".planning"),
        "todos_dir_exists": _exists(root, ".planning/todos"),
        "pending_dir_exists": _exists(root, ".planning/todos/pending"),
    }


def milestone_op(root: Path) -> dict[str, Any]:
    config = load_config(root)
    milestone = milestone_info(root)

    dirs = list_phase_dirs(root)
    completed = sum(
        1 for d in dirs if any(is_summary_file(p.name) for p in (phases_dir(root) / d).iterdir())
    )

    archive_dir = root / ".planning" / "archive"
    archived = sorted(p.name for p in archive_dir.iterdir() if p.is_dir()) if archive_dir.is_dir() else []

    return {
        "commit_docs": config.commit_docs,
        "milestone_version": milestone["version"],
        "milestone_name": milestone["name"],
        "milestone_slug": slugify(milestone["name"]),
        "phase_count": len(dirs),
        "completed_phases": completed,
        "all_phases_complete": bool(dirs) and len(dirs) == completed,
        "archived_milestones": archived,
        "archive_count": len(archived),
        "project_exists": _exists(root, ".planning/PROJECT.md"),
        "roadmap_exists": _exists(root, ".planning/ROADMAP.md"),
        "state_exists": _exists(root, ".planning/STATE.md"),
        "archive_exists": _exists(root, ".planning/archive"),
        "phases_dir_exists": _exists(root, ".planning/phases"),
    }


def map_codebase(root: Path) -> dict[str, Any]:
    config = load_config(root)
    codebase_dir = root / ".planning" / "codebase"
    maps = sorted(p.name for p in codebase_dir.iterdir() if p.name.endswith(".md")) if codebase_dir.is_dir() else []
    return {
        "mapper_model": _model(config, "ariadna-codebase-mapper"),
        "commit_docs": config.commit_docs,
        "search_gitignored": config.search_gitignored,
        "parallelization": config.parallelization,
        "codebase_dir": ".planning/codebase",
        "existing_maps": maps,
        "has_maps": bool(maps),
        "planning_exists": _exists(root, ".planning"),
        "codebase_dir_exists": codebase_dir.exists(),
    }


def _phase_status(plans: int, summaries: int, has_research: bool) -> str:
    if plans and summaries >= plans:
        return "complete"
    if plans:
        return "in_progress"
    if has_research:
        return "researched"
    return "pending"


def progress(root: Path, includes: list[str]) -> dict[str, Any]:
    """Bundle for resuming work: per-phase status plus where work stopped."""
    config = load_config(root)
    milestone = milestone_info(root)

    phases = []
    for d in list_phase_dirs(root):
        number, name = split_phase_dir(d)
        files = [p.name for p in (phases_dir(root) / d).iterdir()]
        plans = sum(1 for f in files if is_plan_file(f))
        summaries = sum(1 for f in files if is_summary_file(f))
        has_research = has_artifact(files, "RESEARCH")
        phases.append(
            {
                "number": number,
                "name": name,
                "directory": f".planning/phases/{d}",
                "status": _phase_status(plans, summaries, has_research),
                "plan_count": plans,
                "summary_count": summaries,
                "has_research": has_research,
            }
        )

    current = next((p for p in phases if p["status"] in ("in_progress", "researched")), None)
    upcoming = next((p for p in phases if p["status"] == "pending"), None)

    paused_at = None
    state = read_text_safe(root / ".planning" / "STATE.md")
    if state:
        m = re.search(r"\*\*Paused At:\*\*[ \t]*(.+)", state)
        paused_at = m.group(1).strip() if m else None

    result = {
        "executor_model": _model(config, "ariadna-executor"),
        "planner_model": _model(config, "ariadna-planner"),
        "commit_docs": config.commit_docs,
        "milestone_version": milestone["version"],
        "milestone_name": milestone["name"],
        "phases": phases,
        "phase_count": len(phases),
        "completed_count": sum(1 for p in phases if p["status"] == "complete"),
        "in_progress_count": sum(1 for p in phases if p["status"] == "in_progress"),
        "current_phase": current,
        "next_phase": upcoming,
        "paused_at": paused_at,
        "has_work_in_progress": current is not None,
        "project_exists": _exists(root, ".planning/PROJECT.md"),
        "roadmap_exists": _exists(root, ".planning/ROADMAP.md"),
        "state_exists": _exists(root, ".planning/STATE.md"),
    }
    result.update(_planning_includes(root, includes, ("state", "roadmap", "project", "config")))
    return result


def run(root: Path, workflow: str | None, args: list[str], includes: list[str]) -> dict[str, Any]:
    """Dispatch `init <workflow> [args]` to its bundle builder."""
    first = args[0] if args else None
    builders = {
        "execute-phase": lambda: execute_phase(root, first, includes),
        "plan-phase": lambda: plan_phase(root, first, includes),
        "new-project": lambda: new_project(root),
        "new-milestone": lambda: new_milestone(root),
        "quick": lambda: quick(root, " ".join(args)),
        "resume": lambda: resume(root),
        "verify-work": lambda: verify_work(root, first),
        "phase-op": lambda: phase_op(root, first),
        "todos": lambda: todos(root, first),
        "milestone-op": lambda: milestone_op(root),
        "map-codebase": lambda: map_codebase(root),
        "progress": lambda: progress(root, includes),
    }
    builder = builders.get(workflow or "")
    if builder is None:
        raise usage_error(f"Unknown init workflow: {workflow}\nAvailable: {', '.join(WORKFLOWS)}")
    logger.debug("init %s args=%s includes=%s", workflow, args, includes)
    return builder()
