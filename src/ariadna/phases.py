"""Phase directories under `.planning/phases`.

Phase directories are named `NN-slug`, with decimal phases (`NN.k-slug`)
inserted between integer ones. Matching is by prefix on the normalized phase
number, so `2` finds `02-auth` and `2.1` finds `02.1-oauth-flow`.
"""

from __future__ import annotations

import logging
import re
import shutil
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from ariadna import frontmatter
from ariadna.errors import usage_error
from ariadna.utils import (
    normalize_phase,
    phase_sort_key,
    read_text_safe,
    slugify,
    split_phase_dir,
    today,
    write_text_atomic,
)

logger = logging.getLogger(__name__)

PHASES_RELPATH = Path(".planning") / "phases"
UNASSIGNED_WAVE = "unassigned"


def phases_dir(root: Path) -> Path:
    return root / PHASES_RELPATH


def is_plan_file(name: str) -> bool:
    return name.endswith("-PLAN.md") or name == "PLAN.md"


def is_summary_file(name: str) -> bool:
    return name.endswith("-SUMMARY.md") or name == "SUMMARY.md"


def has_artifact(files: list[str], kind: str) -> bool:
    """True when any file is `*-KIND.md` or `KIND.md` (e.g. kind="RESEARCH")."""
    return any(f.endswith(f"-{kind}.md") or f == f"{kind}.md" for f in files)


def plan_id(name: str) -> str:
    """`01-02-PLAN.md` -> `01-02` (and `PLAN.md` -> "")."""
    return re.sub(r"-?(PLAN|SUMMARY)\.md$", "", name)


def list_phase_dirs(root: Path) -> list[str]:
    """Names of phase directories in plain lexical order."""
    base = phases_dir(root)
    if not base.is_dir():
        return []
    return sorted(p.name for p in base.iterdir() if p.is_dir())


def match_phase_dir(root: Path, phase: str) -> str | None:
    """First phase directory whose name starts with the normalized phase."""
    normalized = normalize_phase(phase)
    return next((d for d in list_phase_dirs(root) if d.startswith(normalized)), None)


@dataclass
class PhaseInfo:
    """What is on disk for one phase."""

    directory: str
    phase_number: str
    phase_name: str | None
    phase_slug: str | None
    plans: list[str] = field(default_factory=list)
    summaries: list[str] = field(default_factory=list)
    incomplete_plans: list[str] = field(default_factory=list)
    has_research: bool = False
    has_context: bool = False
    has_verification: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def find_phase(root: Path, phase: str | None) -> PhaseInfo | None:
    """Locate a phase directory and describe its contents.

    Returns:
        PhaseInfo, or None when no directory matches
    """
    if not phase:
        return None

    match = match_phase_dir(root, phase)
    if not match:
        return None

    number, name = split_phase_dir(match)
    files = [p.name for p in (phases_dir(root) / match).iterdir()]
    plans = sorted(f for f in files if is_plan_file(f))
    summaries = sorted(f for f in files if is_summary_file(f))

    completed = {plan_id(s) for s in summaries}
    return PhaseInfo(
        directory=str(PHASES_RELPATH / match),
        phase_number=number,
        phase_name=name,
        phase_slug=slugify(name) if name else None,
        plans=plans,
        summaries=summaries,
        incomplete_plans=[p for p in plans if plan_id(p) not in completed],
        has_research=has_artifact(files, "RESEARCH"),
        has_context=has_artifact(files, "CONTEXT"),
        has_verification=has_artifact(files, "VERIFICATION"),
    )


def find(root: Path, phase: str | None) -> dict[str, Any]:
    """The `find-phase` payload."""
    if not phase:
        raise usage_error("phase identifier required")

    info = find_phase(root, phase)
    if info is None:
        return {
            "found": False,
            "directory": None,
            "phase_number": None,
            "phase_name": None,
            "plans": [],
            "summaries": [],
        }
    return {
        "found": True,
        "directory": info.directory,
        "phase_number": info.phase_number,
        "phase_name": info.phase_name,
        "plans": info.plans,
        "summaries": info.summaries,
    }


def list_phases(root: Path, file_type: str | None = None, phase: str | None = None) -> dict[str, Any]:
    """List phase directories by numeric order, or the files inside them.

    Args:
        root: Project root
        file_type: "plans", "summaries" or any other value for all files
        phase: Restrict to a single phase
    """
    if not phases_dir(root).is_dir():
        key = "files" if file_type else "directories"
        return {key: [], "count": 0}

    dirs = sorted(list_phase_dirs(root), key=phase_sort_key)
    if phase:
        normalized = normalize_phase(phase)
        dirs = [d for d in dirs if d.startswith(normalized)][:1]

    if not file_type:
        return {"directories": dirs, "count": len(dirs)}

    files: list[str] = []
    for d in dirs:
        names = [p.name for p in (phases_dir(root) / d).iterdir()]
        if file_type == "plans":
            names = [n for n in names if is_plan_file(n)]
        elif file_type == "summaries":
            names = [n for n in names if is_summary_file(n)]
        files.extend(sorted(names))
    return {"files": files, "count": len(files)}


# =============================================================================
# Decimal numbering
# =============================================================================


def _decimals_under(root: Path, normalized: str) -> list[int]:
    """Decimal suffixes already used under a base phase (`06.1` -> 1)."""
    pattern = re.compile(rf"^{re.escape(normalized)}\.(\d+)")
    found = []
    for d in list_phase_dirs(root):
        m = pattern.match(d)
        if m:
            found.append(int(m.group(1)))
    return sorted(found)


def next_decimal(root: Path, base: str | None) -> dict[str, Any]:
    """Next free decimal phase after `base` (`06` -> `06.3` when .1 and .2 exist)."""
    if not base:
        raise usage_error("base phase required")

    normalized = normalize_phase(base)
    decimals = _decimals_under(root, normalized)
    base_exists = any(d == normalized or d.startswith(f"{normalized}-") for d in list_phase_dirs(root))
    next_value = f"{normalized}.{decimals[-1] + 1 if decimals else 1}"

    return {
        "found": base_exists,
        "base_phase": normalized,
        "next": next_value,
        "existing": [f"{normalized}.{n}" for n in decimals],
    }


def add(root: Path, description: str | None) -> dict[str, Any]:
    """Create the next integer phase and note it in ROADMAP.md."""
    if not description:
        raise usage_error("description required")

    highest = 0
    for d in list_phase_dirs(root):
        m = re.match(r"^(\d+)", d)
        if m:
            highest = max(highest, int(m.group(1)))

    number = f"{highest + 1:02d}"
    dir_name = f"{number}-{slugify(description)}"
    (phases_dir(root) / dir_name).mkdir(parents=True, exist_ok=True)

    roadmap_path = root / ".planning" / "ROADMAP.md"
    roadmap = read_text_safe(roadmap_path)
    if roadmap is not None:
        roadmap += f"\n### Phase {int(number)}: {description}\n\n**Goal:** TBD\n"
        write_text_atomic(roadmap_path, roadmap)

    logger.info("Added phase %s (%s)", number, dir_name)
    return {"added": True, "phase": number, "directory": dir_name}


def insert(root: Path, after: str | None, description: str | None) -> dict[str, Any]:
    """Create a decimal phase after an existing one."""
    if not after or not description:
        raise usage_error("after phase and description required")

    if not phases_dir(root).is_dir():
        return {"inserted": False, "reason": "phases directory not found"}

    normalized = normalize_phase(after)
    decimals = _decimals_under(root, normalized)
    new_phase = f"{normalized}.{decimals[-1] + 1 if decimals else 1}"
    dir_name = f"{new_phase}-{slugify(description)}"
    (phases_dir(root) / dir_name).mkdir(parents=True, exist_ok=True)

    logger.info("Inserted phase %s (%s)", new_phase, dir_name)
    return {"inserted": True, "phase": new_phase, "directory": dir_name}


def remove(root: Path, phase: str | None, force: bool = False) -> dict[str, Any]:
    """Delete a phase directory; refuses when it holds documents unless forced."""
    if not phase:
        raise usage_error("phase required")

    if not phases_dir(root).is_dir():
        return {"removed": False, "reason": "phases directory not found"}

    match = match_phase_dir(root, phase)
    if not match:
        return {"removed": False, "reason": "phase not found"}

    dir_path = phases_dir(root) / match
    has_content = any(p.name.endswith(".md") for p in dir_path.iterdir())
    if has_content and not force:
        return {"removed": False, "reason": "phase has content, use --force"}

    shutil.rmtree(dir_path)
    logger.info("Removed phase directory %s", dir_path)
    return {"removed": True, "phase": normalize_phase(phase), "directory": match}


def complete(root: Path, phase: str | None) -> dict[str, Any]:
    """Mark a phase heading in ROADMAP.md with a check mark."""
    if not phase:
        raise usage_error("phase required")

    normalized = normalize_phase(phase)
    roadmap_path = root / ".planning" / "ROADMAP.md"
    roadmap = read_text_safe(roadmap_path)
    if roadmap is not None:
        heading_number = re.sub(r"^0+(?=\d)", "", normalized)
        pattern = re.compile(rf"(###\s*Phase\s+{re.escape(heading_number)}:)")
        write_text_atomic(roadmap_path, pattern.sub(r"\1 ✅", roadmap, count=1))

    return {"completed": True, "phase": normalized}


def milestone_complete(root: Path, version: str | None, name: str | None = None) -> dict[str, Any]:
    """Write a milestone record under `.planning/milestones`."""
    if not version:
        raise usage_error("version required")

    milestone_name = name or f"v{version}"
    archive_path = root / ".planning" / "milestones" / f"{milestone_name}.md"
    write_text_atomic(
        archive_path,
        f"# Milestone: {milestone_name}\n\nCompleted: {today()}\nVersion: {version}\n",
    )
    return {"archived": True, "version": version, "name": milestone_name, "path": str(archive_path)}


# =============================================================================
# Plan index and waves
# =============================================================================


def _as_bool(value: Any, default: bool) -> Any:
    if value is None:
        return default
    if value in ("true", "false"):
        return value == "true"
    return value


def _as_int(value: Any) -> Any:
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return value


def _wave_order(wave: str) -> tuple[int, float, str]:
    if wave == UNASSIGNED_WAVE:
        return (2, 0.0, wave)
    try:
        return (0, float(wave), wave)
    except ValueError:
        return (1, 0.0, wave)


def group_waves(plans: list[dict[str, Any]]) -> dict[str, list[str]]:
    """Group plan files by their wave, in ascending wave order.

    Plans without a wave are listed under "unassigned" at the end.
    """
    groups: dict[str, list[str]] = {}
    for plan in plans:
        wave = plan.get("wave")
        key = UNASSIGNED_WAVE if wave in (None, "") else str(wave)
        groups.setdefault(key, []).append(plan["file"])
    return {k: groups[k] for k in sorted(groups, key=_wave_order)}


def plan_index(root: Path, phase: str | None) -> dict[str, Any]:
    """Describe every plan of a phase with its wave, domain and task count."""
    if not phase:
        raise usage_error("phase required")

    match = match_phase_dir(root, phase)
    if not match:
        return {"plans": [], "count": 0}

    dir_path = phases_dir(root) / match
    plan_files = sorted(p.name for p in dir_path.iterdir() if re.search(r"-PLAN\.md$", p.name, re.IGNORECASE))

    plans = []
    for name in plan_files:
        content = read_text_safe(dir_path / name) or ""
        fm = frontmatter.extract(content)
        summary_name = re.sub(r"-PLAN\.md$", "-SUMMARY.md", name, flags=re.IGNORECASE)
        plans.append(
            {
                "file": name,
                "phase": fm.get("phase"),
                "plan": fm.get("plan"),
                "wave": _as_int(fm.get("wave")),
                "type": fm.get("type"),
                "completed": (dir_path / summary_name).exists(),
                "domain": fm.get("domain") or "general",
                "depends_on": fm.get("depends_on") or [],
                "files_modified": fm.get("files_modified") or [],
                "autonomous": _as_bool(fm.get("autonomous"), True),
                "objective": fm.get("objective"),
                "task_count": len(re.findall(r"<task\b", content)),
            }
        )

    domains = list(dict.fromkeys(p["domain"] for p in plans))
    specialized = [d for d in domains if d != "general"]

    return {
        "plans": plans,
        "count": len(plans),
        "domains": domains,
        "domain_count": len(specialized),
        "multi_domain": len(specialized) >= 2,
        "recommend_team": len(plans) >= 3 and len(specialized) >= 2,
        "waves": group_waves(plans),
    }
