"""ROADMAP.md analysis and progress reporting.

The roadmap lists phases as `### Phase N: Name` sections carrying
`**Goal:**` and `**Depends on:**` lines, grouped under `## ... vX.Y`
milestone headings. Analysis cross-references those sections with what
exists under `.planning/phases`.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from ariadna.errors import AriadnaError, ErrorCode, usage_error
from ariadna.phases import has_artifact, is_plan_file, is_summary_file, list_phase_dirs, phases_dir
from ariadna.utils import normalize_phase, percent_of, phase_sort_key, progress_bar, split_phase_dir

logger = logging.getLogger(__name__)

ROADMAP_RELPATH = Path(".planning") / "ROADMAP.md"

PHASE_HEADER_RE = re.compile(r"###\s*Phase\s+(\d+(?:\.\d+)?)\s*:\s*([^\n]+)", re.IGNORECASE)
NEXT_PHASE_RE = re.compile(r"\n###\s+Phase\s+\d", re.IGNORECASE)
GOAL_RE = re.compile(r"\*\*Goal:\*\*\s*([^\n]+)", re.IGNORECASE)
DEPENDS_RE = re.compile(r"\*\*Depends on:\*\*\s*([^\n]+)", re.IGNORECASE)
MILESTONE_RE = re.compile(r"##\s*(.*v(\d+\.\d+)[^(\n]*)")

DEFAULT_MILESTONE = {"version": "v1.0", "name": "milestone"}

TABLE_BAR_WIDTH = 10
BAR_WIDTH = 20


def _section_at(content: str, start: int) -> str:
    """Text from `start` up to the next phase header."""
    next_header = NEXT_PHASE_RE.search(content, start)
    end = next_header.start() if next_header else len(content)
    return content[start:end]


def _goal(section: str) -> str | None:
    m = GOAL_RE.search(section)
    return m.group(1).strip() if m else None


def read_roadmap(root: Path) -> str | None:
    """Roadmap text, or None when the project has no ROADMAP.md.

    Raises:
        AriadnaError: If the file exists but cannot be read
    """
    path = root / ROADMAP_RELPATH
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        raise AriadnaError(ErrorCode.ROADMAP_UNREADABLE, {"detail": str(e)}, cause=e) from e


def get_phase(root: Path, phase_num: str | None) -> dict[str, Any]:
    """Extract one phase section from the roadmap."""
    if not phase_num:
        raise usage_error("phase number required")

    content = read_roadmap(root)
    if content is None:
        return {"found": False, "error": "ROADMAP.md not found"}

    pattern = re.compile(rf"###\s*Phase\s+{re.escape(phase_num)}:\s*([^\n]+)", re.IGNORECASE)
    header = pattern.search(content)
    if not header:
        return {"found": False, "phase_number": phase_num}

    section = _section_at(content, header.start()).strip()
    return {
        "found": True,
        "phase_number": phase_num,
        "phase_name": header.group(1).strip(),
        "goal": _goal(section),
        "section": section,
    }


def _disk_state(root: Path, normalized: str) -> dict[str, Any]:
    state: dict[str, Any] = {
        "plan_count": 0,
        "summary_count": 0,
        "has_context": False,
        "has_research": False,
        "disk_status": "no_directory",
    }
    match = next(
        (d for d in list_phase_dirs(root) if d == normalized or d.startswith(f"{normalized}-")),
        None,
    )
    if not match:
        return state

    files = [p.name for p in (phases_dir(root) / match).iterdir()]
    plans = sum(1 for f in files if is_plan_file(f))
    summaries = sum(1 for f in files if is_summary_file(f))
    has_context = has_artifact(files, "CONTEXT")
    has_research = has_artifact(files, "RESEARCH")

    if plans > 0 and summaries >= plans:
        status = "complete"
    elif summaries > 0:
        status = "partial"
    elif plans > 0:
        status = "planned"
    elif has_research:
        status = "researched"
    elif has_context:
        status = "discussed"
    else:
        status = "empty"

    state.update(
        plan_count=plans,
        summary_count=summaries,
        has_context=has_context,
        has_research=has_research,
        disk_status=status,
    )
    return state


def analyze(root: Path) -> dict[str, Any]:
    """Cross-reference roadmap phases with their directories on disk."""
    content = read_roadmap(root)
    if content is None:
        return {"error": "ROADMAP.md not found", "milestones": [], "phases": [], "current_phase": None}

    phases = []
    for header in PHASE_HEADER_RE.finditer(content):
        number = header.group(1)
        section = _section_at(content, header.start())
        depends = DEPENDS_RE.search(section)

        checkbox = re.search(
            rf"-\s*\[(x| )\]\s*.*Phase\s+{re.escape(number)}", content, re.IGNORECASE
        )
        phases.append(
            {
                "number": number,
                "name": re.sub(r"\(INSERTED\)", "", header.group(2), flags=re.IGNORECASE).strip(),
                "goal": _goal(section),
                "depends_on": depends.group(1).strip() if depends else None,
                **_disk_state(root, normalize_phase(number)),
                "roadmap_complete": bool(checkbox) and checkbox.group(1).lower() == "x",
            }
        )

    milestones = [
        {"heading": m.group(1).strip(), "version": f"v{m.group(2)}"}
        for m in MILESTONE_RE.finditer(content)
    ]

    current = next((p for p in phases if p["disk_status"] in ("planned", "partial")), None)
    upcoming = next(
        (p for p in phases if p["disk_status"] in ("empty", "no_directory", "discussed", "researched")),
        None,
    )
    total_plans = sum(p["plan_count"] for p in phases)
    total_summaries = sum(p["summary_count"] for p in phases)

    return {
        "milestones": milestones,
        "phases": phases,
        "phase_count": len(phases),
        "completed_phases": sum(1 for p in phases if p["disk_status"] == "complete"),
        "total_plans": total_plans,
        "total_summaries": total_summaries,
        "progress_percent": percent_of(total_summaries, total_plans),
        "current_phase": current["number"] if current else None,
        "next_phase": upcoming["number"] if upcoming else None,
    }


def milestone_info(root: Path) -> dict[str, str]:
    """Current milestone version and name from the roadmap's first `vX.Y`."""
    content = read_roadmap(root)
    if content is None:
        return dict(DEFAULT_MILESTONE)

    version = re.search(r"v(\d+\.\d+)", content)
    name = re.search(r"## .*v\d+\.\d+[:\s]+([^\n(]+)", content)
    return {
        "version": version.group(0) if version else DEFAULT_MILESTONE["version"],
        "name": name.group(1).strip() if name else DEFAULT_MILESTONE["name"],
    }


def _phase_progress(root: Path) -> list[dict[str, Any]]:
    rows = []
    for d in sorted(list_phase_dirs(root), key=phase_sort_key):
        number, name = split_phase_dir(d)
        files = [p.name for p in (phases_dir(root) / d).iterdir()]
        plans = sum(1 for f in files if is_plan_file(f))
        summaries = sum(1 for f in files if is_summary_file(f))

        if plans == 0:
            status = "Pending"
        elif summaries >= plans:
            status = "Complete"
        elif summaries > 0:
            status = "In Progress"
        else:
            status = "Planned"

        rows.append(
            {
                "number": number,
                "name": name.replace("-", " ") if name else "",
                "plans": plans,
                "summaries": summaries,
                "status": status,
            }
        )
    return rows


def progress(root: Path, fmt: str | None = "json") -> dict[str, Any]:
    """Progress across all phase directories.

    Args:
        root: Project root
        fmt: "table" (Markdown table), "bar" (single line) or "json"

    Returns:
        Payload for the format; "table" and "bar" also carry the text under
        `rendered` / `bar`.
    """
    milestone = milestone_info(root)
    phases = _phase_progress(root)
    total_plans = sum(p["plans"] for p in phases)
    total_summaries = sum(p["summaries"] for p in phases)
    percent = percent_of(total_summaries, total_plans)

    if fmt == "table":
        bar = progress_bar(percent, TABLE_BAR_WIDTH)
        lines = [
            f"# {milestone['version']} {milestone['name']}",
            "",
            f"**Progress:** [{bar}] {total_summaries}/{total_plans} plans ({percent}%)",
            "",
            "| Phase | Name | Plans | Status |",
            "|-------|------|-------|--------|",
        ]
        lines += [f"| {p['number']} | {p['name']} | {p['summaries']}/{p['plans']} | {p['status']} |" for p in phases]
        return {"rendered": "\n".join(lines) + "\n"}

    if fmt == "bar":
        text = f"[{progress_bar(percent, BAR_WIDTH)}] {total_summaries}/{total_plans} plans ({percent}%)"
        return {"bar": text, "percent": percent, "completed": total_summaries, "total": total_plans}

    return {
        "milestone_version": milestone["version"],
        "milestone_name": milestone["name"],
        "phases": phases,
        "total_plans": total_plans,
        "total_summaries": total_summaries,
        "percent": percent,
    }
