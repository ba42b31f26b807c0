"""STATE.md operations.

STATE.md is the running log of a project: `**Field:** value` lines hold the
current position (phase, plan, status) and `##`/`###` sections hold
decisions, blockers and performance metrics. Field and section lookups are
case-insensitive.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from ariadna import frontmatter
from ariadna.config import CONFIG_RELPATH, load_config
from ariadna.errors import AriadnaError, ErrorCode, file_not_found, file_unreadable, usage_error
from ariadna.phases import is_summary_file, list_phase_dirs, phases_dir
from ariadna.roadmap import ROADMAP_RELPATH
from ariadna.utils import iso_timestamp, percent_of, progress_bar, read_text_safe, today, write_text_atomic

logger = logging.getLogger(__name__)

STATE_RELPATH = Path(".planning") / "STATE.md"

STATE_MISSING = {"error": "STATE.md not found"}

DECISIONS_SECTION_RE = re.compile(
    r"(###?\s*(?:Decisions|Decisions Made|Accumulated.*Decisions)\s*\n)([\s\S]*?)(?=\n###?|\n##[^#]|\Z)",
    re.IGNORECASE,
)
BLOCKERS_SECTION_RE = re.compile(
    r"(###?\s*(?:Blockers|Blockers/Concerns|Concerns)\s*\n)([\s\S]*?)(?=\n###?|\n##[^#]|\Z)",
    re.IGNORECASE,
)
METRICS_TABLE_RE = re.compile(
    r"(##\s*Performance Metrics[\s\S]*?\n\|[^\n]+\n\|[-| \t:]+\n)([\s\S]*?)(?=\n##|^##|\n$|\Z)",
    re.IGNORECASE | re.MULTILINE,
)

PROGRESS_BAR_WIDTH = 10


def _field_re(name: str) -> re.Pattern[str]:
    return re.compile(rf"(\*\*{re.escape(name)}:\*\*[ \t]*)(.*)", re.IGNORECASE)


def extract_field(content: str, name: str) -> str | None:
    """Value of a `**Name:** value` line, stripped."""
    m = _field_re(name).search(content)
    if not m or not m.group(2).strip():
        return None
    return m.group(2).strip()


def replace_field(content: str, name: str, value: str) -> str | None:
    """Replace a field's value; None when the field does not exist."""
    pattern = _field_re(name)
    if not pattern.search(content):
        return None
    return pattern.sub(lambda m: f"{m.group(1)}{value}", content, count=1)


def _state_path(root: Path) -> Path:
    return root / STATE_RELPATH


def _read_state(root: Path) -> str:
    try:
        return _state_path(root).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise AriadnaError(ErrorCode.STATE_NOT_FOUND, cause=e) from e
    except UnicodeDecodeError as e:
        raise file_unreadable(str(STATE_RELPATH), e) from e


def _write_state(root: Path, content: str) -> None:
    write_text_atomic(_state_path(root), content)


# =============================================================================
# Reading
# =============================================================================


def load(root: Path) -> dict[str, Any]:
    """Configuration plus raw STATE.md and existence flags."""
    state_raw = read_text_safe(_state_path(root)) or ""
    return {
        "config": load_config(root).to_dict(),
        "state_raw": state_raw,
        "state_exists": bool(state_raw),
        "roadmap_exists": (root / ROADMAP_RELPATH).exists(),
        "config_exists": (root / CONFIG_RELPATH).exists(),
    }


def get(root: Path, section: str | None = None) -> dict[str, Any]:
    """Whole STATE.md, one field, or one section body.

    A `**Name:**` field wins over a `## Name` section of the same name.
    """
    content = _read_state(root)
    if not section:
        return {"content": content}

    value = extract_field(content, section)
    if value is not None:
        return {section: value}

    heading = re.search(
        rf"##\s*{re.escape(section)}\s*\n([\s\S]*?)(?=\n##|\Z)", content, re.IGNORECASE
    )
    if heading:
        return {section: heading.group(1).strip()}

    return {"error": f'Section or field "{section}" not found'}


def snapshot(root: Path) -> dict[str, str]:
    """Every `**Field:** value` pair in STATE.md."""
    content = _read_state(root)
    return {
        m.group(1).strip(): m.group(2).strip()
        for m in re.finditer(r"\*\*(.+?):\*\*[ \t]*(.+)", content)
    }


def summary_extract(root: Path, path: str | None, fields: list[str] | None = None) -> dict[str, Any]:
    """Frontmatter of a summary file, optionally narrowed to some fields."""
    if not path:
        raise usage_error("path required")

    try:
        content = (root / path).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise file_not_found(path, cause=e) from e
    except UnicodeDecodeError as e:
        raise file_unreadable(path, e) from e

    fm = frontmatter.extract(content)
    if fields:
        return {f: fm[f] for f in fields if f in fm}
    return fm


def _as_list(value: Any) -> list[Any]:
    if value is None or value == "":
        return []
    return value if isinstance(value, list) else [value]


def history_digest(root: Path) -> dict[str, Any]:
    """Aggregate what every SUMMARY provides, affects and decided, per phase."""
    digest: dict[str, Any] = {"phases": {}, "decisions": [], "tech_stack": []}
    tech_stack: list[str] = []

    for d in list_phase_dirs(root):
        dir_path = phases_dir(root) / d
        for summary in sorted(p.name for p in dir_path.iterdir() if is_summary_file(p.name)):
            fm = frontmatter.extract(read_text_safe(dir_path / summary) or "")
            phase_num = fm.get("phase") or d.split("-")[0]
            entry = digest["phases"].setdefault(
                phase_num,
                {"name": " ".join(d.split("-")[1:]) or "Unknown", "provides": [], "affects": [], "patterns": []},
            )

            graph = fm.get("dependency-graph")
            graph = graph if isinstance(graph, dict) else {}
            entry["provides"] += _as_list(graph.get("provides") or fm.get("provides"))
            entry["affects"] += _as_list(graph.get("affects"))
            entry["patterns"] += _as_list(fm.get("patterns-established"))
            digest["decisions"] += [
                {"phase": phase_num, "decision": decision} for decision in _as_list(fm.get("key-decisions"))
            ]

            tech = fm.get("tech-stack")
            if isinstance(tech, dict):
                for added in _as_list(tech.get("added")):
                    tech_stack.append(added.get("name") if isinstance(added, dict) else added)

    for entry in digest["phases"].values():
        for key in ("provides", "affects", "patterns"):
            entry[key] = list(dict.fromkeys(entry[key]))
    digest["tech_stack"] = [t for t in dict.fromkeys(tech_stack) if t]
    return digest


# =============================================================================
# Field updates
# =============================================================================


def update(root: Path, field: str | None, value: str | None) -> dict[str, Any]:
    if not field or value is None:
        raise usage_error("field and value required for state update")

    content = read_text_safe(_state_path(root))
    if content is None:
        return {"updated": False, "reason": "STATE.md not found"}

    new_content = replace_field(content, field, value)
    if new_content is None:
        return {"updated": False, "reason": f'Field "{field}" not found in STATE.md'}

    _write_state(root, new_content)
    return {"updated": True}


def patch(root: Path, patches: dict[str, str]) -> dict[str, Any]:
    """Apply several field updates in one write."""
    content = _read_state(root)
    result: dict[str, list[str]] = {"updated": [], "failed": []}

    for field, value in patches.items():
        new_content = replace_field(content, field, value)
        if new_content is None:
            result["failed"].append(field)
        else:
            content = new_content
            result["updated"].append(field)

    if result["updated"]:
        _write_state(root, content)
    return result


def _replace_all(content: str, updates: dict[str, str]) -> str:
    for field, value in updates.items():
        content = replace_field(content, field, value) or content
    return content


def advance_plan(root: Path) -> dict[str, Any]:
    """Move to the next plan of the current phase, or flag the phase done."""
    content = read_text_safe(_state_path(root))
    if content is None:
        return dict(STATE_MISSING)

    try:
        current = int(extract_field(content, "Current Plan") or "")
        total = int(extract_field(content, "Total Plans in Phase") or "")
    except ValueError:
        return {"error": "Cannot parse Current Plan or Total Plans in Phase from STATE.md"}

    if current >= total:
        _write_state(
            root,
            _replace_all(content, {"Status": "Phase complete — ready for verification", "Last Activity": today()}),
        )
        return {"advanced": False, "reason": "last_plan", "current_plan": current, "total_plans": total}

    _write_state(
        root,
        _replace_all(
            content,
            {"Current Plan": str(current + 1), "Status": "Ready to execute", "Last Activity": today()},
        ),
    )
    return {"advanced": True, "previous_plan": current, "current_plan": current + 1, "total_plans": total}


def record_metric(
    root: Path,
    phase: str | None,
    plan: str | None,
    duration: str | None,
    tasks: str | None = None,
    files: str | None = None,
) -> dict[str, Any]:
    """Append a row to the Performance Metrics table."""
    if not (phase and plan and duration):
        raise usage_error("phase, plan, and duration required")

    content = read_text_safe(_state_path(root))
    if content is None:
        return dict(STATE_MISSING)

    row = f"| Phase {phase} P{plan} | {duration} | {tasks or '-'} tasks | {files or '-'} files |"
    m = METRICS_TABLE_RE.search(content)
    if not m:
        return {"recorded": False, "reason": "Performance Metrics section not found"}

    rows = m.group(2).rstrip()
    rows = row if not rows.strip() or "None yet" in rows else f"{rows}\n{row}"
    rest = content[m.end():].lstrip("\n")
    content = content[: m.start()] + m.group(1) + rows + "\n" + (f"\n{rest}" if rest else "")
    _write_state(root, content)
    return {"recorded": True, "phase": phase, "plan": plan, "duration": duration}


def update_progress(root: Path) -> dict[str, Any]:
    """Recompute overall plan completion and rewrite the Progress field."""
    content = read_text_safe(_state_path(root))
    if content is None:
        return dict(STATE_MISSING)

    total_plans = 0
    total_summaries = 0
    for d in list_phase_dirs(root):
        names = [p.name for p in (phases_dir(root) / d).iterdir()]
        total_plans += sum(1 for n in names if re.search(r"-PLAN\.md$", n, re.IGNORECASE))
        total_summaries += sum(1 for n in names if re.search(r"-SUMMARY\.md$", n, re.IGNORECASE))

    percent = percent_of(total_summaries, total_plans)
    text = f"[{progress_bar(percent, PROGRESS_BAR_WIDTH)}] {percent}%"

    new_content = replace_field(content, "Progress", text)
    if new_content is None:
        line = re.compile(r"^(Progress:[ \t]*).*$", re.IGNORECASE | re.MULTILINE)
        if line.search(content):
            new_content = line.sub(lambda m: f"{m.group(1)}{text}", content, count=1)

    if new_content is None:
        return {"updated": False, "reason": "Progress field not found"}

    _write_state(root, new_content)
    return {"updated": True, "percent": percent, "completed": total_summaries, "total": total_plans, "bar": text}


# =============================================================================
# Sections
# =============================================================================


def _append_to_section(content: str, pattern: re.Pattern[str], entry: str, placeholders: list[str]) -> str | None:
    m = pattern.search(content)
    if not m:
        return None

    section = m.group(2)
    for placeholder in placeholders:
        section = re.sub(placeholder, "", section, flags=re.IGNORECASE)
    section = f"{section.rstrip()}\n{entry}\n"
    return content[: m.start()] + m.group(1) + section + content[m.end():]


def add_decision(
    root: Path, summary: str | None, phase: str | None = None, rationale: str | None = None
) -> dict[str, Any]:
    """Append a decision entry like `- [Phase 2]: Use JWT — stateless`."""
    if not summary:
        raise usage_error("summary required")

    content = read_text_safe(_state_path(root))
    if content is None:
        return dict(STATE_MISSING)

    entry = f"- [Phase {phase or '?'}]: {summary}" + (f" — {rationale}" if rationale else "")
    new_content = _append_to_section(
        content, DECISIONS_SECTION_RE, entry, [r"None yet\.?\s*\n?", r"No decisions yet\.?\s*\n?"]
    )
    if new_content is None:
        return {"added": False, "reason": "Decisions section not found"}

    _write_state(root, new_content)
    return {"added": True, "decision": entry}


def add_blocker(root: Path, text: str | None) -> dict[str, Any]:
    if not text:
        raise usage_error("text required")

    content = read_text_safe(_state_path(root))
    if content is None:
        return dict(STATE_MISSING)

    new_content = _append_to_section(
        content, BLOCKERS_SECTION_RE, f"- {text}", [r"None yet\.?\s*\n?", r"None\.?\s*\n?"]
    )
    if new_content is None:
        return {"added": False, "reason": "Blockers section not found"}

    _write_state(root, new_content)
    return {"added": True, "blocker": text}


def resolve_blocker(root: Path, text: str | None) -> dict[str, Any]:
    """Drop blocker lines containing `text`; an emptied section reads `None`."""
    if not text:
        raise usage_error("text required")

    content = read_text_safe(_state_path(root))
    if content is None:
        return dict(STATE_MISSING)

    m = BLOCKERS_SECTION_RE.search(content)
    if not m:
        return {"resolved": False, "reason": "Blockers section not found"}

    needle = text.lower()
    kept = [
        line for line in m.group(2).split("\n")
        if not (line.startswith("- ") and needle in line.lower())
    ]
    section = "\n".join(kept)
    if not section.strip() or "- " not in section:
        section = "None\n"

    _write_state(root, content[: m.start()] + m.group(1) + section + content[m.end():])
    return {"resolved": True, "blocker": text}


def record_session(root: Path, stopped_at: str | None = None, resume_file: str | None = None) -> dict[str, Any]:
    """Stamp the session fields (Last session, Stopped At, Resume File)."""
    content = read_text_safe(_state_path(root))
    if content is None:
        return dict(STATE_MISSING)

    updated = []
    new_content = replace_field(content, "Last session", iso_timestamp())
    if new_content is not None:
        content = new_content
        updated.append("Last session")

    if stopped_at:
        new_content = replace_field(content, "Stopped At", stopped_at)
        if new_content is not None:
            content = new_content
            updated.append("Stopped At")

    new_content = replace_field(content, "Resume File", resume_file or "None")
    if new_content is not None:
        content = new_content
        updated.append("Resume File")

    if not updated:
        return {"recorded": False, "reason": "No session fields found"}

    _write_state(root, content)
    return {"recorded": True, "updated": updated}
