"""Skeleton documents for phases.

`fill` writes SUMMARY, PLAN and VERIFICATION skeletons (frontmatter plus
section headings) into a phase directory; `scaffold` writes the smaller
CONTEXT, UAT and VERIFICATION notes or creates a phase directory. Existing
files are never overwritten.
"""

import json
import logging
import re
from pathlib import Path
from typing import Any

from ariadna import frontmatter
from ariadna.errors import AriadnaError, ErrorCode, usage_error
from ariadna.phases import PHASES_RELPATH, find_phase
from ariadna.utils import iso_timestamp, normalize_phase, slugify, today, write_text_atomic

logger = logging.getLogger(__name__)

FILL_TYPES = ("summary", "plan", "verification")
SCAFFOLD_TYPES = ("context", "uat", "verification", "phase-dir")

SUMMARY_TEMPLATES = {
    "minimal": "templates/summary-minimal.md",
    "standard": "templates/summary-standard.md",
    "complex": "templates/summary-complex.md",
}


def select(root: Path, plan_path: str | None) -> dict[str, Any]:
    """Pick a summary template by how large a plan is.

    Small plans (<=2 tasks, <=3 files, no decisions) get the minimal
    template; plans with decisions, >6 files or >5 tasks get the complex one.
    """
    if not plan_path:
        raise usage_error("plan-path required")

    try:
        content = (root / plan_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read plan %s: %s", plan_path, e)
        return {"template": SUMMARY_TEMPLATES["standard"], "type": "standard", "error": str(e)}

    task_count = len(re.findall(r"###\s*Task\s*\d+", content, re.IGNORECASE))
    has_decisions = bool(re.search(r"decision", content, re.IGNORECASE))

    files: list[str] = []
    for mention in re.findall(r"`([^`]+\.[a-zA-Z]+)`", content):
        if "/" in mention and not mention.startswith("http") and mention not in files:
            files.append(mention)

    kind = "standard"
    if task_count <= 2 and len(files) <= 3 and not has_decisions:
        kind = "minimal"
    elif has_decisions or len(files) > 6 or task_count > 5:
        kind = "complex"

    return {
        "template": SUMMARY_TEMPLATES[kind],
        "type": kind,
        "taskCount": task_count,
        "fileCount": len(files),
        "hasDecisions": has_decisions,
    }


def _summary_body(phase: str, phase_name: str) -> list[str]:
    return [
        f"# Phase {phase}: {phase_name} Summary",
        "",
        "**[Substantive one-liner describing outcome]**",
        "",
        "## Performance",
        "- **Duration:** [time]",
        "- **Tasks:** [count completed]",
        "- **Files modified:** [count]",
        "",
        "## Accomplishments",
        "- [Key outcome 1]",
        "- [Key outcome 2]",
        "",
        "## Task Commits",
        "1. **Task 1: [task name]** - `hash`",
        "",
        "## Files Created/Modified",
        "- `path/to/file.ts` - What it does",
        "",
        "## Decisions & Deviations",
        '[Key decisions or "None - followed plan as specified"]',
        "",
        "## Next Phase Readiness",
        "[What's ready for next phase]",
    ]


def _plan_body(phase: str, plan_num: str) -> list[str]:
    return [
        f"# Phase {phase} Plan {plan_num}: [Title]",
        "",
        "## Objective",
        "- **What:** [What this plan builds]",
        "- **Why:** [Why it matters for the phase goal]",
        "- **Output:** [Concrete deliverable]",
        "",
        "## Context",
        "@.planning/PROJECT.md",
        "@.planning/ROADMAP.md",
        "@.planning/STATE.md",
        "",
        "## Tasks",
        "",
        '<task type="code">',
        "  <name>[Task name]</name>",
        "  <files>[file paths]</files>",
        "  <action>[What to do]</action>",
        "  <verify>[How to verify]</verify>",
        "  <done>[Definition of done]</done>",
        "</task>",
        "",
        "## Verification",
        "[How to verify this plan achieved its objective]",
        "",
        "## Success Criteria",
        "- [ ] [Criterion 1]",
        "- [ ] [Criterion 2]",
    ]


def _verification_body(phase: str, phase_name: str) -> list[str]:
    return [
        f"# Phase {phase}: {phase_name} — Verification",
        "",
        "## Observable Truths",
        "| # | Truth | Status | Evidence |",
        "|---|-------|--------|----------|",
        "| 1 | [Truth] | pending | |",
        "",
        "## Required Artifacts",
        "| Artifact | Expected | Status | Details |",
        "|----------|----------|--------|---------|",
        "| [path] | [what] | pending | |",
        "",
        "## Key Link Verification",
        "| From | To | Via | Status | Details |",
        "|------|----|----|--------|---------|",
        "| [source] | [target] | [connection] | pending | |",
        "",
        "## Requirements Coverage",
        "| Requirement | Status | Blocking Issue |",
        "|-------------|--------|----------------|",
        "| [req] | pending | |",
        "",
        "## Result",
        "[Pending verification]",
    ]


def _parse_fields(fields: str | None) -> dict[str, Any]:
    if not fields:
        return {}
    try:
        parsed = json.loads(fields)
    except json.JSONDecodeError as e:
        raise AriadnaError(ErrorCode.INVALID_JSON, {"flag": "--fields"}, cause=e) from e
    if not isinstance(parsed, dict):
        raise AriadnaError(ErrorCode.INVALID_JSON, {"flag": "--fields"})
    return parsed


def fill(
    root: Path,
    template_type: str | None,
    phase: str | None,
    plan: str | None = None,
    name: str | None = None,
    plan_type: str | None = None,
    wave: str | None = None,
    fields: str | None = None,
) -> dict[str, Any]:
    """Write a SUMMARY, PLAN or VERIFICATION skeleton into a phase directory.

    Args:
        root: Project root
        template_type: summary, plan or verification
        phase: Phase identifier (e.g. "2" or "02.1")
        plan: Plan number, zero-padded to two digits (default "01")
        name: Phase name used in headings (default: from the directory)
        plan_type: Plan `type` field (default "execute")
        wave: Plan wave (default 1)
        fields: JSON object merged over the default frontmatter

    Raises:
        AriadnaError: On missing arguments, unknown type or bad --fields JSON
    """
    if not template_type:
        raise usage_error("template type required: summary, plan, or verification")
    if not phase:
        raise usage_error("--phase required")
    if template_type not in FILL_TYPES:
        raise AriadnaError(
            ErrorCode.UNKNOWN_TEMPLATE,
            {"kind": "template", "name": template_type, "available": ", ".join(FILL_TYPES)},
        )
    extra = _parse_fields(fields)

    info = find_phase(root, phase)
    if info is None:
        return {"error": "Phase not found", "phase": phase}

    padded = normalize_phase(phase)
    phase_name = name or info.phase_name or "Unnamed"
    phase_id = f"{padded}-{info.phase_slug or slugify(phase_name)}"
    plan_num = (plan or "01").rjust(2, "0")

    if template_type == "summary":
        data: dict[str, Any] = {
            "phase": phase_id,
            "plan": plan_num,
            "subsystem": "[primary category]",
            "tags": [],
            "provides": [],
            "affects": [],
            "tech-stack": {"added": [], "patterns": []},
            "key-files": {"created": [], "modified": []},
            "key-decisions": [],
            "patterns-established": [],
            "duration": "[X]min",
            "completed": today(),
        }
        text = _summary_body(phase, phase_name)
        file_name = f"{padded}-{plan_num}-SUMMARY.md"
    elif template_type == "plan":
        data = {
            "phase": phase_id,
            "plan": plan_num,
            "type": plan_type or "execute",
            "wave": int(wave) if wave and wave.isdigit() else 1,
            "depends_on": [],
            "files_modified": [],
            "autonomous": True,
            "user_setup": [],
            "must_haves": {"truths": [], "artifacts": [], "key_links": []},
        }
        text = _plan_body(phase, plan_num)
        file_name = f"{padded}-{plan_num}-PLAN.md"
    else:
        data = {
            "phase": phase_id,
            "verified": iso_timestamp(),
            "status": "pending",
            "score": "0/0 must-haves verified",
        }
        text = _verification_body(phase, phase_name)
        file_name = f"{padded}-VERIFICATION.md"

    data.update(extra)
    rel_path = f"{info.directory}/{file_name}"
    out_path = root / rel_path
    if out_path.exists():
        return {"error": "File already exists", "path": rel_path}

    write_text_atomic(out_path, frontmatter.render(data, "\n".join(text)))
    logger.info("Filled %s template at %s", template_type, rel_path)
    return {"created": True, "path": rel_path, "template": template_type}


_SCAFFOLD_BODIES = {
    "context": (
        "CONTEXT",
        "Context",
        "## Decisions\n\n_Decisions will be captured during /ariadna:discuss-phase {phase}_\n\n"
        "## Discretion Areas\n\n_Areas where the executor can use judgment_\n\n"
        "## Deferred Ideas\n\n_Ideas to consider later_",
    ),
    "uat": (
        "UAT",
        "User Acceptance Testing",
        "## Test Results\n\n| # | Test | Status | Notes |\n|---|------|--------|-------|\n\n"
        "## Summary\n\n_Pending UAT_",
    ),
    "verification": (
        "VERIFICATION",
        "Verification",
        "## Goal-Backward Verification\n\n**Phase Goal:** [From ROADMAP.md]\n\n"
        "## Checks\n\n| # | Requirement | Status | Evidence |\n|---|------------|--------|----------|\n\n"
        "## Result\n\n_Pending verification_",
    ),
}


def scaffold(root: Path, kind: str | None, phase: str | None = None, name: str | None = None) -> dict[str, Any]:
    """Create a phase note (context, uat, verification) or a phase directory."""
    if kind not in SCAFFOLD_TYPES:
        raise AriadnaError(
            ErrorCode.UNKNOWN_TEMPLATE,
            {"kind": "scaffold", "name": kind, "available": ", ".join(SCAFFOLD_TYPES)},
        )

    if kind == "phase-dir":
        if not phase or not name:
            raise usage_error("phase and name required for phase-dir scaffold")
        dir_name = f"{normalize_phase(phase)}-{slugify(name)}"
        dir_path = root / PHASES_RELPATH / dir_name
        dir_path.mkdir(parents=True, exist_ok=True)
        return {"created": True, "directory": f"{PHASES_RELPATH}/{dir_name}", "path": str(dir_path)}

    if not phase:
        raise usage_error("--phase required")
    info = find_phase(root, phase)
    if info is None:
        raise AriadnaError(ErrorCode.PHASE_NOT_FOUND, {"phase": phase})

    padded = normalize_phase(phase)
    phase_name = name or info.phase_name or "Unnamed"
    suffix, title, sections = _SCAFFOLD_BODIES[kind]
    rel_path = f"{info.directory}/{padded}-{suffix}.md"
    out_path = root / rel_path
    if out_path.exists():
        return {"created": False, "reason": "already_exists", "path": rel_path}

    data: dict[str, Any] = {"phase": padded, "name": phase_name, "created": today()}
    if kind != "context":
        data["status"] = "pending"

    body_text = f"# Phase {phase}: {phase_name} — {title}\n\n{sections.format(phase=phase)}"
    write_text_atomic(out_path, frontmatter.render(data, body_text))
    return {"created": True, "path": rel_path}
