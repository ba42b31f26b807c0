"""Verification checks over plans, summaries and the planning tree.

Each check returns a result payload with a pass/fail verdict plus the
errors and warnings behind it. A failed check is not an exception; only
missing arguments are.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from ariadna import frontmatter
from ariadna.errors import usage_error
from ariadna.git import is_commit
from ariadna.phases import find_phase, list_phase_dirs, phases_dir
from ariadna.roadmap import read_roadmap
from ariadna.utils import normalize_phase, read_text_safe

logger = logging.getLogger(__name__)

PLAN_REQUIRED_FIELDS = (
    "phase",
    "plan",
    "type",
    "wave",
    "depends_on",
    "files_modified",
    "autonomous",
    "must_haves",
)

FILE_MENTION_PATTERNS = (
    re.compile(r"`([^`]+\.[a-zA-Z]+)`"),
    re.compile(r"(?:Created|Modified|Added|Updated|Edited):\s*`?([^\s`]+\.[a-zA-Z]+)`?", re.IGNORECASE),
)
COMMIT_HASH_RE = re.compile(r"\b[0-9a-f]{7,40}\b")
SELF_CHECK_RE = re.compile(r"##\s*(?:Self[- ]?Check|Verification|Quality Check)", re.IGNORECASE)
TASK_RE = re.compile(r"<task[^>]*>([\s\S]*?)</task>")

DEFAULT_CHECK_COUNT = 2
COMMITS_TO_CHECK = 3


def _not_found(path: str) -> dict[str, Any]:
    return {"error": "File not found", "path": path}


# =============================================================================
# Summaries
# =============================================================================


def _mentioned_files(content: str) -> list[str]:
    found: list[str] = []
    for pattern in FILE_MENTION_PATTERNS:
        for path in pattern.findall(content):
            if "/" in path and not path.startswith("http") and path not in found:
                found.append(path)
    return found


def _self_check(content: str) -> str:
    match = SELF_CHECK_RE.search(content)
    if not match:
        return "not_found"
    section = content[match.start():]
    if re.search(r"fail|✗|❌|incomplete|blocked", section, re.IGNORECASE):
        return "failed"
    if re.search(r"pass|✓|✅|complete|succeeded", section, re.IGNORECASE):
        return "passed"
    return "not_found"


def verify_summary(root: Path, summary_path: str | None, check_count: int = DEFAULT_CHECK_COUNT) -> dict[str, Any]:
    """Spot-check a SUMMARY: mentioned files exist, commits exist, self-check passed."""
    if not summary_path:
        raise usage_error("summary-path required")

    content = read_text_safe(root / summary_path)
    if content is None:
        return {
            "passed": False,
            "checks": {
                "summary_exists": False,
                "files_created": {"checked": 0, "found": 0, "missing": []},
                "commits_exist": False,
                "self_check": "not_found",
            },
            "errors": ["SUMMARY.md not found"],
        }

    to_check = _mentioned_files(content)[:check_count]
    missing = [f for f in to_check if not (root / f).exists()]

    hashes = COMMIT_HASH_RE.findall(content)
    commits_exist = any(is_commit(root, h) for h in hashes[:COMMITS_TO_CHECK])
    self_check = _self_check(content)

    errors = []
    if missing:
        errors.append(f"Missing files: {', '.join(missing)}")
    if hashes and not commits_exist:
        errors.append("Referenced commit hashes not found in git history")
    if self_check == "failed":
        errors.append("Self-check section indicates failure")

    return {
        "passed": not missing and self_check != "failed",
        "checks": {
            "summary_exists": True,
            "files_created": {"checked": len(to_check), "found": len(to_check) - len(missing), "missing": missing},
            "commits_exist": commits_exist,
            "self_check": self_check,
        },
        "errors": errors,
    }


# =============================================================================
# Plans
# =============================================================================


def plan_structure(root: Path, file_path: str | None) -> dict[str, Any]:
    """Check a PLAN's frontmatter fields and `<task>` elements."""
    if not file_path:
        raise usage_error("file path required")

    content = read_text_safe(root / file_path)
    if content is None:
        return _not_found(file_path)

    fm = frontmatter.extract(content)
    errors = [f"Missing required frontmatter field: {f}" for f in PLAN_REQUIRED_FIELDS if f not in fm]
    warnings = []

    tasks = []
    for task_body in TASK_RE.findall(content):
        name_match = re.search(r"<name>([\s\S]*?)</name>", task_body)
        name = name_match.group(1).strip() if name_match else "unnamed"
        task = {
            "name": name,
            "hasFiles": "<files>" in task_body,
            "hasAction": "<action>" in task_body,
            "hasVerify": "<verify>" in task_body,
            "hasDone": "<done>" in task_body,
        }
        if not name_match:
            errors.append("Task missing <name> element")
        if not task["hasAction"]:
            errors.append(f"Task '{name}' missing <action>")
        if not task["hasVerify"]:
            warnings.append(f"Task '{name}' missing <verify>")
        if not task["hasDone"]:
            warnings.append(f"Task '{name}' missing <done>")
        if not task["hasFiles"]:
            warnings.append(f"Task '{name}' missing <files>")
        tasks.append(task)

    if not tasks:
        warnings.append("No <task> elements found")

    wave = str(fm.get("wave") or "")
    if wave.isdigit() and int(wave) > 1 and not fm.get("depends_on"):
        warnings.append("Wave > 1 but depends_on is empty")

    if re.search(r"""<task\s+type=["']?checkpoint""", content) and fm.get("autonomous") != "false":
        errors.append("Has checkpoint tasks but autonomous is not false")

    return {
        "valid": not errors,
        "errors": errors,
        "warnings": warnings,
        "task_count": len(tasks),
        "tasks": tasks,
        "frontmatter_fields": list(fm),
    }


def phase_completeness(root: Path, phase: str | None) -> dict[str, Any]:
    """Every plan of a phase should have a matching summary."""
    if not phase:
        raise usage_error("phase required")

    info = find_phase(root, phase)
    if info is None:
        return {"error": "Phase not found", "phase": phase}

    names = [p.name for p in (root / info.directory).iterdir()]
    plan_ids = [re.sub(r"-PLAN\.md$", "", n, flags=re.IGNORECASE) for n in names if re.search(r"-PLAN\.md$", n, re.IGNORECASE)]
    summary_ids = [
        re.sub(r"-SUMMARY\.md$", "", n, flags=re.IGNORECASE) for n in names if re.search(r"-SUMMARY\.md$", n, re.IGNORECASE)
    ]

    incomplete = sorted(i for i in plan_ids if i not in summary_ids)
    orphans = sorted(i for i in summary_ids if i not in plan_ids)
    errors = [f"Plans without summaries: {', '.join(incomplete)}"] if incomplete else []
    warnings = [f"Summaries without plans: {', '.join(orphans)}"] if orphans else []

    return {
        "complete": not errors,
        "phase": info.phase_number,
        "plan_count": len(plan_ids),
        "summary_count": len(summary_ids),
        "incomplete_plans": incomplete,
        "orphan_summaries": orphans,
        "errors": errors,
        "warnings": warnings,
    }


def references(root: Path, file_path: str | None) -> dict[str, Any]:
    """Resolve `@path/to/file` references and backticked paths in a document."""
    if not file_path:
        raise usage_error("file path required")

    content = read_text_safe(root / file_path)
    if content is None:
        return _not_found(file_path)

    found: list[str] = []
    missing: list[str] = []

    def check(ref: str, resolved: Path) -> None:
        if ref in found or ref in missing:
            return
        (found if resolved.exists() else missing).append(ref)

    for ref in re.findall(r"@([^\s,)]+/[^\s,)]+)", content):
        check(ref, Path.home() / ref[2:] if ref.startswith("~/") else root / ref)

    for ref in re.findall(r"`([^`]+/[^`]+\.[a-zA-Z]{1,10})`", content):
        if ref.startswith("http") or "${" in ref or "{{" in ref:
            continue
        check(ref, root / ref)

    return {"valid": not missing, "found": len(found), "missing": missing, "total": len(found) + len(missing)}


def commits(root: Path, hashes: list[str]) -> dict[str, Any]:
    if not hashes:
        raise usage_error("At least one commit hash required")

    valid = [h for h in hashes if is_commit(root, h)]
    invalid = [h for h in hashes if h not in valid]
    return {"all_valid": not invalid, "valid": valid, "invalid": invalid, "total": len(hashes)}


def _must_haves(content: str, block: str) -> list[dict[str, Any]]:
    """Mapping entries of `must_haves.<block>` (plain string entries are skipped)."""
    must_haves = frontmatter.extract(content).get("must_haves")
    if not isinstance(must_haves, dict):
        return []
    items = must_haves.get(block)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _texts(value: Any) -> list[str]:
    """A must_haves value as a list of strings (`x`, `[x, y]` and numbers all accepted)."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return [str(v) for v in value if v is not None and v != ""]
    return [str(value)]


def _text(value: Any) -> str:
    texts = _texts(value)
    return texts[0] if texts else ""


def artifacts(root: Path, plan_path: str | None) -> dict[str, Any]:
    """Check the files a plan promises: existence, size, content and exports."""
    if not plan_path:
        raise usage_error("plan file path required")

    content = read_text_safe(root / plan_path)
    if content is None:
        return _not_found(plan_path)

    entries = [a for a in _must_haves(content, "artifacts") if _text(a.get("path"))]
    if not entries:
        return {"error": "No must_haves.artifacts found in frontmatter", "path": plan_path}

    results = []
    for artifact in entries:
        path = _text(artifact["path"])
        check: dict[str, Any] = {"path": path, "exists": (root / path).exists(), "issues": [], "passed": False}

        if not check["exists"]:
            check["issues"].append("File not found")
            results.append(check)
            continue

        text = read_text_safe(root / path) or ""
        line_count = len(text.splitlines())
        min_lines = _as_int(artifact.get("min_lines"))
        if min_lines is not None and line_count < min_lines:
            check["issues"].append(f"Only {line_count} lines, need {min_lines}")

        for pattern in _texts(artifact.get("contains")):
            if pattern not in text:
                check["issues"].append(f"Missing pattern: {pattern}")

        for export in _texts(artifact.get("exports")):
            if export not in text:
                check["issues"].append(f"Missing export: {export}")

        check["passed"] = not check["issues"]
        results.append(check)

    passed = sum(1 for r in results if r["passed"])
    return {"all_passed": passed == len(results), "passed": passed, "total": len(results), "artifacts": results}


def _check_link(root: Path, link: dict[str, Any]) -> dict[str, Any]:
    source, target = _text(link.get("from")), _text(link.get("to"))
    check = {"from": source, "to": target, "via": link.get("via") or "", "verified": False, "detail": ""}

    source_text = read_text_safe(root / source) if source else None
    if source_text is None:
        check["detail"] = "Source file not found"
        return check

    pattern = _text(link.get("pattern"))
    if not pattern:
        if target in source_text:
            check.update(verified=True, detail="Target referenced in source")
        else:
            check["detail"] = "Target not referenced in source"
        return check

    try:
        regex = re.compile(pattern)
    except re.error:
        check["detail"] = f"Invalid regex pattern: {pattern}"
        return check

    if regex.search(source_text):
        check.update(verified=True, detail="Pattern found in source")
        return check

    target_text = read_text_safe(root / target) if target else None
    if target_text is not None and regex.search(target_text):
        check.update(verified=True, detail="Pattern found in target")
    else:
        check["detail"] = f'Pattern "{pattern}" not found in source or target'
    return check


def key_links(root: Path, plan_path: str | None) -> dict[str, Any]:
    """Check that the connections a plan promises (from -> to) exist in code."""
    if not plan_path:
        raise usage_error("plan file path required")

    content = read_text_safe(root / plan_path)
    if content is None:
        return _not_found(plan_path)

    links = _must_haves(content, "key_links")
    if not links:
        return {"error": "No must_haves.key_links found in frontmatter", "path": plan_path}

    results = [_check_link(root, link) for link in links]
    verified = sum(1 for r in results if r["verified"])
    return {"all_verified": verified == len(results), "verified": verified, "total": len(results), "links": results}


# =============================================================================
# Whole-tree consistency
# =============================================================================


def _unpadded(phase: str) -> str:
    whole, _, decimal = phase.partition(".")
    whole = str(int(whole))
    return f"{whole}.{decimal}" if decimal else whole


def consistency(root: Path) -> dict[str, Any]:
    """Cross-check ROADMAP.md against phase directories and plan numbering."""
    errors: list[str] = []
    warnings: list[str] = []

    roadmap = read_roadmap(root)
    if roadmap is None:
        errors.append("ROADMAP.md not found")
        return {"passed": False, "errors": errors, "warnings": warnings}

    roadmap_phases = re.findall(r"###\s*Phase\s+(\d+(?:\.\d+)?)\s*:", roadmap, re.IGNORECASE)
    dirs = list_phase_dirs(root)
    disk_phases = [m.group(1) for d in dirs if (m := re.match(r"^(\d+(?:\.\d+)?)", d))]

    for p in roadmap_phases:
        if p not in disk_phases and normalize_phase(p) not in disk_phases:
            warnings.append(f"Phase {p} in ROADMAP.md but no directory on disk")

    for p in disk_phases:
        if p not in roadmap_phases and _unpadded(p) not in roadmap_phases:
            warnings.append(f"Phase {p} exists on disk but not in ROADMAP.md")

    integers = sorted(int(p) for p in disk_phases if "." not in p)
    for prev, cur in zip(integers, integers[1:]):
        if cur != prev + 1:
            warnings.append(f"Gap in phase numbering: {prev} → {cur}")

    for d in dirs:
        dir_path = phases_dir(root) / d
        names = [p.name for p in dir_path.iterdir()]
        plans = sorted(n for n in names if n.endswith("-PLAN.md"))
        plan_ids = [n.removesuffix("-PLAN.md") for n in plans]

        numbers = [int(m.group(1)) for n in plans if (m := re.search(r"-(\d{2})-PLAN\.md$", n))]
        for prev, cur in zip(numbers, numbers[1:]):
            if cur != prev + 1:
                warnings.append(f"Gap in plan numbering in {d}: plan {prev} → {cur}")

        for summary_id in sorted(n.removesuffix("-SUMMARY.md") for n in names if n.endswith("-SUMMARY.md")):
            if summary_id not in plan_ids:
                warnings.append(f"Summary {summary_id}-SUMMARY.md in {d} has no matching PLAN.md")

        for plan in plans:
            plan_text = read_text_safe(dir_path / plan)
            if plan_text is None:
                warnings.append(f"{d}/{plan}: unreadable (not UTF-8 text)")
            elif not frontmatter.extract(plan_text).get("wave"):
                warnings.append(f"{d}/{plan}: missing 'wave' in frontmatter")

    return {"passed": not errors, "errors": errors, "warnings": warnings, "warning_count": len(warnings)}
