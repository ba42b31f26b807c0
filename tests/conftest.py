"""Pytest fixtures for ariadna tests."""

from pathlib import Path

import pytest

STATE_MD = """# Project State

## Current Position

**Current Phase:** 02
**Current Plan:** 1
**Total Plans in Phase:** 3
**Status:** Ready to execute
**Last Activity:** 2026-01-01
**Progress:** [░░░░░░░░░░] 0%

## Performance Metrics

| Plan | Duration | Tasks | Files |
|------|----------|-------|-------|
None yet

## Accumulated Context

### Decisions

None yet.

### Blockers/Concerns

None

## Session Continuity

**Last session:** 2026-01-01T00:00:00Z
**Stopped At:** Task 1
**Resume File:** None
"""

ROADMAP_MD = """# Roadmap: Demo

## Milestone v1.0: Launch

- [x] Phase 1: Foundation
- [ ] Phase 2: Auth

### Phase 1: Foundation
**Goal:** Set up the project
**Depends on:** Nothing

### Phase 2: Auth
**Goal:** Users can log in
**Depends on:** Phase 1

### Phase 3: Billing
**Goal:** Charge users
"""


class PlanningTree:
    """Builds a project with a `.planning` directory under a temp root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        (root / ".planning" / "phases").mkdir(parents=True)

    def write(self, relpath: str, content: str = "") -> Path:
        path = self.root / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def read(self, relpath: str) -> str:
        return (self.root / relpath).read_text(encoding="utf-8")

    def phase(self, name: str, files: dict[str, str] | None = None) -> Path:
        """Create `.planning/phases/<name>` holding the given files."""
        phase_dir = self.root / ".planning" / "phases" / name
        phase_dir.mkdir(parents=True, exist_ok=True)
        for file_name, content in (files or {}).items():
            (phase_dir / file_name).write_text(content, encoding="utf-8")
        return phase_dir

    def state(self, content: str = STATE_MD) -> Path:
        return self.write(".planning/STATE.md", content)

    def roadmap(self, content: str = ROADMAP_MD) -> Path:
        return self.write(".planning/ROADMAP.md", content)

    def config(self, content: str) -> Path:
        return self.write(".planning/config.json", content)


@pytest.fixture
def planning(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> PlanningTree:
    """Empty planning tree; ARIADNA_* overrides from the environment are cleared."""
    for key in (
        "ARIADNA_MODEL_PROFILE",
        "ARIADNA_COMMIT_DOCS",
        "ARIADNA_BRANCHING_STRATEGY",
        "ARIADNA_JSON_ERRORS",
        "ARIADNA_LOG_LEVEL",
        "ARIADNA_DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)
    return PlanningTree(tmp_path)


@pytest.fixture
def project(planning: PlanningTree) -> PlanningTree:
    """Planning tree with STATE.md, ROADMAP.md and two phases.

    Phase 01 is complete (one plan, one summary); phase 02 has two plans and
    one summary.
    """
    planning.state()
    planning.roadmap()
    planning.phase(
        "01-foundation",
        {"01-01-PLAN.md": "---\nphase: 01\nplan: 01\nwave: 1\n---\n", "01-01-SUMMARY.md": "# Summary\n"},
    )
    planning.phase(
        "02-auth",
        {
            "02-01-PLAN.md": "---\nphase: 02\nplan: 01\nwave: 1\n---\n",
            "02-02-PLAN.md": "---\nphase: 02\nplan: 02\nwave: 2\n---\n",
            "02-01-SUMMARY.md": "# Summary\n",
        },
    )
    return planning
