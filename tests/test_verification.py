"""Tests for verification checks."""

import pytest

from ariadna import verification
from ariadna.errors import AriadnaError

GOOD_PLAN = """---
phase: 02-auth
plan: 01
type: execute
wave: 1
depends_on: []
files_modified: [src/auth.py]
autonomous: true
must_haves:
  truths: []
  artifacts:
    - path: src/auth.py
      contains: def login
      min_lines: 2
      exports: [login]
  key_links:
    - from: src/api.py
      to: src/auth.py
      pattern: "from auth import login"
---

<task type="auto">
  <name>Add login</name>
  <files>src/auth.py</files>
  <action>Write it</action>
  <verify>pytest</verify>
  <done>Login works</done>
</task>
"""

PLAN_PATH = ".planning/phases/02-auth/02-01-PLAN.md"


class TestPlanStructure:
    """Tests for PLAN structure checks."""

    def test_well_formed_plan(self, project) -> None:
        project.write(PLAN_PATH, GOOD_PLAN)
        result = verification.plan_structure(project.root, PLAN_PATH)
        assert result["valid"] is True
        assert result["errors"] == []
        assert result["warnings"] == []
        assert result["tasks"] == [
            {"name": "Add login", "hasFiles": True, "hasAction": True, "hasVerify": True, "hasDone": True}
        ]

    def test_missing_fields_and_elements(self, project) -> None:
        project.write(PLAN_PATH, "---\nphase: 02\nwave: 2\n---\n<task><name>x</name></task>\n")
        result = verification.plan_structure(project.root, PLAN_PATH)
        assert result["valid"] is False
        assert "Missing required frontmatter field: must_haves" in result["errors"]
        assert "Task 'x' missing <action>" in result["errors"]
        assert "Wave > 1 but depends_on is empty" in result["warnings"]

    def test_checkpoint_requires_non_autonomous(self, project) -> None:
        plan = GOOD_PLAN.replace('<task type="auto">', '<task type="checkpoint:human-verify">')
        project.write(PLAN_PATH, plan)
        result = verification.plan_structure(project.root, PLAN_PATH)
        assert "Has checkpoint tasks but autonomous is not false" in result["errors"]

    def test_missing_file(self, project) -> None:
        assert verification.plan_structure(project.root, "nope.md") == {"error": "File not found", "path": "nope.md"}


class TestPhaseCompleteness:
    """Tests for plan/summary pairing."""

    def test_incomplete_phase(self, project) -> None:
        result = verification.phase_completeness(project.root, "2")
        assert result["complete"] is False
        assert result["incomplete_plans"] == ["02-02"]
        assert result["plan_count"] == 2

    def test_complete_phase_with_orphan(self, project) -> None:
        project.phase("01-foundation", {"01-02-SUMMARY.md": ""})
        result = verification.phase_completeness(project.root, "1")
        assert result["complete"] is True
        assert result["orphan_summaries"] == ["01-02"]

    def test_unknown_phase(self, project) -> None:
        assert verification.phase_completeness(project.root, "9")["error"] == "Phase not found"


class TestReferences:
    """Tests for @-references and backticked paths."""

    def test_found_and_missing(self, project) -> None:
        project.write("docs/note.md", "See @.planning/STATE.md and `src/missing.py`, also `https://x.io/a.html`.\n")
        result = verification.references(project.root, "docs/note.md")
        assert result == {"valid": False, "found": 1, "missing": ["src/missing.py"], "total": 2}


class TestMustHaves:
    """Tests for artifacts and key links."""

    def test_artifacts_pass(self, project) -> None:
        project.write(PLAN_PATH, GOOD_PLAN)
        project.write("src/auth.py", "def login():\n    return True\n")

        result = verification.artifacts(project.root, PLAN_PATH)

        assert result["all_passed"] is True
        assert result["artifacts"][0]["issues"] == []

    def test_artifact_issues(self, project) -> None:
        project.write(PLAN_PATH, GOOD_PLAN)
        project.write("src/auth.py", "pass\n")

        check = verification.artifacts(project.root, PLAN_PATH)["artifacts"][0]

        assert check["passed"] is False
        assert check["issues"] == ["Only 1 lines, need 2", "Missing pattern: def login", "Missing export: login"]

    def test_missing_artifact(self, project) -> None:
        project.write(PLAN_PATH, GOOD_PLAN)
        result = verification.artifacts(project.root, PLAN_PATH)
        assert result["all_passed"] is False
        assert result["artifacts"][0]["issues"] == ["File not found"]

    def test_no_artifacts_declared(self, project) -> None:
        result = verification.artifacts(project.root, ".planning/phases/02-auth/02-02-PLAN.md")
        assert result["error"] == "No must_haves.artifacts found in frontmatter"

    def test_key_link_in_source(self, project) -> None:
        project.write(PLAN_PATH, GOOD_PLAN)
        project.write("src/api.py", "from auth import login\n")

        result = verification.key_links(project.root, PLAN_PATH)

        assert result["all_verified"] is True
        assert result["links"][0]["detail"] == "Pattern found in source"

    def test_list_valued_contains(self, project) -> None:
        """Each entry of a `contains` list is checked on its own."""
        project.write(PLAN_PATH, GOOD_PLAN.replace("contains: def login", "contains: [def login, return True]"))
        project.write("src/auth.py", "def login():\n    return None\n")

        check = verification.artifacts(project.root, PLAN_PATH)["artifacts"][0]
        assert check["issues"] == ["Missing pattern: return True"]

        project.write("src/auth.py", "def login():\n    return True\n")
        assert verification.artifacts(project.root, PLAN_PATH)["all_passed"] is True

    def test_key_link_with_list_target(self, project) -> None:
        project.write(PLAN_PATH, GOOD_PLAN.replace("to: src/auth.py", "to: [src/auth.py]"))
        project.write("src/api.py", "from auth import login\n")

        link = verification.key_links(project.root, PLAN_PATH)["links"][0]

        assert link["to"] == "src/auth.py"
        assert link["verified"] is True

    def test_key_link_missing_source(self, project) -> None:
        project.write(PLAN_PATH, GOOD_PLAN)
        link = verification.key_links(project.root, PLAN_PATH)["links"][0]
        assert link["verified"] is False
        assert link["detail"] == "Source file not found"


class TestVerifySummary:
    """Tests for SUMMARY spot checks."""

    def test_passing_summary(self, project) -> None:
        project.write("src/auth.py", "x = 1\n")
        project.write("summary.md", "Created: `src/auth.py`\n\n## Self-Check: PASSED\n")

        result = verification.verify_summary(project.root, "summary.md")

        assert result["passed"] is True
        assert result["checks"]["files_created"] == {"checked": 1, "found": 1, "missing": []}
        assert result["checks"]["self_check"] == "passed"

    def test_missing_file_fails(self, project) -> None:
        project.write("summary.md", "Modified `src/gone.py`\n")
        result = verification.verify_summary(project.root, "summary.md")
        assert result["passed"] is False
        assert result["errors"] == ["Missing files: src/gone.py"]

    def test_failed_self_check(self, project) -> None:
        project.write("summary.md", "## Self-Check\n\nTests FAILED\n")
        result = verification.verify_summary(project.root, "summary.md")
        assert result["passed"] is False
        assert result["checks"]["self_check"] == "failed"

    def test_missing_summary(self, project) -> None:
        result = verification.verify_summary(project.root, "nope.md")
        assert result["passed"] is False
        assert result["checks"]["summary_exists"] is False

    def test_path_required(self, project) -> None:
        with pytest.raises(AriadnaError, match="summary-path required"):
            verification.verify_summary(project.root, None)


class TestConsistency:
    """Tests for whole-tree consistency."""

    def test_warnings_do_not_fail(self, project) -> None:
        project.phase("04-reports")

        result = verification.consistency(project.root)

        assert result["passed"] is True
        assert "Phase 3 in ROADMAP.md but no directory on disk" in result["warnings"]
        assert "Phase 04 exists on disk but not in ROADMAP.md" in result["warnings"]
        assert "Gap in phase numbering: 2 → 4" in result["warnings"]
        assert not any("Phase 1 " in w or "Phase 01 " in w for w in result["warnings"])

    def test_decimal_phases_match(self, project) -> None:
        project.roadmap(project.read(".planning/ROADMAP.md") + "\n### Phase 2.1: OAuth\n")
        project.phase("02.1-oauth")
        warnings = verification.consistency(project.root)["warnings"]
        assert not any("02.1" in w or "2.1" in w for w in warnings)

    def test_plan_numbering_and_orphans(self, project) -> None:
        project.phase("02-auth", {"02-04-PLAN.md": "---\nwave: 1\n---\n", "02-09-SUMMARY.md": ""})
        warnings = verification.consistency(project.root)["warnings"]
        assert "Gap in plan numbering in 02-auth: plan 2 → 4" in warnings
        assert "Summary 02-09-SUMMARY.md in 02-auth has no matching PLAN.md" in warnings

    def test_missing_wave(self, project) -> None:
        project.phase("01-foundation", {"01-01-PLAN.md": "---\nphase: 01\n---\n"})
        warnings = verification.consistency(project.root)["warnings"]
        assert "01-foundation/01-01-PLAN.md: missing 'wave' in frontmatter" in warnings

    def test_non_utf8_plan_is_reported(self, project) -> None:
        phase_dir = project.phase("02-auth", {"02-01-PLAN.md": "---\nwave: 1\n---\n"})
        (phase_dir / "02-02-PLAN.md").write_bytes(b"---\nwave: 1\n---\ncaf\xe9 \xff\xfe\n")

        result = verification.consistency(project.root)

        assert result["passed"] is True
        assert "02-auth/02-02-PLAN.md: unreadable (not UTF-8 text)" in result["warnings"]

    def test_missing_roadmap_fails(self, planning) -> None:
        result = verification.consistency(planning.root)
        assert result == {"passed": False, "errors": ["ROADMAP.md not found"], "warnings": []}
