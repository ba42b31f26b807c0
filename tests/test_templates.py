"""Tests for template selection, filling and scaffolding."""

import pytest

from ariadna import frontmatter, templates
from ariadna.errors import AriadnaError, ErrorCode


class TestSelect:
    """Tests for picking a summary template."""

    def test_small_plan_is_minimal(self, planning) -> None:
        planning.write("plan.md", "### Task 1: Do it\nTouch `src/app.py`\n")
        result = templates.select(planning.root, "plan.md")
        assert result == {
            "template": "templates/summary-minimal.md",
            "type": "minimal",
            "taskCount": 1,
            "fileCount": 1,
            "hasDecisions": False,
        }

    def test_decisions_make_it_complex(self, planning) -> None:
        planning.write("plan.md", "### Task 1\nRecord the decision.\n")
        assert templates.select(planning.root, "plan.md")["type"] == "complex"

    def test_medium_plan_is_standard(self, planning) -> None:
        tasks = "".join(f"### Task {i}\n" for i in range(1, 5))
        planning.write("plan.md", tasks)
        assert templates.select(planning.root, "plan.md")["type"] == "standard"

    def test_unreadable_plan_falls_back(self, planning) -> None:
        result = templates.select(planning.root, "missing.md")
        assert result["type"] == "standard"
        assert "error" in result


class TestFill:
    """Tests for filling summary, plan and verification templates."""

    def test_plan_template(self, project) -> None:
        result = templates.fill(project.root, "plan", "2", plan="3", wave="2")

        assert result == {"created": True, "path": ".planning/phases/02-auth/02-03-PLAN.md", "template": "plan"}
        fm = frontmatter.extract(project.read(result["path"]))
        assert fm["phase"] == "02-auth"
        assert fm["plan"] == "03"
        assert fm["wave"] == "2"
        assert fm["autonomous"] == "true"
        assert fm["type"] == "execute"

    def test_summary_template_with_fields(self, project) -> None:
        result = templates.fill(project.root, "summary", "2", plan="2", fields='{"subsystem": "auth"}')

        assert result["path"] == ".planning/phases/02-auth/02-02-SUMMARY.md"
        fm = frontmatter.extract(project.read(result["path"]))
        assert fm["subsystem"] == "auth"
        assert fm["provides"] == []

    def test_verification_template(self, project) -> None:
        result = templates.fill(project.root, "verification", "1")
        fm = frontmatter.extract(project.read(result["path"]))
        assert result["path"] == ".planning/phases/01-foundation/01-VERIFICATION.md"
        assert fm["status"] == "pending"

    def test_existing_file_is_not_overwritten(self, project) -> None:
        result = templates.fill(project.root, "plan", "2", plan="1")
        assert result == {"error": "File already exists", "path": ".planning/phases/02-auth/02-01-PLAN.md"}

    def test_unknown_phase(self, project) -> None:
        assert templates.fill(project.root, "plan", "9") == {"error": "Phase not found", "phase": "9"}

    def test_unknown_type(self, project) -> None:
        with pytest.raises(AriadnaError) as exc_info:
            templates.fill(project.root, "recipe", "2")
        assert exc_info.value.code == ErrorCode.UNKNOWN_TEMPLATE

    def test_bad_fields_json(self, project) -> None:
        with pytest.raises(AriadnaError) as exc_info:
            templates.fill(project.root, "plan", "2", plan="5", fields="[1, 2")
        assert exc_info.value.code == ErrorCode.INVALID_JSON


class TestScaffold:
    """Tests for phase notes and directories."""

    def test_context_note(self, project) -> None:
        result = templates.scaffold(project.root, "context", "2")

        assert result == {"created": True, "path": ".planning/phases/02-auth/02-CONTEXT.md"}
        content = project.read(result["path"])
        assert frontmatter.extract(content)["phase"] == "02"
        assert "status" not in frontmatter.extract(content)
        assert "## Decisions" in frontmatter.body(content)

    def test_uat_has_status(self, project) -> None:
        result = templates.scaffold(project.root, "uat", "2", name="Authentication")
        content = project.read(result["path"])
        assert frontmatter.extract(content)["status"] == "pending"
        assert "# Phase 2: Authentication" in content

    def test_existing_note(self, project) -> None:
        templates.scaffold(project.root, "verification", "1")
        result = templates.scaffold(project.root, "verification", "1")
        assert result["created"] is False
        assert result["reason"] == "already_exists"

    def test_phase_dir(self, project) -> None:
        result = templates.scaffold(project.root, "phase-dir", "4", name="Payments v2")
        assert result["created"] is True
        assert result["directory"] == ".planning/phases/04-payments-v2"
        assert (project.root / ".planning/phases/04-payments-v2").is_dir()

    def test_missing_phase(self, project) -> None:
        with pytest.raises(AriadnaError) as exc_info:
            templates.scaffold(project.root, "context", "9")
        assert exc_info.value.code == ErrorCode.PHASE_NOT_FOUND

    def test_unknown_type(self, project) -> None:
        with pytest.raises(AriadnaError) as exc_info:
            templates.scaffold(project.root, "diagram", "2")
        assert "Available: context, uat, verification, phase-dir" in exc_info.value.message
