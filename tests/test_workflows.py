"""Tests for init workflow context bundles."""

import pytest

from ariadna import workflows
from ariadna.errors import AriadnaError


class TestExecutePhase:
    """Tests for the execute-phase bundle."""

    def test_phase_details(self, project) -> None:
        result = workflows.run(project.root, "execute-phase", ["2"], [])

        assert result["phase_found"] is True
        assert result["phase_dir"] == ".planning/phases/02-auth"
        assert result["plans"] == ["02-01-PLAN.md", "02-02-PLAN.md"]
        assert result["incomplete_plans"] == ["02-02-PLAN.md"]
        assert result["incomplete_count"] == 1
        assert result["executor_model"] == "sonnet"
        assert result["milestone_version"] == "v1.0"
        assert result["branch_name"] is None
        assert "state_content" not in result

    def test_includes(self, project) -> None:
        result = workflows.run(project.root, "execute-phase", ["2"], ["state", "requirements"])
        assert result["state_content"] == project.read(".planning/STATE.md")
        assert "requirements_content" not in result

    def test_phase_branch(self, project) -> None:
        project.config('{"branching_strategy": "phase"}')
        result = workflows.run(project.root, "execute-phase", ["2"], [])
        assert result["branch_name"] == "ariadna/phase-02-auth"

    def test_milestone_branch(self, project) -> None:
        project.config('{"git": {"branching_strategy": "milestone"}}')
        result = workflows.run(project.root, "execute-phase", ["2"], [])
        assert result["branch_name"] == "ariadna/v1.0-launch"

    def test_profile_drives_models(self, project) -> None:
        project.config('{"model_profile": "quality"}')
        result = workflows.run(project.root, "execute-phase", ["2"], [])
        assert result["executor_model"] == "opus"
        assert result["verifier_model"] == "sonnet"

    def test_phase_required(self, project) -> None:
        with pytest.raises(AriadnaError, match="phase required for init execute-phase"):
            workflows.run(project.root, "execute-phase", [], [])


class TestPlanPhase:
    """Tests for the plan-phase bundle."""

    def test_phase_documents_are_included(self, project) -> None:
        project.phase("02-auth", {"02-CONTEXT.md": "# Context\n"})

        result = workflows.run(project.root, "plan-phase", ["2"], ["context", "research", "roadmap"])

        assert result["has_context"] is True
        assert result["context_content"] == "# Context\n"
        assert "research_content" not in result
        assert result["roadmap_content"].startswith("# Roadmap")
        assert result["padded_phase"] == "02"
        assert result["planner_model"] == "opus"

    def test_unknown_phase(self, project) -> None:
        result = workflows.run(project.root, "plan-phase", ["7"], [])
        assert result["phase_found"] is False
        assert result["plan_count"] == 0


class TestNewProject:
    """Tests for brownfield detection."""

    def test_greenfield(self, planning) -> None:
        result = workflows.run(planning.root, "new-project", [], [])
        assert result["is_brownfield"] is False
        assert result["needs_codebase_map"] is False

    def test_source_files(self, planning) -> None:
        planning.write("src/app.py", "")
        result = workflows.run(planning.root, "new-project", [], [])
        assert result["has_existing_code"] is True
        assert result["needs_codebase_map"] is True

    def test_node_modules_ignored(self, planning) -> None:
        planning.write("node_modules/pkg/index.js", "")
        assert workflows.run(planning.root, "new-project", [], [])["has_existing_code"] is False

    def test_nested_git_dir_ignored(self, planning) -> None:
        planning.write(".git/hooks/pre-commit.py", "")
        planning.write("vendor/.git/hook.py", "")
        assert workflows.run(planning.root, "new-project", [], [])["has_existing_code"] is False

    def test_package_file(self, planning) -> None:
        planning.write("package.json", "{}")
        planning.write(".planning/codebase/STACK.md", "")
        result = workflows.run(planning.root, "new-project", [], [])
        assert result["is_brownfield"] is True
        assert result["needs_codebase_map"] is False


class TestSmallBundles:
    """Tests for quick, resume, todos, milestone-op, map-codebase and progress."""

    def test_quick_numbering(self, planning) -> None:
        planning.write(".planning/quick/1-first/PLAN.md", "")
        planning.write(".planning/quick/2-second/PLAN.md", "")

        result = workflows.run(planning.root, "quick", ["Fix", "the", "login", "bug"], [])

        assert result["next_num"] == 3
        assert result["slug"] == "fix-the-login-bug"
        assert result["task_dir"] == ".planning/quick/3-fix-the-login-bug"

    def test_quick_without_description(self, planning) -> None:
        result = workflows.run(planning.root, "quick", [], [])
        assert result["slug"] is None
        assert result["task_dir"] is None

    def test_resume_interrupted_agent(self, project) -> None:
        project.write(".planning/current-agent-id.txt", "agent-42\n")
        result = workflows.run(project.root, "resume", [], [])
        assert result["has_interrupted_agent"] is True
        assert result["interrupted_agent_id"] == "agent-42"

    def test_todos_bundle(self, planning) -> None:
        planning.write(".planning/todos/pending/a.md", "title: A\narea: ui\n")
        result = workflows.run(planning.root, "todos", ["ui"], [])
        assert result["todo_count"] == 1
        assert result["area_filter"] == "ui"
        assert result["pending_dir_exists"] is True

    def test_milestone_op(self, project) -> None:
        project.write(".planning/archive/v0.9/ROADMAP.md", "")
        result = workflows.run(project.root, "milestone-op", [], [])
        assert result["phase_count"] == 2
        assert result["completed_phases"] == 2
        assert result["all_phases_complete"] is True
        assert result["archived_milestones"] == ["v0.9"]

    def test_map_codebase(self, planning) -> None:
        planning.write(".planning/codebase/STACK.md", "")
        result = workflows.run(planning.root, "map-codebase", [], [])
        assert result["existing_maps"] == ["STACK.md"]
        assert result["mapper_model"] == "haiku"

    def test_progress(self, project) -> None:
        project.state(project.read(".planning/STATE.md") + "\n**Paused At:** Task 2\n")

        result = workflows.run(project.root, "progress", [], ["project"])

        assert [p["status"] for p in result["phases"]] == ["complete", "in_progress"]
        assert result["current_phase"]["number"] == "02"
        assert result["next_phase"] is None
        assert result["paused_at"] == "Task 2"
        assert result["project_content"] is None

    def test_verify_work(self, project) -> None:
        project.phase("02-auth", {"02-VERIFICATION.md": ""})
        result = workflows.run(project.root, "verify-work", ["2"], [])
        assert result["has_verification"] is True

    def test_unknown_workflow(self, planning) -> None:
        with pytest.raises(AriadnaError, match="Unknown init workflow: deploy"):
            workflows.run(planning.root, "deploy", [], [])
