"""CLI tests for ariadna-tools commands.

Commands run through click's CliRunner against a temporary project root
(passed as `obj={"root": ...}`), checking JSON output, --raw output and
error exits.
"""

import json
import re

import pytest
from click.testing import CliRunner

from ariadna.cli.main import main


@pytest.fixture
def invoke(project):
    """Run the CLI against the sample project."""
    runner = CliRunner()

    def _invoke(*args: str):
        return runner.invoke(main, list(args), obj={"root": project.root})

    return _invoke


class TestRawFlag:
    """Tests for --raw handling."""

    def test_json_by_default(self, invoke) -> None:
        result = invoke("generate-slug", "Hello World")
        assert result.exit_code == 0
        assert json.loads(result.output) == {"slug": "hello-world"}

    def test_raw_after_command(self, invoke) -> None:
        result = invoke("generate-slug", "Hello World", "--raw")
        assert result.output == "hello-world"

    def test_raw_before_command(self, invoke) -> None:
        result = invoke("--raw", "generate-slug", "Hello World")
        assert result.output == "hello-world"

    def test_raw_inside_group(self, invoke) -> None:
        result = invoke("state", "--raw", "get", "Status")
        assert result.output == "Ready to execute"


class TestErrors:
    """Tests for error reporting."""

    def test_usage_error_exits_1(self, invoke) -> None:
        result = invoke("generate-slug")
        assert result.exit_code == 1
        assert "Error: text required for slug generation" in result.output

    def test_missing_state(self, planning) -> None:
        result = CliRunner().invoke(main, ["state-snapshot"], obj={"root": planning.root})
        assert result.exit_code == 1
        assert "STATE.md not found" in result.output

    def test_json_errors(self, planning, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ARIADNA_JSON_ERRORS", "1")
        result = CliRunner().invoke(main, ["state-snapshot"], obj={"root": planning.root})
        assert result.exit_code == 1
        assert '"error_id": "AR-2002"' in result.output

    def test_unknown_command(self, invoke) -> None:
        assert invoke("frobnicate").exit_code == 2


class TestConfigCommands:
    """Tests for config and model commands."""

    def test_ensure_section(self, invoke) -> None:
        assert invoke("config-ensure-section", "--raw").output == "created"
        assert invoke("config-ensure-section", "--raw").output == "exists"

    def test_set_then_get(self, invoke) -> None:
        assert invoke("config-set", "workflow.research", "false", "--raw").output == "workflow.research=false"
        assert invoke("config-get", "research", "--raw").output == "false"

    def test_get_unknown_key(self, invoke) -> None:
        result = invoke("config-get", "colour")
        assert result.exit_code == 1
        assert "Unknown config key: colour" in result.output

    def test_resolve_model(self, invoke) -> None:
        assert invoke("resolve-model", "ariadna-planner", "--raw").output == "opus"


class TestStateCommands:
    """Tests for state commands."""

    def test_load_raw(self, invoke) -> None:
        lines = invoke("state", "load", "--raw").output.splitlines()
        assert "model_profile=balanced" in lines
        assert "state_exists=true" in lines
        assert "config_exists=false" in lines

    def test_patch(self, invoke, project) -> None:
        result = invoke("state", "patch", "--Status", "Blocked", "--Current Plan", "2")
        assert json.loads(result.output) == {"updated": ["Status", "Current Plan"], "failed": []}
        assert "**Status:** Blocked" in project.read(".planning/STATE.md")

    def test_advance_plan_raw(self, invoke) -> None:
        assert invoke("state", "advance-plan", "--raw").output == "true"

    def test_add_decision(self, invoke, project) -> None:
        result = invoke("state", "add-decision", "--summary", "Use JWT", "--phase", "2", "--raw")
        assert result.output == "true"
        assert "- [Phase 2]: Use JWT" in project.read(".planning/STATE.md")


class TestPhaseCommands:
    """Tests for phase commands."""

    def test_find_phase_raw(self, invoke) -> None:
        assert invoke("find-phase", "2", "--raw").output == ".planning/phases/02-auth"
        assert invoke("find-phase", "9", "--raw").output == ""

    def test_phase_add(self, invoke, project) -> None:
        assert invoke("phase", "add", "Billing", "engine", "--raw").output == "03"
        assert (project.root / ".planning/phases/03-billing-engine").is_dir()

    def test_next_decimal(self, invoke) -> None:
        assert invoke("phase", "next-decimal", "2", "--raw").output == "02.1"

    def test_remove_needs_force(self, invoke) -> None:
        assert invoke("phase", "remove", "2", "--raw").output == "false"
        assert invoke("phase", "remove", "2", "--force", "--raw").output == "true"

    def test_phases_list(self, invoke) -> None:
        assert invoke("phases", "list", "--raw").output == "01-foundation\n02-auth"

    def test_plan_index(self, invoke) -> None:
        data = json.loads(invoke("phase-plan-index", "2").output)
        assert data["waves"] == {"1": ["02-01-PLAN.md"], "2": ["02-02-PLAN.md"]}


class TestRoadmapCommands:
    """Tests for roadmap and progress."""

    def test_get_phase_raw(self, invoke) -> None:
        assert invoke("roadmap", "get-phase", "3", "--raw").output == "### Phase 3: Billing\n**Goal:** Charge users"

    def test_progress_bar(self, invoke) -> None:
        assert invoke("progress", "bar", "--raw").output.endswith("2/3 plans (67%)")

    def test_progress_json(self, invoke) -> None:
        assert json.loads(invoke("progress").output)["percent"] == 67


class TestDocumentCommands:
    """Tests for frontmatter, template and scaffold."""

    def test_frontmatter_field(self, invoke) -> None:
        path = ".planning/phases/02-auth/02-02-PLAN.md"
        assert invoke("frontmatter", "get", path, "--field", "wave", "--raw").output == "2"
        assert invoke("frontmatter", "set", path, "--field", "wave", "--value", "3", "--raw").output == "true"
        assert json.loads(invoke("frontmatter", "get", path).output)["wave"] == "3"

    def test_frontmatter_missing_file(self, invoke) -> None:
        result = invoke("frontmatter", "get", "nope.md")
        assert result.exit_code == 1
        assert "File not found: nope.md" in result.output

    def test_template_fill(self, invoke) -> None:
        result = invoke("template", "fill", "plan", "--phase", "2", "--plan", "3", "--raw")
        assert result.output == ".planning/phases/02-auth/02-03-PLAN.md"

    def test_scaffold_twice(self, invoke) -> None:
        assert invoke("scaffold", "context", "--phase", "2", "--raw").output == ".planning/phases/02-auth/02-CONTEXT.md"
        assert invoke("scaffold", "context", "--phase", "2", "--raw").output == "exists"


class TestVerifyCommands:
    """Tests for verify and validate."""

    def test_phase_completeness(self, invoke) -> None:
        assert invoke("verify", "phase-completeness", "2", "--raw").output == "incomplete"
        assert invoke("verify", "phase-completeness", "1", "--raw").output == "complete"

    def test_consistency(self, invoke) -> None:
        assert invoke("validate", "consistency", "--raw").output == "passed"

    def test_verify_summary_missing(self, invoke) -> None:
        assert invoke("verify-summary", "nope.md", "--raw").output == "failed"


class TestUtilityCommands:
    """Tests for the small utilities."""

    def test_timestamps(self, invoke) -> None:
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", invoke("current-timestamp", "date", "--raw").output)
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}", invoke("current-timestamp", "filename", "--raw").output)
        assert invoke("current-timestamp", "--raw").output.endswith("Z")

    def test_verify_path_exists(self, invoke) -> None:
        assert json.loads(invoke("verify-path-exists", ".planning").output) == {"exists": True, "type": "directory"}
        assert invoke("verify-path-exists", "nope", "--raw").output == "false"

    def test_todos(self, invoke, project) -> None:
        project.write(".planning/todos/pending/a.md", "title: A\n")
        assert invoke("list-todos", "--raw").output == "1"
        assert invoke("todo", "complete", "a.md", "--raw").output == "true"
        assert invoke("list-todos", "--raw").output == "0"

    def test_commit_skipped(self, invoke, project) -> None:
        project.config('{"commit_docs": false}')
        assert invoke("commit", "docs: x", "--files", ".planning/STATE.md", "--raw").output == "skipped"

    def test_init(self, invoke) -> None:
        data = json.loads(invoke("init", "execute-phase", "2", "--include", "state").output)
        assert data["phase_found"] is True
        assert data["state_content"].startswith("# Project State")
