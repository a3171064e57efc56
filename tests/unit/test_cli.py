"""
Tests for the trellis CLI.

Commands are invoked through typer's CliRunner against temporary trees.
"""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from trellis._version import __version__
from trellis.cli import app

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    return tmp_path


class TestInit:
    """Tests for `trellis init`."""

    def test_creates_tree(self, project: Path):
        result = runner.invoke(
            app,
            [
                "init", "--root", str(project),
                "--concept", "Widget",
                "--field", "Widget:Name:string",
                "--orchestrator", "CreateWidget",
                "--route", "POST:/widgets:CreateWidget",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Created" in result.output
        assert "State saved to" in result.output
        assert (project / "app" / "domain" / "widget" / "model.py").exists()
        assert (project / "app" / "http" / "routes.py").exists()
        assert (project / ".scaffold" / "state.json").exists()

    def test_validation_error_exits_1(self, project: Path):
        result = runner.invoke(
            app,
            ["init", "--root", str(project), "--orchestrator", "Place", "--route", "GET:/p:Place"],
        )

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert list(project.iterdir()) == []

    def test_bad_flag_exits_1(self, project: Path):
        result = runner.invoke(app, ["init", "--root", str(project), "--field", "Widget:Name"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_manifest_module_and_override(self, project: Path):
        (project / "trellis.toml").write_text('[scaffold]\nmodule = "shop"\n')

        runner.invoke(app, ["init", "--root", str(project), "--concept", "Widget"])
        assert (project / "shop" / "domain" / "widget" / "model.py").exists()

        runner.invoke(app, ["init", "--root", str(project), "--module", "other", "--concept", "Gadget"])
        assert (project / "other" / "domain" / "gadget" / "model.py").exists()

    def test_invalid_module_exits_1(self, project: Path):
        result = runner.invoke(
            app, ["init", "--root", str(project), "--module", "my-app", "--concept", "Widget"]
        )

        assert result.exit_code == 1
        assert "Module name" in result.output
        assert list(project.iterdir()) == []

    def test_generate_tests(self, project: Path):
        result = runner.invoke(
            app,
            [
                "init", "--root", str(project),
                "--projection", "Summary",
                "--route", "GET:/summary:Summary",
                "--generate-tests", "--test-type", "e2e",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "def test_e2e_summary():" in (project / "tests" / "test_routes.py").read_text()

    def test_unknown_test_type(self, project: Path):
        result = runner.invoke(
            app, ["init", "--root", str(project), "--concept", "Widget", "--test-type", "unit"]
        )
        assert result.exit_code == 1
        assert "Unknown test type" in result.output


class TestStatus:
    """Tests for `trellis status`."""

    def test_no_state(self, project: Path):
        result = runner.invoke(app, ["status", "--root", str(project)])
        assert result.exit_code == 0
        assert "No scaffold state found" in result.output

    def test_lists_entities_and_routes(self, project: Path):
        runner.invoke(
            app,
            [
                "init", "--root", str(project),
                "--field", "Widget:Name:string",
                "--param", "CreateWidget:Name:string",
                "--route", "POST:/widgets:CreateWidget",
            ],
        )

        result = runner.invoke(app, ["status", "--root", str(project)])

        assert result.exit_code == 0
        assert "Widget" in result.output
        assert "Name:string" in result.output
        assert "/widgets" in result.output


class TestInterview:
    """Tests for `trellis interview`."""

    TRANSCRIPT = "Widget\nName\n\ndone\ndone\ndone\ndone\n"

    def test_writes_graph_and_scaffolds(self, project: Path):
        result = runner.invoke(app, ["interview", "--root", str(project)], input=self.TRANSCRIPT)

        assert result.exit_code == 0, result.output
        assert "Graph written to" in result.output
        doc = json.loads((project / ".scaffold" / "interview" / "graph.json").read_text())
        assert doc["scaffoldArgs"] == ["--concept", "Widget", "--field", "Widget:Name:string"]
        assert (project / "app" / "domain" / "widget" / "model.py").exists()
        state = json.loads((project / ".scaffold" / "state.json").read_text())
        assert state["source"] == "Interactive"

    def test_no_apply(self, project: Path):
        result = runner.invoke(
            app,
            ["interview", "--root", str(project), "--no-apply", "--out", "desc"],
            input=self.TRANSCRIPT,
        )

        assert result.exit_code == 0, result.output
        assert (project / "desc.json").exists()
        assert (project / "desc.dot").exists()
        assert not (project / "app").exists()

    def test_empty_interview(self, project: Path):
        result = runner.invoke(app, ["interview", "--root", str(project)], input="")
        assert result.exit_code == 0
        assert "Nothing to scaffold." in result.output


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"Trellis {__version__}" in result.output
