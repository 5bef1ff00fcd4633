"""Tests for the command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from contract_scope import __version__
from contract_scope.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated(isolated_config):
    return isolated_config


class TestMain:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_prints_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "analyze" in result.output


class TestAnalyzeCommand:
    def test_json_output(self, anchor_repo):
        result = runner.invoke(app, ["analyze", str(anchor_repo), "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["framework"] == "anchor"
        assert data["analysisFactors"]["unsafeCodeBlocks"] == 2
        assert data["scores"]["security"]["score"] >= 70

    def test_rich_output(self, anchor_repo):
        result = runner.invoke(app, ["analyze", str(anchor_repo)])
        assert result.exit_code == 0, result.output
        assert "Complexity Scores" in result.output
        assert "vault-repo" in result.output

    def test_selected_files(self, anchor_repo):
        result = runner.invoke(
            app, ["analyze", str(anchor_repo), "--format", "json", "-f", "lib.rs"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["performance"]["filesAnalyzed"] == 1

    def test_output_file(self, anchor_repo, tmp_path):
        out = tmp_path / "report.json"
        result = runner.invoke(app, ["analyze", str(anchor_repo), "-o", str(out)])
        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text())["repository"] == "vault-repo"

    def test_fail_above_exceeded(self, anchor_repo):
        result = runner.invoke(app, ["analyze", str(anchor_repo), "--fail-above", "50"])
        assert result.exit_code == 1
        assert "security" in result.output

    def test_fail_above_not_exceeded(self, anchor_repo):
        result = runner.invoke(app, ["analyze", str(anchor_repo), "--fail-above", "100"])
        assert result.exit_code == 0

    def test_no_sources_is_an_error(self, make_repo):
        root = make_repo({"README.md": "docs"})
        result = runner.invoke(app, ["analyze", str(root)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_missing_path_rejected(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "missing")])
        assert result.exit_code != 0

    def test_invalid_format_rejected(self, anchor_repo):
        result = runner.invoke(app, ["analyze", str(anchor_repo), "--format", "xml"])
        assert result.exit_code != 0

    def test_config_file(self, anchor_repo, tmp_path):
        config = tmp_path / "cs.toml"
        config.write_text("[scoring]\nsecurity_unsafe_weight = 0.0\nsecurity_memory_safety_weight = 0.0\n")
        result = runner.invoke(
            app, ["analyze", str(anchor_repo), "--format", "json", "-c", str(config)]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["scores"]["security"]["score"] < 70


class TestFactorsCommand:
    def test_json_listing(self):
        result = runner.invoke(app, ["factors", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert "analysisFactors.totalLinesOfCode" in data["analysisFactors"]["factors"]

    def test_category_filter(self):
        result = runner.invoke(app, ["factors", "--json", "--category", "performance"])
        assert result.exit_code == 0
        assert list(json.loads(result.stdout)) == ["performance"]

    def test_unknown_category(self):
        result = runner.invoke(app, ["factors", "--category", "nope"])
        assert result.exit_code == 1

    def test_table_output(self):
        result = runner.invoke(app, ["factors", "--category", "basic"])
        assert result.exit_code == 0
        assert "Basic Information" in result.output
