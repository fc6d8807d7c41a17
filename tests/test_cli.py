"""Tests for the command line interface."""

import json

from typer.testing import CliRunner

from queryaudit import __version__
from queryaudit.catalog import BUILTIN_RULES
from queryaudit.cli.main import app

runner = CliRunner()

SELECT_STAR = "SELECT * FROM tbl WHERE id = 1"


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"queryaudit version {__version__}" in result.stdout


class TestAuditCommand:
    """Tests for `queryaudit audit`."""

    def test_query_option(self):
        result = runner.invoke(app, ["audit", "--query", SELECT_STAR, "-r", "lint"])

        assert result.exit_code == 0
        assert result.stdout.startswith("COL.001 ")

    def test_markdown_by_default(self):
        result = runner.invoke(app, ["audit", "-q", SELECT_STAR])

        assert result.exit_code == 0
        assert "**Item:** COL.001" in result.stdout

    def test_json(self):
        result = runner.invoke(app, ["audit", "-q", SELECT_STAR, "-r", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["Score"] == 95

    def test_min_score_fails(self):
        result = runner.invoke(app, ["audit", "-q", SELECT_STAR, "-r", "lint", "--min-score", "100"])

        assert result.exit_code == 1

    def test_min_score_passes(self):
        result = runner.invoke(app, ["audit", "-q", SELECT_STAR, "-r", "lint", "--min-score", "90"])

        assert result.exit_code == 0

    def test_ignore_rules(self):
        result = runner.invoke(
            app, ["audit", "-q", SELECT_STAR, "-r", "lint", "--ignore-rules", "COL.*"]
        )

        assert result.exit_code == 0
        assert "COL.001" not in result.stdout

    def test_blacklist_file(self, tmp_path):
        path = tmp_path / "blacklist"
        path.write_text("^delete\n")

        result = runner.invoke(
            app, ["audit", "-q", "DELETE FROM tbl", "-r", "lint", "--blacklist", str(path)]
        )

        assert result.exit_code == 0
        assert "CLA.014" not in result.stdout

    def test_stdin(self):
        result = runner.invoke(app, ["audit", "-", "-r", "lint"], input=SELECT_STAR + ";\n")

        assert result.exit_code == 0
        assert "COL.001" in result.stdout

    def test_file_with_several_statements(self, tmp_path):
        path = tmp_path / "queries.sql"
        path.write_text("SELECT * FROM a WHERE id = 1;\nDELETE FROM b;\n")

        result = runner.invoke(app, ["audit", str(path), "-r", "lint"])

        assert result.exit_code == 0
        assert "COL.001" in result.stdout
        assert "CLA.014" in result.stdout

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["audit", str(tmp_path / "missing.sql")])

        assert result.exit_code == 2

    def test_emoji_codes_printed_verbatim(self):
        result = runner.invoke(app, ["audit", "-q", "SELECT a FROM t WHERE b = ':smile:'", "-r", "text"])

        assert result.exit_code == 0
        assert ":smile:" in result.stdout

    def test_bad_sample_mode_in_environment(self, monkeypatch):
        monkeypatch.setenv("QUERYAUDIT_SAMPLE_MODE", "bogus")

        result = runner.invoke(app, ["audit", "-q", SELECT_STAR])

        assert result.exit_code == 1

    def test_bad_config_file(self, tmp_path):
        result = runner.invoke(app, ["audit", "-q", SELECT_STAR, "-c", str(tmp_path / "x.yaml")])

        assert result.exit_code == 1


class TestRulesCommand:
    """Tests for `queryaudit rules`."""

    def test_markdown(self):
        result = runner.invoke(app, ["rules"])

        assert result.exit_code == 0
        assert result.stdout.startswith("# Heuristic rules")
        assert "* **Item**:COL.001" in result.stdout

    def test_json(self):
        result = runner.invoke(app, ["rules", "-r", "json"])

        assert result.exit_code == 0
        items = [rule["Item"] for rule in json.loads(result.stdout)]
        assert "OK" not in items
        assert len(items) == len(BUILTIN_RULES) - 1


class TestSchemaCommand:
    """Tests for `queryaudit schema`."""

    def test_json_report_schema(self):
        result = runner.invoke(app, ["schema"])

        assert result.exit_code == 0
        properties = json.loads(result.stdout)["properties"]
        assert {"ID", "Fingerprint", "Score", "Sample", "Explain", "HeuristicRules", "IndexRules"} <= set(properties)
