"""Tests for configuration loading."""

import json

import pytest

from queryaudit.config import (
    Config,
    SampleMode,
    get_config,
    load_blacklist,
    load_config_from_env,
    load_config_from_file,
    reset_config,
)
from queryaudit.exceptions import ConfigurationError


class TestConfigDefaults:
    """Tests for the Config model."""

    def test_defaults(self):
        config = Config()

        assert config.ignore_rules == []
        assert config.report_type == "markdown"
        assert config.sample_mode is SampleMode.PRETTY
        assert config.parsers == ["pglast", "sqlparse"]
        assert config.primary_parser == "sqlparse"
        assert config.max_in_count == 10
        assert config.max_offset == 1000
        assert not config.hide_ok

    def test_hide_ok_from_ignore_rules(self):
        assert Config(ignore_rules=["COL.*", " OK "]).hide_ok

    def test_hide_ok_from_suppress_flag(self):
        assert Config(suppress_ok=True).hide_ok

    def test_frozen(self):
        config = Config()

        with pytest.raises(Exception):
            config.report_type = "json"

    def test_sample_mode_from_string(self):
        assert SampleMode.from_string("FINGERPRINT") is SampleMode.FINGERPRINT

    def test_bad_sample_mode(self):
        with pytest.raises(ConfigurationError) as exc_info:
            SampleMode.from_string("bogus")

        assert exc_info.value.config_key == "sample_mode"


class TestEnvironment:
    """Tests for QUERYAUDIT_* variables."""

    def test_lists(self, monkeypatch):
        monkeypatch.setenv("QUERYAUDIT_IGNORE_RULES", "COL.*, OK,")
        monkeypatch.setenv("QUERYAUDIT_PARSERS", "sqlparse")

        config = load_config_from_env()

        assert config.ignore_rules == ["COL.*", "OK"]
        assert config.parsers == ["sqlparse"]
        assert config.hide_ok

    def test_scalars(self, monkeypatch):
        monkeypatch.setenv("QUERYAUDIT_REPORT_TYPE", "json")
        monkeypatch.setenv("QUERYAUDIT_SAMPLE_MODE", "sample")
        monkeypatch.setenv("QUERYAUDIT_PARALLEL", "yes")
        monkeypatch.setenv("QUERYAUDIT_MAX_IN_COUNT", "3")

        config = load_config_from_env()

        assert config.report_type == "json"
        assert config.sample_mode is SampleMode.SAMPLE
        assert config.parallel
        assert config.max_in_count == 3

    def test_bad_sample_mode(self, monkeypatch):
        monkeypatch.setenv("QUERYAUDIT_SAMPLE_MODE", "bogus")

        with pytest.raises(ConfigurationError, match="sample mode"):
            load_config_from_env()

    def test_invalid_int_falls_back(self, monkeypatch):
        monkeypatch.setenv("QUERYAUDIT_MAX_OFFSET", "lots")

        assert load_config_from_env().max_offset == 1000

    def test_blacklist_file(self, monkeypatch, tmp_path):
        path = tmp_path / "blacklist"
        path.write_text("# comment\n\nselect 1\n^delete\n")
        monkeypatch.setenv("QUERYAUDIT_BLACKLIST", "select 2")
        monkeypatch.setenv("QUERYAUDIT_BLACKLIST_FILE", str(path))

        assert load_config_from_env().blacklist == ["select 2", "select 1", "^delete"]


class TestConfigFile:
    """Tests for JSON and YAML config files."""

    def test_yaml(self, tmp_path):
        (tmp_path / "block.txt").write_text("select 1\n")
        path = tmp_path / "queryaudit.yaml"
        path.write_text(
            "report_type: lint\n"
            "ignore_rules: [COL.001]\n"
            "blacklist: ['^drop']\n"
            "blacklist_file: block.txt\n"
            "conflicts:\n"
            "  ARG.003: [IDX.001]\n"
        )

        config = load_config_from_file(path)

        assert config.report_type == "lint"
        assert config.ignore_rules == ["COL.001"]
        assert config.blacklist == ["^drop", "select 1"]
        assert config.conflicts == {"ARG.003": ["IDX.001"]}

    def test_json(self, tmp_path):
        path = tmp_path / "queryaudit.json"
        path.write_text(json.dumps({"max_offset": 50, "sample_mode": "fingerprint"}))

        config = load_config_from_file(path)

        assert config.max_offset == 50
        assert config.sample_mode is SampleMode.FINGERPRINT

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_from_file(tmp_path / "nope.yaml")

        assert exc_info.value.config_key == "config_file"

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config_from_file(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"max_in_count": "many"}))

        with pytest.raises(ConfigurationError, match="Invalid config"):
            load_config_from_file(path)

    def test_unreadable_blacklist(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            load_blacklist(tmp_path / "missing")

        assert exc_info.value.config_key == "blacklist_file"


class TestGetConfig:
    """Tests for the cached process-wide config."""

    def test_cached(self):
        assert get_config() is get_config()

    def test_reset_picks_up_environment(self, monkeypatch):
        assert get_config().report_type == "markdown"

        monkeypatch.setenv("QUERYAUDIT_REPORT_TYPE", "text")
        reset_config()

        assert get_config().report_type == "text"

    def test_config_file_variable(self, monkeypatch, tmp_path):
        path = tmp_path / "queryaudit.yml"
        path.write_text("report_type: html\n")
        monkeypatch.setenv("QUERYAUDIT_CONFIG_FILE", str(path))

        assert get_config().report_type == "html"
