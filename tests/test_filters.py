"""Tests for the block-list gate and the ignore gate."""

import logging

import pytest

from queryaudit.filters import RuleFilter, in_blacklist, is_ignored


class TestIgnoreGate:
    """Tests for item-level suppression."""

    @pytest.mark.parametrize("item", ["COL.001", "COL.010", "COL.019"])
    def test_namespace_pattern(self, item):
        assert is_ignored(item, ["COL"])

    def test_namespace_pattern_respects_boundary(self):
        assert not is_ignored("COLX.001", ["COL"])

    def test_trailing_star(self):
        assert is_ignored("COL.001", ["COL.*"])
        assert is_ignored("COL.001", ["COL*"])

    @pytest.mark.parametrize(
        "item, pattern",
        [("COL.001", "CO*"), ("COL.001", "C*"), ("CLA.001", "C*"), ("COLX.001", "COL*")],
    )
    def test_trailing_star_is_plain_prefix(self, item, pattern):
        assert is_ignored(item, [pattern])

    def test_trailing_star_does_not_cross_prefix(self):
        assert not is_ignored("ARG.001", ["C*"])

    def test_partial_number_prefix(self):
        assert is_ignored("COL.001", ["COL.00"])
        assert not is_ignored("COL.011", ["COL.00"])

    def test_exact_item(self):
        assert is_ignored("ARG.001", ["ARG.001"])
        assert not is_ignored("ARG.002", ["ARG.001"])

    def test_patterns_are_trimmed(self):
        assert is_ignored("COL.001", ["  COL.*  "])

    def test_ok_never_suppressed(self):
        assert not is_ignored("OK", ["OK"])
        assert not is_ignored("OK", ["O"])
        assert not is_ignored("OK", ["*"])

    def test_empty_pattern_matches_nothing(self):
        assert not is_ignored("COL.001", [""])
        assert not is_ignored("COL.001", ["*"])
        assert not is_ignored("COL.001", ["   "])

    def test_no_patterns(self):
        assert not is_ignored("COL.001", [])


class TestBlockList:
    """Tests for subject-level blocking."""

    def test_literal_match(self):
        assert in_blacklist("select 1", ["select 1"])

    def test_regex_match_is_case_insensitive(self):
        assert in_blacklist("SELECT * FROM audit_log", ["from audit_log$"])

    def test_no_match(self):
        assert not in_blacklist("select * from users", ["audit_log"])

    def test_literal_with_regex_metacharacters(self):
        sql = "select count(*) from t"
        assert in_blacklist(sql, [sql])

    def test_invalid_regex_never_matches(self, caplog):
        with caplog.at_level(logging.WARNING, logger="queryaudit.filters"):
            assert not in_blacklist("select (1", ["(unclosed"])

        assert "Invalid blacklist pattern" in caplog.text

    def test_invalid_regex_does_not_hide_later_patterns(self):
        assert in_blacklist("select 1", ["(unclosed", "^select"])


class TestRuleFilter:
    """Tests for the precompiled filter."""

    def test_blocked(self):
        rule_filter = RuleFilter(blacklist=["^truncate", "select 1"])

        assert rule_filter.blocked("TRUNCATE TABLE t")
        assert rule_filter.blocked("select 1")
        assert not rule_filter.blocked("select 2")

    def test_invalid_pattern_logged_once_at_construction(self, caplog):
        with caplog.at_level(logging.WARNING, logger="queryaudit.filters"):
            rule_filter = RuleFilter(blacklist=["[bad"])
            assert not rule_filter.blocked("select 1")
            assert not rule_filter.blocked("select 2")

        assert caplog.text.count("Invalid blacklist pattern") == 1

    def test_ignored(self):
        rule_filter = RuleFilter(ignore_rules=["COL", "OK", "", " C* "])

        assert rule_filter.ignore_rules == ("COL", "C*")
        assert rule_filter.ignored("CLA.001")
        assert rule_filter.ignored("COL.001")
        assert not rule_filter.ignored("OK")
        assert not rule_filter.ignored("ARG.001")
