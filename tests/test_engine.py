"""Integration tests for the audit service pipeline."""

import json
import logging

import pytest

from queryaudit.catalog import Check, CheckRegistry, build_catalog
from queryaudit.config import Config
from queryaudit.engine import AuditService
from queryaudit.exceptions import CheckError
from queryaudit.models import RuleMetadata, Verdict

SELECT_STAR = "SELECT * FROM tbl WHERE id = 1"


def make_service(**config_kwargs) -> AuditService:
    return AuditService(config=Config(**config_kwargs))


def make_verdict(item: str, severity: str = "L2", content: str = "content") -> Verdict:
    return Verdict(item=item, severity=severity, summary=f"Summary {item}", content=content)


class TestAudit:
    """Tests for single-query audits."""

    def test_select_star(self):
        report = make_service().audit(SELECT_STAR)

        assert report.items == ["COL.001"]
        assert report.score == 95
        assert not report.blocked
        assert "COL.001" in report.document

    def test_clean_query_reports_ok(self):
        report = make_service().audit("SELECT id FROM tbl WHERE id = 1")

        assert report.items == ["OK"]
        assert report.score == 100
        assert "## OK" in report.document

    def test_suppress_ok(self):
        report = make_service(suppress_ok=True).audit("SELECT id FROM tbl WHERE id = 1")

        assert report.items == []
        assert report.score == 100

    def test_several_rules(self):
        report = make_service().audit("DELETE FROM tbl")

        assert report.items == ["CLA.014", "SEC.003"]
        assert report.score == 90

    def test_syntax_error(self):
        report = make_service(primary_parser="pglast").audit("SELEC * FRM t")

        assert "ERR.000" in report.items
        assert report.score == 0
        assert "## Execution failed" in report.document

    def test_mysql_syntax_keeps_a_score(self):
        report = make_service().audit(
            "SELECT SQL_CALC_FOUND_ROWS id FROM t WHERE a = 1 LIMIT 5000, 10"
        )

        assert report.items == ["CLA.003", "KWR.001", "RES.002"]
        assert report.score == 60

    def test_report_format_override(self):
        report = make_service().audit(SELECT_STAR, report_format="json")

        data = json.loads(report.document)
        assert data["Score"] == 95
        assert [r["Item"] for r in data["HeuristicRules"]] == ["COL.001"]

    def test_report_type_from_config(self):
        report = make_service(report_type="lint").audit(SELECT_STAR)

        assert report.document.startswith("COL.001 ")


class TestBlockList:
    """Tests for the subject-level gate."""

    def test_literal_match_produces_nothing(self):
        report = make_service(blacklist=["DELETE FROM tbl"]).audit("DELETE FROM tbl")

        assert report.blocked
        assert report.verdicts == {}
        assert report.score is None
        assert report.document == ""

    def test_regex_match(self):
        report = make_service(blacklist=["^delete"]).audit("DELETE FROM tbl")

        assert report.blocked

    def test_extra_verdicts_ignored_when_blocked(self):
        report = make_service(blacklist=["DELETE FROM tbl"]).audit(
            "DELETE FROM tbl",
            extra_verdicts=[{"IDX.001": make_verdict("IDX.001")}],
        )

        assert report.verdicts == {}


class TestMergeAndResolve:
    """Tests for external verdicts, conflicts and the ignore gate."""

    def test_extra_verdicts_merged(self):
        report = make_service().audit(
            SELECT_STAR, extra_verdicts=[{"IDX.001": make_verdict("IDX.001", "L2")}]
        )

        assert report.items == ["COL.001", "IDX.001"]
        assert report.score == 85

    def test_last_writer_wins(self):
        report = make_service().audit(
            SELECT_STAR,
            extra_verdicts=[
                {"COL.001": make_verdict("COL.001", "L3")},
                {"COL.001": make_verdict("COL.001", "L4")},
            ],
        )

        assert report.verdicts["COL.001"].severity == "L4"

    def test_conflicts_from_config(self):
        report = make_service(conflicts={"COL.001": ["IDX.001"]}).audit(
            SELECT_STAR, extra_verdicts=[{"IDX.001": make_verdict("IDX.001")}]
        )

        assert report.items == ["IDX.001"]

    def test_ignore_rules(self):
        """Ignoring the only finding leaves an empty report; OK is synthesised before the gate."""
        report = make_service(ignore_rules=["COL"]).audit(SELECT_STAR)

        assert report.items == []
        assert report.score == 100
        assert "## OK" not in report.document

    def test_fully_ignored_json_matches_verdicts(self):
        report = make_service(ignore_rules=["COL.*"]).audit(SELECT_STAR, report_format="json")

        data = json.loads(report.document)
        assert report.verdicts == {}
        assert data["HeuristicRules"] == []

    def test_ignore_ok(self):
        report = make_service(ignore_rules=["OK"]).audit("SELECT id FROM tbl WHERE id = 1")

        assert report.items == []

    def test_error_verdict_without_content_does_not_zero_score(self):
        report = make_service().audit(
            SELECT_STAR, extra_verdicts=[{"ERR.001": make_verdict("ERR.001", "L8", content="")}]
        )

        assert report.score == 95


class FailingCheck(Check):
    check_id = "failing"

    def evaluate(self, subject, rule):
        raise RuntimeError("boom")


class FiringCheck(Check):
    check_id = "firing"

    def evaluate(self, subject, rule):
        return rule.to_verdict()


def make_custom_service(config: Config) -> AuditService:
    registry = CheckRegistry()
    registry.register(FailingCheck)
    registry.register(FiringCheck)
    rules = [
        RuleMetadata(item="TBL.001", severity="L1", summary="fails", check_id="failing"),
        RuleMetadata(item="TBL.002", severity="L1", summary="fires", check_id="firing"),
    ]
    catalog = build_catalog(config, rules=rules, registry=registry)
    return AuditService(catalog=catalog, config=config)


class TestCheckFailures:
    """Tests for checks that raise."""

    def test_failure_logged_and_skipped(self, caplog):
        service = make_custom_service(Config())

        with caplog.at_level(logging.WARNING, logger="queryaudit.engine"):
            report = service.audit(SELECT_STAR)

        assert report.items == ["TBL.002"]
        assert "boom" in caplog.text

    def test_fail_fast(self):
        service = make_custom_service(Config(fail_fast=True))

        with pytest.raises(CheckError) as exc_info:
            service.audit(SELECT_STAR)

        assert exc_info.value.item == "TBL.001"
        assert exc_info.value.to_dict()["check_id"] == "failing"


class TestParallel:
    """Tests for running checks in a thread pool."""

    @pytest.mark.parametrize(
        "sql",
        [
            SELECT_STAR,
            "DELETE FROM tbl",
            "SELECT a FROM t1 UNION SELECT a FROM t2",
            "SELEC * FRM t",
        ],
    )
    def test_same_result_as_serial(self, sql):
        serial = make_service().audit(sql)
        parallel = make_service(parallel=True, max_workers=4).audit(sql)

        assert dict(parallel.verdicts) == dict(serial.verdicts)
        assert parallel.document == serial.document


class TestAuditMany:
    """Tests for multi-statement input."""

    def test_each_statement_audited(self):
        reports = make_service().audit_many("SELECT * FROM a WHERE id = 1; DELETE FROM b;")

        assert len(reports) == 2
        assert reports[0].items == ["COL.001"]
        assert reports[1].items == ["CLA.014", "SEC.003"]

    def test_blank_input(self):
        assert make_service().audit_many("  ") == []
