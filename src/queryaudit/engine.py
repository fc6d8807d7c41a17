"""
AuditService - orchestration layer for queryaudit.

This is the single entry point for auditing queries. The CLI and any
embedding application should use this service rather than wiring the
filter, checks, resolver, scorer and renderers together themselves.

Pipeline for one query:

    block-list gate -> subject -> checks -> merge external verdicts
        -> resolve conflicts -> normalise -> score -> render

Usage:
    from queryaudit.engine import AuditService

    service = AuditService()
    report = service.audit("SELECT * FROM users")
    print(report.score)
    print(report.document)

    # Verdicts from other layers (index advisor, EXPLAIN) are merged in
    report = service.audit(sql, extra_verdicts=[advisor_verdicts])

    # Multi-statement input
    for report in service.audit_many(text):
        ...
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Mapping

from queryaudit.exceptions import CheckError
from queryaudit.filters import RuleFilter
from queryaudit.fingerprint import split_statements
from queryaudit.models import RuleMetadata, Verdict, VerdictSet
from queryaudit.output.renderers import OutputFormat, RenderOptions, render_report
from queryaudit.output.report import build_report, normalize
from queryaudit.resolver import ConflictResolver
from queryaudit.scoring import score
from queryaudit.subject import AuditSubject

if TYPE_CHECKING:
    from queryaudit.catalog import RuleCatalog
    from queryaudit.config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditReport:
    """
    Result of auditing one query.

    Attributes:
        subject: The audited query and its parse trees
        verdicts: Normalised verdict set (what the document shows)
        score: Quality score, None when the query was block-listed
        document: Rendered report, empty when the query was block-listed
        blocked: Whether the block-list gate skipped the query
    """

    subject: AuditSubject
    verdicts: Mapping[str, Verdict] = field(default_factory=dict)
    score: int | None = None
    document: str = ""
    blocked: bool = False

    @property
    def items(self) -> list[str]:
        """Reported rule identifiers, sorted."""
        return sorted(self.verdicts)


class AuditService:
    """
    Audits SQL queries against a rule catalog.

    The service holds no per-query state; one instance can audit many
    queries, from many threads, against the same immutable catalog.
    """

    def __init__(
        self,
        catalog: "RuleCatalog | None" = None,
        config: "Config | None" = None,
    ) -> None:
        if config is None:
            from queryaudit.config import get_config

            config = get_config()
        if catalog is None:
            from queryaudit.catalog import build_catalog

            catalog = build_catalog(config)

        self.config = config
        self.catalog = catalog
        self.filter = RuleFilter.from_config(config)
        self.resolver = ConflictResolver.merged(catalog.conflict_table(), config.conflicts)
        self.options = RenderOptions.from_config(config)

    def audit(
        self,
        sql: str,
        extra_verdicts: Iterable[VerdictSet] = (),
        report_format: OutputFormat | str | None = None,
    ) -> AuditReport:
        """
        Audit one query.

        Args:
            sql: Query text
            extra_verdicts: Verdict sets produced by other layers, merged
                after the catalog checks in the given order
            report_format: Overrides ``Config.report_type``

        Returns:
            AuditReport with verdicts, score and rendered document
        """
        if self.filter.blocked(sql):
            logger.debug("Query skipped by blacklist: %s", sql)
            return AuditReport(subject=AuditSubject(raw_text=sql), blocked=True)

        subject = AuditSubject.from_sql(sql, self.config)

        verdicts = self.run_checks(subject)
        for extra in extra_verdicts:
            verdicts.update(extra)

        resolved = self.resolver.resolve(verdicts)
        normalized = normalize(resolved, self.options.ignore_rules, self.options.hide_ok)
        quality = score(normalized)

        document = render_report(
            build_report(subject, normalized, quality),
            format=report_format or self.config.report_type,
            options=self.options,
        )
        return AuditReport(
            subject=subject,
            verdicts=MappingProxyType(normalized),
            score=quality,
            document=document,
        )

    def audit_many(
        self,
        text: str,
        report_format: OutputFormat | str | None = None,
    ) -> list[AuditReport]:
        """Split a multi-statement input and audit each statement."""
        return [self.audit(sql, report_format=report_format) for sql in split_statements(text)]

    def run_checks(self, subject: AuditSubject) -> dict[str, Verdict]:
        """
        Evaluate every catalog rule against ``subject``.

        Results are merged in catalog order whatever the execution order.
        A failing check is logged and yields no verdict, unless the service
        runs in fail-fast mode.
        """
        rules = self.catalog.list_all()

        if self.config.parallel and len(rules) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                results = list(pool.map(lambda rule: self._evaluate(subject, rule), rules))
        else:
            results = [self._evaluate(subject, rule) for rule in rules]

        verdicts: dict[str, Verdict] = {}
        for verdict in results:
            if verdict is not None:
                verdicts[verdict.item] = verdict
        return verdicts

    def _evaluate(self, subject: AuditSubject, rule: RuleMetadata) -> Verdict | None:
        check = self.catalog.check_for(rule.item)
        if check is None:
            return None
        try:
            return check.evaluate(subject, rule)
        except Exception as e:
            if self.config.fail_fast:
                raise CheckError(rule.item, rule.check_id, e) from e
            logger.warning("Check %s for rule %s failed: %s", rule.check_id, rule.item, e)
            return None
