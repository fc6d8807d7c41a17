"""
Pre-render normalisation and category partition.

Every output format consumes the same Report:

1. normalize(): synthesise OK for an empty set, drop OK when other
   verdicts exist (or when OK is globally hidden), apply the ignore gate.
2. partition(): split verdicts into the fixed-order category buckets, each
   sorted by item. ERR verdicts without content mean "no error" and are
   dropped here. EXP.000 is lifted out as the explain summary.

Both steps are pure: the input mapping is never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from queryaudit.filters import is_ignored
from queryaudit.models import (
    OK_ITEM,
    OK_VERDICT,
    Category,
    Namespace,
    Verdict,
    VerdictSet,
)
from queryaudit.subject import AuditSubject

EXPLAIN_SUMMARY_ITEM = "EXP.000"


def normalize(
    verdicts: VerdictSet,
    ignore_rules: Iterable[str] = (),
    hide_ok: bool = False,
) -> dict[str, Verdict]:
    """Apply OK synthesis/suppression and the ignore gate; returns a new mapping."""
    result = dict(verdicts)
    if not result:
        result = {OK_ITEM: OK_VERDICT}
    if hide_ok or len(result) > 1:
        result.pop(OK_ITEM, None)

    patterns = tuple(ignore_rules)
    return {item: v for item, v in result.items() if not is_ignored(item, patterns)}


@dataclass(frozen=True)
class Partition:
    """Verdicts grouped by category, each bucket sorted by item."""

    error: tuple[Verdict, ...] = ()
    explain_summary: Verdict | None = None
    explain: tuple[Verdict, ...] = ()
    profiling: tuple[Verdict, ...] = ()
    trace: tuple[Verdict, ...] = ()
    index: tuple[Verdict, ...] = ()
    heuristic: tuple[Verdict, ...] = ()

    def bucket(self, category: Category) -> tuple[Verdict, ...]:
        """Verdicts of one category (EXPLAIN includes the summary first)."""
        if category is Category.EXPLAIN:
            head = (self.explain_summary,) if self.explain_summary else ()
            return head + self.explain
        return getattr(self, category.name.lower())

    def ordered(self) -> list[Verdict]:
        """Every verdict in rendering order."""
        out: list[Verdict] = []
        for category in Category:
            out.extend(self.bucket(category))
        return out

    def __len__(self) -> int:
        return len(self.ordered())


def partition(verdicts: VerdictSet) -> Partition:
    """Split a verdict set into category buckets."""
    buckets: dict[Category, list[Verdict]] = {category: [] for category in Category}
    explain_summary: Verdict | None = None

    for item in sorted(verdicts):
        verdict = verdicts[item]
        if verdict.namespace is Namespace.ERR and not verdict.content:
            continue
        if item == EXPLAIN_SUMMARY_ITEM:
            explain_summary = verdict
            continue
        buckets[verdict.category].append(verdict)

    return Partition(
        error=tuple(buckets[Category.ERROR]),
        explain_summary=explain_summary,
        explain=tuple(buckets[Category.EXPLAIN]),
        profiling=tuple(buckets[Category.PROFILING]),
        trace=tuple(buckets[Category.TRACE]),
        index=tuple(buckets[Category.INDEX]),
        heuristic=tuple(buckets[Category.HEURISTIC]),
    )


@dataclass(frozen=True)
class Report:
    """
    Everything a renderer needs for one subject.

    Attributes:
        id: Query ID derived from the fingerprint
        fingerprint: Normalised query text
        sample: Query as submitted
        score: Quality score in [0, 100]
        partition: Normalised verdicts grouped by category
    """

    id: str
    fingerprint: str
    sample: str
    score: int
    partition: Partition


def build_report(subject: AuditSubject, verdicts: VerdictSet, score: int) -> Report:
    """Assemble a Report from an already normalised verdict set."""
    return Report(
        id=subject.id,
        fingerprint=subject.fingerprint,
        sample=subject.raw_text,
        score=score,
        partition=partition(verdicts),
    )
