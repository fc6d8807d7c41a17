"""
Quality score for a verdict set.

Start at 100 and subtract ``severity * 5`` for every verdict outside the
ERR namespace. Any ERR verdict with content forces the score to 0. The OK
sentinel (L0) never deducts. Result is always within [0, 100].
"""

from __future__ import annotations

import logging
from typing import Iterable

from queryaudit.models import Namespace, Verdict, VerdictSet, parse_severity

logger = logging.getLogger(__name__)

MAX_SCORE = 100
SEVERITY_WEIGHT = 5


def severity_ordinal(verdict: Verdict) -> int:
    """Numeric severity; malformed values count as 0 and are logged."""
    ordinal = parse_severity(verdict.severity)
    if ordinal is None:
        logger.error("Malformed severity %r on rule %s", verdict.severity, verdict.item)
        return 0
    return ordinal


def score(verdicts: VerdictSet | Iterable[Verdict]) -> int:
    """Score a verdict set (mapping or plain iterable of verdicts)."""
    values = verdicts.values() if hasattr(verdicts, "values") else verdicts

    total = MAX_SCORE
    for verdict in values:
        if verdict.namespace is Namespace.ERR:
            if verdict.content:
                return 0
            continue
        if verdict.is_ok:
            continue
        total -= severity_ordinal(verdict) * SEVERITY_WEIGHT

    return max(total, 0)


def stars(value: int) -> str:
    """Five-star rendering of a score, one star per 20 points."""
    filled = max(0, min(value, MAX_SCORE)) // 20
    return "★" * filled + "☆" * (5 - filled)
