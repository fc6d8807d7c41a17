"""
Rule filter: the block-list gate and the ignore gate.

- Block-list gate (subject level): a query equal to a literal pattern, or
  matched by a pattern read as a case-insensitive regular expression, is
  not reviewed at all.
- Ignore gate (item level): a pattern with a trailing ``*`` is a plain
  prefix wildcard, so ``C*`` hides ``CLA.001`` and ``COL.001``. A bare
  pattern containing a dot is a prefix too (``COL.00`` hides ``COL.001``).
  A bare pattern without a dot names a whole namespace, so ``COL`` hides
  ``COL.001`` but not ``COLX.001``. The OK sentinel is never hidden by this
  gate, and an empty pattern hides nothing.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable, Sequence

from queryaudit.models import OK_ITEM

logger = logging.getLogger(__name__)


def _normalize_ignore_pattern(pattern: str) -> str:
    return pattern.strip().replace("*", "")


def _matches(item: str, raw: str) -> bool:
    pattern = _normalize_ignore_pattern(raw)
    if not item.startswith(pattern):
        return False
    if raw.strip().endswith("*") or "." in pattern:
        return True
    return len(item) == len(pattern) or item[len(pattern)] == "."


def is_ignored(item: str, patterns: Iterable[str]) -> bool:
    """Whether ``item`` is suppressed by any ignore pattern."""
    if item == OK_ITEM:
        return False
    for raw in patterns:
        pattern = _normalize_ignore_pattern(raw)
        if not pattern or pattern == OK_ITEM:
            continue
        if _matches(item, raw):
            logger.debug("Rule %s ignored by pattern %r", item, raw)
            return True
    return False


def _compile(pattern: str) -> re.Pattern[str] | None:
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        logger.warning("Invalid blacklist pattern %r: %s", pattern, e)
        return None


def in_blacklist(sql: str, patterns: Iterable[str]) -> bool:
    """Whether ``sql`` equals a literal pattern or matches a pattern as a regex."""
    for pattern in patterns:
        if sql == pattern:
            logger.debug("Query matched blacklist literal %r", pattern)
            return True
        compiled = _compile(pattern)
        if compiled is not None and compiled.search(sql):
            logger.debug("Query matched blacklist pattern %r", pattern)
            return True
    return False


class RuleFilter:
    """
    Both gates with their patterns prepared once.

    Block-list regexes are compiled in the constructor; invalid ones are
    logged and never match.
    """

    def __init__(self, ignore_rules: Sequence[str] = (), blacklist: Sequence[str] = ()) -> None:
        self.ignore_rules = tuple(
            r.strip() for r in ignore_rules if _normalize_ignore_pattern(r) not in ("", OK_ITEM)
        )
        self.blacklist = tuple(blacklist)
        self._compiled = tuple(
            (pattern, _compile(pattern)) for pattern in self.blacklist
        )

    @classmethod
    def from_config(cls, config) -> "RuleFilter":
        return cls(ignore_rules=config.ignore_rules, blacklist=config.blacklist)

    def blocked(self, sql: str) -> bool:
        for pattern, compiled in self._compiled:
            if sql == pattern or (compiled is not None and compiled.search(sql)):
                logger.debug("Query matched blacklist pattern %r", pattern)
                return True
        return False

    def ignored(self, item: str) -> bool:
        return is_ignored(item, self.ignore_rules)
