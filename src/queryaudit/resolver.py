"""
Conflict resolver.

Some rules are subsumed by a more precise rule: when both fire on the same
query only the precise one is kept. The supersession table maps a subsumed
item to the items that supersede it. It is supplied as configuration
(catalog metadata merged with ``Config.conflicts``), never inferred.

Removal looks at the input set only, so the result does not depend on
iteration order and resolving twice gives the same result as resolving once.
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping

from queryaudit.exceptions import ConfigurationError
from queryaudit.models import Verdict, VerdictSet

logger = logging.getLogger(__name__)


class ConflictResolver:
    """
    Removes subsumed verdicts.

    Raises:
        ConfigurationError: If an item supersedes itself or the table has a cycle
    """

    def __init__(self, table: Mapping[str, Iterable[str]] | None = None) -> None:
        normalized: dict[str, frozenset[str]] = {}
        for subsumed, superseding in (table or {}).items():
            items = frozenset(superseding)
            if subsumed in items:
                raise ConfigurationError(
                    f"Rule {subsumed} cannot supersede itself", config_key="conflicts"
                )
            if items:
                normalized[subsumed] = normalized.get(subsumed, frozenset()) | items
        self._check_acyclic(normalized)
        self.table: Mapping[str, frozenset[str]] = normalized

    @classmethod
    def merged(cls, *tables: Mapping[str, Iterable[str]]) -> "ConflictResolver":
        """Resolver over the union of several supersession tables."""
        combined: dict[str, set[str]] = {}
        for table in tables:
            for subsumed, superseding in table.items():
                combined.setdefault(subsumed, set()).update(superseding)
        return cls(combined)

    @staticmethod
    def _check_acyclic(table: Mapping[str, frozenset[str]]) -> None:
        visiting: set[str] = set()
        done: set[str] = set()

        def visit(item: str, path: list[str]) -> None:
            if item in done:
                return
            if item in visiting:
                cycle = " -> ".join(path + [item])
                raise ConfigurationError(
                    f"Supersession table has a cycle: {cycle}", config_key="conflicts"
                )
            visiting.add(item)
            for nxt in sorted(table.get(item, ())):
                visit(nxt, path + [item])
            visiting.discard(item)
            done.add(item)

        for item in sorted(table):
            visit(item, [])

    def resolve(self, verdicts: VerdictSet) -> dict[str, Verdict]:
        """Return a new verdict set without the subsumed items."""
        present = set(verdicts)
        resolved: dict[str, Verdict] = {}
        for item, verdict in verdicts.items():
            superseding = self.table.get(item)
            if superseding and not superseding.isdisjoint(present):
                logger.debug(
                    "Dropping %s, superseded by %s",
                    item,
                    ", ".join(sorted(superseding & present)),
                )
                continue
            resolved[item] = verdict
        return resolved

    __call__ = resolve
