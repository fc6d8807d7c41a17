"""
Audit subject: one query under review plus its parse trees.

Created once per query and immutable afterwards. A subject remains
auditable when some (or all) parser engines fail; the failures are kept on
the subject so the syntax-error check can report them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from queryaudit.fingerprint import fingerprint, query_id
from queryaudit.parsers import ParseTree, parse_query

if TYPE_CHECKING:
    from queryaudit.config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditSubject:
    """
    One query under review.

    Attributes:
        raw_text: The query exactly as submitted
        parse_trees: One entry per parser engine, in engine order
    """

    raw_text: str
    parse_trees: tuple[ParseTree, ...] = ()

    @classmethod
    def from_sql(cls, sql: str, config: "Config | None" = None) -> "AuditSubject":
        """Parse ``sql`` with the configured engines and build a subject."""
        if config is None:
            from queryaudit.config import get_config

            config = get_config()

        trees = parse_query(
            sql,
            engines=config.parsers,
            charset=config.charset,
            collation=config.collation,
        )
        for tree in trees:
            if tree.ok:
                continue
            if tree.engine == config.primary_parser:
                logger.warning("%s parse error: %s, query: %s", tree.engine, tree.error, sql)
            else:
                logger.debug("%s parse error: %s, query: %s", tree.engine, tree.error, sql)
        return cls(raw_text=sql, parse_trees=trees)

    def tree(self, engine: str) -> Any | None:
        """Parse result of ``engine``, or None if it failed or did not run."""
        for parse_tree in self.parse_trees:
            if parse_tree.engine == engine and parse_tree.ok:
                return parse_tree.tree
        return None

    def error(self, engine: str) -> str | None:
        """Parser message of ``engine``, or None if it succeeded or did not run."""
        for parse_tree in self.parse_trees:
            if parse_tree.engine == engine:
                return parse_tree.error
        return None

    @property
    def parsed(self) -> bool:
        """True if at least one engine produced a tree."""
        return any(t.ok for t in self.parse_trees)

    @property
    def parse_errors(self) -> dict[str, str]:
        """Engine name -> parser message for every failed engine."""
        return {t.engine: t.error for t in self.parse_trees if t.error is not None}

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.raw_text)

    @property
    def id(self) -> str:
        return query_id(self.fingerprint) if self.raw_text else ""
