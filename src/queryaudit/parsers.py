"""
SQL parser engines.

Two independent engines build parse trees for an audit subject:

- ``pglast``: libpg_query, the real PostgreSQL parser. Strict; rejects
  anything PostgreSQL would reject.
- ``sqlparse``: non-validating tokenizer. Tolerant; almost never fails and
  is what most heuristic checks read.

An engine failure never raises. It is recorded on the ParseTree so the
subject stays auditable through whichever engine succeeded.

Usage:
    from queryaudit.parsers import parse_query

    trees = parse_query("SELECT 1", engines=["pglast", "sqlparse"])
    for tree in trees:
        print(tree.engine, tree.ok, tree.error)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable

import pglast
import sqlparse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParseTree:
    """
    Outcome of one engine parsing one query.

    Attributes:
        engine: Engine name ("pglast", "sqlparse")
        tree: Engine-specific parse result, None when parsing failed
        error: Parser message when parsing failed
    """

    engine: str
    tree: Any | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.tree is not None and self.error is None


class ParserEngine(ABC):
    """A single SQL parser implementation."""

    name: str = ""

    @abstractmethod
    def parse(self, sql: str, charset: str = "", collation: str = "") -> ParseTree:
        """Parse ``sql``; failures are returned on the ParseTree, never raised."""


class PglastEngine(ParserEngine):
    """
    SQL parser using pglast (libpg_query).

    charset and collation are accepted for interface parity; libpg_query
    operates on the Python string directly.
    """

    name = "pglast"

    def parse(self, sql: str, charset: str = "", collation: str = "") -> ParseTree:
        try:
            statements = pglast.parse_sql(sql)
        except Exception as e:
            return ParseTree(engine=self.name, error=str(e))

        if not statements:
            return ParseTree(engine=self.name, error="Empty parse result")
        return ParseTree(engine=self.name, tree=statements)


class SqlparseEngine(ParserEngine):
    """Heuristic tokenizer using sqlparse. The tree is a tuple of Statements."""

    name = "sqlparse"

    def parse(self, sql: str, charset: str = "", collation: str = "") -> ParseTree:
        try:
            statements = tuple(
                stmt for stmt in sqlparse.parse(sql) if str(stmt).strip()
            )
        except Exception as e:
            return ParseTree(engine=self.name, error=str(e))

        if not statements:
            return ParseTree(engine=self.name, error="Empty statement")
        return ParseTree(engine=self.name, tree=statements)


ENGINES: dict[str, type[ParserEngine]] = {
    PglastEngine.name: PglastEngine,
    SqlparseEngine.name: SqlparseEngine,
}


def parse_query(
    sql: str,
    engines: Iterable[str] = ("pglast", "sqlparse"),
    charset: str = "",
    collation: str = "",
) -> tuple[ParseTree, ...]:
    """
    Parse ``sql`` with every requested engine, in order.

    Unknown engine names are recorded as failed trees.
    """
    trees: list[ParseTree] = []
    for name in engines:
        engine_cls = ENGINES.get(name)
        if engine_cls is None:
            logger.warning("Unknown parser engine %r", name)
            trees.append(ParseTree(engine=name, error=f"Unknown parser engine: {name}"))
            continue

        tree = engine_cls().parse(sql, charset=charset, collation=collation)
        if not tree.ok:
            logger.debug("Parser %s failed: %s", name, tree.error)
        trees.append(tree)
    return tuple(trees)
