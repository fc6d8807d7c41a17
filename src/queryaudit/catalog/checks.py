"""
Built-in rule checks.

A check is the executable half of a rule: it reads an immutable audit
subject and returns a verdict for the rule it is asked about, or None when
the rule passes. Checks must be:
- Deterministic: same subject, same verdict
- Side-effect free: they share nothing but the subject and their config
- Tolerant: a subject that did not parse simply yields no verdict

Most heuristic checks read the sqlparse token stream through TokenView.
Rules whose verdicts are produced by other layers (index advisor, EXPLAIN,
execution) point at the ``external`` check, which never fires.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Iterator

from sqlparse import sql
from sqlparse import tokens as T

from queryaudit.catalog.registry import register_check

if TYPE_CHECKING:
    from queryaudit.config import Config
    from queryaudit.models import RuleMetadata, Verdict
    from queryaudit.subject import AuditSubject


_LIKE_OPERATORS = frozenset({"LIKE", "NOT LIKE", "ILIKE", "NOT ILIKE"})
_REGEX_OPERATORS = frozenset(
    {"REGEXP", "NOT REGEXP", "RLIKE", "NOT RLIKE", "SIMILAR", "~", "~*", "!~", "!~*"}
)
_HINT_PATTERN = re.compile(
    r"\b(?:SQL_NO_CACHE|SQL_CACHE|SQL_BUFFER_RESULT|STRAIGHT_JOIN|HIGH_PRIORITY)\b"
    r"|\b(?:FORCE|IGNORE|USE) (?:INDEX|KEY)\b"
)


@dataclass(frozen=True)
class TokenView:
    """
    Significant leaf tokens of the first sqlparse statement of a subject.

    Whitespace and comments are dropped. ``offsets`` holds each token's
    character offset inside the statement.
    """

    statement: sql.Statement
    tokens: tuple[sql.Token, ...]
    offsets: tuple[int, ...]

    @classmethod
    def of(cls, subject: "AuditSubject") -> "TokenView | None":
        statements = subject.tree("sqlparse")
        if not statements:
            return None

        statement = statements[0]
        tokens: list[sql.Token] = []
        offsets: list[int] = []
        offset = 0
        for token in statement.flatten():
            if not token.is_whitespace and token.ttype not in T.Comment:
                tokens.append(token)
                offsets.append(offset)
            offset += len(token.value)
        return cls(statement=statement, tokens=tuple(tokens), offsets=tuple(offsets))

    def word(self, index: int) -> str:
        """Upper-cased, whitespace-normalised token text; '' when out of range."""
        if 0 <= index < len(self.tokens):
            return " ".join(self.tokens[index].value.upper().split())
        return ""

    @property
    def words(self) -> list[str]:
        return [self.word(i) for i in range(len(self.tokens))]

    def find(self, *words: str) -> list[int]:
        """Indexes of tokens whose word is one of ``words``."""
        wanted = set(words)
        return [i for i, w in enumerate(self.words) if w in wanted]

    def is_string(self, index: int) -> bool:
        return 0 <= index < len(self.tokens) and self.tokens[index].ttype in T.Literal.String.Single

    def position(self, index: int) -> int:
        """1-based character position of a token (0 is reserved for the whole statement)."""
        return self.offsets[index] + 1

    @property
    def kind(self) -> str:
        """Leading statement keyword: SELECT, UPDATE, DELETE, INSERT, REPLACE, ..."""
        first = self.word(0)
        if first == "WITH":
            return self.statement.get_type()
        return first

    @property
    def has_where(self) -> bool:
        """Whether the outermost statement has a WHERE clause."""
        return any(isinstance(token, sql.Where) for token in self.statement.tokens)

    @property
    def has_from(self) -> bool:
        """Whether the outermost statement has a FROM clause."""
        return any(
            token.ttype in T.Keyword and token.normalized == "FROM"
            for token in self.statement.tokens
        )

    def in_lists(self) -> Iterator[tuple[int, list[list[int]]]]:
        """
        Yield ``(index_of_IN, elements)`` for every ``IN ( ... )``.

        Each element is the list of token indexes between top-level commas.
        """
        for i in self.find("IN", "NOT IN"):
            if self.word(i + 1) != "(":
                continue
            elements: list[list[int]] = [[]]
            depth = 0
            for j in range(i + 2, len(self.tokens)):
                word = self.word(j)
                if word == "(":
                    depth += 1
                elif word == ")":
                    if depth == 0:
                        break
                    depth -= 1
                elif word == "," and depth == 0:
                    elements.append([])
                    continue
                elements[-1].append(j)
            yield i, [e for e in elements if e]


class Check(ABC):
    """
    Abstract base class for rule checks.

    Attributes:
        check_id: Unique identifier referenced by RuleMetadata.check_id
    """

    check_id: ClassVar[str] = ""

    def __init__(self, config: "Config | None" = None) -> None:
        if config is None:
            from queryaudit.config import get_config

            config = get_config()
        self.config = config

    @abstractmethod
    def evaluate(self, subject: "AuditSubject", rule: "RuleMetadata") -> "Verdict | None":
        """Return a verdict for ``rule`` if it fires on ``subject``, else None."""


class TokenCheck(Check):
    """Check over the sqlparse token stream; inapplicable when sqlparse failed."""

    def evaluate(self, subject: "AuditSubject", rule: "RuleMetadata") -> "Verdict | None":
        view = TokenView.of(subject)
        if view is None or not view.tokens:
            return None
        return self.inspect(view, rule)

    @abstractmethod
    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        ...


# =============================================================================
# Sentinel, delegated and error checks
# =============================================================================


@register_check
class OKCheck(Check):
    """The OK sentinel is synthesised at render time, never by a check."""

    check_id = "ok"

    def evaluate(self, subject: "AuditSubject", rule: "RuleMetadata") -> "Verdict | None":
        return None


@register_check
class ExternalCheck(OKCheck):
    """Verdict is produced by another layer (index advisor, EXPLAIN, execution)."""

    check_id = "external"


@register_check
class SyntaxErrorCheck(Check):
    """
    Report a parser failure.

    Fires when the primary engine failed, or when no engine produced a tree.
    The parser message becomes the verdict content.
    """

    check_id = "syntax_error"

    def evaluate(self, subject: "AuditSubject", rule: "RuleMetadata") -> "Verdict | None":
        message = subject.error(self.config.primary_parser)
        if message is None and not subject.parsed:
            errors = subject.parse_errors
            message = "; ".join(f"{engine}: {errors[engine]}" for engine in sorted(errors))
        if not message:
            return None
        return rule.to_verdict(content=message)


# =============================================================================
# Argument checks
# =============================================================================


@register_check
class PrefixLike(TokenCheck):
    """LIKE pattern starting with a wildcard."""

    check_id = "prefix_like"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        for i in view.find(*_LIKE_OPERATORS):
            if view.is_string(i + 1):
                body = view.tokens[i + 1].value[1:-1]
                if body.startswith(("%", "_")):
                    return rule.to_verdict(position=view.position(i + 1))
        return None


@register_check
class EqualLike(TokenCheck):
    """LIKE pattern without any wildcard."""

    check_id = "equal_like"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        for i in view.find(*_LIKE_OPERATORS):
            if view.is_string(i + 1):
                body = view.tokens[i + 1].value[1:-1]
                if "%" not in body and "_" not in body:
                    return rule.to_verdict(position=view.position(i + 1))
        return None


@register_check
class InNull(TokenCheck):
    """IN (NULL) / NOT IN (NULL) never matches."""

    check_id = "in_null"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        for i, elements in view.in_lists():
            if any(len(e) == 1 and view.word(e[0]) == "NULL" for e in elements):
                return rule.to_verdict(position=view.position(i))
        return None


@register_check
class InTooMany(TokenCheck):
    """IN list longer than ``max_in_count``."""

    check_id = "in_too_many"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        limit = self.config.max_in_count
        for i, elements in view.in_lists():
            if elements and view.word(elements[0][0]) == "SELECT":
                continue
            if len(elements) > limit:
                content = f"{rule.content.rstrip()} IN list has {len(elements)} values (limit {limit})."
                return rule.to_verdict(content=content, position=view.position(i))
        return None


@register_check
class PatternMatching(TokenCheck):
    """Regular-expression matching operators."""

    check_id = "pattern_matching"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        found = view.find(*_REGEX_OPERATORS)
        if found:
            return rule.to_verdict(position=view.position(found[0]))
        return None


@register_check
class Hint(TokenCheck):
    """Optimizer hints (keywords or /*+ */ comments)."""

    check_id = "hint"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        if _HINT_PATTERN.search(" ".join(view.words)) or "/*+" in str(view.statement):
            return rule.to_verdict()
        return None


@register_check
class Negation(TokenCheck):
    """NOT IN / NOT LIKE predicates."""

    check_id = "negation"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        for i, word in enumerate(view.words):
            if word in ("NOT LIKE", "NOT ILIKE", "NOT IN"):
                return rule.to_verdict(position=view.position(i))
            if word == "NOT" and view.word(i + 1) in ("IN", "LIKE", "ILIKE"):
                return rule.to_verdict(position=view.position(i))
        return None


# =============================================================================
# Classic checks
# =============================================================================


class _NoWhere(TokenCheck):
    statement_kind: ClassVar[str] = ""

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        if view.kind != self.statement_kind or view.has_where:
            return None
        return rule.to_verdict()


@register_check
class SelectWithoutWhere(_NoWhere):
    """Outermost SELECT reads a table without WHERE (SELECT ... FROM dual is fine)."""

    check_id = "no_where_select"
    statement_kind = "SELECT"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        if not view.has_from:
            return None
        from_index = view.find("FROM")
        if from_index and view.word(from_index[0] + 1) == "DUAL":
            return None
        return super().inspect(view, rule)


@register_check
class DeleteWithoutWhere(_NoWhere):
    check_id = "no_where_delete"
    statement_kind = "DELETE"


@register_check
class UpdateWithoutWhere(_NoWhere):
    check_id = "no_where_update"
    statement_kind = "UPDATE"


@register_check
class OrderByRand(TokenCheck):
    check_id = "order_by_rand"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        order_by = view.find("ORDER BY")
        if not order_by:
            return None
        for i in range(order_by[0] + 1, len(view.tokens)):
            if view.word(i) in ("RAND", "RANDOM") and view.word(i + 1) == "(":
                return rule.to_verdict(position=view.position(i))
        return None


@register_check
class OffsetLimit(TokenCheck):
    """LIMIT with an OFFSET larger than ``max_offset``."""

    check_id = "offset_limit"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        for i in view.find("LIMIT"):
            # MySQL form: LIMIT offset, count
            if view.word(i + 2) == "," and view.word(i + 1).isdigit():
                if int(view.word(i + 1)) > self.config.max_offset:
                    return rule.to_verdict(position=view.position(i))
        for i in view.find("OFFSET"):
            if view.word(i + 1).isdigit() and int(view.word(i + 1)) > self.config.max_offset:
                return rule.to_verdict(position=view.position(i))
        return None


@register_check
class Having(TokenCheck):
    check_id = "having"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        found = view.find("HAVING")
        if found:
            return rule.to_verdict(position=view.position(found[0]))
        return None


# =============================================================================
# Column, function and keyword checks
# =============================================================================


@register_check
class SelectStar(TokenCheck):
    """``*`` in a select list; COUNT(*) is not a column wildcard."""

    check_id = "select_star"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        for i, token in enumerate(view.tokens):
            if token.value != "*":
                continue
            if view.word(i - 1) in ("SELECT", "DISTINCT", "ALL", ",", "."):
                return rule.to_verdict(position=view.position(i))
        return None


@register_check
class InsertWithoutColumns(TokenCheck):
    """INSERT/REPLACE without an explicit column list."""

    check_id = "insert_columns"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        if view.kind not in ("INSERT", "REPLACE"):
            return None
        into = view.find("INTO")
        table = into[0] + 1 if into else 1
        while view.word(table + 1) == ".":
            table += 2
        if view.word(table + 1) in ("(", "SET"):
            return None
        return rule.to_verdict()


@register_check
class Sysdate(TokenCheck):
    check_id = "sysdate"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        for i in view.find("SYSDATE"):
            if view.word(i + 1) == "(":
                return rule.to_verdict(position=view.position(i))
        return None


@register_check
class CalcFoundRows(TokenCheck):
    check_id = "calc_found_rows"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        found = view.find("SQL_CALC_FOUND_ROWS")
        if found:
            return rule.to_verdict(position=view.position(found[0]))
        return None


# =============================================================================
# Result checks
# =============================================================================


@register_check
class LimitWithoutOrder(TokenCheck):
    check_id = "limit_without_order"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        if view.kind != "SELECT":
            return None
        if view.find("LIMIT") and not view.find("ORDER BY"):
            return rule.to_verdict()
        return None


@register_check
class ModifyWithLimit(TokenCheck):
    check_id = "dml_with_limit"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        if view.kind in ("UPDATE", "DELETE") and view.find("LIMIT"):
            return rule.to_verdict()
        return None


@register_check
class ModifyWithOrder(TokenCheck):
    check_id = "dml_with_order"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        if view.kind in ("UPDATE", "DELETE") and view.find("ORDER BY"):
            return rule.to_verdict()
        return None


# =============================================================================
# Security and standard checks
# =============================================================================


@register_check
class Truncate(TokenCheck):
    check_id = "truncate"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        if view.kind == "TRUNCATE":
            return rule.to_verdict()
        return None


@register_check
class DataDrop(TokenCheck):
    check_id = "data_drop"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        if view.kind in ("DELETE", "DROP", "TRUNCATE"):
            return rule.to_verdict()
        return None


@register_check
class NonStandardInequality(TokenCheck):
    check_id = "non_standard_ineq"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        found = view.find("!=")
        if found:
            return rule.to_verdict(position=view.position(found[0]))
        return None


# =============================================================================
# Subquery checks
# =============================================================================


@register_check
class InSubquery(TokenCheck):
    check_id = "in_subquery"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        for i, elements in view.in_lists():
            if elements and view.word(elements[0][0]) == "SELECT":
                return rule.to_verdict(position=view.position(i))
        return None


@register_check
class UnionDistinct(TokenCheck):
    """UNION (implicitly DISTINCT) where UNION ALL may do."""

    check_id = "union_distinct"

    def inspect(self, view: TokenView, rule: "RuleMetadata") -> "Verdict | None":
        for i in view.find("UNION", "UNION DISTINCT"):
            if view.word(i + 1) != "ALL":
                return rule.to_verdict(position=view.position(i))
        return None
