"""
Data models for rule metadata and verdicts.

These models are designed to be:
- Immutable (frozen=True): metadata and verdicts don't change after creation
- Serializable: the executable check is referenced by id, never embedded
- Closed: namespaces and report categories are enumerations, so every
  mapping over them can be checked for exhaustiveness
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

OK_ITEM = "OK"

_ITEM_PATTERN = re.compile(r"^(?:[A-Z]{3}\.\d{3}|OK)$")
_SEVERITY_PATTERN = re.compile(r"^L(\d+)$")


class Namespace(str, Enum):
    """
    Rule identifier prefixes, one per analysis layer or heuristic family.

    ERR, EXP, IDX, PRO and TRA are produced by dedicated layers (parser or
    execution errors, EXPLAIN, index advisor, profiling, trace). Every other
    namespace is a heuristic pattern family.
    """

    OK = "OK"
    ALI = "ALI"  # alias
    ALT = "ALT"  # alter
    ARG = "ARG"  # argument
    CLA = "CLA"  # classic
    COL = "COL"  # column
    DIS = "DIS"  # distinct
    ERR = "ERR"  # parse / execution error
    EXP = "EXP"  # explain
    FUN = "FUN"  # function
    GRP = "GRP"  # group by
    IDX = "IDX"  # index advisor
    JOI = "JOI"  # join
    KEY = "KEY"  # key
    KWR = "KWR"  # keyword
    LCK = "LCK"  # lock
    LIT = "LIT"  # literal
    PRO = "PRO"  # profiling
    RES = "RES"  # result
    SEC = "SEC"  # security
    STA = "STA"  # standard
    SUB = "SUB"  # subquery
    TBL = "TBL"  # table name
    TRA = "TRA"  # trace

    @classmethod
    def of(cls, item: str) -> "Namespace | None":
        """Namespace of a rule identifier, or None for an unknown prefix."""
        prefix = item.split(".", 1)[0]
        try:
            return cls(prefix)
        except ValueError:
            return None


class Category(str, Enum):
    """
    Report buckets, declared in rendering order.

    Every verdict falls in exactly one category; see Category.of().
    """

    ERROR = "error"
    EXPLAIN = "explain"
    PROFILING = "profiling"
    TRACE = "trace"
    INDEX = "index"
    HEURISTIC = "heuristic"

    @classmethod
    def of(cls, item: str) -> "Category":
        """Category for a rule identifier. Unknown namespaces are heuristic."""
        namespace = Namespace.of(item)
        if namespace is None:
            return cls.HEURISTIC
        return NAMESPACE_CATEGORY.get(namespace, cls.HEURISTIC)


NAMESPACE_CATEGORY: Mapping[Namespace, Category] = {
    Namespace.ERR: Category.ERROR,
    Namespace.EXP: Category.EXPLAIN,
    Namespace.PRO: Category.PROFILING,
    Namespace.TRA: Category.TRACE,
    Namespace.IDX: Category.INDEX,
}


def is_valid_item(item: str) -> bool:
    """Whether an identifier is well formed (PREFIX.NNN or the OK sentinel)."""
    return _ITEM_PATTERN.match(item) is not None


def parse_severity(severity: str) -> int | None:
    """
    Ordinal of an ``L<n>`` severity string.

    Returns None when the string is malformed; callers decide how to recover.
    """
    match = _SEVERITY_PATTERN.match(severity.strip())
    if match is None:
        return None
    return int(match.group(1))


class Verdict(BaseModel):
    """
    Outcome of one rule's check against one audit subject.

    Structurally the same as RuleMetadata minus the check reference;
    content, case and position may be specialised to the instance
    (e.g. interpolated with the offending column).
    """

    model_config = ConfigDict(frozen=True)

    item: str = Field(..., description="Rule identifier, e.g. ARG.001")
    severity: str = Field("L0", description="Severity L0..L9, higher is worse")
    summary: str = Field("", description="One-line summary")
    content: str = Field("", description="Explanation; empty for ERR means no error")
    case: str = Field("", description="Example SQL")
    position: int = Field(0, description="Character offset, 0 = whole statement")

    @property
    def namespace(self) -> Namespace | None:
        return Namespace.of(self.item)

    @property
    def category(self) -> Category:
        return Category.of(self.item)

    @property
    def is_ok(self) -> bool:
        return self.item == OK_ITEM


class RuleMetadata(BaseModel):
    """
    Static catalog entry for one rule.

    The executable check lives in the check registry and is referenced by
    ``check_id``; it is excluded from every exported form of the metadata,
    as is the supersession declaration used by the conflict resolver.

    Attributes:
        item: Unique identifier, ``PREFIX.NNN`` or the sentinel ``OK``
        severity: ``L0``..``L9``
        summary: One-line summary
        content: Explanation shown in reports
        case: Example SQL that triggers the rule
        position: Character offset the advice applies to (0 = whole statement)
        check_id: Identifier of the registered check that evaluates the rule
        superseded_by: Items whose presence makes this rule's verdict redundant
    """

    model_config = ConfigDict(frozen=True)

    item: str
    severity: str = "L0"
    summary: str = ""
    content: str = ""
    case: str = ""
    position: int = 0
    check_id: str = Field(..., exclude=True)
    superseded_by: tuple[str, ...] = Field(default=(), exclude=True)

    @property
    def namespace(self) -> Namespace | None:
        return Namespace.of(self.item)

    def to_verdict(self, **updates: object) -> Verdict:
        """Build a verdict from this metadata, optionally specialising fields."""
        data = {
            "item": self.item,
            "severity": self.severity,
            "summary": self.summary,
            "content": self.content,
            "case": self.case,
            "position": self.position,
        }
        data.update(updates)
        return Verdict(**data)


# Verdict set: item -> verdict, keys unique, unordered until rendering
VerdictSet = Mapping[str, Verdict]


OK_VERDICT = Verdict(
    item=OK_ITEM,
    severity="L0",
    summary="OK",
    content="OK",
    case="OK",
)
