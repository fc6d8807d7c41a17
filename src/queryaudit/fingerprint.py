"""
Query fingerprinting and stable IDs.

A fingerprint is the query with literals replaced by placeholders, comments
removed and whitespace collapsed, so structurally identical queries group
together regardless of the values they carry. The ID is a short, stable
hash of the fingerprint.

Usage:
    from queryaudit.fingerprint import fingerprint, query_id

    fp = fingerprint("SELECT * FROM t WHERE id = 42")   # select * from t where id = ?
    qid = query_id(fp)                                   # 16 upper-case hex chars
"""

from __future__ import annotations

import hashlib
import logging
import re

import sqlparse
from sqlparse import tokens as T

logger = logging.getLogger(__name__)

_IN_LIST = re.compile(r"\bin\s*\(\s*\?(?:\s*,\s*\?)*\s*\)")
_VALUES_LIST = re.compile(
    r"\b(values?)\s*\((?:[^()']*)\)(?:\s*,\s*\((?:[^()']*)\))*"
)
_SPACES = re.compile(r"\s+")


def fingerprint(sql: str) -> str:
    """
    Normalize a query for grouping.

    - comments are dropped and whitespace is collapsed
    - string and number literals become ``?``
    - ``IN (?, ?, ...)`` becomes ``in(?+)``, multi-row ``VALUES`` become ``values(?+)``
    - everything else is lower-cased and a trailing ``;`` is removed
    """
    parts: list[str] = []
    for statement in sqlparse.parse(sql):
        for token in statement.flatten():
            ttype = token.ttype
            if ttype in T.Comment:
                continue
            if token.is_whitespace:
                parts.append(" ")
            elif ttype in T.Literal.String.Single or ttype in T.Literal.Number:
                parts.append("?")
            elif ttype in T.Name.Placeholder:
                parts.append("?")
            else:
                parts.append(token.value.lower())

    text = _SPACES.sub(" ", "".join(parts)).strip()
    text = text.rstrip(";").strip()
    text = _IN_LIST.sub("in(?+)", text)
    text = _VALUES_LIST.sub(lambda m: f"{m.group(1)}(?+)", text)
    return text


def query_id(fp: str) -> str:
    """
    Stable identifier derived from a fingerprint.

    Upper-cased hex characters 16..32 of the MD5 digest.
    """
    digest = hashlib.md5(fp.encode("utf-8"), usedforsecurity=False).hexdigest()
    return digest[16:32].upper()


def split_statements(text: str) -> list[str]:
    """Split a multi-statement input into individual, non-empty statements."""
    statements = []
    for raw in sqlparse.split(text):
        stripped = raw.strip()
        if stripped and stripped != ";":
            statements.append(stripped)
    logger.debug("Split input into %d statement(s)", len(statements))
    return statements
