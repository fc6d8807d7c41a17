"""
Output renderers for different formats.

Every format consumes the same normalised, partitioned Report and differs
only in encoding. Markdown and HTML share one block structure so their
section order cannot drift apart. JSON goes through the schema.py Pydantic
models, never through hand-built dicts.

An unrecognised format name falls back to plain text followed by a
pretty-printed dump of every verdict.
"""

from __future__ import annotations

import html
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable

import sqlparse
from rich.pretty import pretty_repr

from queryaudit.config import SampleMode
from queryaudit.models import OK_ITEM, Category, VerdictSet
from queryaudit.output.report import Report, build_report, normalize
from queryaudit.output.schema import JSONReportSchema, RuleSchema
from queryaudit.scoring import score as compute_score
from queryaudit.scoring import stars

if TYPE_CHECKING:
    from queryaudit.catalog import RuleCatalog
    from queryaudit.config import Config
    from queryaudit.subject import AuditSubject

logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    """Supported output formats."""

    MARKDOWN = "markdown"
    HTML = "html"
    JSON = "json"
    LINT = "lint"
    TEXT = "text"
    EXPLAIN_DIGEST = "explain-digest"
    DUPLICATE_KEY_CHECKER = "duplicate-key-checker"

    @classmethod
    def from_string(cls, value: str) -> "OutputFormat | None":
        """Parse a format name; None when it is not a known format."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class RenderOptions:
    """Display settings shared by every format."""

    sample_mode: SampleMode = SampleMode.PRETTY
    ignore_rules: tuple[str, ...] = ()
    hide_ok: bool = False

    @classmethod
    def from_config(cls, config: "Config") -> "RenderOptions":
        return cls(
            sample_mode=config.sample_mode,
            ignore_rules=tuple(config.ignore_rules),
            hide_ok=config.hide_ok,
        )


def render(
    subject: "AuditSubject",
    verdicts: VerdictSet,
    score: int | None = None,
    format: OutputFormat | str = OutputFormat.MARKDOWN,
    options: RenderOptions | None = None,
) -> str:
    """
    Render a resolved verdict set in the requested format.

    Args:
        subject: The audited query
        verdicts: Resolved verdict set (normalisation happens here)
        score: Quality score; computed from the normalised set when omitted
        format: Output format or format name
        options: Display settings

    Returns:
        Formatted document
    """
    options = options or RenderOptions()
    normalized = normalize(verdicts, options.ignore_rules, options.hide_ok)
    if score is None:
        score = compute_score(normalized)
    return render_report(build_report(subject, normalized, score), format, options)


def render_report(
    report: Report,
    format: OutputFormat | str = OutputFormat.MARKDOWN,
    options: RenderOptions | None = None,
) -> str:
    """Render an already normalised report; no OK synthesis or ignore gate here."""
    options = options or RenderOptions()
    output_format = format if isinstance(format, OutputFormat) else OutputFormat.from_string(format)
    if output_format is None:
        logger.warning("Unknown report type %r, falling back to raw output", format)
        return render_raw(report)

    renderer = _RENDERERS[output_format]
    return renderer(report, output_format, options)


# =============================================================================
# Structured document (markdown / html)
# =============================================================================


@dataclass(frozen=True)
class Block:
    """
    One element of a structured document.

    kind is one of: heading, score, code, paragraph, fields.
    """

    kind: str
    text: str = ""
    level: int = 2
    fields: tuple[tuple[str, str], ...] = field(default_factory=tuple)


def _pretty_sql(sql: str) -> str:
    return sqlparse.format(sql, reindent=True, keyword_case="upper").strip()


def _sample_text(report: Report, mode: SampleMode) -> str:
    if mode is SampleMode.FINGERPRINT:
        return report.fingerprint
    if mode is SampleMode.SAMPLE:
        return report.sample
    return _pretty_sql(report.sample)


def _structured_blocks(
    report: Report, output_format: OutputFormat, options: RenderOptions
) -> list[Block]:
    parts = report.partition
    blocks: list[Block] = []

    if report.sample:
        blocks.append(Block("heading", f"Query: {report.id}", level=1))
    blocks.append(Block("score", f"{stars(report.score)} {report.score}/100"))
    if report.sample:
        blocks.append(Block("code", _sample_text(report, options.sample_mode)))

    if parts.error:
        blocks.append(Block("heading", "Execution failed"))
        for verdict in parts.error:
            blocks.append(Block("paragraph", verdict.content))

    if parts.explain_summary is not None:
        summary = parts.explain_summary
        blocks.append(Block("heading", summary.summary))
        blocks.append(Block("paragraph", summary.content))
        if summary.case:
            blocks.append(Block("paragraph", summary.case))
    for verdict in parts.explain:
        blocks.append(Block("heading", verdict.summary, level=3))
        blocks.append(Block("paragraph", verdict.content))
        if verdict.case:
            blocks.append(Block("paragraph", verdict.case))

    for title, bucket in (("Profiling", parts.profiling), ("Trace", parts.trace)):
        if bucket:
            blocks.append(Block("heading", title))
            for verdict in bucket:
                blocks.append(Block("paragraph", verdict.content))

    for verdict in parts.index:
        blocks.append(Block("heading", verdict.summary))
        blocks.append(
            Block(
                "fields",
                fields=(
                    ("Item", verdict.item),
                    ("Severity", verdict.severity),
                    ("Content", verdict.content),
                ),
            )
        )
        if output_format is OutputFormat.DUPLICATE_KEY_CHECKER:
            blocks.append(Block("paragraph", "Original table definition:"))
            blocks.append(Block("code", verdict.case))
        elif verdict.case:
            blocks.append(Block("fields", fields=(("Case", verdict.case),)))

    for verdict in parts.heuristic:
        blocks.append(Block("heading", verdict.summary))
        if verdict.item == OK_ITEM:
            continue
        blocks.append(
            Block(
                "fields",
                fields=(
                    ("Item", verdict.item),
                    ("Severity", verdict.severity),
                    ("Content", verdict.content),
                ),
            )
        )

    return blocks


_MARKDOWN_SPECIAL = "\\`*_"


def markdown_escape(text: str) -> str:
    """Backslash-escape characters that would change markdown emphasis or code spans."""
    return "".join(f"\\{c}" if c in _MARKDOWN_SPECIAL else c for c in text)


def _encode_markdown(blocks: Iterable[Block]) -> str:
    lines: list[str] = []
    for block in blocks:
        if block.kind == "heading":
            lines.append(f"{'#' * block.level} {markdown_escape(block.text)}")
        elif block.kind == "score":
            lines.append(block.text)
        elif block.kind == "code":
            lines.append("```sql")
            lines.append(block.text)
            lines.append("```")
        elif block.kind == "paragraph":
            lines.append(markdown_escape(block.text))
        elif block.kind == "fields":
            for name, value in block.fields:
                lines.append(f"* **{name}:** {markdown_escape(value)}")
        lines.append("")
    return "\n".join(lines).rstrip("\n") + "\n"


def _encode_html(blocks: Iterable[Block]) -> str:
    lines: list[str] = []
    for block in blocks:
        text = html.escape(block.text)
        if block.kind == "heading":
            lines.append(f"<h{block.level}>{text}</h{block.level}>")
        elif block.kind == "score":
            lines.append(f'<p class="score">{text}</p>')
        elif block.kind == "code":
            lines.append(f'<pre><code class="language-sql">{text}</code></pre>')
        elif block.kind == "paragraph":
            lines.append(f"<p>{text}</p>")
        elif block.kind == "fields":
            lines.append("<ul>")
            for name, value in block.fields:
                lines.append(f"<li><strong>{html.escape(name)}:</strong> {html.escape(value)}</li>")
            lines.append("</ul>")
    return "\n".join(lines) + "\n"


def render_markdown(
    report: Report,
    output_format: OutputFormat = OutputFormat.MARKDOWN,
    options: RenderOptions | None = None,
) -> str:
    """
    Render a report as Markdown.

    Header, score line, query block, then one section per non-empty bucket.
    """
    return _encode_markdown(_structured_blocks(report, output_format, options or RenderOptions()))


def render_html(
    report: Report,
    output_format: OutputFormat = OutputFormat.HTML,
    options: RenderOptions | None = None,
) -> str:
    """Render a report as an HTML fragment with the Markdown structure."""
    return _encode_html(_structured_blocks(report, output_format, options or RenderOptions()))


# =============================================================================
# JSON renderer (uses schema models)
# =============================================================================


def _report_to_schema(report: Report) -> JSONReportSchema:
    parts = report.partition
    heuristic = sorted(
        parts.error + parts.profiling + parts.trace + parts.heuristic,
        key=lambda v: v.item,
    )
    return JSONReportSchema(
        id=report.id,
        fingerprint=report.fingerprint,
        score=report.score,
        sample=report.sample,
        explain=[RuleSchema.from_rule(v) for v in parts.bucket(Category.EXPLAIN)],
        heuristic_rules=[RuleSchema.from_rule(v) for v in heuristic],
        index_rules=[RuleSchema.from_rule(v) for v in parts.index],
    )


def render_json(
    report: Report,
    output_format: OutputFormat = OutputFormat.JSON,
    options: RenderOptions | None = None,
    indent: int = 2,
) -> str:
    """
    Render a report as a single JSON object.

    Keys: ID, Fingerprint, Score, Sample, Explain, HeuristicRules, IndexRules.
    """
    schema = _report_to_schema(report)
    return json.dumps(schema.model_dump(mode="json", by_alias=True), indent=indent, ensure_ascii=False)


# =============================================================================
# Line-oriented renderers
# =============================================================================


def render_lint(
    report: Report,
    output_format: OutputFormat = OutputFormat.LINT,
    options: RenderOptions | None = None,
) -> str:
    """One ``ITEM summary`` line per verdict; OK and EXP are omitted."""
    lines = [
        f"{v.item} {v.summary}"
        for v in sorted(report.partition.ordered(), key=lambda v: v.item)
        if not v.is_ok and v.category is not Category.EXPLAIN
    ]
    return "\n".join(lines)


def _text_records(report: Report) -> list[str]:
    lines: list[str] = []
    for verdict in sorted(report.partition.ordered(), key=lambda v: v.item):
        lines.append(f"Query: {report.sample}")
        lines.append(f"ID: {report.id}")
        lines.append(f"Item: {verdict.item}")
        lines.append(f"Severity: {verdict.severity}")
        lines.append(f"Summary: {verdict.summary}")
        lines.append(f"Content: {verdict.content}")
        lines.append("")
    return lines


def render_text(
    report: Report,
    output_format: OutputFormat = OutputFormat.TEXT,
    options: RenderOptions | None = None,
) -> str:
    """One labelled record per verdict."""
    return "\n".join(_text_records(report)).rstrip("\n") + "\n"


def render_raw(report: Report) -> str:
    """Fallback for unknown formats: the plain-text records, then a dump of every verdict."""
    lines = _text_records(report)
    for verdict in sorted(report.partition.ordered(), key=lambda v: v.item):
        lines.append(pretty_repr(verdict))
    return "\n".join(lines) + "\n"


_RENDERERS: dict[OutputFormat, Callable[[Report, OutputFormat, RenderOptions], str]] = {
    OutputFormat.MARKDOWN: render_markdown,
    OutputFormat.EXPLAIN_DIGEST: render_markdown,
    OutputFormat.DUPLICATE_KEY_CHECKER: render_markdown,
    OutputFormat.HTML: render_html,
    OutputFormat.JSON: render_json,
    OutputFormat.LINT: render_lint,
    OutputFormat.TEXT: render_text,
}


# =============================================================================
# Catalog listing
# =============================================================================


def render_catalog(catalog: "RuleCatalog", format: OutputFormat | str = OutputFormat.MARKDOWN) -> str:
    """
    List every catalog rule except OK, sorted by item.

    JSON gives an array of rule objects; every other format gives Markdown.
    """
    rules = [rule for rule in catalog.list_all() if rule.item != OK_ITEM]

    output_format = format if isinstance(format, OutputFormat) else OutputFormat.from_string(format)
    if output_format is OutputFormat.JSON:
        payload = [RuleSchema.from_rule(rule).model_dump(mode="json", by_alias=True) for rule in rules]
        return json.dumps(payload, indent=2, ensure_ascii=False)

    lines = ["# Heuristic rules", "", "[toc]", ""]
    for rule in rules:
        lines.append(f"## {markdown_escape(rule.summary)}")
        lines.append("")
        lines.append(f"* **Item**:{rule.item}")
        lines.append(f"* **Severity**:{rule.severity}")
        lines.append(f"* **Content**:{markdown_escape(rule.content)}")
        lines.append("* **Case**:")
        lines.append("")
        lines.append("```sql")
        lines.append(rule.case)
        lines.append("```")
        lines.append("")
    return "\n".join(lines)
