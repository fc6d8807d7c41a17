"""
Output module - Separates rendering from auditing.

Provides multiple output formats:
- render_markdown / render_html: structured report for humans
- render_json: stable JSON document for tooling
- render_lint / render_text: line-oriented output for editors and CI
- render_catalog: rule documentation

Usage:
    from queryaudit.output import render, OutputFormat

    document = render(subject, verdicts, score, OutputFormat.JSON)
"""

from queryaudit.output.renderers import (
    OutputFormat,
    RenderOptions,
    render,
    render_catalog,
    render_html,
    render_json,
    render_lint,
    render_markdown,
    render_raw,
    render_report,
    render_text,
)
from queryaudit.output.report import Partition, Report, build_report, normalize, partition
from queryaudit.output.schema import JSONReportSchema, RuleSchema, get_json_schema

__all__ = [
    "OutputFormat",
    "RenderOptions",
    "render",
    "render_catalog",
    "render_html",
    "render_json",
    "render_lint",
    "render_markdown",
    "render_raw",
    "render_report",
    "render_text",
    "Partition",
    "Report",
    "build_report",
    "normalize",
    "partition",
    "JSONReportSchema",
    "RuleSchema",
    "get_json_schema",
]
