"""
queryaudit CLI - SQL quality review.

Usage:
    queryaudit audit queries.sql
    queryaudit audit --query "SELECT * FROM users" --report-type json
    cat queries.sql | queryaudit audit -
    queryaudit rules
    queryaudit schema
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from queryaudit import __version__
from queryaudit.catalog import build_catalog
from queryaudit.config import (
    SampleMode,
    get_config,
    load_blacklist,
    load_config_from_file,
)
from queryaudit.engine import AuditService
from queryaudit.exceptions import QueryAuditError
from queryaudit.output import get_json_schema, render_catalog

app = typer.Typer(
    name="queryaudit",
    help="SQL quality review: heuristic rules, scoring and reports",
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"queryaudit version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """queryaudit - SQL quality review."""
    pass


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


def _print(document: str) -> None:
    console.print(document, markup=False, highlight=False, emoji=False, soft_wrap=True)


def _load_config(config_file: Path | None, overrides: dict[str, Any]):
    config = load_config_from_file(config_file) if config_file else get_config()
    updates = {k: v for k, v in overrides.items() if v is not None}
    if updates:
        config = config.model_validate({**config.model_dump(), **updates})
    return config


def _read_input(source: str | None, query: str | None) -> str:
    if query is not None:
        return query
    if source is None or source == "-":
        return typer.get_text_stream("stdin").read()
    path = Path(source)
    if not path.is_file():
        raise typer.BadParameter(f"File not found: {source}", param_hint="SOURCE")
    return path.read_text(encoding="utf-8")


@app.command()
def audit(
    source: Annotated[
        Optional[str],
        typer.Argument(help="SQL file to audit, or '-' for stdin"),
    ] = None,
    query: Annotated[
        Optional[str],
        typer.Option("--query", "-q", help="Audit this SQL text instead of a file"),
    ] = None,
    report_type: Annotated[
        Optional[str],
        typer.Option(
            "--report-type",
            "-r",
            help="markdown, html, json, lint, text, explain-digest, duplicate-key-checker",
        ),
    ] = None,
    ignore_rules: Annotated[
        Optional[str],
        typer.Option("--ignore-rules", help="Comma separated ignore patterns, e.g. 'COL.*,OK'"),
    ] = None,
    blacklist: Annotated[
        Optional[Path],
        typer.Option("--blacklist", help="File with one block-list pattern per line"),
    ] = None,
    sample_mode: Annotated[
        Optional[SampleMode],
        typer.Option("--sample-mode", help="Query block in structured reports"),
    ] = None,
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="JSON or YAML config file"),
    ] = None,
    min_score: Annotated[
        Optional[int],
        typer.Option("--min-score", help="Exit with code 1 if any query scores below this"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Log debug output to stderr"),
    ] = False,
) -> None:
    """
    Audit every statement in SOURCE and print one report per statement.

    Examples:

        $ queryaudit audit slow.sql

        $ queryaudit audit -q "DELETE FROM users" -r lint
    """
    _setup_logging(verbose)

    try:
        overrides: dict[str, Any] = {
            "report_type": report_type,
            "sample_mode": sample_mode,
            "ignore_rules": (
                [p.strip() for p in ignore_rules.split(",") if p.strip()]
                if ignore_rules is not None
                else None
            ),
        }
        config = _load_config(config_file, overrides)
        if blacklist is not None:
            config = config.model_copy(
                update={"blacklist": list(config.blacklist) + load_blacklist(blacklist)}
            )

        text = _read_input(source, query)
        service = AuditService(config=config)
        reports = service.audit_many(text)
    except QueryAuditError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(code=1)

    failed = False
    for report in reports:
        if report.blocked:
            continue
        _print(report.document)
        if min_score is not None and report.score is not None and report.score < min_score:
            failed = True

    if failed:
        raise typer.Exit(code=1)


@app.command()
def rules(
    report_type: Annotated[
        str,
        typer.Option("--report-type", "-r", help="markdown or json"),
    ] = "markdown",
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="JSON or YAML config file"),
    ] = None,
) -> None:
    """List every rule in the catalog."""
    try:
        config = _load_config(config_file, {})
        catalog = build_catalog(config)
    except QueryAuditError as e:
        error_console.print_json(json.dumps(e.to_dict()))
        raise typer.Exit(code=1)

    _print(render_catalog(catalog, report_type))


@app.command()
def schema() -> None:
    """Print the JSON Schema of the json report format."""
    _print(json.dumps(get_json_schema(), indent=2))


if __name__ == "__main__":
    app()
