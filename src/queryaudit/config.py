"""
Configuration system for queryaudit.

Implements 12-factor config principles:
- Environment variables as primary config source
- Optional JSON/YAML config file
- Already-resolved values only: the audit pipeline never reads files itself

Usage:
    from queryaudit.config import get_config, Config

    # Load from environment (default)
    config = get_config()

    if config.hide_ok:
        ...

    # Override for one run
    config = config.model_copy(update={"report_type": "json"})
"""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from queryaudit.exceptions import ConfigurationError
from queryaudit.models import OK_ITEM

logger = logging.getLogger(__name__)

ENV_PREFIX = "QUERYAUDIT_"


class SampleMode(str, Enum):
    """What the fenced block under a structured report header shows."""

    FINGERPRINT = "fingerprint"
    SAMPLE = "sample"
    PRETTY = "pretty"

    @classmethod
    def from_string(cls, value: str) -> "SampleMode":
        """Parse a sample mode name, case-insensitively."""
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            choices = ", ".join(mode.value for mode in cls)
            raise ConfigurationError(
                f"Invalid sample mode {value!r}, expected one of: {choices}",
                config_key="sample_mode",
            ) from e


class Config(BaseModel):
    """
    queryaudit configuration.

    Loaded from environment variables and optional config file.
    """

    model_config = ConfigDict(frozen=True)

    # Rule filtering
    ignore_rules: list[str] = Field(
        default_factory=list,
        description="Ignore patterns; trailing '*' is a prefix wildcard, bare 'OK' hides the sentinel",
    )
    suppress_ok: bool = Field(
        default=False,
        description="Never display the OK sentinel",
    )
    blacklist: list[str] = Field(
        default_factory=list,
        description="Queries matching any literal or case-insensitive regex are not reviewed",
    )

    # Rendering
    report_type: str = Field(
        default="markdown",
        description="Output format (markdown, html, json, lint, text, ...)",
    )
    sample_mode: SampleMode = Field(
        default=SampleMode.PRETTY,
        description="Structured report block: fingerprint, sample or pretty-printed SQL",
    )

    # Parsing
    charset: str = Field(default="utf8mb4", description="Charset passed to parser engines")
    collation: str = Field(default="", description="Collation passed to parser engines")
    parsers: list[str] = Field(
        default_factory=lambda: ["pglast", "sqlparse"],
        description="Parser engines, in order",
    )
    primary_parser: str = Field(
        default="sqlparse",
        description="Engine whose failure is reported as a syntax error; pglast rejects MySQL-only syntax",
    )

    # Conflict resolution: subsumed item -> superseding items
    conflicts: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Extra supersession entries merged with catalog metadata",
    )

    # Check thresholds
    max_in_count: int = Field(default=10, description="ARG.005 IN-list size limit")
    max_offset: int = Field(default=1000, description="CLA.003 OFFSET threshold")

    # Execution
    parallel: bool = Field(default=False, description="Run checks in a thread pool")
    max_workers: int = Field(default=4, description="Thread pool size")
    fail_fast: bool = Field(default=False, description="Raise on the first failing check")

    @property
    def hide_ok(self) -> bool:
        """Whether the OK sentinel is globally hidden."""
        return self.suppress_ok or any(r.strip() == OK_ITEM for r in self.ignore_rules)


def _parse_env_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_env_int(value: str | None, default: int) -> int:
    """Parse integer from environment variable."""
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Could not parse integer setting %r, using %d", value, default)
        return default


def _parse_env_list(value: str | None) -> list[str] | None:
    """Parse a comma separated list, dropping empty entries."""
    if value is None:
        return None
    return [part.strip() for part in value.split(",") if part.strip()]


def load_blacklist(path: Path) -> list[str]:
    """
    Read block-list patterns from a file, one per line.

    Blank lines and lines starting with '#' are skipped.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read blacklist file {path}: {e}", config_key="blacklist_file"
        ) from e

    patterns = []
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        patterns.append(line)
    return patterns


def load_config_from_env() -> Config:
    """
    Load configuration from environment variables.

    Examples:
    - QUERYAUDIT_IGNORE_RULES=COL.*,OK
    - QUERYAUDIT_BLACKLIST_FILE=/etc/queryaudit/blacklist
    - QUERYAUDIT_REPORT_TYPE=json
    - QUERYAUDIT_SAMPLE_MODE=fingerprint
    - QUERYAUDIT_PARSERS=pglast,sqlparse
    """
    env = os.environ
    config_kwargs: dict[str, Any] = {
        "suppress_ok": _parse_env_bool(env.get(f"{ENV_PREFIX}SUPPRESS_OK"), False),
        "report_type": env.get(f"{ENV_PREFIX}REPORT_TYPE", "markdown"),
        "sample_mode": SampleMode.from_string(env.get(f"{ENV_PREFIX}SAMPLE_MODE", "pretty")),
        "charset": env.get(f"{ENV_PREFIX}CHARSET", "utf8mb4"),
        "collation": env.get(f"{ENV_PREFIX}COLLATION", ""),
        "primary_parser": env.get(f"{ENV_PREFIX}PRIMARY_PARSER", "sqlparse"),
        "max_in_count": _parse_env_int(env.get(f"{ENV_PREFIX}MAX_IN_COUNT"), 10),
        "max_offset": _parse_env_int(env.get(f"{ENV_PREFIX}MAX_OFFSET"), 1000),
        "parallel": _parse_env_bool(env.get(f"{ENV_PREFIX}PARALLEL"), False),
        "max_workers": _parse_env_int(env.get(f"{ENV_PREFIX}MAX_WORKERS"), 4),
        "fail_fast": _parse_env_bool(env.get(f"{ENV_PREFIX}FAIL_FAST"), False),
    }

    ignore_rules = _parse_env_list(env.get(f"{ENV_PREFIX}IGNORE_RULES"))
    if ignore_rules is not None:
        config_kwargs["ignore_rules"] = ignore_rules

    parsers = _parse_env_list(env.get(f"{ENV_PREFIX}PARSERS"))
    if parsers:
        config_kwargs["parsers"] = parsers

    blacklist = _parse_env_list(env.get(f"{ENV_PREFIX}BLACKLIST")) or []
    blacklist_file = env.get(f"{ENV_PREFIX}BLACKLIST_FILE")
    if blacklist_file:
        blacklist.extend(load_blacklist(Path(blacklist_file)))
    config_kwargs["blacklist"] = blacklist

    return Config(**config_kwargs)


def load_config_from_file(path: Path) -> Config:
    """
    Load configuration from a JSON or YAML file.

    A ``blacklist_file`` key is resolved relative to the config file and
    merged into ``blacklist``.
    """
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}", config_key="config_file")

    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Failed to load config from {path}: {e}", config_key="config_file"
        ) from e

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file {path} must contain a mapping", config_key="config_file"
        )

    blacklist_file = data.pop("blacklist_file", None)
    if blacklist_file:
        blacklist_path = Path(blacklist_file)
        if not blacklist_path.is_absolute():
            blacklist_path = path.parent / blacklist_path
        data["blacklist"] = list(data.get("blacklist") or []) + load_blacklist(blacklist_path)

    try:
        return Config(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config in {path}: {e}") from e


@lru_cache(maxsize=1)
def get_config() -> Config:
    """
    Get the global configuration instance.

    Loads from:
    1. QUERYAUDIT_CONFIG_FILE environment variable (if set)
    2. Environment variables (default)

    Result is cached for the lifetime of the process.
    """
    config_file = os.environ.get(f"{ENV_PREFIX}CONFIG_FILE")

    if config_file:
        return load_config_from_file(Path(config_file))

    return load_config_from_env()


def reset_config() -> None:
    """Reset the cached configuration (mainly for testing)."""
    get_config.cache_clear()
