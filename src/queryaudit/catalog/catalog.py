"""
Rule catalog: item -> static rule metadata, plus the check that evaluates it.

A RuleCatalog is built once and never mutated. Validation happens entirely
in the constructor, so an instance that exists is complete: every item is
unique and well formed, and every rule's check is resolved.

The module also keeps a process-wide current catalog for callers that do
not pass one explicitly. load_catalog() builds a new instance first and only
then publishes it, so readers never see a half-built catalog.

Usage:
    from queryaudit.catalog import build_catalog

    catalog = build_catalog()
    meta = catalog.lookup("COL.001")
    for rule in catalog.list_all():
        ...
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Mapping

from queryaudit.catalog.builtin import BUILTIN_RULES
from queryaudit.catalog.registry import CheckRegistry, get_check_registry
from queryaudit.exceptions import CatalogError
from queryaudit.models import RuleMetadata, is_valid_item

# Importing the module registers the built-in checks.
import queryaudit.catalog.checks  # noqa: F401

if TYPE_CHECKING:
    from queryaudit.catalog.checks import Check
    from queryaudit.config import Config

logger = logging.getLogger(__name__)


class RuleCatalog:
    """
    Immutable mapping from rule identifier to metadata and check instance.

    Raises:
        CatalogError: On a duplicate item, a malformed item or a rule whose
            check_id is missing from ``checks``
    """

    def __init__(self, rules: Iterable[RuleMetadata], checks: Mapping[str, "Check"]) -> None:
        entries: dict[str, RuleMetadata] = {}
        bound: dict[str, Check] = {}

        for rule in rules:
            if not is_valid_item(rule.item):
                raise CatalogError(f"Malformed rule identifier {rule.item!r}", item=rule.item)
            if rule.item in entries:
                raise CatalogError(f"Duplicate rule identifier {rule.item}", item=rule.item)

            check = checks.get(rule.check_id)
            if check is None:
                raise CatalogError(
                    f"Rule {rule.item} references unknown check {rule.check_id!r}",
                    item=rule.item,
                )
            entries[rule.item] = rule
            bound[rule.item] = check

        self._rules: Mapping[str, RuleMetadata] = MappingProxyType(entries)
        self._checks: Mapping[str, Check] = MappingProxyType(bound)
        self._sorted: tuple[RuleMetadata, ...] = tuple(
            entries[item] for item in sorted(entries)
        )

    def lookup(self, item: str) -> RuleMetadata | None:
        """Metadata for ``item``, or None when the catalog does not know it."""
        return self._rules.get(item)

    def list_all(self) -> tuple[RuleMetadata, ...]:
        """Every rule, sorted by item."""
        return self._sorted

    def check_for(self, item: str) -> "Check | None":
        return self._checks.get(item)

    def conflict_table(self) -> dict[str, tuple[str, ...]]:
        """Supersession entries declared in metadata: subsumed -> superseding items."""
        return {rule.item: rule.superseded_by for rule in self._sorted if rule.superseded_by}

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, item: object) -> bool:
        return item in self._rules

    def __repr__(self) -> str:
        return f"RuleCatalog({len(self)} rules)"


def build_catalog(
    config: "Config | None" = None,
    rules: Iterable[RuleMetadata] | None = None,
    registry: CheckRegistry | None = None,
) -> RuleCatalog:
    """
    Build a catalog from rule metadata and a check registry.

    Every check referenced by a rule is instantiated once with ``config``.
    Defaults are the built-in rules and the global check registry.
    """
    if config is None:
        from queryaudit.config import get_config

        config = get_config()
    if rules is None:
        rules = BUILTIN_RULES
    if registry is None:
        registry = get_check_registry()

    rules = list(rules)
    checks: dict[str, Check] = {}
    for rule in rules:
        if rule.check_id in checks:
            continue
        check_cls = registry.get(rule.check_id)
        if check_cls is None:
            raise CatalogError(
                f"Rule {rule.item} references unknown check {rule.check_id!r}",
                item=rule.item,
            )
        checks[rule.check_id] = check_cls(config)

    catalog = RuleCatalog(rules, checks)
    logger.debug("Built catalog with %d rules and %d checks", len(catalog), len(checks))
    return catalog


_catalog: RuleCatalog | None = None
_catalog_lock = threading.Lock()


def load_catalog(
    config: "Config | None" = None,
    rules: Iterable[RuleMetadata] | None = None,
    registry: CheckRegistry | None = None,
) -> RuleCatalog:
    """Build a catalog and publish it as the current one."""
    global _catalog

    catalog = build_catalog(config=config, rules=rules, registry=registry)
    with _catalog_lock:
        _catalog = catalog
    return catalog


def get_catalog() -> RuleCatalog:
    """The current catalog, built from the defaults on first use."""
    global _catalog

    catalog = _catalog
    if catalog is not None:
        return catalog

    with _catalog_lock:
        if _catalog is None:
            _catalog = build_catalog()
        return _catalog
