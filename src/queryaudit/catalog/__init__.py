"""Rule catalog, check registry and built-in checks."""

from queryaudit.catalog.builtin import BUILTIN_RULES
from queryaudit.catalog.catalog import RuleCatalog, build_catalog, get_catalog, load_catalog
from queryaudit.catalog.checks import Check, TokenCheck, TokenView
from queryaudit.catalog.registry import CheckRegistry, get_check_registry, register_check

__all__ = [
    "BUILTIN_RULES",
    "Check",
    "CheckRegistry",
    "RuleCatalog",
    "TokenCheck",
    "TokenView",
    "build_catalog",
    "get_catalog",
    "get_check_registry",
    "load_catalog",
    "register_check",
]
