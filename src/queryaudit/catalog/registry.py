"""
Check registry: maps a check identifier to an executable check class.

Rule metadata only names its check (``RuleMetadata.check_id``); this
registry is where that name is resolved. Keeping behavior out of the
metadata lets the catalog be exported and listed without touching code.

The registry pattern provides:
- Explicit control over which checks are available
- Plugin system for externally supplied checks
- Testing isolation (build a private registry with only some checks)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from queryaudit.catalog.checks import Check

T = TypeVar("T", bound="Check")


class CheckRegistry:
    """
    Registry of check classes keyed by ``check_id``.

    Example:
        @register_check
        class SelectStar(Check):
            check_id = "select_star"
            ...

        registry = get_check_registry()
        cls = registry.get("select_star")
    """

    def __init__(self) -> None:
        self._checks: dict[str, type[Check]] = {}

    def register(self, check_cls: type[T]) -> type[T]:
        """
        Register a check class.

        Raises:
            ValueError: If a check with the same id is already registered
        """
        check_id = check_cls.check_id

        if not check_id:
            raise ValueError(f"{check_cls.__module__}.{check_cls.__name__} has no check_id")

        if check_id in self._checks:
            existing = self._checks[check_id]
            raise ValueError(
                f"Check '{check_id}' already registered by {existing.__module__}.{existing.__name__}. "
                f"Cannot register {check_cls.__module__}.{check_cls.__name__}"
            )

        self._checks[check_id] = check_cls
        return check_cls

    def unregister(self, check_id: str) -> bool:
        """Remove a check; True if it was registered."""
        if check_id in self._checks:
            del self._checks[check_id]
            return True
        return False

    def get(self, check_id: str) -> type[Check] | None:
        return self._checks.get(check_id)

    def __len__(self) -> int:
        return len(self._checks)

    def __contains__(self, check_id: str) -> bool:
        return check_id in self._checks


# Global registry instance
_global_registry = CheckRegistry()


def get_check_registry() -> CheckRegistry:
    """Get the global check registry."""
    return _global_registry


def register_check(check_cls: type[T]) -> type[T]:
    """
    Decorator to register a check with the global registry.

    Example:
        @register_check
        class PrefixLike(Check):
            check_id = "prefix_like"
            ...
    """
    return _global_registry.register(check_cls)
