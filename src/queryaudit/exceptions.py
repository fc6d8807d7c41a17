"""
Package-level exception hierarchy for queryaudit.

All exceptions inherit from QueryAuditError, enabling:
- Catching all queryaudit errors with a single except clause
- Rich context fields for debugging (item, check_id, config_key)
- Structured serialization via to_dict() for JSON error output

Hierarchy:
    QueryAuditError
    ├── CatalogError       – Rule catalog failed integrity checks at build time
    ├── CheckError         – A rule check raised while evaluating a query
    └── ConfigurationError – Invalid configuration value

Only CatalogError is fatal to an audit run. Problems that affect a single
verdict are represented as data (a verdict or a deduction) instead.
"""

from __future__ import annotations

from typing import Any


class QueryAuditError(Exception):
    """
    Base exception for all queryaudit errors.

    Attributes:
        message: Human-readable error description.
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON error output."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
        }


class CatalogError(QueryAuditError):
    """
    The rule catalog could not be built.

    Raised for duplicate or malformed rule identifiers and for metadata that
    references a check that is not registered. A half-built catalog would
    silently under-report, so construction refuses to finish.

    Attributes:
        item: The offending rule identifier (if known).
    """

    def __init__(self, message: str, item: str | None = None) -> None:
        self.item = item
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["item"] = self.item
        return result


class CheckError(QueryAuditError):
    """
    Error during check execution.

    Captures which rule and check failed. Only raised when the audit service
    runs in fail-fast mode; otherwise the failure is logged and the rule
    yields no verdict.

    Attributes:
        item: The rule identifier being evaluated.
        check_id: The check that raised.
        original_error: The underlying exception.
    """

    def __init__(self, item: str, check_id: str, original_error: Exception) -> None:
        self.item = item
        self.check_id = check_id
        self.original_error = original_error

        message = (
            f"Check '{check_id}' for rule '{item}' failed: "
            f"{original_error.__class__.__name__}: {original_error}"
        )
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output / logging."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "item": self.item,
            "check_id": self.check_id,
            "original_error_type": self.original_error.__class__.__name__,
            "original_error_message": str(self.original_error),
        }


class ConfigurationError(QueryAuditError):
    """
    Error in queryaudit configuration.

    Attributes:
        config_key: The configuration key that caused the error (if known).
    """

    def __init__(self, message: str, config_key: str | None = None) -> None:
        self.config_key = config_key
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["config_key"] = self.config_key
        return result
