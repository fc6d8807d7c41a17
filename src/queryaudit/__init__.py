"""queryaudit - SQL quality review: rule catalog, scoring and reports."""

__version__ = "0.3.0"
__license__ = "MIT"

# Exception hierarchy (import first so other modules can use it)
from queryaudit.exceptions import (
    QueryAuditError,
    CatalogError,
    CheckError,
    ConfigurationError,
)

# Public API exports
from queryaudit.models import (
    Category,
    Namespace,
    OK_VERDICT,
    RuleMetadata,
    Verdict,
    VerdictSet,
)
from queryaudit.config import Config, SampleMode, get_config, reset_config
from queryaudit.subject import AuditSubject
from queryaudit.fingerprint import fingerprint, query_id, split_statements
from queryaudit.filters import RuleFilter, in_blacklist, is_ignored
from queryaudit.resolver import ConflictResolver
from queryaudit.scoring import score
from queryaudit.catalog import (
    RuleCatalog,
    build_catalog,
    get_catalog,
    load_catalog,
    register_check,
)
from queryaudit.output import OutputFormat, RenderOptions, render, render_catalog
from queryaudit.engine import AuditReport, AuditService

__all__ = [
    "__version__",
    # Exceptions
    "QueryAuditError",
    "CatalogError",
    "CheckError",
    "ConfigurationError",
    # Models
    "Category",
    "Namespace",
    "OK_VERDICT",
    "RuleMetadata",
    "Verdict",
    "VerdictSet",
    # Config
    "Config",
    "SampleMode",
    "get_config",
    "reset_config",
    # Subject
    "AuditSubject",
    "fingerprint",
    "query_id",
    "split_statements",
    # Pipeline
    "RuleFilter",
    "in_blacklist",
    "is_ignored",
    "ConflictResolver",
    "score",
    "RuleCatalog",
    "build_catalog",
    "get_catalog",
    "load_catalog",
    "register_check",
    "OutputFormat",
    "RenderOptions",
    "render",
    "render_catalog",
    "AuditReport",
    "AuditService",
]
