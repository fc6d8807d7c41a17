"""
JSON schema models for machine-readable output.

Field aliases are the wire names; field declaration order is the key order
of the emitted document.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from queryaudit.models import RuleMetadata, Verdict


class RuleSchema(BaseModel):
    """Schema for one verdict or catalog entry."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    item: str = Field(..., alias="Item", description="Rule identifier")
    severity: str = Field(..., alias="Severity", description="L0..L9")
    summary: str = Field("", alias="Summary", description="One-line summary")
    content: str = Field("", alias="Content", description="Explanation")
    case: str = Field("", alias="Case", description="Example SQL")
    position: int = Field(0, alias="Position", description="Character position, 0 = whole statement")

    @classmethod
    def from_rule(cls, rule: Verdict | RuleMetadata) -> "RuleSchema":
        return cls(
            item=rule.item,
            severity=rule.severity,
            summary=rule.summary,
            content=rule.content,
            case=rule.case,
            position=rule.position,
        )


class JSONReportSchema(BaseModel):
    """Schema for one audited query."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., alias="ID", description="Query ID")
    fingerprint: str = Field(..., alias="Fingerprint", description="Normalised query")
    score: int = Field(..., alias="Score", description="Quality score 0..100")
    sample: str = Field(..., alias="Sample", description="Query as submitted")
    explain: list[RuleSchema] = Field(default_factory=list, alias="Explain")
    heuristic_rules: list[RuleSchema] = Field(default_factory=list, alias="HeuristicRules")
    index_rules: list[RuleSchema] = Field(default_factory=list, alias="IndexRules")


def get_json_schema() -> dict[str, Any]:
    """JSON Schema of the machine-readable report, for documentation."""
    return JSONReportSchema.model_json_schema(by_alias=True)
