"""Task schemas: the structural contract each normalized output satisfies.

Scalar fields validate strictly (no str->number coercion) against the
camelCase wire names the model is prompted with. Unknown keys are ignored.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic.alias_generators import to_camel

from gemini_insights.constants import SCORE_MAX, SCORE_MIN
from gemini_insights.core.types import TaskKind


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        extra="ignore",
        frozen=True,
    )


class TaskOutput(_WireModel):
    """Base class for normalized task outputs."""

    task_kind: ClassVar[TaskKind]
    schema_version: ClassVar[str] = "1"

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-shaped wire form (camelCase, unset optionals omitted)."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        """Serialize the wire form to a JSON string."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class Citation(_WireModel):
    """A promise made by management and the evidence it is checked against."""

    text: StrictStr
    source: StrictStr


class ManagementTrustScoreOutput(TaskOutput):
    """Management trust score with the truth gaps that justify it."""

    task_kind: ClassVar[TaskKind] = TaskKind.MANAGEMENT_TRUST_SCORE

    management_trust_score: float = Field(ge=SCORE_MIN, le=SCORE_MAX, strict=True)
    reasoning: StrictStr
    citations: list[Citation]


class SuggestedAction(_WireModel):
    """An optional recommended action attached to a macro shock simulation."""

    action: StrictStr
    details: StrictStr


class MacroShockOutput(TaskOutput):
    """Simulated impact of a macro event on a portfolio."""

    task_kind: ClassVar[TaskKind] = TaskKind.MACRO_SHOCK

    expected_drawdown: StrictStr
    sector_sensitivity: StrictStr
    downside_risk: StrictStr
    reasoning: StrictStr
    suggested_action: SuggestedAction | None = None


class RiskAnalysisOutput(TaskOutput):
    """Key risk factors summarized from a financial report."""

    task_kind: ClassVar[TaskKind] = TaskKind.RISK_ANALYSIS

    risk_factor_summary: list[StrictStr]


RiskLevel = Literal["High", "Medium", "Low"]
RISK_LEVELS: tuple[str, ...] = ("High", "Medium", "Low")


class RedFlag(_WireModel):
    """A single regulatory red flag found in a filing."""

    risk_level: RiskLevel
    description: StrictStr
    implication: StrictStr


class RegulatoryWatchOutput(TaskOutput):
    """Red flags found while scanning a regulatory filing."""

    task_kind: ClassVar[TaskKind] = TaskKind.REGULATORY_WATCH

    red_flags: list[RedFlag]


TASK_SCHEMAS: dict[TaskKind, type[TaskOutput]] = {
    model.task_kind: model
    for model in (
        ManagementTrustScoreOutput,
        MacroShockOutput,
        RiskAnalysisOutput,
        RegulatoryWatchOutput,
    )
}


def schema_for(task_kind: TaskKind | str) -> type[TaskOutput]:
    """Return the output model for a task kind."""
    return TASK_SCHEMAS[TaskKind.coerce(task_kind)]
