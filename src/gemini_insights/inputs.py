"""Request models for the four analysis tasks.

Fields use snake_case in Python and camelCase on the wire, matching the
prompts and cache keys. Extra keys are rejected so typos surface early.
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from gemini_insights.core.types import TaskKind


class TaskInput(BaseModel):
    """Base class for task request models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    task_kind: ClassVar[TaskKind]

    def to_payload(self) -> dict[str, Any]:
        """Return the camelCase dict sent to the prompt builder and cache."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ManagementTrustScoreInput(TaskInput):
    """Inputs for a management trust audit of one company."""

    task_kind: ClassVar[TaskKind] = TaskKind.MANAGEMENT_TRUST_SCORE

    company_name: str = Field(min_length=1)
    financial_data: list[str] = Field(default_factory=list)
    transcript_text: str | None = None
    actual_market_data: dict[str, Any] | None = None
    google_news: str | list[Any] | None = None


class MacroShockInput(TaskInput):
    """Inputs for simulating a macro event against a portfolio."""

    task_kind: ClassVar[TaskKind] = TaskKind.MACRO_SHOCK

    portfolio_holdings: str = Field(min_length=1)
    macro_event: str = Field(min_length=1)
    market_data: dict[str, Any] | None = None


class RiskAnalysisInput(TaskInput):
    """Inputs for summarizing risk factors in a financial report."""

    task_kind: ClassVar[TaskKind] = TaskKind.RISK_ANALYSIS

    company_name: str = Field(min_length=1)
    financial_report: str
    market_data: dict[str, Any] | None = None


class RegulatoryWatchInput(TaskInput):
    """Inputs for scanning a regulatory filing for red flags."""

    task_kind: ClassVar[TaskKind] = TaskKind.REGULATORY_WATCH

    company_name: str = Field(min_length=1)
    filing_text: str
    market_data: dict[str, Any] | None = None


TASK_INPUTS: dict[TaskKind, type[TaskInput]] = {
    model.task_kind: model
    for model in (
        ManagementTrustScoreInput,
        MacroShockInput,
        RiskAnalysisInput,
        RegulatoryWatchInput,
    )
}
