"""Task-first convenience helpers.

One coroutine per analysis kind. Each raises the pipeline's `InsightsError`
on failure instead of returning a `Result`; use `InsightsExecutor.run` for
the non-raising form. `to_boundary_payload` flattens a `Result` into the
``{"data": ..., "error": ...}`` shape handed to UI or HTTP layers.
"""

from __future__ import annotations

from typing import Any, cast

from gemini_insights.core.types import Failure, Result, Success
from gemini_insights.exceptions import InsightsError
from gemini_insights.executor import InsightsExecutor, create_executor
from gemini_insights.inputs import (
    MacroShockInput,
    ManagementTrustScoreInput,
    RegulatoryWatchInput,
    RiskAnalysisInput,
    TaskInput,
)
from gemini_insights.normalization import (
    MacroShockOutput,
    ManagementTrustScoreOutput,
    RegulatoryWatchOutput,
    RiskAnalysisOutput,
    TaskOutput,
)


async def _run_or_raise(
    task_input: TaskInput,
    executor: InsightsExecutor | None,
    context_id: str | None,
) -> TaskOutput:
    runner = executor or create_executor()
    result = await runner.run(task_input.task_kind, task_input, context_id=context_id)
    if isinstance(result, Failure):
        raise result.error
    return result.value


async def calculate_management_trust_score(
    task_input: ManagementTrustScoreInput,
    *,
    executor: InsightsExecutor | None = None,
    context_id: str | None = None,
) -> ManagementTrustScoreOutput:
    """Score how well management's statements match the reported numbers.

    Example:
        ```python
        output = await calculate_management_trust_score(
            ManagementTrustScoreInput(
                company_name="Acme Corp",
                financial_data=["Revenue up 12% YoY"],
            )
        )
        print(output.management_trust_score)
        ```
    """
    output = await _run_or_raise(task_input, executor, context_id)
    return cast(ManagementTrustScoreOutput, output)


async def simulate_portfolio_impact(
    task_input: MacroShockInput,
    *,
    executor: InsightsExecutor | None = None,
    context_id: str | None = None,
) -> MacroShockOutput:
    """Simulate the impact of a macro event on a set of holdings."""
    output = await _run_or_raise(task_input, executor, context_id)
    return cast(MacroShockOutput, output)


async def summarize_risk_factors(
    task_input: RiskAnalysisInput,
    *,
    executor: InsightsExecutor | None = None,
    context_id: str | None = None,
) -> RiskAnalysisOutput:
    """Summarize the key risk factors in a financial report."""
    output = await _run_or_raise(task_input, executor, context_id)
    return cast(RiskAnalysisOutput, output)


async def check_for_red_flags(
    task_input: RegulatoryWatchInput,
    *,
    executor: InsightsExecutor | None = None,
    context_id: str | None = None,
) -> RegulatoryWatchOutput:
    """Scan a regulatory filing for red flags."""
    output = await _run_or_raise(task_input, executor, context_id)
    return cast(RegulatoryWatchOutput, output)


def to_boundary_payload(
    result: Result[TaskOutput, InsightsError],
) -> dict[str, Any]:
    """Flatten a pipeline result into ``{"data": ..., "error": ...}``.

    Exactly one of the two keys is non-null.
    """
    if isinstance(result, Success):
        return {"data": result.value.to_payload(), "error": None}
    return {"data": None, "error": str(result.error) or "Analysis failed."}
