"""Prompt templates, one per task kind.

Each prompt embeds the caller's input and a hint of the JSON shape expected
back. Unknown task names fall back to a generic "process as JSON" prompt.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
from typing import Any

from gemini_insights.core.types import TaskKind

_TRUST_SCORE_TEMPLATE = """\
TASK: Act as a Forensic Financial Auditor. Calculate a "Management Trust Score" (0-100).

FORMULA WEIGHTING:
1. Truth Gap (50%): Match verbal promises in the transcript against reported numbers.
2. Operational Integrity (20%): Verification of margin and growth claims.
3. Sentiment Alignment (30%): Cross-check management tone against news headlines.

AUDIT RULES:
- If a specific promise (e.g. "reducing debt") is contradicted by numbers (e.g. rising debt), deduct 30 points.
- If management is silent on a major risk found in the news, deduct 15 points.
- If numbers perfectly support the verbal guidance, score should be above 85.

INPUT DATA:
- Company: {company}
- Financial Data: {financials}
- Transcript: {transcript}
- Market Stats: {market}
- News Headlines: {news}

RETURN JSON:
{{
  "managementTrustScore": number,
  "reasoning": "A 3-paragraph breakdown of the Truth Gaps found.",
  "citations": [{{"text": "the promise made", "source": "the contradictory metric or headline"}}]
}}
"""

_MACRO_SHOCK_TEMPLATE = """\
Simulate Macro Shock.
Only output JSON.
Holdings: {holdings}
Event: {event}
Market Data: {market}
Output JSON Schema: {{"expectedDrawdown": "string", "downsideRisk": "string", \
"sectorSensitivity": "string", "reasoning": "string", \
"suggestedAction": {{"action": "string", "details": "string"}}}}
"""

_RISK_TEMPLATE = """\
Identify risk factors from report: {report}
Company: {company}
Market Data: {market}
Output JSON Schema: {{"riskFactorSummary": ["string"]}}
"""

_REGULATORY_TEMPLATE = """\
Scan filing for red flags: {filing}
Company: {company}
Market Data: {market}
Output JSON Schema: {{"redFlags": [{{"riskLevel": "High|Medium|Low", \
"description": "string", "implication": "string"}}]}}
"""


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str, ensure_ascii=False)


def _text(value: Any) -> str:
    return value if isinstance(value, str) else _dumps(value)


def _market(data: Mapping[str, Any]) -> str:
    return _dumps(data.get("actualMarketData") or data.get("marketData") or {})


def build_prompt(task_kind: TaskKind | str, payload: Mapping[str, Any]) -> str:
    """Render the prompt for `task_kind` from a camelCase input payload."""
    try:
        kind = TaskKind.coerce(task_kind)
    except ValueError:
        return f"Process following as JSON: {_dumps(payload)}"

    match kind:
        case TaskKind.MANAGEMENT_TRUST_SCORE:
            return _TRUST_SCORE_TEMPLATE.format(
                company=_text(payload.get("companyName", "")),
                financials=_dumps(payload.get("financialData", [])),
                transcript=_dumps(payload.get("transcriptText", "")),
                market=_market(payload),
                news=_text(payload.get("googleNews") or []),
            )
        case TaskKind.MACRO_SHOCK:
            return _MACRO_SHOCK_TEMPLATE.format(
                holdings=_text(payload.get("portfolioHoldings", "")),
                event=_text(payload.get("macroEvent", "")),
                market=_market(payload),
            )
        case TaskKind.RISK_ANALYSIS:
            return _RISK_TEMPLATE.format(
                report=_dumps(payload.get("financialReport", "")),
                company=_text(payload.get("companyName", "")),
                market=_market(payload),
            )
        case TaskKind.REGULATORY_WATCH:
            return _REGULATORY_TEMPLATE.format(
                filing=_dumps(payload.get("filingText", "")),
                company=_text(payload.get("companyName", "")),
                market=_market(payload),
            )
