import pytest

from gemini_insights.exceptions import SchemaMismatch
from gemini_insights.normalization import (
    MacroShockOutput,
    ManagementTrustScoreOutput,
    NormalizationTier,
    RegulatoryWatchOutput,
    RiskAnalysisOutput,
    SchemaNormalizer,
    normalize,
    salvage_action,
)
from gemini_insights.recovery import recover_json

VALID_OUTPUTS = [
    (
        "managementTrustScore",
        {
            "managementTrustScore": 72.5,
            "reasoning": "Guidance matched reported margins.",
            "citations": [{"text": "We will cut debt", "source": "Debt up 12%"}],
        },
    ),
    (
        "macroShock",
        {
            "expectedDrawdown": "-8%",
            "sectorSensitivity": "Banks most exposed",
            "downsideRisk": "High",
            "reasoning": "Rate shock compresses margins.",
            "suggestedAction": {"action": "Hedge", "details": "Buy puts"},
        },
    ),
    ("riskAnalysis", {"riskFactorSummary": ["Customer concentration", "FX"]}),
    (
        "regulatoryWatch",
        {
            "redFlags": [
                {"riskLevel": "Medium", "description": "Auditor change", "implication": "Restatement risk"}
            ]
        },
    ),
]


@pytest.fixture
def normalizer() -> SchemaNormalizer:
    return SchemaNormalizer()


@pytest.mark.unit
@pytest.mark.parametrize(("task_kind", "value"), VALID_OUTPUTS)
def test_valid_output_is_returned_unchanged(normalizer, task_kind, value):
    result = normalizer.normalize_detailed(value, task_kind)

    assert result.tier is NormalizationTier.STRICT
    assert result.output.to_payload() == value


@pytest.mark.unit
@pytest.mark.parametrize(
    ("score", "expected"),
    [(150, 100.0), (-10, 0.0), (100.0001, 100.0), (10**400, 100.0), (-(10**400), 0.0)],
)
def test_out_of_range_score_is_clamped(normalizer, score, expected):
    result = normalizer.normalize_detailed(
        {"managementTrustScore": score, "reasoning": "x", "citations": []},
        "managementTrustScore",
    )

    assert result.tier is NormalizationTier.BOUNDED_COERCION
    assert result.output.management_trust_score == expected


@pytest.mark.unit
def test_aliased_trust_score_fields_are_remapped(normalizer):
    result = normalizer.normalize_detailed(
        {"trust_score": 42, "reason": "x"}, "managementTrustScore"
    )

    assert result.tier is NormalizationTier.ALIAS_REMAP
    assert result.output.to_payload() == {
        "managementTrustScore": 42,
        "reasoning": "x",
        "citations": [],
    }


@pytest.mark.unit
def test_fenced_red_flags_with_alias_keys_normalize():
    raw = '```json\n{"redFlags":[{"level":"High","text":"x","impact":"y"}]}\n```'

    output = normalize(recover_json(raw), "regulatoryWatch", raw_text=raw)

    assert isinstance(output, RegulatoryWatchOutput)
    assert output.to_payload() == {
        "redFlags": [{"riskLevel": "High", "description": "x", "implication": "y"}]
    }


@pytest.mark.unit
def test_single_string_risk_is_wrapped_in_list():
    raw = '{"riskFactorSummary": "single risk"}'

    output = normalize(recover_json(raw), "riskAnalysis", raw_text=raw)

    assert output.to_payload() == {"riskFactorSummary": ["single risk"]}


@pytest.mark.unit
def test_truncated_red_flag_without_required_fields_is_a_mismatch():
    raw = '{"redFlags": [{"description": "unterm'
    value = recover_json(raw)

    assert value == {"redFlags": [{"description": "unterm"}]}
    with pytest.raises(SchemaMismatch) as exc_info:
        normalize(value, "regulatoryWatch", raw_text=raw)

    assert exc_info.value.raw_preview == raw
    assert "regulatoryWatch" in str(exc_info.value)


@pytest.mark.unit
def test_truncated_red_flag_with_salvageable_fields_normalizes():
    raw = '{"redFlags": [{"severity": "low", "text": "Late 10-K", "impact": "Fines'

    output = normalize(recover_json(raw), "regulatoryWatch", raw_text=raw)

    assert output.to_payload() == {
        "redFlags": [
            {"riskLevel": "Low", "description": "Late 10-K", "implication": "Fines"}
        ]
    }


@pytest.mark.unit
@pytest.mark.parametrize("wrapper", ["processedData", "data", "insights", "analysis"])
def test_known_wrapper_is_unwrapped(normalizer, wrapper):
    result = normalizer.normalize_detailed(
        {wrapper: {"riskFactorSummary": ["Liquidity"]}}, "riskAnalysis"
    )

    assert result.tier is NormalizationTier.CONTAINER_UNWRAP
    assert isinstance(result.output, RiskAnalysisOutput)
    assert result.output.risk_factor_summary == ["Liquidity"]


@pytest.mark.unit
def test_company_keyed_object_is_unwrapped_and_remapped(normalizer):
    result = normalizer.normalize_detailed(
        {"ACME": {"score": "64", "analysis": "Mixed signals."}},
        "managementTrustScore",
    )

    assert result.tier is NormalizationTier.CONTAINER_UNWRAP
    assert isinstance(result.output, ManagementTrustScoreOutput)
    assert result.output.management_trust_score == 64.0
    assert result.output.reasoning == "Mixed signals."


@pytest.mark.unit
def test_ambiguous_wrappers_are_not_unwrapped(normalizer):
    with pytest.raises(SchemaMismatch):
        normalizer.normalize(
            {"data": {"riskFactorSummary": ["a"]}, "result": {"riskFactorSummary": ["b"]}},
            "riskAnalysis",
        )


@pytest.mark.unit
def test_bare_array_is_wrapped_for_list_schemas(normalizer):
    risks = normalizer.normalize_detailed(["Debt", "Churn"], "riskAnalysis")
    flags = normalizer.normalize_detailed(
        [{"level": "medium", "text": "Related-party loans", "impact": "Governance"}],
        "regulatoryWatch",
    )

    assert risks.tier is NormalizationTier.BOUNDED_COERCION
    assert risks.output.to_payload() == {"riskFactorSummary": ["Debt", "Churn"]}
    assert flags.output.red_flags[0].risk_level == "Medium"


@pytest.mark.unit
def test_suggested_action_is_salvaged_from_labeled_text(normalizer):
    raw = (
        '{"drawdown": "-12%", "sectorSensitivity": "IT", "downsideRisk": "Severe", '
        '"reasoning": "Export demand falls."}\n'
        "Suggested Action: Trim exporters. Add domestic consumption names."
    )

    result = normalizer.normalize_detailed(recover_json(raw), "macroShock", raw_text=raw)

    assert result.tier is NormalizationTier.FREE_TEXT_SALVAGE
    assert isinstance(result.output, MacroShockOutput)
    assert result.output.suggested_action is not None
    assert result.output.suggested_action.action == "Trim exporters"
    assert result.output.suggested_action.details == "Add domestic consumption names"


@pytest.mark.unit
def test_salvage_never_fills_required_fields(normalizer):
    raw = '{"expectedDrawdown": "-5%"}\nRecommendation: Stay the course.'

    with pytest.raises(SchemaMismatch):
        normalizer.normalize(recover_json(raw), "macroShock", raw_text=raw)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("task_kind", "value"),
    [
        ("managementTrustScore", {"reasoning": "no score given"}),
        ("managementTrustScore", {"score": "high", "reasoning": "x"}),
        ("macroShock", {"expectedDrawdown": "-5%", "reasoning": "x"}),
        ("regulatoryWatch", {"redFlags": [{"riskLevel": "Critical", "description": "x", "implication": "y"}]}),
        ("riskAnalysis", {"unrelated": True}),
        ("riskAnalysis", "plain string"),
    ],
)
def test_required_fields_are_never_defaulted(normalizer, task_kind, value):
    with pytest.raises(SchemaMismatch):
        normalizer.normalize(value, task_kind)


@pytest.mark.unit
def test_mismatch_preview_falls_back_to_serialized_value(normalizer):
    with pytest.raises(SchemaMismatch) as exc_info:
        normalizer.normalize({"unrelated": "x" * 1000}, "riskAnalysis")

    assert exc_info.value.raw_preview.startswith('{"unrelated": "xxx')
    assert len(exc_info.value.raw_preview) == 300


@pytest.mark.unit
def test_unknown_task_kind_is_rejected(normalizer):
    with pytest.raises(ValueError, match="Unknown task kind"):
        normalizer.normalize({}, "sentiment")


@pytest.mark.unit
def test_salvage_action_splits_first_fragment():
    assert salvage_action("Recommendation: Rebalance; review quarterly") == {
        "action": "Rebalance",
        "details": "review quarterly",
    }
    assert salvage_action("nothing labeled here") is None
    assert salvage_action(None) is None


@pytest.mark.unit
def test_oversized_integer_score_from_raw_text_is_clamped():
    raw = (
        '{"managementTrustScore": 1' + "0" * 400 + ', "reasoning": "x", "citations": []}'
    )

    output = normalize(recover_json(raw), "managementTrustScore", raw_text=raw)

    assert output.management_trust_score == 100.0
