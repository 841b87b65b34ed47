"""Schema normalization for the four task kinds."""

from .normalizer import (
    Normalized,
    NormalizationTier,
    SchemaNormalizer,
    normalize,
    salvage_action,
    unwrap,
)
from .rules import TASK_SPECS, FieldRule, TaskSpec, remap
from .schemas import (
    TASK_SCHEMAS,
    Citation,
    MacroShockOutput,
    ManagementTrustScoreOutput,
    RedFlag,
    RegulatoryWatchOutput,
    RiskAnalysisOutput,
    SuggestedAction,
    TaskOutput,
    schema_for,
)

__all__ = [
    "TASK_SCHEMAS",
    "TASK_SPECS",
    "Citation",
    "FieldRule",
    "MacroShockOutput",
    "ManagementTrustScoreOutput",
    "Normalized",
    "NormalizationTier",
    "RedFlag",
    "RegulatoryWatchOutput",
    "RiskAnalysisOutput",
    "SchemaNormalizer",
    "SuggestedAction",
    "TaskOutput",
    "TaskSpec",
    "normalize",
    "remap",
    "salvage_action",
    "schema_for",
    "unwrap",
]
