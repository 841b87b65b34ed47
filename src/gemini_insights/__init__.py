"""Recover, normalize and cache structured insights from Gemini responses."""

import importlib.metadata
import logging

from gemini_insights.cache import DocumentStore, InMemoryDocumentStore, ResultCache
from gemini_insights.client import (
    GenerationAdapter,
    GenerationClient,
    GoogleGenAIAdapter,
)
from gemini_insights.config import (
    FrozenConfig,
    ResolvedConfig,
    config_override,
    config_scope,
    resolve_config,
)
from gemini_insights.core.types import (
    CacheEntry,
    CandidateValidity,
    Failure,
    JsonCandidate,
    Result,
    Success,
    TaskKind,
)
from gemini_insights.exceptions import (
    ConfigurationError,
    ExtractionFailure,
    GenerationError,
    InsightsError,
    RecoveryError,
    RepairExhausted,
    SchemaMismatch,
)
from gemini_insights.executor import InsightsExecutor, create_executor
from gemini_insights.frontdoor import (
    calculate_management_trust_score,
    check_for_red_flags,
    simulate_portfolio_impact,
    summarize_risk_factors,
    to_boundary_payload,
)
from gemini_insights.inputs import (
    MacroShockInput,
    ManagementTrustScoreInput,
    RegulatoryWatchInput,
    RiskAnalysisInput,
)
from gemini_insights.normalization import (
    MacroShockOutput,
    ManagementTrustScoreOutput,
    RegulatoryWatchOutput,
    RiskAnalysisOutput,
    TaskOutput,
    normalize,
)
from gemini_insights.recovery import extract, recover_json, repair
from gemini_insights.telemetry import TelemetryContext, TelemetryReporter

try:
    __version__ = importlib.metadata.version("gemini-insights")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Library logging stays silent unless the application configures handlers.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Entry points
    "InsightsExecutor",
    "create_executor",
    "calculate_management_trust_score",
    "simulate_portfolio_impact",
    "summarize_risk_factors",
    "check_for_red_flags",
    "to_boundary_payload",
    # Inputs and outputs
    "ManagementTrustScoreInput",
    "MacroShockInput",
    "RiskAnalysisInput",
    "RegulatoryWatchInput",
    "TaskOutput",
    "ManagementTrustScoreOutput",
    "MacroShockOutput",
    "RiskAnalysisOutput",
    "RegulatoryWatchOutput",
    # Pipeline stages
    "extract",
    "repair",
    "recover_json",
    "normalize",
    "GenerationClient",
    "GenerationAdapter",
    "GoogleGenAIAdapter",
    "ResultCache",
    "DocumentStore",
    "InMemoryDocumentStore",
    # Core types
    "TaskKind",
    "JsonCandidate",
    "CandidateValidity",
    "CacheEntry",
    "Result",
    "Success",
    "Failure",
    # Configuration
    "FrozenConfig",
    "ResolvedConfig",
    "resolve_config",
    "config_scope",
    "config_override",
    # Telemetry
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "InsightsError",
    "ConfigurationError",
    "RecoveryError",
    "ExtractionFailure",
    "RepairExhausted",
    "SchemaMismatch",
    "GenerationError",
]
