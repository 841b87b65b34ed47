"""Core types shared across the insights pipeline."""

from .types import (
    CacheEntry,
    CandidateValidity,
    Failure,
    JsonCandidate,
    Result,
    Success,
    TaskKind,
)

__all__ = [
    "CacheEntry",
    "CandidateValidity",
    "Failure",
    "JsonCandidate",
    "Result",
    "Success",
    "TaskKind",
]
