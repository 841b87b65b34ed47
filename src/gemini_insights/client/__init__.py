"""Generation backend client, adapters and prompts."""

from .adapters import (
    GenerationAdapter,
    GoogleGenAIAdapter,
    ProviderStatusError,
    TransportFault,
)
from .generation import Generated, GenerationClient, GenerationState, GenerationTrace
from .prompts import build_prompt

__all__ = [
    "Generated",
    "GenerationAdapter",
    "GenerationClient",
    "GenerationState",
    "GenerationTrace",
    "GoogleGenAIAdapter",
    "ProviderStatusError",
    "TransportFault",
    "build_prompt",
]
