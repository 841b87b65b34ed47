"""Provider adapters for the generation backend.

The generation client talks to a `GenerationAdapter`, never to an SDK
directly. Adapters translate provider failures into two exceptions the client
understands: `ProviderStatusError` for a non-2xx response and
`TransportFault` for a request that never got one.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol, runtime_checkable

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
import httpx

from gemini_insights.constants import RESPONSE_MIME_TYPE

log = logging.getLogger(__name__)


class ProviderStatusError(Exception):
    """The backend answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API Error {status_code}: {body}")


class TransportFault(Exception):
    """The request failed before any HTTP status was received."""


@runtime_checkable
class GenerationAdapter(Protocol):
    """Minimal interface for a text-generation backend."""

    async def generate(
        self,
        *,
        model_name: str,
        prompt: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        """Send one request and return the response text.

        Raises:
            ProviderStatusError: On a non-2xx response.
            TransportFault: On connection or timeout failures.
        """
        ...


class GoogleGenAIAdapter:
    """Adapter over the `google-genai` async client."""

    def __init__(self, api_key: str, *, client: Any | None = None) -> None:
        self._client = client if client is not None else genai.Client(api_key=api_key)

    async def generate(
        self,
        *,
        model_name: str,
        prompt: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            response_mime_type=RESPONSE_MIME_TYPE,
        )
        try:
            response = await self._client.aio.models.generate_content(
                model=model_name,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as e:
            raise ProviderStatusError(int(e.code), _error_body(e)) from e
        except (httpx.TransportError, ConnectionError, TimeoutError) as e:
            raise TransportFault(str(e) or type(e).__name__) from e

        return response.text or ""


def _error_body(error: genai_errors.APIError) -> str:
    body = getattr(error, "details", None)
    if body:
        try:
            return json.dumps(body)
        except (TypeError, ValueError):
            log.debug("Unserializable error body from provider", exc_info=True)
    return str(getattr(error, "message", None) or error)
