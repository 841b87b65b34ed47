"""
Global test configuration with support for different test types.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
import logging
import os

import pytest

from gemini_insights.config import FrozenConfig
from gemini_insights.constants import (
    DEFAULT_CACHE_TTL,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    MAX_ATTEMPTS,
    NETWORK_RETRY_DELAY,
    RATE_LIMIT_RETRY_DELAY,
)

# --- Environment Isolation (Autouse) ---


@pytest.fixture(autouse=True)
def isolate_gemini_env(request, monkeypatch):
    """Ensure a clean GEMINI_* / GOOGLE_API_KEY environment for each test.

    Escape hatches:
      - @pytest.mark.allow_env_pollution: keep current env unchanged
      - tests marked with @pytest.mark.api bypass isolation so the real
        environment can be used when explicitly running API tests.
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith("GEMINI_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    # Avoid DEBUG toggles enabling telemetry paths
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def isolated_project_root(request, monkeypatch, tmp_path):
    """Run each test from an empty directory so no real pyproject.toml is read.

    Escape hatch: @pytest.mark.allow_project_config.
    """
    if request.node.get_closest_marker("allow_project_config"):
        return
    workdir = tmp_path / "project"
    workdir.mkdir()
    (workdir / "pyproject.toml").write_text("[project]\nname = 'isolated'\n")
    monkeypatch.chdir(workdir)


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Component integration tests with mocked APIs",
        "api: Real API integration tests (requires API key)",
        "slow: Tests that take >1 second",
        "allow_env_pollution: Keep the ambient GEMINI_* environment",
        "allow_project_config: Read pyproject.toml from the real working directory",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


def pytest_collection_modifyitems(config, items):  # noqa: ARG001
    """Automatically skip API tests when API key is unavailable."""
    if not (
        (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY"))
        and os.getenv("ENABLE_API_TESTS")
    ):
        skip_api = pytest.mark.skip(
            reason="API tests require GEMINI_API_KEY and ENABLE_API_TESTS=1",
        )
        for item in items:
            if "api" in item.keywords:
                item.add_marker(skip_api)


# --- Core Fixtures ---


@pytest.fixture
def make_config() -> Callable[..., FrozenConfig]:
    """Build a FrozenConfig with test-friendly defaults and overrides."""

    def _make(**overrides) -> FrozenConfig:
        values = {
            "api_key": "test-api-key",
            "model": DEFAULT_MODEL,
            "temperature": DEFAULT_TEMPERATURE,
            "max_output_tokens": DEFAULT_MAX_OUTPUT_TOKENS,
            "max_attempts": MAX_ATTEMPTS,
            "rate_limit_delay": RATE_LIMIT_RETRY_DELAY,
            "network_retry_delay": NETWORK_RETRY_DELAY,
            "enable_cache": True,
            "cache_ttl_seconds": DEFAULT_CACHE_TTL,
        }
        values.update(overrides)
        return FrozenConfig(**values)

    return _make


class FakeClock:
    """Manually advanced timezone-aware clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class ScriptedAdapter:
    """Generation adapter that replays responses and exceptions in order."""

    def __init__(self, *steps: str | BaseException) -> None:
        self.steps = list(steps)
        self.calls: list[dict] = []

    async def generate(
        self,
        *,
        model_name: str,
        prompt: str,
        temperature: float,
        max_output_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "model_name": model_name,
                "prompt": prompt,
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
            }
        )
        if not self.steps:
            raise AssertionError("ScriptedAdapter called more times than scripted")
        step = self.steps.pop(0)
        if isinstance(step, BaseException):
            raise step
        return step


@pytest.fixture
def scripted_adapter() -> type[ScriptedAdapter]:
    """Factory for adapters that replay a fixed script of outcomes."""
    return ScriptedAdapter


@pytest.fixture
def sleeps() -> list[float]:
    """Records requested backoff delays instead of sleeping."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


# --- Logging noise control ---


@pytest.fixture(autouse=True)
def quiet_noisy_libraries():
    """Reduce log noise from third-party HTTP clients during tests."""
    for name in ("httpx", "httpcore", "google_genai"):
        logging.getLogger(name).setLevel(logging.WARNING)
