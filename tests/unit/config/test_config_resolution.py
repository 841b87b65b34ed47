"""Unit tests for configuration resolution.

These tests verify the core behaviors of the configuration module:
- Precedence of programmatic, environment, file and default sources.
- Origin tracking and secret redaction.
- Scoped overrides via `config_scope` / `config_override`.
"""

import dataclasses

import pytest

from gemini_insights.config import (
    ConfigFileError,
    FrozenConfig,
    config_override,
    config_scope,
    resolve_config,
)
from gemini_insights.exceptions import ConfigurationError
from gemini_insights.executor import create_executor


def _write_pyproject(path, body: str):
    (path / "pyproject.toml").write_text(body)
    return path


class TestConfigResolution:
    @pytest.mark.unit
    def test_defaults_when_nothing_is_configured(self):
        resolved = resolve_config()

        assert resolved.api_key is None
        assert resolved.model == "gemini-2.5-flash"
        assert resolved.temperature == 0.1
        assert resolved.max_output_tokens == 4096
        assert resolved.max_attempts == 2
        assert resolved.rate_limit_delay == 2.0
        assert resolved.network_retry_delay == 1.0
        assert resolved.enable_cache is True
        assert resolved.cache_ttl_seconds == 86400
        assert set(resolved.origin.values()) == {"default"}

    @pytest.mark.unit
    def test_environment_values_are_coerced(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        monkeypatch.setenv("GEMINI_MODEL", "gemini-2.5-pro")
        monkeypatch.setenv("GEMINI_ENABLE_CACHE", "false")
        monkeypatch.setenv("GEMINI_CACHE_TTL_SECONDS", "60")

        resolved = resolve_config()

        assert resolved.api_key == "env-key"
        assert resolved.model == "gemini-2.5-pro"
        assert resolved.enable_cache is False
        assert resolved.cache_ttl_seconds == 60
        assert resolved.origin["model"] == "env"
        assert resolved.origin["temperature"] == "default"

    @pytest.mark.unit
    def test_google_api_key_is_accepted_as_fallback(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "google-key")

        assert resolve_config().api_key == "google-key"

        monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")

        assert resolve_config().api_key == "gemini-key"

    @pytest.mark.unit
    def test_programmatic_overrides_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_MODEL", "env-model")

        resolved = resolve_config({"model": "explicit-model", "unknown": 1})

        assert resolved.model == "explicit-model"
        assert resolved.origin["model"] == "programmatic"
        assert "unknown" not in resolved.origin

    @pytest.mark.unit
    def test_project_file_sits_between_env_and_defaults(self, tmp_path, monkeypatch):
        root = _write_pyproject(
            tmp_path,
            '[tool.gemini_insights]\nmodel = "file-model"\ncache_ttl_seconds = 120\n',
        )
        monkeypatch.setenv("GEMINI_CACHE_TTL_SECONDS", "30")

        resolved = resolve_config(project_root=root)

        assert resolved.model == "file-model"
        assert resolved.origin["model"] == "file"
        assert resolved.cache_ttl_seconds == 30
        assert resolved.origin["cache_ttl_seconds"] == "env"

    @pytest.mark.unit
    def test_malformed_project_file_raises(self, tmp_path):
        root = _write_pyproject(tmp_path, "[tool.gemini_insights\nmodel = ")

        with pytest.raises(ConfigFileError):
            resolve_config(project_root=root)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "overrides",
        [{"max_attempts": 3}, {"max_attempts": 0}, {"cache_ttl_seconds": 0}, {"model": ""}],
    )
    def test_invalid_values_raise_configuration_error(self, overrides):
        with pytest.raises(ConfigurationError):
            resolve_config(overrides)


class TestConfigTypes:
    @pytest.mark.unit
    def test_api_key_is_redacted(self):
        resolved = resolve_config({"api_key": "super-secret"})
        frozen = resolved.to_frozen()

        assert "super-secret" not in repr(resolved)
        assert "super-secret" not in str(frozen)
        assert "api_key: programmatic:<redacted>" in resolved.audit()

    @pytest.mark.unit
    def test_frozen_config_is_immutable(self):
        frozen = resolve_config().to_frozen()

        assert isinstance(frozen, FrozenConfig)
        with pytest.raises(dataclasses.FrozenInstanceError):
            frozen.model = "other"  # type: ignore[misc]

    @pytest.mark.unit
    def test_with_overrides_marks_origin(self):
        resolved = resolve_config().with_overrides(enable_cache=False, bogus=True)

        assert resolved.enable_cache is False
        assert resolved.origin["enable_cache"] == "programmatic"
        assert "bogus" not in resolved.origin


class TestConfigScope:
    @pytest.mark.unit
    def test_config_scope_overrides_resolution(self):
        scoped = resolve_config().with_overrides(model="scoped-model")

        with config_scope(scoped):
            assert resolve_config().model == "scoped-model"
            assert resolve_config({"max_attempts": 1}).max_attempts == 1

        assert resolve_config().model == "gemini-2.5-flash"

    @pytest.mark.unit
    def test_config_override_nests(self):
        with config_override(model="outer"):
            with config_override(enable_cache=False):
                inner = resolve_config()
            assert resolve_config().enable_cache is True

        assert inner.model == "outer"
        assert inner.enable_cache is False

    @pytest.mark.unit
    def test_create_executor_freezes_scoped_config(self):
        with config_override(api_key="scoped-key", cache_ttl_seconds=5):
            executor = create_executor()

        assert isinstance(executor.config, FrozenConfig)
        assert executor.config.api_key == "scoped-key"
        assert executor.cache.ttl_seconds == 5
