"""Tests for configuration loading."""

import pytest
from pydantic import ValidationError

from devotional.config import AppSettings, GeminiSettings, get_settings, validate_all_settings


class TestAppSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SIMULATED_LATENCY_MS", raising=False)
        settings = AppSettings(_env_file=None)
        assert settings.simulated_latency_seconds == 0.1
        assert settings.content_cache_version == 9
        assert settings.storage_quota_bytes == 5 * 1024 * 1024

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("SIMULATED_LATENCY_MS", "0")
        monkeypatch.setenv("STORAGE_BACKEND", "memory")
        settings = AppSettings(_env_file=None)
        assert settings.simulated_latency_seconds == 0
        assert settings.storage_backend == "memory"

    def test_rejects_unknown_backend(self):
        with pytest.raises(ValidationError):
            AppSettings(storage_backend="cloud")

    def test_rejects_blank_storage_path(self):
        with pytest.raises(ValidationError):
            AppSettings(storage_path="   ")


class TestGeminiSettings:
    def test_api_key_required(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        with pytest.raises(ValidationError):
            GeminiSettings(_env_file=None)

    def test_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "key")
        monkeypatch.setenv("GEMINI_TEMPERATURE", "0.2")
        settings = GeminiSettings()
        assert settings.api_key == "key"
        assert settings.temperature == 0.2


class TestValidateAllSettings:
    def test_reports_missing_gemini_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        get_settings.cache_clear()
        results = validate_all_settings()
        assert results["app"] is True
        assert results["gemini"] is False
        assert "gemini_error" in results
