"""Unit tests for application settings."""

import pytest
from pydantic import ValidationError

from src.settings import DEFAULT_API_BASE, Settings, get_settings


class TestSettings:
    """Tests for backend configuration."""

    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.api_base == DEFAULT_API_BASE
        assert settings.ai_server_api_key_auth.get_secret_value() == ""
        assert settings.stream_render_delay == 0.0
        assert settings.academic_level == "high_school"
        assert settings.support_level == "HIGH"

    def test_base_url_from_env(self, monkeypatch):
        monkeypatch.setenv("AI_BASE_URL", "https://api.example.com//")
        monkeypatch.setenv("AI_SERVER_API_KEY_AUTH", "s3cret")
        settings = Settings(_env_file=None)

        assert settings.api_base == "https://api.example.com"
        assert settings.ai_server_api_key_auth.get_secret_value() == "s3cret"

    def test_alternate_env_names(self, monkeypatch):
        monkeypatch.setenv("MARGATI_API_BASE", "http://alt.test")
        monkeypatch.setenv("MARGATI_API_KEY", "alt-key")
        settings = Settings(_env_file=None)

        assert settings.api_base == "http://alt.test"
        assert settings.ai_server_api_key_auth.get_secret_value() == "alt-key"

    def test_blank_base_url_falls_back(self):
        settings = Settings(_env_file=None, ai_base_url="///")
        assert settings.api_base == DEFAULT_API_BASE

    def test_token_not_leaked_in_repr(self):
        settings = Settings(_env_file=None, ai_server_api_key_auth="s3cret")
        assert "s3cret" not in repr(settings)

    @pytest.mark.parametrize("delay", [-0.1, 1.5])
    def test_render_delay_bounds(self, delay):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, stream_render_delay=delay)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()
