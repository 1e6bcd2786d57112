"""Unit-test conftest: settings isolation.

Every unit test starts from a fresh ``get_settings()`` cache with the
backend environment variables removed, and runs from an empty directory
so a developer's shell or ``.env`` never leaks a real backend URL or
token into a test.
"""

from __future__ import annotations

import pytest

from src.settings import get_settings

BACKEND_ENV_VARS = (
    "AI_BASE_URL",
    "AI_SERVER_API_KEY_AUTH",
    "MARGATI_API_BASE",
    "MARGATI_API_KEY",
    "STREAM_RENDER_DELAY",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Clear backend env vars and the settings cache around each test."""
    for name in BACKEND_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
