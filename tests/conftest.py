"""Shared test fixtures for the Margati sandbox.

Provides common fixtures used across the unit tests.
"""

import pytest
from pydantic import SecretStr

from src.settings import Settings

# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Provide test settings with safe defaults."""
    return Settings(
        _env_file=None,
        environment="testing",
        debug=True,
        ai_base_url="http://backend.test/",
        ai_server_api_key_auth=SecretStr("test-token"),
    )


# =============================================================================
# MICROTASKS
# =============================================================================


@pytest.fixture
def microtasks_response() -> dict:
    """A single-assignment response as the backend returns it."""
    return {
        "status": "ok",
        "request_id": "req-123",
        "assignment_id": "demo-assignment",
        "llm_model": "test-model",
        "generated_at": "2026-01-05T10:00:00Z",
        "microtasks_output": {
            "uac_metadata": {
                "total_estimated_minutes": 35,
                "pedagogical_reasoning": "Short steps keep momentum.",
            },
            "microtasks": [
                {
                    "sequence_id": 1,
                    "title": "Read the prompt",
                    "description": "Skim the assignment once.",
                    "work_phase": "orient",
                    "estimated_minutes": 10,
                    "weight_percentage": 20,
                    "concepts": ["loops"],
                    "source_pointer": "Section 1",
                    "scaffold_tip": "Highlight verbs.",
                    "hierarchy": {"type": "root", "requires": []},
                    "decomposed_details": [
                        {"title": "Skim", "description": "Read headings only."}
                    ],
                    "confidence": 0.9,
                },
                {
                    "sequence_id": 2,
                    "title": "Write the loop",
                    "description": "Sum 1..10.",
                    "work_phase": "build",
                    "estimated_minutes": 25,
                    "weight_percentage": "TBD",
                },
            ],
        },
    }
