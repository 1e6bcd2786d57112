"""HTTP client for the Margati generation backend.

Two endpoints are used:

- ``POST /profile-questionnaire`` streams the next calibration question as
  framed ``data:`` records (decoded by ``src.calibration.decoder``).
- ``POST /course-plan/single-assignment`` returns a microtask breakdown.

Connection failures, timeouts and non-2xx statuses are raised as
``TransportError`` (or ``MicrotaskGenerationError``); nothing is retried.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaValidationError

from src.exceptions import ConfigurationError, MicrotaskGenerationError, TransportError
from src.microtasks.models import MicrotasksApiResponse
from src.settings import DEFAULT_API_BASE, get_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from src.calibration.state import ContextEntry
    from src.microtasks.models import MicrotaskRequest
    from src.settings import Settings

logger = logging.getLogger(__name__)

QUESTIONNAIRE_PATH = "/profile-questionnaire"
SINGLE_ASSIGNMENT_PATH = "/course-plan/single-assignment"


class MargatiClientConfig(BaseModel):
    """Configuration for the backend client."""

    base_url: str = Field(default=DEFAULT_API_BASE, description="Backend base URL")
    api_token: str = Field(default="", description="Bearer token (empty = no auth header)")
    timeout: float = Field(default=120.0, description="Request timeout in seconds")
    stream_timeout: float = Field(default=300.0, description="Stream read timeout in seconds")
    connect_timeout: float = Field(default=10.0, description="Connect timeout in seconds")

    @classmethod
    def from_settings(cls, settings: Settings) -> MargatiClientConfig:
        return cls(
            base_url=settings.api_base,
            api_token=settings.ai_server_api_key_auth.get_secret_value(),
            timeout=settings.request_timeout,
            stream_timeout=settings.stream_timeout,
        )


class MargatiClient:
    """Calls the generation backend.

    Usage::

        client = MargatiClient(MargatiClientConfig.from_settings(get_settings()))
        async for chunk in client.stream_profile_question("Start", []):
            ...
        response, raw = await client.generate_microtasks(request)
    """

    def __init__(
        self,
        config: MargatiClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if config is None:
            config = MargatiClientConfig.from_settings(get_settings())
        if config.base_url and not config.base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"Backend URL must start with http:// or https://, got {config.base_url!r}"
            )
        self.config = config
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self.config.base_url.rstrip("/") or DEFAULT_API_BASE

    def api_url(self, path: str) -> str:
        """Absolute URL for an API path, with or without a leading slash."""
        path = path if path.startswith("/") else f"/{path}"
        return f"{self.base_url}{path}"

    def _headers(self) -> dict[str, str]:
        if not self.config.api_token:
            return {}
        return {"Authorization": f"Bearer {self.config.api_token}"}

    def _client(self, timeout: httpx.Timeout) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def stream_profile_question(
        self,
        input_text: str,
        context: list[ContextEntry],
    ) -> AsyncGenerator[bytes, None]:
        """Stream the next questionnaire question as raw byte fragments.

        Raises:
            TransportError: If no stream can be opened or reading it fails.
        """
        payload = {
            "input_text": input_text,
            "context": [entry.model_dump() for entry in context],
        }
        url = self.api_url(QUESTIONNAIRE_PATH)

        try:
            async with self._client(
                httpx.Timeout(self.config.stream_timeout, connect=self.config.connect_timeout)
            ) as client:
                async with client.stream("POST", url, json=payload, headers=self._headers()) as response:
                    response.raise_for_status()
                    async for chunk in response.aiter_bytes():
                        yield chunk
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"Questionnaire request failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Questionnaire stream timeout after {self.config.stream_timeout}s: {e}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"Questionnaire stream failed: {type(e).__name__}: {e}") from e

    async def generate_microtasks(
        self,
        request: MicrotaskRequest,
    ) -> tuple[MicrotasksApiResponse, dict[str, Any]]:
        """Generate a microtask breakdown for one assignment.

        Returns:
            The parsed response and the raw JSON body.

        Raises:
            ValidationError: If the request has neither description nor file.
            MicrotaskGenerationError: If the backend rejects the request.
            TransportError: On connection failures and timeouts.
        """
        request.validate_content()
        url = self.api_url(SINGLE_ASSIGNMENT_PATH)

        try:
            async with self._client(httpx.Timeout(self.config.timeout)) as client:
                response = await client.post(url, json=request.to_payload(), headers=self._headers())
        except httpx.TimeoutException as e:
            raise TransportError(f"Timeout after {self.config.timeout}s: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Microtask request failed: {type(e).__name__}: {e}") from e

        if not response.is_success:
            raise MicrotaskGenerationError(
                _error_message(response),
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise MicrotaskGenerationError(f"Invalid JSON response: {e}") from e
        if not isinstance(body, dict):
            raise MicrotaskGenerationError("Unexpected response shape: expected a JSON object")

        logger.info(
            "Generated microtasks for %s (request_id=%s)",
            request.assignment_id,
            body.get("request_id"),
        )
        try:
            parsed = MicrotasksApiResponse.model_validate(body)
        except SchemaValidationError as e:
            raise MicrotaskGenerationError(f"Unexpected response shape: {e.error_count()} errors") from e
        return parsed, body


def _error_message(response: httpx.Response) -> str:
    """Prefer the backend's ``detail`` or ``message`` over the bare status."""
    fallback = f"Request failed with status {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict):
        return fallback
    message = body.get("detail") or body.get("message")
    if not message:
        return fallback
    if isinstance(message, str):
        return message
    return json.dumps(message)


__all__ = [
    "QUESTIONNAIRE_PATH",
    "SINGLE_ASSIGNMENT_PATH",
    "MargatiClient",
    "MargatiClientConfig",
]
