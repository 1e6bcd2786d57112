"""Margati exception hierarchy.

Base exceptions for all application layers with correlation ID support.

Usage:
    from src.exceptions import TransportError

    try:
        async for chunk in client.stream_profile_question(text, context):
            ...
    except TransportError as e:
        logger.error("Stream failed (%s): %s", e.correlation_id, e)
"""

import uuid


class MargatiError(Exception):
    """Base exception for all Margati application errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class TransportError(MargatiError):
    """The generation backend could not deliver a stream or response.

    Raised by the client for connection failures, timeouts and non-2xx
    statuses, with the HTTP status when one was received.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        correlation_id: str | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, correlation_id=correlation_id)


class MicrotaskGenerationError(TransportError):
    """The backend rejected a microtask generation request."""

    pass


class ValidationError(MargatiError):
    """Errors from input validation (beyond Pydantic)."""

    pass


class ConfigurationError(MargatiError):
    """Errors from application configuration."""

    pass
