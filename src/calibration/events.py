"""Event types for the calibration questionnaire stream.

Each framed ``data:`` record of the questionnaire stream decodes into
exactly one of these events. The union is closed and discriminated by
``type``; payloads with a type this module does not know decode into
``UnrecognizedEvent`` so newer backends do not break older clients.
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, get_args

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

logger = logging.getLogger(__name__)

EfCapacity = Literal["high", "moderate", "low"]
ProcessingStyle = Literal["standard", "high_friction", "literal"]
CoachTone = Literal["challenger", "reassuring", "objective"]
MetacognitionStyle = Literal["planner", "adjuster", "anti_planner"]

METRIC_VALUES: dict[str, tuple[str, ...]] = {
    "ef_capacity": get_args(EfCapacity),
    "processing_style": get_args(ProcessingStyle),
    "coach_tone": get_args(CoachTone),
    "metacognition_style": get_args(MetacognitionStyle),
}


class NeuroMetrics(BaseModel):
    """Calibrated study profile produced when the questionnaire finalizes.

    Values outside the known enumerations are kept as sent and logged, so a
    newer backend vocabulary still finalizes the dialogue.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    ef_capacity: str
    processing_style: str
    coach_tone: str
    metacognition_style: str

    @field_validator(*METRIC_VALUES)
    @classmethod
    def _note_unknown_value(cls, value: str, info: ValidationInfo) -> str:
        if value not in METRIC_VALUES[info.field_name]:
            logger.warning("Unrecognized %s value %r", info.field_name, value)
        return value

    def summary(self) -> str:
        """Human-readable profile, as shown when the dialogue ends."""
        return (
            "Got it, here is your calibrated study profile:\n\n"
            f"EF Capacity: {self.ef_capacity}\n"
            f"Processing Style: {self.processing_style}\n"
            f"Coach Tone: {self.coach_tone}\n"
            f"Metacognition: {self.metacognition_style}"
        )


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class TextEvent(_Event):
    """A text delta of the assistant's current question."""

    type: Literal["text"] = "text"
    content: str = ""


class MetricsFinalizedEvent(_Event):
    """Terminal event carrying the calibrated metrics.

    Any record of this type finalizes. ``result`` is the payload as sent
    (``result`` or ``metrics`` key); ``metrics`` is ``None`` when it does
    not describe a complete profile.
    """

    type: Literal["neuro_metrics_finalized"] = "neuro_metrics_finalized"
    result: Any = None
    metrics: NeuroMetrics | None = None

    @model_validator(mode="before")
    @classmethod
    def _read_result(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        result = data.get("result", data.get("metrics"))
        if isinstance(result, NeuroMetrics):
            return {**data, "result": result.model_dump(), "metrics": result}
        try:
            metrics = NeuroMetrics.model_validate(result)
        except ValidationError as e:
            logger.warning("Finalized profile is incomplete (%d errors): %r", e.error_count(), result)
            metrics = None
        return {**data, "result": result, "metrics": metrics}


class ErrorEvent(_Event):
    """Backend-reported error. Non-fatal for the stream."""

    type: Literal["error"] = "error"
    detail: Any = Field(
        default=None,
        validation_alias=AliasChoices("detail", "message", "error", "content"),
    )


class EndEvent(_Event):
    """End of the current turn."""

    type: Literal["end"] = "end"


class UnrecognizedEvent(_Event):
    """A well-formed record whose ``type`` is not known to this client."""

    type: Literal["unrecognized"] = "unrecognized"
    event_type: str | None = None
    payload: dict[str, Any] = Field(default_factory=dict)


StreamEvent = TextEvent | MetricsFinalizedEvent | ErrorEvent | EndEvent | UnrecognizedEvent

KNOWN_EVENT_TYPES = frozenset({"text", "neuro_metrics_finalized", "error", "end"})

_payload_adapter: TypeAdapter[TextEvent | MetricsFinalizedEvent | ErrorEvent | EndEvent] = (
    TypeAdapter(
        Annotated[
            TextEvent | MetricsFinalizedEvent | ErrorEvent | EndEvent,
            Field(discriminator="type"),
        ]
    )
)


def parse_event(payload: dict[str, Any]) -> StreamEvent:
    """Decode one JSON payload into a typed event.

    Raises:
        pydantic.ValidationError: If a known event type has an invalid body
            (for example a text record whose content is not a string).
    """
    event_type = payload.get("type")
    if event_type not in KNOWN_EVENT_TYPES:
        return UnrecognizedEvent(
            event_type=event_type if isinstance(event_type, str) else None,
            payload=payload,
        )
    return _payload_adapter.validate_python(payload)


__all__ = [
    "KNOWN_EVENT_TYPES",
    "METRIC_VALUES",
    "EndEvent",
    "ErrorEvent",
    "MetricsFinalizedEvent",
    "NeuroMetrics",
    "StreamEvent",
    "TextEvent",
    "UnrecognizedEvent",
    "parse_event",
]
