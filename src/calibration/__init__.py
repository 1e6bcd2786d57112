"""Calibration dialogue: stream decoding, option extraction and turn state.

Provides the components behind the neuro-profile questionnaire:

- StreamDecoder turns the backend's framed event stream into typed events.
- extract_options splits a question into its stem and lettered options.
- DialogueEngine runs the turn state machine over both.
"""

from src.calibration.decoder import StreamDecoder
from src.calibration.engine import (
    FAILURE_MESSAGE,
    START_PROMPT,
    DialogueEngine,
    DialogueListener,
    QuestionTransport,
)
from src.calibration.events import (
    EndEvent,
    ErrorEvent,
    MetricsFinalizedEvent,
    NeuroMetrics,
    StreamEvent,
    TextEvent,
    UnrecognizedEvent,
    parse_event,
)
from src.calibration.options import MCQOption, ParsedQuestion, extract_options
from src.calibration.state import ChatMessage, ContextEntry, ConversationState, DialogueStatus

__all__ = [
    "FAILURE_MESSAGE",
    "START_PROMPT",
    "ChatMessage",
    "ContextEntry",
    "ConversationState",
    "DialogueEngine",
    "DialogueListener",
    "DialogueStatus",
    "EndEvent",
    "ErrorEvent",
    "MCQOption",
    "MetricsFinalizedEvent",
    "NeuroMetrics",
    "ParsedQuestion",
    "QuestionTransport",
    "StreamDecoder",
    "StreamEvent",
    "TextEvent",
    "UnrecognizedEvent",
    "extract_options",
    "parse_event",
]
