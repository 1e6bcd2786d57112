"""Conversation state for the calibration dialogue."""

from enum import StrEnum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from src.calibration.events import NeuroMetrics
from src.calibration.options import MCQOption


class DialogueStatus(StrEnum):
    """Macro-state of a calibration dialogue."""

    NOT_STARTED = "not_started"
    STREAMING = "streaming"
    AWAITING_ANSWER = "awaiting_answer"
    FINALIZED = "finalized"


class ContextEntry(BaseModel):
    """One answered question, as sent back to the backend."""

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str


class ChatMessage(BaseModel):
    """A transcript entry of the dialogue."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    role: Literal["user", "assistant", "system"]
    content: str = ""


class ConversationState(BaseModel):
    """Turn state owned by a single DialogueEngine.

    ``current_text`` is the raw text of the latest assistant turn and is
    the question recorded against the next answer. ``display_text`` is the
    same text with extracted options removed.
    """

    status: DialogueStatus = DialogueStatus.NOT_STARTED
    turn_index: int = 0
    finalized: bool = False
    streaming: bool = False
    current_text: str = ""
    display_text: str = ""
    options: list[MCQOption] = Field(default_factory=list)
    metrics: NeuroMetrics | None = None
