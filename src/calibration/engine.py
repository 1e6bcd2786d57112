"""Turn-based calibration dialogue engine.

Drives the neuro-profile questionnaire: each answer is sent together with
the conversation so far, the streamed reply is decoded into events, and
the finished question is split into selectable options. The dialogue ends
when the backend sends the finalized metrics.

Only one turn streams at a time. ``submit`` while a turn is streaming, or
after the dialogue finalized, is ignored.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from typing import TYPE_CHECKING, Protocol

from src.calibration.decoder import StreamDecoder
from src.calibration.events import MetricsFinalizedEvent, NeuroMetrics, TextEvent
from src.calibration.options import extract_options
from src.calibration.state import (
    ChatMessage,
    ContextEntry,
    ConversationState,
    DialogueStatus,
)
from src.exceptions import TransportError

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from src.calibration.options import MCQOption

logger = logging.getLogger(__name__)

START_PROMPT = "Start neuro profile calibration"
FAILURE_MESSAGE = "Something went wrong while talking to the questionnaire API."
INCOMPLETE_PROFILE_SUMMARY = "Got it, calibration is complete, but the profile sent back was incomplete."


class QuestionTransport(Protocol):
    """Network collaborator that opens a questionnaire stream."""

    def stream_profile_question(
        self,
        input_text: str,
        context: list[ContextEntry],
    ) -> AsyncIterator[bytes]: ...


class DialogueListener:
    """Receives display updates from a DialogueEngine.

    All hooks are no-ops; subclasses override what they render.
    """

    def on_text(self, text: str) -> None:
        """The current question text grew."""

    def on_options(self, stem: str, options: list[MCQOption]) -> None:
        """The finished question offers selectable options."""

    def on_finalized(self, metrics: NeuroMetrics | None, summary: str) -> None:
        """The dialogue ended. ``metrics`` is None for an incomplete profile."""

    def on_failure(self, message: str) -> None:
        """A turn was aborted because the backend could not be reached."""


class DialogueEngine:
    """Calibration dialogue state machine.

    Usage::

        engine = DialogueEngine(client, listener=my_listener)
        await engine.start()
        while not engine.state.finalized:
            await engine.submit(input("> "))
    """

    def __init__(
        self,
        transport: QuestionTransport,
        *,
        listener: DialogueListener | None = None,
        render_delay: float = 0.0,
    ) -> None:
        self._transport = transport
        self._listener = listener or DialogueListener()
        self._render_delay = render_delay
        self.state = ConversationState()
        self.context: list[ContextEntry] = []
        self.transcript: list[ChatMessage] = []

    async def start(self) -> None:
        """Request the first question without recording a user turn."""
        if self.state.status != DialogueStatus.NOT_STARTED or self.state.streaming:
            return
        await self._run_turn(START_PROMPT, list(self.context), count_turn=False)

    async def submit(self, answer: str) -> None:
        """Answer the current question and stream the next one."""
        if self.state.streaming or self.state.finalized:
            return
        answer = answer.strip()
        if not answer:
            return

        if self.state.current_text:
            self.context.append(ContextEntry(question=self.state.current_text, answer=answer))
        self.transcript.append(ChatMessage(role="user", content=answer))
        await self._run_turn(answer, list(self.context), count_turn=True)

    async def select_option(self, key: str) -> None:
        """Answer with the label of the option lettered ``key``."""
        for option in self.state.options:
            if option.key == key.upper():
                await self.submit(option.label)
                return

    async def _run_turn(
        self,
        input_text: str,
        context: list[ContextEntry],
        *,
        count_turn: bool,
    ) -> None:
        # Guard flags are set before the first await so a concurrent submit
        # sees the turn as in flight.
        previous_status = self.state.status
        self.state.streaming = True
        self.state.status = DialogueStatus.STREAMING
        self.state.options = []

        decoder = StreamDecoder()
        assistant: ChatMessage | None = None
        accumulated = ""

        try:
            stream = self._transport.stream_profile_question(input_text, context)
            async with aclosing(decoder.decode(stream)) as events:
                async for event in events:
                    if isinstance(event, TextEvent):
                        accumulated = f"{accumulated} {event.content}" if accumulated else event.content
                        if assistant is None:
                            assistant = ChatMessage(role="assistant")
                            self.transcript.append(assistant)
                        assistant.content = accumulated
                        self.state.current_text = accumulated
                        self.state.display_text = accumulated
                        self._listener.on_text(accumulated)
                        await asyncio.sleep(self._render_delay)
                    elif isinstance(event, MetricsFinalizedEvent):
                        self._finalize(event.metrics, count_turn=count_turn)
                        return
        except TransportError as e:
            logger.error("Questionnaire turn aborted (%s): %s", e.correlation_id, e)
            self.transcript.append(ChatMessage(role="system", content=FAILURE_MESSAGE))
            self._listener.on_failure(FAILURE_MESSAGE)
            return
        finally:
            self.state.streaming = False
            if self.state.status == DialogueStatus.STREAMING:
                self.state.status = previous_status

        self._complete_turn(accumulated, assistant, count_turn=count_turn)

    def _finalize(self, metrics: NeuroMetrics | None, *, count_turn: bool) -> None:
        summary = metrics.summary() if metrics is not None else INCOMPLETE_PROFILE_SUMMARY
        self.state.metrics = metrics
        self.state.finalized = True
        self.state.status = DialogueStatus.FINALIZED
        self.state.options = []
        if count_turn:
            self.state.turn_index += 1
        self.transcript.append(ChatMessage(role="assistant", content=summary))
        logger.info("Calibration finalized after %d turns", self.state.turn_index)
        self._listener.on_finalized(metrics, summary)

    def _complete_turn(
        self,
        text: str,
        assistant: ChatMessage | None,
        *,
        count_turn: bool,
    ) -> None:
        self.state.status = DialogueStatus.AWAITING_ANSWER
        if count_turn:
            self.state.turn_index += 1
        if not text:
            return

        parsed = extract_options(text)
        if not parsed.options:
            return
        display = parsed.stem or text
        self.state.options = parsed.options
        self.state.display_text = display
        if assistant is not None:
            assistant.content = display
        self._listener.on_options(display, parsed.options)


__all__ = [
    "FAILURE_MESSAGE",
    "INCOMPLETE_PROFILE_SUMMARY",
    "START_PROMPT",
    "DialogueEngine",
    "DialogueListener",
    "QuestionTransport",
]
