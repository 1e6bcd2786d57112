"""Questionnaire stream helpers for tests."""

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

from src.calibration.state import ContextEntry

METRICS = {
    "ef_capacity": "low",
    "processing_style": "high_friction",
    "coach_tone": "reassuring",
    "metacognition_style": "planner",
}


def sse(payload: dict[str, Any] | str) -> str:
    """Frame one payload as a ``data:`` record."""
    body = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {body}\n\n"


def text_event(content: str) -> str:
    return sse({"type": "text", "content": content})


def metrics_event(metrics: dict[str, str] | None = None) -> str:
    return sse({"type": "neuro_metrics_finalized", "result": metrics or METRICS})


def split_every(data: bytes, size: int) -> list[bytes]:
    """Cut ``data`` into fragments of ``size`` bytes."""
    return [data[i : i + size] for i in range(0, len(data), size)]


async def async_iter(items):
    for item in items:
        yield item


class ScriptedTransport:
    """Questionnaire transport that replays one scripted stream per call.

    Each script is a list of fragments (str or bytes), or an exception
    raised when the stream is opened. An ``asyncio.Event`` in a script
    holds the stream until the event is set.
    """

    def __init__(self, *scripts: list[str | bytes | asyncio.Event] | Exception) -> None:
        self.scripts = list(scripts)
        self.calls: list[tuple[str, list[ContextEntry]]] = []
        self.fragments_sent = 0
        self.closed = 0

    async def stream_profile_question(
        self,
        input_text: str,
        context: list[ContextEntry],
    ) -> AsyncIterator[bytes]:
        self.calls.append((input_text, list(context)))
        script = self.scripts.pop(0)
        try:
            if isinstance(script, Exception):
                raise script
            for fragment in script:
                if isinstance(fragment, asyncio.Event):
                    await fragment.wait()
                    continue
                self.fragments_sent += 1
                yield fragment.encode("utf-8") if isinstance(fragment, str) else fragment
        finally:
            self.closed += 1
