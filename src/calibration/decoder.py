"""Incremental decoder for the questionnaire event stream.

The backend frames each event as a ``data: {json}`` record terminated by a
blank line. Fragments may split records anywhere, including inside a
multi-byte character or between the two newlines of the delimiter, so the
decoder keeps both a text buffer and a stateful UTF-8 decoder across calls.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from src.calibration.events import (
    EndEvent,
    ErrorEvent,
    MetricsFinalizedEvent,
    StreamEvent,
    TextEvent,
    UnrecognizedEvent,
    parse_event,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterable

logger = logging.getLogger(__name__)

RECORD_DELIMITER = "\n\n"
DATA_MARKER = "data:"


class StreamDecoder:
    """Turn raw byte/text fragments into typed stream events.

    One decoder handles one stream. After a ``MetricsFinalizedEvent`` or an
    ``EndEvent`` the decoder is ``done`` and ignores further input.

    Usage::

        decoder = StreamDecoder()
        async for event in decoder.decode(response_chunks):
            ...
        if decoder.finalized:
            ...
    """

    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.finalized = False
        self.done = False

    def feed(self, fragment: bytes | str) -> list[StreamEvent]:
        """Append a fragment and return the events it completes."""
        if self.done:
            return []
        if isinstance(fragment, bytes):
            self._buffer += self._utf8.decode(fragment)
        else:
            self._buffer += fragment
        return self._drain()

    def close(self) -> list[StreamEvent]:
        """Signal the end of input.

        Flushes the UTF-8 decoder and emits any remaining complete records.
        An unterminated trailing record is discarded.
        """
        if self.done:
            return []
        self._buffer += self._utf8.decode(b"", final=True)
        events = self._drain()
        if self._buffer.strip():
            logger.debug("Discarding unterminated stream record: %s", self._buffer[:200])
        self._buffer = ""
        self.done = True
        return events

    async def decode(
        self,
        source: AsyncIterable[bytes | str],
    ) -> AsyncGenerator[StreamEvent, None]:
        """Decode an async fragment source lazily.

        Stops reading the source as soon as the stream finalizes or ends,
        and closes the source when it supports ``aclose``.
        """
        try:
            async for fragment in source:
                for event in self.feed(fragment):
                    yield event
                if self.done:
                    return
            for event in self.close():
                yield event
        finally:
            aclose = getattr(source, "aclose", None)
            if aclose is not None:
                await aclose()

    def _drain(self) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        while not self.done:
            sep_index = self._buffer.find(RECORD_DELIMITER)
            if sep_index == -1:
                break
            raw_record = self._buffer[:sep_index].strip()
            self._buffer = self._buffer[sep_index + len(RECORD_DELIMITER) :]

            event = self._decode_record(raw_record)
            if event is None:
                continue
            events.append(event)

            if isinstance(event, MetricsFinalizedEvent):
                self.finalized = True
                self.done = True
            elif isinstance(event, EndEvent):
                self.done = True
        return events

    def _decode_record(self, raw_record: str) -> StreamEvent | None:
        if not raw_record.startswith(DATA_MARKER):
            return None
        json_str = raw_record[len(DATA_MARKER) :].lstrip()

        try:
            payload = json.loads(json_str)
        except json.JSONDecodeError:
            logger.warning("Failed to parse stream record: %s", raw_record[:200])
            return None
        if not isinstance(payload, dict):
            logger.warning("Stream record is not an object: %s", raw_record[:200])
            return None

        try:
            event = parse_event(payload)
        except ValidationError as e:
            logger.warning(
                "Discarding malformed '%s' record (%d errors): %s",
                payload.get("type"),
                e.error_count(),
                raw_record[:200],
            )
            return None

        if isinstance(event, TextEvent):
            if not event.content or self.finalized:
                return None
        elif isinstance(event, ErrorEvent):
            logger.error("Profile questionnaire error: %s", event.detail)
        elif isinstance(event, UnrecognizedEvent):
            logger.debug("Ignoring unrecognized stream event type %r", event.event_type)
        return event


__all__ = ["DATA_MARKER", "RECORD_DELIMITER", "StreamDecoder"]
