"""Fold agent stream events into complete text messages and tool calls.

One pass, in arrival order. Each entity is opened by exactly one START event,
grows through CONTENT/ARGS deltas and is closed by at most one END event.
Events for ids that were never started, and event types we do not know, are
ignored rather than treated as errors.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterable, Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

from copilot_bridge.schemas.agent import StreamEventType
from copilot_bridge.utils.ids import IdFactory, new_id

logger = logging.getLogger(__name__)

DEFAULT_TEXT_ROLE = "assistant"
DEFAULT_TOOL_NAME = "tool_call"


def _str_or(value: Any, default: str | None = None) -> str | None:
    return value if isinstance(value, str) and value else default


def _entity_id(value: Any) -> str | None:
    """Ids key entities by value; non-string ids are matched by their text form."""
    if value is None or value == "":
        return None
    return value if isinstance(value, str) else str(value)


class MessageAccumulator(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    role: str
    parts: tuple[str, ...] = ()
    finished: bool = False

    @property
    def content(self) -> str:
        return "".join(self.parts)


class ToolCallAccumulator(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    parent_message_id: str | None = None
    parts: tuple[str, ...] = ()
    finished: bool = False

    @property
    def arguments(self) -> str:
        return "".join(self.parts)


class AggregationResult(BaseModel):
    """Immutable outcome of one fold, each tuple in creation order."""

    model_config = ConfigDict(frozen=True)

    text_messages: tuple[MessageAccumulator, ...] = ()
    tool_calls: tuple[ToolCallAccumulator, ...] = ()


class _Entry:
    """Mutable working copy, private to a single fold."""

    __slots__ = ("fields", "parts", "finished")

    def __init__(self, **fields: Any) -> None:
        self.fields = fields
        self.parts: list[str] = []
        self.finished = False


class _Fold:
    def __init__(self, id_factory: IdFactory) -> None:
        self._new_id = id_factory
        self._texts: dict[str, _Entry] = {}
        self._tools: dict[str, _Entry] = {}

    def apply(self, event: Any) -> None:
        if not isinstance(event, dict):
            logger.debug("Ignoring non-object stream event: %r", event)
            return

        try:
            kind = StreamEventType(event.get("type"))
        except ValueError:
            logger.debug("Ignoring unsupported stream event type %r", event.get("type"))
            return

        if kind is StreamEventType.TEXT_MESSAGE_START:
            self._start(
                self._texts,
                _entity_id(event.get("messageId")) or self._new_id(),
                role=_str_or(event.get("role"), DEFAULT_TEXT_ROLE),
            )
        elif kind is StreamEventType.TEXT_MESSAGE_CONTENT:
            self._delta(self._texts, event.get("messageId"), event.get("delta"))
        elif kind is StreamEventType.TEXT_MESSAGE_END:
            self._end(self._texts, event.get("messageId"))
        elif kind is StreamEventType.TOOL_CALL_START:
            self._start(
                self._tools,
                _entity_id(event.get("toolCallId")) or self._new_id(),
                name=_str_or(event.get("toolCallName"), DEFAULT_TOOL_NAME),
                parent_message_id=_str_or(event.get("parentMessageId")),
            )
        elif kind is StreamEventType.TOOL_CALL_ARGS:
            self._delta(self._tools, event.get("toolCallId"), event.get("delta"))
        elif kind is StreamEventType.TOOL_CALL_END:
            self._end(self._tools, event.get("toolCallId"))

    @staticmethod
    def _start(entries: dict[str, _Entry], entity_id: str, **fields: Any) -> None:
        if entity_id in entries:
            logger.debug("Ignoring repeated START for %s", entity_id)
            return
        entries[entity_id] = _Entry(id=entity_id, **fields)

    @staticmethod
    def _delta(entries: dict[str, _Entry], entity_id: Any, delta: Any) -> None:
        entry = entries.get(_entity_id(entity_id))
        if entry is None:
            logger.debug("Ignoring delta for unknown id %r", entity_id)
            return
        if entry.finished:
            logger.debug("Ignoring delta after END for %s", entity_id)
            return
        entry.parts.append(delta if isinstance(delta, str) else "")

    @staticmethod
    def _end(entries: dict[str, _Entry], entity_id: Any) -> None:
        entry = entries.get(_entity_id(entity_id))
        if entry is None:
            logger.debug("Ignoring END for unknown id %r", entity_id)
            return
        entry.finished = True

    def result(self) -> AggregationResult:
        return AggregationResult(
            text_messages=tuple(
                MessageAccumulator(**e.fields, parts=tuple(e.parts), finished=e.finished)
                for e in self._texts.values()
            ),
            tool_calls=tuple(
                ToolCallAccumulator(**e.fields, parts=tuple(e.parts), finished=e.finished)
                for e in self._tools.values()
            ),
        )


def aggregate(events: Iterable[Any], *, id_factory: IdFactory = new_id) -> AggregationResult:
    """Fold an already-collected event sequence."""
    fold = _Fold(id_factory)
    for event in events:
        fold.apply(event)
    return fold.result()


async def aggregate_stream(
    events: AsyncIterable[Any], *, id_factory: IdFactory = new_id
) -> AggregationResult:
    """Fold events as they arrive from the decoder."""
    fold = _Fold(id_factory)
    async for event in events:
        fold.apply(event)
    return fold.result()
