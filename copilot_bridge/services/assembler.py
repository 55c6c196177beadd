"""Build the ``generateCopilotResponse`` payload from aggregated stream entities."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone

from copilot_bridge.schemas.copilot import (
    ActionExecutionMessageOutput,
    CopilotResponse,
    TextMessageOutput,
)
from copilot_bridge.services.aggregator import AggregationResult

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def assemble_response(
    result: AggregationResult,
    thread_id: str,
    run_id: str,
    *,
    clock: Clock = utcnow,
) -> CopilotResponse:
    """Text messages first, then tool calls, each in the order they were started."""
    messages: list[TextMessageOutput | ActionExecutionMessageOutput] = [
        TextMessageOutput(
            id=text.id,
            created_at=clock(),
            role=text.role,
            content=[text.content],
        )
        for text in result.text_messages
    ]
    messages.extend(
        ActionExecutionMessageOutput(
            id=call.id,
            created_at=clock(),
            name=call.name,
            arguments=[call.arguments],
            parent_message_id=call.parent_message_id,
        )
        for call in result.tool_calls
    )
    return CopilotResponse(thread_id=thread_id, run_id=run_id, messages=messages)
