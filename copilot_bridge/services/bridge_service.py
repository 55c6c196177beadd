"""Bridge service: answer the three CopilotKit operations against the agent backend."""

from __future__ import annotations

import logging
from typing import Any

from copilot_bridge.adapters.base import AgentBackendAdapter
from copilot_bridge.errors import InvalidRequestError
from copilot_bridge.schemas.copilot import CopilotOperation
from copilot_bridge.services import translator
from copilot_bridge.services.aggregator import aggregate_stream
from copilot_bridge.services.assembler import Clock, assemble_response, utcnow
from copilot_bridge.services.sse_decoder import iter_sse_events
from copilot_bridge.utils.ids import IdFactory, new_id

logger = logging.getLogger(__name__)


def answer_without_backend(operation: CopilotOperation, variables: Any) -> dict[str, Any]:
    """``availableAgents`` / ``loadAgentState``: static or echoed, no backend call."""
    if operation is CopilotOperation.AVAILABLE_AGENTS:
        payload = translator.available_agents()
    elif operation is CopilotOperation.LOAD_AGENT_STATE:
        payload = translator.load_agent_state(variables)
    else:
        raise ValueError(f"{operation} needs the agent backend")
    return {"data": {operation.value: payload.to_graphql()}}


async def generate_copilot_response(
    variables: Any,
    adapter: AgentBackendAdapter,
    *,
    id_factory: IdFactory = new_id,
    clock: Clock = utcnow,
) -> dict[str, Any]:
    """Run one agent turn and return the GraphQL ``generateCopilotResponse`` payload.

    Translate the request, stream the run, decode SSE frames, fold events into
    messages and assemble the response. Backend failures propagate as
    ``BridgeError`` subclasses; malformed frames are dropped along the way.
    """
    data = variables.get("data") if isinstance(variables, dict) else None
    if not isinstance(data, dict):
        raise InvalidRequestError("Invalid Copilot request payload")

    agent_request = translator.build_agent_request(
        data, variables.get("properties"), id_factory=id_factory
    )

    events = iter_sse_events(adapter.stream_run(agent_request))
    result = await aggregate_stream(events, id_factory=id_factory)

    unfinished = sum(not m.finished for m in result.text_messages) + sum(
        not c.finished for c in result.tool_calls
    )
    if unfinished:
        logger.warning("Run %s ended with %d unfinished messages", agent_request.run_id, unfinished)
    logger.info(
        "Run %s complete: %d text messages, %d tool calls",
        agent_request.run_id, len(result.text_messages), len(result.tool_calls),
    )

    response = assemble_response(
        result, agent_request.thread_id, agent_request.run_id, clock=clock
    )
    return {"data": {CopilotOperation.GENERATE_COPILOT_RESPONSE.value: response.to_graphql()}}
