"""Translate CopilotKit GraphQL variables into the agent backend request schema.

The inbound payload comes straight from the client, so everything here reads
raw dicts defensively: anything of the wrong shape is skipped, never raised.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from copilot_bridge.schemas.agent import AgentMessage, AgentRequest, ContextEntry, ToolSpec
from copilot_bridge.schemas.copilot import AvailableAgentsResponse, LoadAgentStateResponse
from copilot_bridge.utils.ids import IdFactory, new_id

logger = logging.getLogger(__name__)

TOOL_ROLE = "tool"
DEFAULT_INBOUND_ROLE = "user"

# frontend field → context description
_CONTEXT_FIELDS = (
    ("url", "Request origin"),
    ("toDeprecate_fullContext", "Form context"),
)


# ── Stub operations ─────────────────────────────────────────────────


def available_agents() -> AvailableAgentsResponse:
    """The bridge fronts exactly one agent, so there is nothing to pick from."""
    return AvailableAgentsResponse()


def load_agent_state(variables: Any) -> LoadAgentStateResponse:
    data = variables.get("data") if isinstance(variables, dict) else None
    if not isinstance(data, dict):
        data = {}
    return LoadAgentStateResponse(
        thread_id=_as_str(data.get("threadId")),
        agent_name=_as_str(data.get("agentName")),
    )


# ── generateCopilotResponse ─────────────────────────────────────────


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _json_text(value: Any) -> str:
    """Strings pass through; anything else is JSON-encoded (missing → ``{}``)."""
    if isinstance(value, str):
        return value
    return json.dumps(value if value is not None else {})


def resolve_identifier(value: Any, id_factory: IdFactory = new_id) -> str:
    """Use a client-supplied non-empty string id, otherwise mint a fresh one."""
    if isinstance(value, str) and value:
        return value
    return id_factory()


def parse_tool_parameters(schema: Any) -> dict[str, Any]:
    """Turn an action's ``jsonSchema`` (object or JSON string) into a parameters dict."""
    if isinstance(schema, dict):
        return schema
    if isinstance(schema, str):
        try:
            parsed = json.loads(schema)
        except (ValueError, RecursionError) as exc:
            logger.warning("Failed to parse action jsonSchema: %s", exc)
            return {}
        if isinstance(parsed, dict):
            return parsed
        logger.warning("Action jsonSchema is not a JSON object (got %s)", type(parsed).__name__)
    return {}


def build_tools(actions: Any) -> list[ToolSpec]:
    if not isinstance(actions, list):
        return []

    tools: list[ToolSpec] = []
    for action in actions:
        if not isinstance(action, dict):
            continue
        name = action.get("name")
        if not isinstance(name, str) or not name:
            logger.debug("Dropping frontend action without a name")
            continue
        tools.append(
            ToolSpec(
                name=name,
                description=_as_str(action.get("description")),
                parameters=parse_tool_parameters(action.get("jsonSchema")),
            )
        )
    return tools


def _normalize_role(role: Any) -> str:
    if not isinstance(role, str):
        return DEFAULT_INBOUND_ROLE
    return role.lower()


def build_messages(messages: Any, id_factory: IdFactory = new_id) -> list[AgentMessage]:
    """Flatten the GraphQL message union, keeping conversation order.

    Entries carrying none of ``textMessage``, ``actionExecutionMessage`` or
    ``resultMessage`` are skipped.
    """
    if not isinstance(messages, list):
        return []

    result: list[AgentMessage] = []
    for entry in messages:
        if not isinstance(entry, dict):
            continue

        entry_id = resolve_identifier(entry.get("id"), id_factory)

        text = entry.get("textMessage")
        if isinstance(text, dict):
            parent = text.get("parentMessageId")
            result.append(
                AgentMessage(
                    id=entry_id,
                    role=_normalize_role(text.get("role")),
                    content=_as_str(text.get("content")),
                    parent_message_id=parent if isinstance(parent, str) else None,
                )
            )
            continue

        action = entry.get("actionExecutionMessage")
        if isinstance(action, dict):
            result.append(
                AgentMessage(
                    id=entry_id,
                    role=TOOL_ROLE,
                    content=_json_text(action.get("arguments")),
                    tool_call_id=_as_str(action.get("parentMessageId")) or entry_id,
                )
            )
            continue

        outcome = entry.get("resultMessage")
        if isinstance(outcome, dict):
            result.append(
                AgentMessage(
                    id=entry_id,
                    role=TOOL_ROLE,
                    content=_json_text(outcome.get("result")),
                    tool_call_id=_as_str(outcome.get("actionExecutionId")) or entry_id,
                )
            )
            continue

        logger.debug("Skipping message %s with no recognised variant", entry_id)

    return result


def build_context(frontend: Any) -> list[ContextEntry]:
    if not isinstance(frontend, dict):
        return []
    return [
        ContextEntry(description=description, value=frontend[field])
        for field, description in _CONTEXT_FIELDS
        if isinstance(frontend.get(field), str) and frontend[field]
    ]


def build_state(agent_states: Any) -> dict[str, Any]:
    if not isinstance(agent_states, list) or not agent_states:
        return {}
    return {"agentStates": agent_states}


def build_forwarded_props(forwarded_parameters: Any, properties: Any) -> dict[str, Any]:
    props: dict[str, Any] = {}
    if isinstance(forwarded_parameters, dict):
        props["forwardedParameters"] = forwarded_parameters
    if isinstance(properties, dict):
        props["properties"] = properties
    return props


def build_agent_request(
    data: dict[str, Any],
    properties: Any = None,
    *,
    id_factory: IdFactory = new_id,
) -> AgentRequest:
    """Translate ``variables.data`` (+ ``variables.properties``) into an ``AgentRequest``."""
    frontend = data.get("frontend")
    actions = frontend.get("actions") if isinstance(frontend, dict) else None

    return AgentRequest(
        thread_id=resolve_identifier(data.get("threadId"), id_factory),
        run_id=resolve_identifier(data.get("runId"), id_factory),
        state=build_state(data.get("agentStates")),
        messages=build_messages(data.get("messages"), id_factory),
        tools=build_tools(actions),
        context=build_context(frontend),
        forwarded_props=build_forwarded_props(data.get("forwardedParameters"), properties),
    )
