"""Schemas for the agent backend side of the bridge (REST request + SSE events)."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ToolSpec(_CamelModel):
    """A frontend action exposed to the agent as a callable tool."""

    name: str
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)  # JSON schema


class AgentMessage(_CamelModel):
    """Flattened conversation entry. Tool calls and tool results both use role "tool"."""

    id: str
    role: str
    content: str = ""
    tool_call_id: str | None = None
    parent_message_id: str | None = None


class ContextEntry(_CamelModel):
    description: str
    value: str


class AgentRequest(_CamelModel):
    """Body POSTed to ``{agent_base_url}/agent``."""

    thread_id: str
    run_id: str
    state: dict[str, Any] = Field(default_factory=dict)
    messages: list[AgentMessage] = Field(default_factory=list)
    tools: list[ToolSpec] = Field(default_factory=list)
    context: list[ContextEntry] = Field(default_factory=list)
    forwarded_props: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys; optional message fields are omitted when unset."""
        payload = self.model_dump(mode="json", by_alias=True, exclude={"messages"})
        payload["messages"] = [
            m.model_dump(mode="json", by_alias=True, exclude_none=True) for m in self.messages
        ]
        return payload


class StreamEventType(StrEnum):
    """Event types the bridge folds into messages. Anything else is ignored."""

    TEXT_MESSAGE_START = "TEXT_MESSAGE_START"
    TEXT_MESSAGE_CONTENT = "TEXT_MESSAGE_CONTENT"
    TEXT_MESSAGE_END = "TEXT_MESSAGE_END"
    TOOL_CALL_START = "TOOL_CALL_START"
    TOOL_CALL_ARGS = "TOOL_CALL_ARGS"
    TOOL_CALL_END = "TOOL_CALL_END"
