"""GraphQL response shapes expected by the CopilotKit client."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class CopilotOperation(StrEnum):
    """GraphQL operations the bridge answers itself."""

    AVAILABLE_AGENTS = "availableAgents"
    LOAD_AGENT_STATE = "loadAgentState"
    GENERATE_COPILOT_RESPONSE = "generateCopilotResponse"


class _GraphQLModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_graphql(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SuccessMessageStatus(_GraphQLModel):
    typename: Literal["SuccessMessageStatus"] = Field("SuccessMessageStatus", alias="__typename")
    code: str = "OK"


class BaseResponseStatus(_GraphQLModel):
    typename: Literal["BaseResponseStatus"] = Field("BaseResponseStatus", alias="__typename")
    code: str = "OK"


class TextMessageOutput(_GraphQLModel):
    typename: Literal["TextMessageOutput"] = Field("TextMessageOutput", alias="__typename")
    id: str
    created_at: datetime = Field(alias="createdAt")
    role: str
    parent_message_id: str | None = Field(None, alias="parentMessageId")
    content: list[str]
    status: SuccessMessageStatus = Field(default_factory=SuccessMessageStatus)


class ActionExecutionMessageOutput(_GraphQLModel):
    typename: Literal["ActionExecutionMessageOutput"] = Field(
        "ActionExecutionMessageOutput", alias="__typename"
    )
    id: str
    created_at: datetime = Field(alias="createdAt")
    name: str
    arguments: list[str]
    parent_message_id: str | None = Field(None, alias="parentMessageId")
    status: SuccessMessageStatus = Field(default_factory=SuccessMessageStatus)


class CopilotResponse(_GraphQLModel):
    """Payload placed under ``data.generateCopilotResponse``."""

    thread_id: str = Field(alias="threadId")
    run_id: str = Field(alias="runId")
    extensions: dict[str, Any] | None = None
    status: BaseResponseStatus = Field(default_factory=BaseResponseStatus)
    messages: list[TextMessageOutput | ActionExecutionMessageOutput] = Field(default_factory=list)
    meta_events: list[dict[str, Any]] = Field(default_factory=list, alias="metaEvents")


class LoadAgentStateResponse(_GraphQLModel):
    thread_id: str = Field("", alias="threadId")
    agent_name: str = Field("", alias="agentName")
    messages: str = "[]"  # JSON-encoded list; the bridge persists nothing


class AvailableAgentsResponse(_GraphQLModel):
    agents: list[dict[str, Any]] = Field(default_factory=list)
