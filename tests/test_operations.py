"""Operation routing tests."""

import pytest

from copilot_bridge.schemas.copilot import CopilotOperation
from copilot_bridge.services.operations import is_graphql_call, resolve_operation


@pytest.mark.parametrize(
    "method,content_type,body,expected",
    [
        ("POST", "application/json", {"query": "query { x }"}, True),
        ("post", "application/json; charset=utf-8", {"operationName": "loadAgentState"}, True),
        ("POST", None, {"query": "q"}, True),
        ("GET", "application/json", {"query": "q"}, False),
        ("POST", "text/plain", {"query": "q"}, False),
        ("POST", "application/json", ["query"], False),
        ("POST", "application/json", None, False),
        ("POST", "application/json", {"query": 1}, False),
        ("POST", "application/json", {"messages": []}, False),
    ],
)
def test_is_graphql_call(method, content_type, body, expected):
    assert is_graphql_call(method, content_type, body) is expected


def test_operation_name_wins_over_query_text():
    body = {"operationName": "loadAgentState", "query": "mutation generateCopilotResponse { }"}
    assert resolve_operation(body) is CopilotOperation.LOAD_AGENT_STATE


@pytest.mark.parametrize(
    "query,expected",
    [
        ("query availableAgents { availableAgents { agents { id } } }", CopilotOperation.AVAILABLE_AGENTS),
        ("query loadAgentState($data: LoadAgentStateInput!) { ... }", CopilotOperation.LOAD_AGENT_STATE),
        ("mutation generateCopilotResponse($data: X!) { ... }", CopilotOperation.GENERATE_COPILOT_RESPONSE),
    ],
)
def test_query_text_fallback(query, expected):
    assert resolve_operation({"operationName": None, "query": query}) is expected


def test_unknown_operation_resolves_to_none():
    assert resolve_operation({"operationName": "someUnknownOp", "query": "query someUnknownOp { x }"}) is None
    assert resolve_operation({"operationName": "someUnknownOp"}) is None
