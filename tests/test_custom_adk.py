"""End-to-end tests for the custom ADK GraphQL bridge."""

import asyncio
import json

import httpx
import pytest
from httpx import AsyncClient

from copilot_bridge.routers import custom_adk
from stream_helpers import chunked, sse_body, text_events, tool_events

ENDPOINT = "/api/custom-adk"
GENERATE_QUERY = "mutation generateCopilotResponse($data: GenerateCopilotResponseInput!) { ... }"


def _generate(data, **extra):
    return {
        "operationName": "generateCopilotResponse",
        "query": GENERATE_QUERY,
        "variables": {"data": data, **extra},
    }


def _stream(*events, chunk_size=None):
    body = sse_body(*events) + b"data: [DONE]\n\n"
    content = chunked(body, chunk_size) if chunk_size else body
    return lambda request: httpx.Response(
        200, headers={"content-type": "text/event-stream"}, content=content
    )


# ── generateCopilotResponse ──────────────────────────────────────────


@pytest.mark.asyncio
async def test_generate_copilot_response(client: AsyncClient, upstream):
    upstream.handler = _stream(*text_events("r1", "Hi", " there"))
    payload = _generate(
        {"threadId": "t1", "messages": [{"id": "m1", "textMessage": {"role": "user", "content": "hello"}}]}
    )

    resp = await client.post(ENDPOINT, json=payload)

    assert resp.status_code == 200
    gql = resp.json()["data"]["generateCopilotResponse"]
    assert gql["threadId"] == "t1"
    assert gql["runId"]
    assert gql["status"] == {"__typename": "BaseResponseStatus", "code": "OK"}
    assert len(gql["messages"]) == 1
    assert gql["messages"][0]["id"] == "r1"
    assert gql["messages"][0]["content"] == ["Hi there"]
    assert gql["messages"][0]["role"] == "assistant"

    assert len(upstream.requests) == 1
    sent = upstream.requests[0]
    assert sent.method == "POST"
    assert sent.url.path == "/agent"
    body = json.loads(sent.content)
    assert body["threadId"] == "t1"
    assert body["runId"] == gql["runId"]
    assert body["messages"] == [{"id": "m1", "role": "user", "content": "hello"}]
    assert body["tools"] == [] and body["context"] == [] and body["state"] == {}


@pytest.mark.asyncio
async def test_generate_with_tool_call_and_chunked_stream(client: AsyncClient, upstream):
    upstream.handler = _stream(
        *text_events("r1", "Let me ", "check."),
        *tool_events("tc1", "lookupParcel", '{"apn": ', '"12-34"}', parent="r1"),
        {"type": "RUN_FINISHED"},
        chunk_size=5,
    )
    payload = _generate(
        {
            "threadId": "t1",
            "runId": "run-7",
            "frontend": {"actions": [{"name": "lookupParcel", "jsonSchema": '{"type": "object"}'}]},
        }
    )

    resp = await client.post(ENDPOINT, json=payload)

    assert resp.status_code == 200
    gql = resp.json()["data"]["generateCopilotResponse"]
    assert gql["runId"] == "run-7"
    text, call = gql["messages"]
    assert text["content"] == ["Let me check."]
    assert call["__typename"] == "ActionExecutionMessageOutput"
    assert call["name"] == "lookupParcel"
    assert call["arguments"] == ['{"apn": "12-34"}']
    assert call["parentMessageId"] == "r1"
    assert upstream.json_bodies()[0]["tools"] == [
        {"name": "lookupParcel", "description": "", "parameters": {"type": "object"}}
    ]


@pytest.mark.asyncio
async def test_malformed_frame_does_not_fail_response(client: AsyncClient, upstream):
    body = sse_body(text_events("r1", "a")[0]) + b"data: {oops\n\n" + sse_body(*text_events("r1", "b")[1:])
    upstream.handler = lambda request: httpx.Response(200, content=body)

    resp = await client.post(ENDPOINT, json=_generate({"threadId": "t1"}))

    assert resp.status_code == 200
    assert resp.json()["data"]["generateCopilotResponse"]["messages"][0]["content"] == ["b"]


@pytest.mark.asyncio
async def test_query_text_alone_selects_generate(client: AsyncClient, upstream):
    upstream.handler = _stream(*text_events("r1", "ok"))
    payload = {"query": GENERATE_QUERY, "variables": {"data": {"threadId": "t2"}}}

    resp = await client.post(ENDPOINT + "/", json=payload)

    assert resp.status_code == 200
    assert resp.json()["data"]["generateCopilotResponse"]["threadId"] == "t2"


@pytest.mark.asyncio
async def test_operation_name_without_query_selects_generate(client: AsyncClient, upstream):
    upstream.handler = _stream(*text_events("r1", "Hi", " there"))
    payload = {
        "operationName": "generateCopilotResponse",
        "variables": {
            "data": {"threadId": "t1", "messages": [{"id": "m1", "textMessage": {"role": "user", "content": "hello"}}]}
        },
    }

    resp = await client.post(ENDPOINT, json=payload)

    assert resp.status_code == 200
    gql = resp.json()["data"]["generateCopilotResponse"]
    assert gql["threadId"] == "t1"
    assert gql["messages"][0]["content"] == ["Hi there"]
    assert len(upstream.requests) == 1


# ── Failures ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_backend_error_body_is_passed_through(client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(500, json={"error": "boom"})

    resp = await client.post(ENDPOINT, json=_generate({"threadId": "t1"}))

    assert resp.status_code == 500
    assert resp.json() == {"error": "boom"}


@pytest.mark.asyncio
async def test_backend_error_without_json_body(client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(503, text="<html>down</html>")

    resp = await client.post(ENDPOINT, json=_generate({"threadId": "t1"}))

    assert resp.status_code == 503
    assert resp.json() == {"error": "Custom ADK request failed", "status": 503}


@pytest.mark.asyncio
async def test_backend_error_body_beyond_parser_limits(client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(500, content=b'{"code": ' + b"1" * 5000 + b"}")

    resp = await client.post(ENDPOINT, json=_generate({"threadId": "t1"}))

    assert resp.status_code == 500
    assert resp.json() == {"error": "Custom ADK request failed", "status": 500}


@pytest.mark.asyncio
async def test_backend_unreachable(client: AsyncClient, upstream):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = refuse

    resp = await client.post(ENDPOINT, json=_generate({"threadId": "t1"}))

    assert resp.status_code == 502
    assert resp.json() == {"error": "Failed to process custom ADK response"}


@pytest.mark.asyncio
@pytest.mark.parametrize("variables", [None, {}, {"data": "nope"}, {"data": [1]}])
async def test_invalid_payload_is_rejected_without_backend_call(client: AsyncClient, upstream, variables):
    payload = {"operationName": "generateCopilotResponse", "query": GENERATE_QUERY, "variables": variables}

    resp = await client.post(ENDPOINT, json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid Copilot request payload"}
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_unknown_operation_is_rejected_without_backend_call(client: AsyncClient, upstream):
    resp = await client.post(
        ENDPOINT, json={"operationName": "someUnknownOp", "query": "query someUnknownOp { x }"}
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Unsupported custom ADK operation"}
    assert upstream.requests == []


# ── Stub operations ──────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_available_agents(client: AsyncClient, upstream):
    resp = await client.post(ENDPOINT, json={"operationName": "availableAgents", "query": "query availableAgents { }"})

    assert resp.status_code == 200
    assert resp.json() == {"data": {"availableAgents": {"agents": []}}}
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_load_agent_state(client: AsyncClient, upstream):
    payload = {
        "operationName": "loadAgentState",
        "query": "query loadAgentState { }",
        "variables": {"data": {"threadId": "t5", "agentName": "permits"}},
    }

    resp = await client.post(ENDPOINT, json=payload)

    assert resp.status_code == 200
    assert resp.json() == {
        "data": {"loadAgentState": {"threadId": "t5", "agentName": "permits", "messages": "[]"}}
    }
    assert upstream.requests == []


# ── Client disconnect ────────────────────────────────────────────────


class _GoneRequest:
    async def is_disconnected(self) -> bool:
        return True


class _ConnectedRequest:
    async def is_disconnected(self) -> bool:
        return False


@pytest.mark.asyncio
async def test_client_disconnect_cancels_upstream_work():
    cancelled = asyncio.Event()

    async def long_run():
        try:
            await asyncio.sleep(60)
        except asyncio.CancelledError:
            cancelled.set()
            raise

    resp = await custom_adk._run_unless_disconnected(_GoneRequest(), long_run())

    assert resp.status_code == 499
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_finished_work_returns_its_result():
    async def quick():
        return {"data": 1}

    assert await custom_adk._run_unless_disconnected(_ConnectedRequest(), quick()) == {"data": 1}


@pytest.mark.asyncio
async def test_unparseable_inbound_body_is_proxied(client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(200, json={"proxied": True})
    raw = b'{"operationName": "generateCopilotResponse", "n": ' + b"1" * 5000 + b"}"

    resp = await client.post(ENDPOINT, content=raw, headers={"content-type": "application/json"})

    assert resp.status_code == 200
    assert resp.json() == {"proxied": True}
    assert upstream.requests[0].url.path == "/agent"
    assert upstream.requests[0].content == raw
