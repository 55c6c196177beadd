"""Custom ADK endpoint: answers CopilotKit GraphQL operations, proxies everything else."""

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from copilot_bridge.adapters.base import AgentBackendAdapter
from copilot_bridge.adapters.proxy import ReverseProxy
from copilot_bridge.config import settings
from copilot_bridge.errors import UnsupportedOperationError
from copilot_bridge.http_client import get_agent_adapter, get_agent_proxy
from copilot_bridge.schemas.copilot import CopilotOperation
from copilot_bridge.services import bridge_service
from copilot_bridge.services.operations import is_graphql_call, resolve_operation

logger = logging.getLogger(__name__)

router = APIRouter()

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]
CLIENT_CLOSED_REQUEST = 499


def _parse_json(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (ValueError, RecursionError):
        return None


async def _wait_for_disconnect(request: Request) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(settings.disconnect_poll_interval)


async def _run_unless_disconnected(request: Request, work: Awaitable[Any]) -> Any:
    """Await *work*, cancelling it (and its upstream stream) if the client goes away."""
    task = asyncio.ensure_future(work)
    watcher = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        await asyncio.wait({task, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        watcher.cancel()
        if not task.done():
            task.cancel()

    if task.done():
        return task.result()

    with contextlib.suppress(asyncio.CancelledError):
        await task
    logger.info("Client disconnected; cancelled upstream agent run")
    return JSONResponse({"error": "Client closed request"}, status_code=CLIENT_CLOSED_REQUEST)


@router.api_route("", methods=PROXY_METHODS)
@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def custom_adk(
    request: Request,
    adapter: AgentBackendAdapter = Depends(get_agent_adapter),
    proxy: ReverseProxy = Depends(get_agent_proxy),
) -> Response:
    raw = await request.body()
    body = _parse_json(raw)

    if not is_graphql_call(request.method, request.headers.get("content-type"), body):
        return await proxy.forward(request, request.path_params.get("path", ""), body=raw)

    operation = resolve_operation(body)
    if operation is None:
        logger.info("Rejecting unsupported operation %r", body.get("operationName"))
        raise UnsupportedOperationError()

    variables = body.get("variables")
    if operation is CopilotOperation.GENERATE_COPILOT_RESPONSE:
        result = await _run_unless_disconnected(
            request, bridge_service.generate_copilot_response(variables, adapter)
        )
        if isinstance(result, Response):
            return result
        return JSONResponse(result)

    return JSONResponse(bridge_service.answer_without_backend(operation, variables))
