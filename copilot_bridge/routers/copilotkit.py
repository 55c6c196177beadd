"""CopilotKit runtime passthrough."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from copilot_bridge.adapters.proxy import ReverseProxy
from copilot_bridge.http_client import get_runtime_proxy
from copilot_bridge.routers.custom_adk import PROXY_METHODS

router = APIRouter()


@router.api_route("", methods=PROXY_METHODS)
@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def copilotkit_runtime(
    request: Request, proxy: ReverseProxy = Depends(get_runtime_proxy)
) -> Response:
    return await proxy.forward(request, request.path_params.get("path", ""))
