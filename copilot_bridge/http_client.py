"""Shared outbound httpx client + FastAPI dependencies built on it."""

import httpx
from fastapi import Depends, Request

from copilot_bridge.adapters.agent_http import HttpAgentAdapter
from copilot_bridge.adapters.base import AgentBackendAdapter
from copilot_bridge.adapters.proxy import ReverseProxy, custom_adk_path
from copilot_bridge.config import settings


def create_http_client() -> httpx.AsyncClient:
    timeout = httpx.Timeout(
        settings.agent_read_timeout,
        connect=settings.agent_connect_timeout,
    )
    return httpx.AsyncClient(timeout=timeout)


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_agent_adapter(client: httpx.AsyncClient = Depends(get_http_client)) -> AgentBackendAdapter:
    return HttpAgentAdapter(client, settings.agent_run_url)


def get_agent_proxy(client: httpx.AsyncClient = Depends(get_http_client)) -> ReverseProxy:
    return ReverseProxy(
        client, settings.agent_base_url, name="custom ADK runtime", path_rewriter=custom_adk_path
    )


def get_runtime_proxy(client: httpx.AsyncClient = Depends(get_http_client)) -> ReverseProxy:
    return ReverseProxy(client, settings.runtime_url, name="Copilot runtime")
