"""Agent backend adapter for runtimes that speak REST + Server-Sent Events.

A run is a single ``POST {base}/agent`` whose response body is the SSE event
stream. Non-2xx answers carry a (usually JSON) error body instead.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from copilot_bridge.adapters.base import AgentBackendAdapter
from copilot_bridge.errors import AgentBackendError, AgentBackendUnavailable
from copilot_bridge.schemas.agent import AgentRequest

logger = logging.getLogger(__name__)


def _safe_json(raw: bytes) -> Any:
    """Parse an error body, or ``None`` when it is empty or not JSON."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (ValueError, RecursionError):
        return None


class HttpAgentAdapter(AgentBackendAdapter):
    """Streams agent runs over a shared ``httpx.AsyncClient``."""

    def __init__(self, client: httpx.AsyncClient, run_url: str) -> None:
        self._client = client
        self._run_url = run_url

    async def stream_run(self, request: AgentRequest) -> AsyncIterator[bytes]:
        logger.info(
            "Starting agent run %s (thread %s, %d messages, %d tools)",
            request.run_id, request.thread_id, len(request.messages), len(request.tools),
        )
        try:
            async with self._client.stream(
                "POST",
                self._run_url,
                json=request.to_wire(),
                headers={"accept": "text/event-stream"},
            ) as response:
                if not response.is_success:
                    raw = await response.aread()
                    logger.warning(
                        "Agent backend rejected run %s with HTTP %d", request.run_id, response.status_code
                    )
                    raise AgentBackendError(response.status_code, _safe_json(raw))

                async for chunk in response.aiter_bytes():
                    yield chunk
        except httpx.HTTPError as exc:
            logger.error("Agent backend unreachable at %s: %s", self._run_url, exc)
            raise AgentBackendUnavailable(str(exc)) from exc
