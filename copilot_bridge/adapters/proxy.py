"""Streaming reverse proxy for requests the bridge does not answer itself."""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

logger = logging.getLogger(__name__)

# Never copied from the inbound request
_REQUEST_SKIP_HEADERS = {"host", "content-length"}
# Never copied from the upstream response; the body is re-framed and already decoded
_RESPONSE_SKIP_HEADERS = {"transfer-encoding", "content-length", "content-encoding"}
_BODYLESS_METHODS = {"GET", "HEAD"}


class ReverseProxy:
    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        *,
        name: str,
        path_rewriter: Callable[[str], str] | None = None,
    ) -> None:
        self._client = client
        self._base_url = base_url.rstrip("/")
        self.name = name
        self._rewrite = path_rewriter

    def target_url(self, path: str, query: str = "") -> str:
        path = "/" + path.lstrip("/") if path else ""
        if self._rewrite:
            path = self._rewrite(path)
        url = f"{self._base_url}{path}"
        return f"{url}?{query}" if query else url

    async def forward(self, request: Request, path: str, body: bytes | None = None) -> Response:
        method = request.method.upper()
        url = self.target_url(path, request.url.query)
        headers = [
            (key, value)
            for key, value in request.headers.items()
            if key.lower() not in _REQUEST_SKIP_HEADERS
        ]
        content = None
        if method not in _BODYLESS_METHODS:
            content = body if body is not None else await request.body()

        upstream_request = self._client.build_request(method, url, headers=headers, content=content)
        try:
            upstream = await self._client.send(upstream_request, stream=True, follow_redirects=True)
        except httpx.HTTPError as exc:
            logger.error("%s proxy error for %s %s: %s", self.name, method, url, exc)
            return JSONResponse({"error": f"Failed to reach {self.name}"}, status_code=502)

        logger.debug("Proxied %s %s → %d", method, url, upstream.status_code)
        response_headers = {
            key: value
            for key, value in upstream.headers.items()
            if key.lower() not in _RESPONSE_SKIP_HEADERS
        }
        return StreamingResponse(
            upstream.aiter_bytes(),
            status_code=upstream.status_code,
            headers=response_headers,
            background=BackgroundTask(upstream.aclose),
        )


def custom_adk_path(path: str) -> str:
    """Bare requests to the agent runtime go to its ``/agent`` entrypoint."""
    return path if path not in ("", "/") else "/agent"
