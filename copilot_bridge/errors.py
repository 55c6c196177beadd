"""Errors that end a bridged request with a structured JSON response."""

from __future__ import annotations

from typing import Any


class BridgeError(Exception):
    """Base class. ``payload`` is sent to the client verbatim with ``status_code``."""

    status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None, payload: Any = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload if payload is not None else {"error": message}


class InvalidRequestError(BridgeError):
    status_code = 400


class UnsupportedOperationError(BridgeError):
    status_code = 400

    def __init__(self) -> None:
        super().__init__("Unsupported custom ADK operation")


class AgentBackendError(BridgeError):
    """The agent backend answered with a non-success status (or no body).

    A JSON error body from the backend is passed through untouched; otherwise
    the client gets a generic message plus the upstream status.
    """

    def __init__(self, upstream_status: int, upstream_payload: Any = None) -> None:
        self.upstream_status = upstream_status
        super().__init__(
            "Custom ADK request failed",
            status_code=upstream_status,
            payload=upstream_payload
            if upstream_payload is not None
            else {"error": "Custom ADK request failed", "status": upstream_status},
        )


class AgentBackendUnavailable(BridgeError):
    status_code = 502

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Failed to process custom ADK response")
