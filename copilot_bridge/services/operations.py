"""Decide which inbound calls the bridge answers itself.

A call is GraphQL-shaped when it is a JSON POST whose body is an object
carrying a ``query`` or ``operationName`` string. GraphQL-shaped calls are
resolved to a :class:`CopilotOperation` here, once; everything else belongs
to the reverse proxy.
"""

from __future__ import annotations

import logging
from typing import Any

from copilot_bridge.schemas.copilot import CopilotOperation

logger = logging.getLogger(__name__)

# Checked in this order when falling back to the query text
_QUERY_FINGERPRINTS = (
    CopilotOperation.AVAILABLE_AGENTS,
    CopilotOperation.LOAD_AGENT_STATE,
    CopilotOperation.GENERATE_COPILOT_RESPONSE,
)


def is_graphql_call(method: str, content_type: str | None, body: Any) -> bool:
    if method.upper() != "POST":
        return False
    if content_type and "application/json" not in content_type.lower():
        return False
    if not isinstance(body, dict):
        return False
    return isinstance(body.get("query"), str) or isinstance(body.get("operationName"), str)


def resolve_operation(body: dict[str, Any]) -> CopilotOperation | None:
    """Map a GraphQL body to one of the bridged operations, or ``None``.

    An exact ``operationName`` wins. Otherwise the raw query text is searched
    for each operation name. That substring scan is a heuristic kept for
    clients whose query documents do not set ``operationName``; it is not a
    GraphQL parser.
    """
    operation_name = body.get("operationName")
    if isinstance(operation_name, str):
        try:
            return CopilotOperation(operation_name)
        except ValueError:
            pass

    query = body.get("query")
    if isinstance(query, str):
        for operation in _QUERY_FINGERPRINTS:
            if operation.value in query:
                logger.debug("Resolved %s from query text (operationName=%r)", operation, operation_name)
                return operation

    return None
