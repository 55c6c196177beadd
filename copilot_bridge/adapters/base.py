"""Abstract base class for agent backend adapters.

Swap the HTTP/SSE runtime for another transport by implementing this interface.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from copilot_bridge.schemas.agent import AgentRequest


class AgentBackendAdapter(ABC):
    """Contract that any agent backend must satisfy."""

    @abstractmethod
    def stream_run(self, request: AgentRequest) -> AsyncIterator[bytes]:
        """Start a run and yield the raw bytes of its event stream.

        Raises ``AgentBackendError`` when the backend rejects the run and
        ``AgentBackendUnavailable`` when it cannot be reached.
        """
