"""Collaborator interfaces for podlens services."""

from __future__ import annotations

# Standard library imports
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

# Local application imports
from ..models.stream import FrameCallback, StreamOptions

if TYPE_CHECKING:
    from .pod import Pod


class StreamHandle(ABC):
    """Handle to a stream opened by a transport."""

    @property
    def sub_protocol(self) -> str | None:
        """Sub-protocol the server accepted, once connected."""
        return None

    @abstractmethod
    async def send(self, data: bytes | str) -> None:
        """Write ``data`` to the stdin channel of the stream.

        Raises:
            TransportError: If the stream is not connected or the write fails.
        """
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Close the stream. Calling it more than once is a no-op."""
        pass


class Transport(ABC):
    """Interface to the API server.

    Implementations own HTTP/WebSocket mechanics, authentication, frame
    encoding and retry/backoff. Callers only build paths and option bundles.
    """

    @abstractmethod
    async def post(self, path: str, body: dict[str, Any]) -> Any:
        """POST a JSON body to an API path.

        Raises:
            TransportError: If the request fails or is rejected.
        """
        pass

    @abstractmethod
    def open_stream(self, path: str, on_frame: FrameCallback, options: StreamOptions) -> StreamHandle:
        """Open a long-lived stream against an API path.

        Frames are delivered to ``on_frame``. Connection events are reported
        through ``options.on_connect`` and ``options.on_fail``.
        """
        pass


class PodObjectStore(ABC):
    """Interface for looking up pod objects."""

    @abstractmethod
    async def get_pod(self, namespace: str, name: str) -> Pod:
        """Fetch a pod by namespace and name.

        Raises:
            ResourceNotFoundError: If the pod does not exist.
            TransportError: If the lookup fails.
        """
        pass
