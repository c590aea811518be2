"""Pod object wrapping a raw pod document."""

from collections.abc import Callable
from functools import cached_property
from typing import Any

from ..models.pod import DetailedStatus, PodSnapshot
from ..models.stream import AttachOptions, ExecOptions, LogOptions
from .interfaces import Transport
from .status import StatusCache
from .streaming import StreamSession, evict
from .streaming.session import ResultCallback


class Pod:
    """A pod as returned by the API server.

    Holds the JSON document, a status cache keyed on the document's
    resource version, and the transport used for eviction and streaming.
    """

    kind = "Pod"
    api_version = "v1"

    def __init__(self, data: dict[str, Any], transport: Transport | None = None) -> None:
        self.data = data
        self.transport = transport
        self._status_cache = StatusCache()

    def __repr__(self) -> str:
        return f"Pod({self.namespace}/{self.name}@{self.resource_version or '?'})"

    @property
    def metadata(self) -> dict[str, Any]:
        metadata = self.data.get("metadata")
        return metadata if isinstance(metadata, dict) else {}

    @property
    def namespace(self) -> str:
        return self.metadata.get("namespace") or ""

    @property
    def name(self) -> str:
        return self.metadata.get("name") or ""

    @property
    def resource_version(self) -> str:
        return self.metadata.get("resourceVersion") or ""

    @cached_property
    def snapshot(self) -> PodSnapshot:
        return PodSnapshot.from_dict(self.data)

    def update(self, data: dict[str, Any]) -> None:
        """Replace the pod document with a newer revision."""
        self.data = data
        self.__dict__.pop("snapshot", None)

    def get_detailed_status(self) -> DetailedStatus:
        """Status summary as printed by ``kubectl get pods``."""
        return self._status_cache.get(self.snapshot)

    def _require_transport(self) -> Transport:
        if self.transport is None:
            raise RuntimeError(f"{self!r} has no transport")
        return self.transport

    async def evict(self) -> Any:
        return await evict(self._require_transport(), self.namespace, self.name)

    def get_logs(
        self,
        container: str,
        on_logs: ResultCallback,
        options: LogOptions | None = None,
    ) -> Callable[[], None]:
        """Stream the logs of a container.

        ``on_logs`` receives the full list of lines received so far on every
        update.

        Returns:
            Function that cancels the stream.
        """
        session = StreamSession.for_logs(
            self._require_transport(), self.namespace, self.name, container, on_logs, options
        )
        return session.open()

    def open_exec(
        self,
        container: str,
        on_exec: ResultCallback,
        options: ExecOptions | None = None,
    ) -> StreamSession:
        """Start a command in a container and return the opened session.

        Use :meth:`StreamSession.send` to write to the command's stdin.
        """
        session = StreamSession.for_exec(
            self._require_transport(), self.namespace, self.name, container, on_exec, options
        )
        session.open()
        return session

    def exec(
        self,
        container: str,
        on_exec: ResultCallback,
        options: ExecOptions | None = None,
    ) -> Callable[[], None]:
        return self.open_exec(container, on_exec, options).cancel

    def open_attach(
        self,
        container: str,
        on_attach: ResultCallback,
        options: AttachOptions | None = None,
    ) -> StreamSession:
        session = StreamSession.for_attach(
            self._require_transport(), self.namespace, self.name, container, on_attach, options
        )
        session.open()
        return session

    def attach(
        self,
        container: str,
        on_attach: ResultCallback,
        options: AttachOptions | None = None,
    ) -> Callable[[], None]:
        return self.open_attach(container, on_attach, options).cancel
