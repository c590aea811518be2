"""Streaming sessions against pod log, exec and attach sub-resources.

A session owns one transport stream. Log sessions decode base64 frames
into an accumulated buffer and hand the whole buffer to the consumer on
every update. Exec and attach sessions negotiate a channel sub-protocol,
pass frames through untouched and write input to the stdin channel.

Retry and backoff belong to the transport. A log session that follows the
stream only reports, exactly once, that the transport stopped reconnecting.
"""

import uuid
from collections.abc import Callable
from typing import Any

import structlog

from ...models.stream import (
    CHANNEL_PROTOCOLS,
    AttachOptions,
    ExecOptions,
    LogOptions,
    StreamKind,
    StreamOptions,
    StreamStatus,
)
from ..interfaces import StreamHandle, Transport
from .accumulator import LogAccumulator
from .endpoints import attach_path, exec_path, log_path

logger = structlog.get_logger(__name__)

ResultCallback = Callable[[Any], None]

_OPTION_TYPES: dict[StreamKind, type] = {
    StreamKind.LOG: LogOptions,
    StreamKind.EXEC: ExecOptions,
    StreamKind.ATTACH: AttachOptions,
}


class StreamSession:
    """A single cancellable stream owned by one caller.

    Call :meth:`open` once to start streaming; it returns the cancel
    function. Callbacks run on whatever thread or loop the transport uses
    to deliver frames.
    """

    def __init__(
        self,
        transport: Transport,
        kind: StreamKind,
        path: str,
        on_result: ResultCallback,
        *,
        follow: bool = False,
        on_reconnect_stop: Callable[[], None] | None = None,
        on_fail: Callable[[], None] | None = None,
        stdin: bool = False,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or uuid.uuid4().hex
        self.kind = kind
        self.path = path
        self.status = StreamStatus.CONNECTING
        self.follow = follow if kind is StreamKind.LOG else False
        self.stdin = stdin if kind is not StreamKind.LOG else False
        # Cleared the first time reconnection is reported as stopped
        self.reconnecting = True
        self.sub_protocols: tuple[str, ...] = () if kind is StreamKind.LOG else CHANNEL_PROTOCOLS
        self.sub_protocol: str | None = None

        self._transport = transport
        self._on_result = on_result
        self._on_reconnect_stop = on_reconnect_stop
        self._on_fail = on_fail
        self._accumulator = LogAccumulator() if kind is StreamKind.LOG else None
        self._handle: StreamHandle | None = None
        self._opened = False
        self._log = logger.bind(session_id=self.id, kind=kind.value)

    # -- Factories -------------------------------------------------------------

    @classmethod
    def for_logs(
        cls,
        transport: Transport,
        namespace: str,
        name: str,
        container: str,
        on_logs: ResultCallback,
        options: LogOptions | None = None,
    ) -> "StreamSession":
        options = options or LogOptions()
        return cls(
            transport,
            StreamKind.LOG,
            log_path(namespace, name, container, options),
            on_logs,
            follow=options.follow,
            on_reconnect_stop=options.on_reconnect_stop,
        )

    @classmethod
    def for_exec(
        cls,
        transport: Transport,
        namespace: str,
        name: str,
        container: str,
        on_exec: ResultCallback,
        options: ExecOptions | None = None,
    ) -> "StreamSession":
        options = options or ExecOptions()
        return cls(
            transport,
            StreamKind.EXEC,
            exec_path(namespace, name, container, options),
            on_exec,
            on_fail=options.on_fail,
            stdin=options.stdin,
        )

    @classmethod
    def for_attach(
        cls,
        transport: Transport,
        namespace: str,
        name: str,
        container: str,
        on_attach: ResultCallback,
        options: AttachOptions | None = None,
    ) -> "StreamSession":
        options = options or AttachOptions()
        return cls(
            transport,
            StreamKind.ATTACH,
            attach_path(namespace, name, container),
            on_attach,
            on_fail=options.on_fail,
            stdin=True,
        )

    # -- Public API --------------------------------------------------------------

    @property
    def buffer(self) -> list[str]:
        """Accumulated log lines; always empty for exec and attach."""
        return self._accumulator.lines if self._accumulator is not None else []

    @property
    def is_closed(self) -> bool:
        return self.status is StreamStatus.CLOSED

    def open(self) -> Callable[[], None]:
        """Open the stream and return the cancel function.

        Raises:
            RuntimeError: If the session was already opened.
        """
        if self._opened:
            raise RuntimeError(f"Stream session {self.id} was already opened")
        self._opened = True

        if self.is_closed:
            return self.cancel

        self._log.debug("Opening stream", path=self.path)
        handle = self._transport.open_stream(
            self.path,
            self._handle_frame,
            StreamOptions(
                sub_protocols=self.sub_protocols,
                is_json=False,
                on_connect=self._handle_connect,
                on_fail=self._handle_fail,
                on_reconnect=self._handle_reconnect,
                on_close=self._handle_close,
                reconnect=self.follow,
            ),
        )
        self._handle = handle

        if self.is_closed:
            # Cancelled from a callback while the transport was connecting
            handle.cancel()
        elif self.status is StreamStatus.OPEN and self.sub_protocol is None:
            self.sub_protocol = handle.sub_protocol

        return self.cancel

    def cancel(self) -> None:
        """Close the session. Safe to call any number of times."""
        if self.is_closed:
            return
        self.status = StreamStatus.CLOSED
        if self._handle is not None:
            self._handle.cancel()
        self._log.debug("Stream cancelled")

    async def send(self, data: bytes | str) -> None:
        """Write ``data`` to the container's stdin.

        Raises:
            RuntimeError: If the session does not take input or is not open.
            TransportError: If the write fails.
        """
        if not self.stdin:
            raise RuntimeError(f"{self.kind.value} session {self.id} does not accept input")
        if self._handle is None or self.is_closed:
            raise RuntimeError(f"Stream session {self.id} is not open")
        await self._handle.send(data)

    # -- Transport callbacks ---------------------------------------------------

    def _handle_connect(self) -> None:
        if self.is_closed:
            return
        if self._accumulator is not None:
            self._accumulator.reset()
        if self._handle is not None:
            self.sub_protocol = self._handle.sub_protocol
        self.status = StreamStatus.OPEN
        self._log.debug("Stream connected", sub_protocol=self.sub_protocol)

    def _handle_frame(self, frame: Any) -> None:
        if self.is_closed:
            return
        if self._accumulator is None:
            self._on_result(frame)
            return
        if self._accumulator.decode(frame) is None:
            return
        self._on_result(self._accumulator.lines)

    def _handle_reconnect(self) -> None:
        if self.is_closed:
            return
        self.status = StreamStatus.RECONNECTING
        self._log.info("Stream reconnecting")

    def _handle_close(self) -> None:
        if self.is_closed:
            return
        self.status = StreamStatus.CLOSED
        self._log.debug("Stream closed by server")

    def _handle_fail(self) -> None:
        if self.is_closed:
            return
        self.status = StreamStatus.FAILED

        if self.kind is StreamKind.LOG:
            if self.follow and self.reconnecting:
                self.reconnecting = False
                self._log.warning("Log stream stopped reconnecting", path=self.path)
                if self._on_reconnect_stop is not None:
                    self._on_reconnect_stop()
            return

        self._log.warning("Stream failed", path=self.path)
        if self._on_fail is not None:
            self._on_fail()


def open_session(
    kind: StreamKind,
    transport: Transport,
    namespace: str,
    name: str,
    container: str,
    on_result: ResultCallback,
    options: LogOptions | ExecOptions | AttachOptions | None = None,
) -> Callable[[], None]:
    """Open a session of the given kind and return its cancel function."""
    expected = _OPTION_TYPES[kind]
    if options is not None and not isinstance(options, expected):
        raise TypeError(f"{kind.value} sessions take {expected.__name__}, not {type(options).__name__}")

    if kind is StreamKind.LOG:
        session = StreamSession.for_logs(transport, namespace, name, container, on_result, options)
    elif kind is StreamKind.EXEC:
        session = StreamSession.for_exec(transport, namespace, name, container, on_result, options)
    else:
        session = StreamSession.for_attach(transport, namespace, name, container, on_result, options)
    return session.open()
