"""Transport backed by the Kubernetes Python client.

JSON requests go through the client's REST layer. Streams use the
WebSocket helper that ships with ``kubernetes.stream``. The blocking calls
run in worker threads so callers stay on the event loop.
"""

import asyncio
import json
from collections.abc import Callable
from typing import Any

import structlog
import urllib3
from kubernetes.client import ApiClient, ApiException
from kubernetes.stream.ws_client import create_websocket, get_websocket_url
from websocket import ABNF, WebSocket, WebSocketException

from ...config import KubernetesConfig, settings
from ...models.errors import ServiceUnavailableError, TransportError
from ...models.stream import FrameCallback, StreamOptions
from ..interfaces import StreamHandle, Transport
from .client import get_api_client

logger = structlog.get_logger(__name__)

# Log frames arrive base64 encoded. Exec and attach negotiate a channel
# protocol from the list that follows it.
BASE64_BINARY_PROTOCOL = "base64.binary.k8s.io"

# Channel frames are prefixed with their channel byte; 0 is stdin
STDIN_CHANNEL = b"\x00"

SocketFactory = Callable[[Any, str, dict[str, str]], WebSocket]


class _FrameDeliveryError(Exception):
    """Raised when the frame consumer fails."""


def _notify(callback: Callable[[], None] | None) -> None:
    if callback is not None:
        callback()


def _response_body(response: Any) -> bytes | str | None:
    # RESTResponse exposes the payload as .data once read
    if callable(getattr(response, "read", None)):
        response.read()
    return getattr(response, "data", None)


class KubernetesStreamHandle(StreamHandle):
    """Handle to a WebSocket stream pumped by a background task."""

    def __init__(self) -> None:
        self.cancelled = False
        self.socket: WebSocket | None = None
        self.task: asyncio.Task | None = None
        self._sub_protocol: str | None = None

    @property
    def sub_protocol(self) -> str | None:
        return self._sub_protocol

    def attach_socket(self, socket: WebSocket) -> None:
        self.socket = socket
        self._sub_protocol = getattr(socket, "subprotocol", None)

    async def send(self, data: bytes | str) -> None:
        socket = self.socket
        if self.cancelled or socket is None:
            raise TransportError("Stream is not connected")

        payload = data.encode("utf-8") if isinstance(data, str) else data
        try:
            await asyncio.to_thread(socket.send_binary, STDIN_CHANNEL + payload)
        except (WebSocketException, OSError) as e:
            raise TransportError(f"Failed to write to stream: {e}") from e

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True

        socket = self.socket
        if socket is not None:
            # Wakes the worker thread blocked in recv
            socket.abort()
        if self.task is not None and not self.task.done():
            self.task.cancel()


class KubernetesTransport(Transport):
    """Transport talking to the API server configured for the Kubernetes client."""

    def __init__(
        self,
        api_client: ApiClient | None = None,
        config: KubernetesConfig | None = None,
        socket_factory: SocketFactory = create_websocket,
    ) -> None:
        self._api_client = api_client
        self.config = config or settings.kubernetes
        self._socket_factory = socket_factory

    @property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            self._api_client = get_api_client()
        if self._api_client is None:
            raise ServiceUnavailableError("Kubernetes client not available")
        return self._api_client

    def _url(self, path: str) -> str:
        return self.api_client.configuration.host.rstrip("/") + path

    def _auth_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        for auth in self.api_client.configuration.auth_settings().values():
            if auth.get("in") == "header" and auth.get("value"):
                headers[auth["key"]] = auth["value"]
        return headers

    # -- Requests ----------------------------------------------------------------

    async def post(self, path: str, body: dict[str, Any]) -> Any:
        url = self._url(path)
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            **self._auth_headers(),
        }

        try:
            response = await asyncio.to_thread(
                self.api_client.rest_client.request,
                "POST",
                url,
                headers=headers,
                body=body,
                _request_timeout=self.config.request_timeout_seconds,
            )
        except ApiException as e:
            raise TransportError(f"POST {path} failed: {e.reason}", status=e.status, path=path) from e
        except urllib3.exceptions.HTTPError as e:
            raise TransportError(f"POST {path} failed: {e}", path=path) from e

        payload = _response_body(response)
        if not 200 <= response.status < 300:
            logger.warning("API server rejected request", path=path, status=response.status)
            raise TransportError(
                f"POST {path} returned {response.status} {response.reason}",
                status=response.status,
                path=path,
            )

        if not payload:
            return None
        return json.loads(payload)

    # -- Streams -----------------------------------------------------------------

    def open_stream(self, path: str, on_frame: FrameCallback, options: StreamOptions) -> StreamHandle:
        """Start pumping a WebSocket stream on the running event loop.

        Raises:
            RuntimeError: If no event loop is running.
        """
        handle = KubernetesStreamHandle()
        loop = asyncio.get_running_loop()
        handle.task = loop.create_task(self._run_stream(path, on_frame, options, handle))
        return handle

    def _connect(self, path: str, sub_protocols: tuple[str, ...]) -> WebSocket:
        url = get_websocket_url(self._url(path))
        headers = self._auth_headers()
        headers["sec-websocket-protocol"] = ",".join((BASE64_BINARY_PROTOCOL, *sub_protocols))
        return self._socket_factory(self.api_client.configuration, url, headers)

    async def _run_stream(
        self,
        path: str,
        on_frame: FrameCallback,
        options: StreamOptions,
        handle: KubernetesStreamHandle,
    ) -> None:
        log = logger.bind(path=path)
        attempt = 0

        try:
            while not handle.cancelled:
                try:
                    socket = await asyncio.to_thread(self._connect, path, options.sub_protocols)
                except (WebSocketException, OSError, ServiceUnavailableError) as e:
                    log.warning("Stream connection failed", error=str(e), attempt=attempt)
                else:
                    if handle.cancelled:
                        socket.shutdown()
                        return

                    handle.attach_socket(socket)
                    attempt = 0
                    _notify(options.on_connect)

                    delivery_failed = False
                    try:
                        closed_cleanly = await self._pump(socket, on_frame, options, handle, log)
                    except _FrameDeliveryError:
                        closed_cleanly = delivery_failed = True
                    handle.socket = None
                    socket.shutdown()
                    if handle.cancelled:
                        return
                    if delivery_failed:
                        # Consumer failures are never retried
                        _notify(options.on_fail)
                        return
                    if closed_cleanly:
                        log.debug("Stream closed by server")
                        _notify(options.on_close)
                        return

                if handle.cancelled:
                    return
                if not options.reconnect or attempt >= self.config.reconnect_attempts:
                    log.warning("Stream failed", attempts=attempt)
                    _notify(options.on_fail)
                    return

                delay = self.config.get_reconnect_delay(attempt)
                attempt += 1
                log.info("Reconnecting stream", attempt=attempt, delay=delay)
                _notify(options.on_reconnect)
                await asyncio.sleep(delay)
        finally:
            if handle.socket is not None:
                handle.socket.shutdown()
                handle.socket = None

    async def _pump(
        self,
        socket: WebSocket,
        on_frame: FrameCallback,
        options: StreamOptions,
        handle: KubernetesStreamHandle,
        log: Any,
    ) -> bool:
        """Deliver frames until the stream ends.

        Returns:
            True if the server closed the stream, False if the connection broke.

        Raises:
            _FrameDeliveryError: If decoding a frame or the consumer failed.
        """
        while not handle.cancelled:
            try:
                opcode, data = await asyncio.to_thread(socket.recv_data, True)
            except (WebSocketException, OSError) as e:
                if not handle.cancelled:
                    log.warning("Stream connection lost", error=str(e))
                return False

            if handle.cancelled:
                break
            if opcode == ABNF.OPCODE_CLOSE:
                return True
            if opcode == ABNF.OPCODE_TEXT:
                frame: Any = data.decode("utf-8") if isinstance(data, bytes) else data
            elif opcode == ABNF.OPCODE_BINARY:
                frame = data
            else:
                # ping/pong
                continue

            try:
                if options.is_json:
                    frame = json.loads(frame)
                on_frame(frame)
            except Exception as e:
                log.exception("Stream consumer failed")
                raise _FrameDeliveryError() from e

        return True
