"""Unit tests for the Kubernetes transport.

The API client and WebSocket are mocked; no cluster is needed.
"""

import asyncio
import threading
from unittest.mock import MagicMock

import pytest
from kubernetes.client import ApiException
from websocket import ABNF, WebSocketConnectionClosedException

from podlens.config import KubernetesConfig
from podlens.models import LogOptions, StreamOptions, StreamStatus, TransportError
from podlens.services.kubernetes import KubernetesStreamHandle, KubernetesTransport
from podlens.services.streaming import StreamSession

LOG_PATH = "/api/v1/namespaces/default/pods/web-0/log?container=app&follow=true"


class FakeSocket:
    """WebSocket replaying a fixed list of ``(opcode, data)`` frames."""

    def __init__(self, frames=(), subprotocol=None):
        self.frames = list(frames)
        self.subprotocol = subprotocol
        self.aborted = False
        self.closed = False
        self.sent = []

    def recv_data(self, control_frame=False):
        if not self.frames:
            raise WebSocketConnectionClosedException("Connection to remote host was lost.")
        return self.frames.pop(0)

    def send_binary(self, payload):
        self.sent.append(payload)

    def abort(self):
        self.aborted = True

    def shutdown(self):
        self.closed = True


class BlockingSocket(FakeSocket):
    """WebSocket whose recv blocks until aborted."""

    def __init__(self):
        super().__init__()
        self._aborted = threading.Event()

    def recv_data(self, control_frame=False):
        self._aborted.wait(timeout=5)
        raise WebSocketConnectionClosedException("socket is already closed.")

    def abort(self):
        super().abort()
        self._aborted.set()


@pytest.fixture
def api_client():
    client = MagicMock()
    client.configuration.host = "https://k8s.example:6443"
    client.configuration.auth_settings.return_value = {
        "BearerToken": {"in": "header", "key": "authorization", "value": "Bearer token"},
    }
    return client


@pytest.fixture
def config():
    return KubernetesConfig(
        request_timeout_seconds=5,
        reconnect_attempts=2,
        reconnect_backoff_seconds=0.001,
        reconnect_max_backoff_seconds=0.002,
    )


def _options(**kwargs):
    callbacks = {name: MagicMock() for name in ("on_connect", "on_fail", "on_reconnect", "on_close")}
    return StreamOptions(**{**callbacks, **kwargs})


def _response(status, data=b"", reason="OK"):
    response = MagicMock()
    response.status = status
    response.reason = reason
    response.data = data
    return response


class TestPost:
    """Tests for KubernetesTransport.post."""

    @pytest.mark.asyncio
    async def test_posts_json_with_auth(self, api_client, config):
        """Test that the body is posted to the API server with credentials."""
        api_client.rest_client.request.return_value = _response(201, b'{"kind": "Status", "status": "Success"}')
        transport = KubernetesTransport(api_client, config)

        result = await transport.post("/api/v1/namespaces/default/pods/web-0/eviction", {"kind": "Eviction"})

        assert result == {"kind": "Status", "status": "Success"}
        args, kwargs = api_client.rest_client.request.call_args
        assert args == ("POST", "https://k8s.example:6443/api/v1/namespaces/default/pods/web-0/eviction")
        assert kwargs["body"] == {"kind": "Eviction"}
        assert kwargs["headers"]["authorization"] == "Bearer token"
        assert kwargs["headers"]["Content-Type"] == "application/json"
        assert kwargs["_request_timeout"] == 5

    @pytest.mark.asyncio
    async def test_empty_response(self, api_client, config):
        """Test that an empty body returns None."""
        api_client.rest_client.request.return_value = _response(200, b"")
        assert await KubernetesTransport(api_client, config).post("/x", {}) is None

    @pytest.mark.asyncio
    async def test_rejected_request(self, api_client, config):
        """Test that a non-2xx response raises TransportError."""
        api_client.rest_client.request.return_value = _response(429, b"{}", reason="Too Many Requests")

        with pytest.raises(TransportError) as exc_info:
            await KubernetesTransport(api_client, config).post("/x", {})

        assert exc_info.value.status == 429
        assert exc_info.value.path == "/x"

    @pytest.mark.asyncio
    async def test_api_exception(self, api_client, config):
        """Test that client exceptions are wrapped in TransportError."""
        api_client.rest_client.request.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(TransportError) as exc_info:
            await KubernetesTransport(api_client, config).post("/x", {})

        assert exc_info.value.status == 403
        assert "Forbidden" in exc_info.value.message


class TestOpenStream:
    """Tests for KubernetesTransport.open_stream."""

    @pytest.mark.asyncio
    async def test_connects_with_protocols_and_auth(self, api_client, config):
        """Test the WebSocket URL and handshake headers."""
        socket = FakeSocket([(ABNF.OPCODE_CLOSE, None)], subprotocol="v4.channel.k8s.io")
        factory = MagicMock(return_value=socket)
        transport = KubernetesTransport(api_client, config, socket_factory=factory)

        handle = transport.open_stream(LOG_PATH, MagicMock(), _options(sub_protocols=("v4.channel.k8s.io",)))
        await handle.task

        factory.assert_called_once_with(
            api_client.configuration,
            "wss://k8s.example:6443" + LOG_PATH,
            {
                "authorization": "Bearer token",
                "sec-websocket-protocol": "base64.binary.k8s.io,v4.channel.k8s.io",
            },
        )
        assert handle.sub_protocol == "v4.channel.k8s.io"
        assert socket.closed

    @pytest.mark.asyncio
    async def test_delivers_frames_until_close(self, api_client, config):
        """Test that text and binary frames are delivered and control frames skipped."""
        socket = FakeSocket(
            [
                (ABNF.OPCODE_TEXT, b"aGVsbG8="),
                (ABNF.OPCODE_PING, None),
                (ABNF.OPCODE_BINARY, b"\x01out"),
                (ABNF.OPCODE_CLOSE, None),
            ]
        )
        on_frame = MagicMock()
        options = _options(reconnect=True)
        transport = KubernetesTransport(api_client, config, socket_factory=MagicMock(return_value=socket))

        handle = transport.open_stream(LOG_PATH, on_frame, options)
        await handle.task

        assert [c.args[0] for c in on_frame.call_args_list] == ["aGVsbG8=", b"\x01out"]
        options.on_connect.assert_called_once_with()
        options.on_close.assert_called_once_with()
        options.on_fail.assert_not_called()
        options.on_reconnect.assert_not_called()

    @pytest.mark.asyncio
    async def test_json_frames(self, api_client, config):
        """Test that JSON streams deliver parsed frames."""
        socket = FakeSocket([(ABNF.OPCODE_TEXT, b'{"type": "ADDED"}'), (ABNF.OPCODE_CLOSE, None)])
        on_frame = MagicMock()
        transport = KubernetesTransport(api_client, config, socket_factory=MagicMock(return_value=socket))

        handle = transport.open_stream(LOG_PATH, on_frame, _options(is_json=True))
        await handle.task

        on_frame.assert_called_once_with({"type": "ADDED"})

    @pytest.mark.asyncio
    async def test_failure_without_reconnect(self, api_client, config):
        """Test that a stream without reconnect fails on the first error."""
        options = _options(reconnect=False)
        factory = MagicMock(side_effect=OSError("connection refused"))
        transport = KubernetesTransport(api_client, config, socket_factory=factory)

        await transport.open_stream(LOG_PATH, MagicMock(), options).task

        factory.assert_called_once()
        options.on_fail.assert_called_once_with()
        options.on_reconnect.assert_not_called()

    @pytest.mark.asyncio
    async def test_reconnects_until_attempts_exhausted(self, api_client, config):
        """Test that reconnecting streams retry before reporting failure."""
        options = _options(reconnect=True)
        factory = MagicMock(side_effect=OSError("connection refused"))
        transport = KubernetesTransport(api_client, config, socket_factory=factory)

        await transport.open_stream(LOG_PATH, MagicMock(), options).task

        assert factory.call_count == config.reconnect_attempts + 1
        assert options.on_reconnect.call_count == config.reconnect_attempts
        options.on_fail.assert_called_once_with()
        options.on_connect.assert_not_called()

    @pytest.mark.asyncio
    async def test_reconnect_recovers(self, api_client, config):
        """Test that a dropped connection is reopened."""
        dropped = FakeSocket([(ABNF.OPCODE_TEXT, b"b25l")])
        recovered = FakeSocket([(ABNF.OPCODE_TEXT, b"dHdv"), (ABNF.OPCODE_CLOSE, None)])
        on_frame = MagicMock()
        options = _options(reconnect=True)
        transport = KubernetesTransport(
            api_client, config, socket_factory=MagicMock(side_effect=[dropped, recovered])
        )

        await transport.open_stream(LOG_PATH, on_frame, options).task

        assert [c.args[0] for c in on_frame.call_args_list] == ["b25l", "dHdv"]
        assert options.on_connect.call_count == 2
        options.on_reconnect.assert_called_once_with()
        options.on_close.assert_called_once_with()
        options.on_fail.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_wakes_reader(self, api_client, config):
        """Test that cancel aborts a blocked read without reporting failure."""
        socket = BlockingSocket()
        connected = asyncio.Event()
        options = _options(reconnect=True, on_connect=connected.set)
        transport = KubernetesTransport(api_client, config, socket_factory=MagicMock(return_value=socket))

        handle = transport.open_stream(LOG_PATH, MagicMock(), options)
        await asyncio.wait_for(connected.wait(), timeout=5)
        handle.cancel()
        handle.cancel()
        await asyncio.gather(handle.task, return_exceptions=True)

        assert socket.aborted
        assert handle.task.done()
        options.on_fail.assert_not_called()
        options.on_close.assert_not_called()
        options.on_reconnect.assert_not_called()

    def test_requires_running_loop(self, api_client, config):
        """Test that streams can only be opened from a running event loop."""
        transport = KubernetesTransport(api_client, config, socket_factory=MagicMock())
        with pytest.raises(RuntimeError):
            transport.open_stream(LOG_PATH, MagicMock(), _options())

    @pytest.mark.asyncio
    async def test_consumer_error_fails_stream(self, api_client, config):
        """Test that an exception raised by the consumer ends the stream through on_fail."""
        socket = FakeSocket(
            [(ABNF.OPCODE_TEXT, b"b25l"), (ABNF.OPCODE_TEXT, b"dHdv"), (ABNF.OPCODE_CLOSE, None)]
        )
        factory = MagicMock(return_value=socket)
        on_frame = MagicMock(side_effect=ValueError("bad frame"))
        options = _options(reconnect=True)
        transport = KubernetesTransport(api_client, config, socket_factory=factory)

        await transport.open_stream(LOG_PATH, on_frame, options).task

        on_frame.assert_called_once_with("b25l")
        factory.assert_called_once()
        assert socket.closed
        options.on_fail.assert_called_once_with()
        options.on_close.assert_not_called()
        options.on_reconnect.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_json_fails_stream(self, api_client, config):
        """Test that an undecodable JSON frame ends the stream through on_fail."""
        socket = FakeSocket([(ABNF.OPCODE_TEXT, b"not json"), (ABNF.OPCODE_CLOSE, None)])
        on_frame = MagicMock()
        options = _options(is_json=True)
        transport = KubernetesTransport(api_client, config, socket_factory=MagicMock(return_value=socket))

        await transport.open_stream(LOG_PATH, on_frame, options).task

        on_frame.assert_not_called()
        options.on_fail.assert_called_once_with()
        options.on_close.assert_not_called()

    @pytest.mark.asyncio
    async def test_log_consumer_error_stops_session(self, api_client, config):
        """Test that a failing log consumer leaves the session failed and reports the stop."""
        socket = FakeSocket(
            [(ABNF.OPCODE_TEXT, b"aGVsbG8K"), (ABNF.OPCODE_TEXT, b"YnllCg=="), (ABNF.OPCODE_CLOSE, None)]
        )
        transport = KubernetesTransport(api_client, config, socket_factory=MagicMock(return_value=socket))
        on_logs = MagicMock(side_effect=ValueError("consumer failed"))
        on_stop = MagicMock()
        session = StreamSession.for_logs(
            transport, "default", "web-0", "app", on_logs, LogOptions(follow=True, on_reconnect_stop=on_stop)
        )

        session.open()
        await session._handle.task

        on_logs.assert_called_once_with(["hello\n"])
        assert session.status is StreamStatus.FAILED
        on_stop.assert_called_once_with()


class TestStreamInput:
    """Tests for writing to the stdin channel of a stream."""

    @pytest.mark.asyncio
    async def test_send_writes_stdin_frame(self, api_client, config):
        """Test that input is sent as a binary frame on channel 0."""
        socket = BlockingSocket()
        connected = asyncio.Event()
        options = _options(sub_protocols=("v4.channel.k8s.io",), on_connect=connected.set)
        transport = KubernetesTransport(api_client, config, socket_factory=MagicMock(return_value=socket))

        handle = transport.open_stream("/api/v1/namespaces/default/pods/web-0/exec", MagicMock(), options)
        await asyncio.wait_for(connected.wait(), timeout=5)
        await handle.send("ls\n")
        await handle.send(b"\x03")
        handle.cancel()
        await asyncio.gather(handle.task, return_exceptions=True)

        assert socket.sent == [b"\x00ls\n", b"\x00\x03"]

    @pytest.mark.asyncio
    async def test_send_before_connect(self):
        """Test that sending without a connected socket raises TransportError."""
        with pytest.raises(TransportError):
            await KubernetesStreamHandle().send("ls\n")

    @pytest.mark.asyncio
    async def test_send_after_cancel(self):
        """Test that a cancelled handle rejects input."""
        handle = KubernetesStreamHandle()
        socket = FakeSocket()
        handle.attach_socket(socket)
        handle.cancel()

        with pytest.raises(TransportError):
            await handle.send("ls\n")

        assert socket.sent == []

    @pytest.mark.asyncio
    async def test_send_failure_is_wrapped(self):
        """Test that socket errors on write raise TransportError."""
        socket = FakeSocket()
        socket.send_binary = MagicMock(side_effect=WebSocketConnectionClosedException("socket is already closed."))
        handle = KubernetesStreamHandle()
        handle.attach_socket(socket)

        with pytest.raises(TransportError, match="Failed to write"):
            await handle.send("ls\n")
