"""Shared fixtures: an in-memory transport standing in for the API server."""

from dataclasses import dataclass, field
from typing import Any

import pytest

from podlens.models.stream import FrameCallback, StreamOptions
from podlens.services.interfaces import StreamHandle, Transport


class FakeStreamHandle(StreamHandle):
    """Stream handle that records input and cancellation."""

    def __init__(self, sub_protocol: str | None = None):
        self._sub_protocol = sub_protocol
        self.cancel_count = 0
        self.sent: list[bytes | str] = []

    @property
    def sub_protocol(self) -> str | None:
        return self._sub_protocol

    async def send(self, data: bytes | str) -> None:
        self.sent.append(data)

    def cancel(self) -> None:
        self.cancel_count += 1


@dataclass
class OpenedStream:
    """A stream opened against the fake transport; tests drive its callbacks."""

    path: str
    on_frame: FrameCallback
    options: StreamOptions
    handle: FakeStreamHandle

    def connect(self) -> None:
        if self.options.on_connect:
            self.options.on_connect()

    def fail(self, times: int = 1) -> None:
        for _ in range(times):
            if self.options.on_fail:
                self.options.on_fail()

    def send(self, *frames: Any) -> None:
        for frame in frames:
            self.on_frame(frame)


@dataclass
class FakeTransport(Transport):
    """Transport that records requests and hands streams back to the test."""

    sub_protocol: str | None = None
    post_result: Any = field(default_factory=dict)
    posts: list[tuple[str, dict[str, Any]]] = field(default_factory=list)
    streams: list[OpenedStream] = field(default_factory=list)

    async def post(self, path: str, body: dict[str, Any]) -> Any:
        self.posts.append((path, body))
        return self.post_result

    def open_stream(self, path: str, on_frame: FrameCallback, options: StreamOptions) -> StreamHandle:
        handle = FakeStreamHandle(self.sub_protocol)
        self.streams.append(OpenedStream(path, on_frame, options, handle))
        return handle

    @property
    def last_stream(self) -> OpenedStream:
        return self.streams[-1]


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def channel_transport() -> FakeTransport:
    return FakeTransport(sub_protocol="v4.channel.k8s.io")
