"""Models for log, exec and attach streaming sessions."""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StreamKind(str, Enum):
    """Sub-resource a session streams from."""

    LOG = "log"
    EXEC = "exec"
    ATTACH = "attach"


class StreamStatus(str, Enum):
    """Lifecycle state of a streaming session."""

    CONNECTING = "connecting"
    OPEN = "open"
    RECONNECTING = "reconnecting"
    CLOSED = "closed"
    FAILED = "failed"


# Channel protocols offered for exec/attach, newest first.
CHANNEL_PROTOCOLS: tuple[str, ...] = (
    "v4.channel.k8s.io",
    "v3.channel.k8s.io",
    "v2.channel.k8s.io",
    "channel.k8s.io",
)


class LogOptions(BaseModel):
    """Options for a log stream."""

    tail_lines: int = Field(
        default=100,
        ge=-1,
        description="Number of lines to show from the end of the log; -1 fetches all lines",
    )
    previous: bool = Field(
        default=False,
        description="Show logs of the previous run (only for restarted containers)",
    )
    timestamps: bool = Field(default=False, description="Prefix each line with its timestamp")
    follow: bool = Field(default=True, description="Keep the stream open for new lines")
    on_reconnect_stop: Callable[[], None] | None = Field(
        default=None,
        exclude=True,
        description="Called once when reconnection attempts stop",
    )


class ExecOptions(BaseModel):
    """Options for an exec session."""

    command: list[str] = Field(default_factory=lambda: ["sh"], min_length=1)
    stdin: bool = True
    stdout: bool = True
    stderr: bool = True
    tty: bool = True
    on_fail: Callable[[], None] | None = Field(default=None, exclude=True)


class AttachOptions(BaseModel):
    """Options for an attach session.

    stdin, stdout, stderr and tty are always enabled when attaching.
    """

    on_fail: Callable[[], None] | None = Field(default=None, exclude=True)


@dataclass
class StreamOptions:
    """Option bundle handed to a transport when opening a stream."""

    sub_protocols: tuple[str, ...] = ()
    is_json: bool = False
    on_connect: Callable[[], None] | None = None
    on_fail: Callable[[], None] | None = None
    on_reconnect: Callable[[], None] | None = None
    on_close: Callable[[], None] | None = None
    reconnect: bool = False


FrameCallback = Callable[[Any], None]
