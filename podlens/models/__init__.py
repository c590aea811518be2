"""Data models for podlens."""

from .errors import (
    ErrorType,
    PodLensException,
    ResourceNotFoundError,
    ServiceUnavailableError,
    TransportError,
)
from .pod import (
    EPOCH,
    ContainerState,
    ContainerStatus,
    DetailedStatus,
    PodCondition,
    PodSnapshot,
    RunningState,
    TerminatedState,
    WaitingState,
)
from .stream import (
    CHANNEL_PROTOCOLS,
    AttachOptions,
    ExecOptions,
    LogOptions,
    StreamKind,
    StreamOptions,
    StreamStatus,
)

__all__ = [
    # Pod models
    "EPOCH",
    "ContainerState",
    "WaitingState",
    "RunningState",
    "TerminatedState",
    "ContainerStatus",
    "PodCondition",
    "PodSnapshot",
    "DetailedStatus",
    # Stream models
    "CHANNEL_PROTOCOLS",
    "StreamKind",
    "StreamStatus",
    "StreamOptions",
    "LogOptions",
    "ExecOptions",
    "AttachOptions",
    # Error models
    "ErrorType",
    "PodLensException",
    "TransportError",
    "ResourceNotFoundError",
    "ServiceUnavailableError",
]
