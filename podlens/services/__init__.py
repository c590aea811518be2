"""Services module for podlens."""

from .interfaces import PodObjectStore, StreamHandle, Transport
from .pod import Pod
from .status import StatusCache, synthesize
from .streaming import StreamSession, evict, open_session

__all__ = [
    "Pod",
    "StatusCache",
    "synthesize",
    "StreamSession",
    "open_session",
    "evict",
    "Transport",
    "StreamHandle",
    "PodObjectStore",
]
