"""Log, exec and attach streaming against pod sub-resources."""

from .accumulator import LogAccumulator, decode_frame
from .endpoints import attach_path, evict, eviction_body, exec_path, log_path, pod_path
from .session import StreamSession, open_session

__all__ = [
    "LogAccumulator",
    "decode_frame",
    "StreamSession",
    "open_session",
    "pod_path",
    "log_path",
    "exec_path",
    "attach_path",
    "eviction_body",
    "evict",
]
