"""Pod status summaries and log, exec and attach streams for Kubernetes pods."""

from .models import DetailedStatus, LogOptions, ExecOptions, AttachOptions
from .services import Pod, StatusCache, StreamSession, synthesize

__version__ = "0.1.0"

__all__ = [
    "Pod",
    "DetailedStatus",
    "StatusCache",
    "StreamSession",
    "synthesize",
    "LogOptions",
    "ExecOptions",
    "AttachOptions",
    "__version__",
]
