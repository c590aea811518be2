"""Error types raised by podlens."""

from enum import Enum
from typing import Any


class ErrorType(str, Enum):
    """Category of a podlens error."""

    TRANSPORT = "transport"
    NOT_FOUND = "not_found"
    SERVICE_UNAVAILABLE = "service_unavailable"


class PodLensException(Exception):
    """Base exception for podlens errors."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_type = error_type
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "error_type": self.error_type.value,
            "details": self.details,
        }


class TransportError(PodLensException):
    """The API server rejected a request or could not be reached."""

    def __init__(self, message: str, status: int | None = None, path: str | None = None):
        details: dict[str, Any] = {}
        if status is not None:
            details["status"] = status
        if path is not None:
            details["path"] = path
        super().__init__(message, ErrorType.TRANSPORT, details)
        self.status = status
        self.path = path


class ResourceNotFoundError(PodLensException):
    """The requested pod does not exist."""

    def __init__(self, namespace: str, name: str):
        super().__init__(
            f"Pod {namespace}/{name} not found",
            ErrorType.NOT_FOUND,
            {"namespace": namespace, "name": name},
        )


class ServiceUnavailableError(PodLensException):
    """The Kubernetes client could not be initialized."""

    def __init__(self, message: str):
        super().__init__(message, ErrorType.SERVICE_UNAVAILABLE)
