"""Data models for pod status synthesis.

These are immutable value types parsed from the pod documents the API
server returns. Parsing never fails on shape errors: missing or malformed
fields degrade to empty defaults so status synthesis always has something
to work with.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Start value for the last-restart search; any real finishedAt is later.
EPOCH = datetime.fromtimestamp(0, UTC)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp, returning None when absent or invalid."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class WaitingState:
    """Container is not yet running."""

    reason: str = ""
    message: str = ""


@dataclass(frozen=True)
class RunningState:
    """Container is executing."""

    started_at: datetime | None = None


@dataclass(frozen=True)
class TerminatedState:
    """Container ran and exited."""

    exit_code: int = 0
    signal: int = 0
    reason: str = ""
    message: str = ""
    finished_at: datetime | None = None


ContainerState = WaitingState | RunningState | TerminatedState | None


def parse_container_state(data: Any) -> ContainerState:
    """Parse a ``{waiting|running|terminated: {...}}`` mapping.

    Exactly one variant is expected. If a malformed payload populates more
    than one, terminated wins over waiting, and waiting over running.
    """
    data = _as_dict(data)

    terminated = data.get("terminated")
    if isinstance(terminated, dict):
        return TerminatedState(
            exit_code=_as_int(terminated.get("exitCode")),
            signal=_as_int(terminated.get("signal")),
            reason=_as_str(terminated.get("reason")),
            message=_as_str(terminated.get("message")),
            finished_at=parse_timestamp(terminated.get("finishedAt")),
        )

    waiting = data.get("waiting")
    if isinstance(waiting, dict):
        return WaitingState(
            reason=_as_str(waiting.get("reason")),
            message=_as_str(waiting.get("message")),
        )

    running = data.get("running")
    if isinstance(running, dict):
        return RunningState(started_at=parse_timestamp(running.get("startedAt")))

    return None


@dataclass(frozen=True)
class ContainerStatus:
    """Server-reported status of one container."""

    name: str = ""
    ready: bool = False
    restart_count: int = 0
    state: ContainerState = None
    last_state: ContainerState = None

    @classmethod
    def from_dict(cls, data: Any) -> "ContainerStatus":
        data = _as_dict(data)
        return cls(
            name=_as_str(data.get("name")),
            ready=data.get("ready") is True,
            restart_count=max(_as_int(data.get("restartCount")), 0),
            state=parse_container_state(data.get("state")),
            last_state=parse_container_state(data.get("lastState")),
        )


@dataclass(frozen=True)
class PodCondition:
    """A single entry of ``status.conditions``."""

    type: str
    status: str

    @classmethod
    def from_dict(cls, data: Any) -> "PodCondition":
        data = _as_dict(data)
        return cls(type=_as_str(data.get("type")), status=_as_str(data.get("status")))


@dataclass(frozen=True)
class PodSnapshot:
    """Immutable view of the pod fields status synthesis reads.

    Container status order mirrors the server-reported declaration order
    and drives precedence, so it is preserved as-is.
    """

    resource_version: str = ""
    deletion_timestamp: datetime | None = None
    spec_container_count: int = 0
    spec_init_container_count: int = 0
    status_phase: str = ""
    status_reason: str | None = None
    init_container_statuses: tuple[ContainerStatus, ...] = ()
    container_statuses: tuple[ContainerStatus, ...] = ()
    conditions: tuple[PodCondition, ...] = ()

    @classmethod
    def from_dict(cls, pod: Any) -> "PodSnapshot":
        """Build a snapshot from a pod JSON document."""
        pod = _as_dict(pod)
        metadata = _as_dict(pod.get("metadata"))
        spec = _as_dict(pod.get("spec"))
        status = _as_dict(pod.get("status"))

        # An unparseable deletionTimestamp still marks the pod as deleting.
        raw_deletion = metadata.get("deletionTimestamp")
        deletion = parse_timestamp(raw_deletion)
        if deletion is None and raw_deletion:
            deletion = EPOCH

        return cls(
            resource_version=_as_str(metadata.get("resourceVersion")),
            deletion_timestamp=deletion,
            spec_container_count=len(_as_list(spec.get("containers"))),
            spec_init_container_count=len(_as_list(spec.get("initContainers"))),
            status_phase=_as_str(status.get("phase")),
            status_reason=_as_str(status.get("reason")) or None,
            init_container_statuses=tuple(
                ContainerStatus.from_dict(c) for c in _as_list(status.get("initContainerStatuses"))
            ),
            container_statuses=tuple(
                ContainerStatus.from_dict(c) for c in _as_list(status.get("containerStatuses"))
            ),
            conditions=tuple(PodCondition.from_dict(c) for c in _as_list(status.get("conditions"))),
        )


@dataclass(frozen=True)
class DetailedStatus:
    """Display-ready status summary of a pod."""

    restarts: int
    reason: str
    message: str
    total_containers: int
    ready_containers: int
    last_restart_date: datetime = field(default=EPOCH)
