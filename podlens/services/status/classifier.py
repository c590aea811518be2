"""Per-container status classification.

Implements the container-level rules of the kubectl pod printer:
https://github.com/kubernetes/kubernetes/blob/7b6293b6b6a5662fc37f440e839cf5da8b96e935/pkg/printers/internalversion/printers.go#L759
"""

from dataclasses import dataclass
from datetime import datetime

from ...models.pod import ContainerStatus, TerminatedState, WaitingState

POD_INITIALIZING = "PodInitializing"


@dataclass(frozen=True)
class ContainerClassification:
    """Reason a container contributes to the pod status."""

    reason: str
    message: str
    is_init_blocking: bool = False


def advance_last_restart(status: ContainerStatus, last_restart: datetime) -> datetime:
    """Return the later of ``last_restart`` and the container's last termination."""
    last_state = status.last_state
    if isinstance(last_state, TerminatedState) and last_state.finished_at is not None:
        if last_state.finished_at > last_restart:
            return last_state.finished_at
    return last_restart


def _terminated_reason(state: TerminatedState) -> str:
    if state.reason:
        return state.reason
    if state.signal != 0:
        return f"Signal:{state.signal}"
    return f"ExitCode:{state.exit_code}"


def _classify_init(status: ContainerStatus, index: int, init_container_count: int) -> ContainerClassification | None:
    state = status.state

    if isinstance(state, TerminatedState):
        if state.exit_code == 0:
            return None
        return ContainerClassification(
            reason=f"Init:{_terminated_reason(state)}",
            message=state.message,
            is_init_blocking=True,
        )

    if isinstance(state, WaitingState) and state.reason and state.reason != POD_INITIALIZING:
        return ContainerClassification(
            reason=f"Init:{state.reason}",
            message=state.message,
            is_init_blocking=True,
        )

    return ContainerClassification(
        reason=f"Init:{index}/{init_container_count}",
        message="",
        is_init_blocking=True,
    )


def _classify_main(status: ContainerStatus) -> ContainerClassification | None:
    state = status.state

    if isinstance(state, WaitingState) and state.reason:
        return ContainerClassification(reason=state.reason, message=state.message)

    if isinstance(state, TerminatedState):
        return ContainerClassification(reason=_terminated_reason(state), message=state.message)

    return None


def classify(
    status: ContainerStatus,
    last_restart: datetime,
    *,
    init_index: int | None = None,
    init_container_count: int = 0,
) -> tuple[datetime, ContainerClassification | None]:
    """Classify one container status.

    Args:
        status: Container status to classify
        last_restart: Latest restart time seen so far
        init_index: Position in ``initContainerStatuses``; None for main containers
        init_container_count: Number of init containers declared in the pod spec

    Returns:
        Tuple of (new last-restart time, classification). The classification
        is None when the container does not affect the pod reason: an init
        container that exited cleanly, or a main container that is running
        or has no state.
    """
    new_last_restart = advance_last_restart(status, last_restart)
    if init_index is not None:
        return new_last_restart, _classify_init(status, init_index, init_container_count)
    return new_last_restart, _classify_main(status)
