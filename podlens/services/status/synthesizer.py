"""Pod status synthesis.

Produces the same reason, restart count and readiness that ``kubectl get pods``
prints for a pod.
"""

from ...models.pod import EPOCH, DetailedStatus, PodSnapshot, RunningState
from .classifier import classify

NODE_LOST = "NodeLost"


def has_ready_condition(snapshot: PodSnapshot) -> bool:
    """Whether the pod reports a ``Ready=True`` condition."""
    return any(c.type == "Ready" and c.status == "True" for c in snapshot.conditions)


def synthesize(snapshot: PodSnapshot) -> DetailedStatus:
    """Compute the detailed status of a pod snapshot.

    Init containers are visited in declared order and the first one that
    blocks startup decides the reason. Main containers are visited in
    reverse declared order, so the first declared container with a reason
    wins. A deletion timestamp overrides everything else.
    """
    restarts = 0
    total_containers = snapshot.spec_container_count
    ready_containers = 0
    message = ""
    last_restart = EPOCH
    reason = snapshot.status_reason or snapshot.status_phase or "Unknown"

    initializing = False
    for index, container in enumerate(snapshot.init_container_statuses):
        restarts += container.restart_count
        last_restart, result = classify(
            container,
            last_restart,
            init_index=index,
            init_container_count=snapshot.spec_init_container_count,
        )
        if result is None:
            continue
        reason, message = result.reason, result.message
        initializing = True
        break

    if not initializing:
        restarts = 0
        has_running = False
        for container in reversed(snapshot.container_statuses):
            restarts += container.restart_count
            last_restart, result = classify(container, last_restart)
            if result is not None:
                reason, message = result.reason, result.message
            elif container.ready and isinstance(container.state, RunningState):
                has_running = True
                ready_containers += 1

        # At least one container still runs, so the pod is not Completed yet
        if reason == "Completed" and has_running:
            reason = "Running" if has_ready_condition(snapshot) else "NotReady"

    if snapshot.deletion_timestamp is not None and snapshot.status_reason == NODE_LOST:
        reason = "Unknown"
    elif snapshot.deletion_timestamp is not None:
        reason = "Terminating"

    return DetailedStatus(
        restarts=restarts,
        reason=reason,
        message=message,
        total_containers=total_containers,
        ready_containers=min(ready_containers, total_containers),
        last_restart_date=last_restart,
    )
