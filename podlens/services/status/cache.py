"""Resource-version keyed cache for detailed pod status."""

import threading
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from ...models.pod import DetailedStatus, PodSnapshot
from .synthesizer import synthesize

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _CacheEntry:
    resource_version: str
    details: DetailedStatus


class StatusCache:
    """Single-slot status cache owned by one pod object.

    The slot holds an immutable ``(resource_version, details)`` record that is
    replaced as a whole, and the check-then-store sequence runs under a lock
    so concurrent readers of the same pod never lose an update.

    Snapshots without a resource version are never cached.
    """

    def __init__(self, synthesizer: Callable[[PodSnapshot], DetailedStatus] = synthesize) -> None:
        self._synthesize = synthesizer
        self._entry: _CacheEntry | None = None
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @property
    def resource_version(self) -> str | None:
        """Resource version of the cached entry, if any."""
        entry = self._entry
        return entry.resource_version if entry else None

    def get(self, snapshot: PodSnapshot) -> DetailedStatus:
        """Return the detailed status for ``snapshot``, computing it on a miss."""
        version = snapshot.resource_version
        if not version:
            with self._lock:
                self.misses += 1
            return self._synthesize(snapshot)

        with self._lock:
            entry = self._entry
            if entry is not None and entry.resource_version == version:
                self.hits += 1
                return entry.details

            self.misses += 1
            details = self._synthesize(snapshot)
            self._entry = _CacheEntry(resource_version=version, details=details)

        logger.debug(
            "Detailed status recomputed",
            resource_version=version,
            reason=details.reason,
        )
        return details

    def invalidate(self) -> None:
        """Drop the cached entry."""
        with self._lock:
            self._entry = None
