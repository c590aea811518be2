"""Kubernetes-specific configuration.

This module provides the settings used to reach the API server and to
manage streaming connections against pod sub-resources.
"""

from dataclasses import dataclass


@dataclass
class KubernetesConfig:
    """Kubernetes client configuration."""

    # Default namespace for pod lookups (resolved from the environment if empty)
    namespace: str = ""

    # Kubeconfig file and context, used when not running in-cluster
    kubeconfig: str | None = None
    context: str | None = None

    # Timeout for non-streaming requests such as eviction
    request_timeout_seconds: int = 30

    # Reconnect policy for followed log streams
    # Each attempt waits backoff * 2**attempt seconds, capped at max_backoff
    reconnect_attempts: int = 3
    reconnect_backoff_seconds: float = 1.0
    reconnect_max_backoff_seconds: float = 30.0

    def get_reconnect_delay(self, attempt: int) -> float:
        """Get the delay before a reconnect attempt.

        Args:
            attempt: Zero-based reconnect attempt number

        Returns:
            Delay in seconds.
        """
        delay = self.reconnect_backoff_seconds * (2**attempt)
        return min(delay, self.reconnect_max_backoff_seconds)
