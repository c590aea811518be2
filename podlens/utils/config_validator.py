"""Configuration validation utilities."""

import logging
import os
from typing import Any

from ..config import settings
from ..services.kubernetes import client

logger = logging.getLogger(__name__)


class ConfigValidator:
    """Validates podlens configuration and API server connectivity."""

    def __init__(self, check_cluster: bool = True):
        self.check_cluster = check_cluster
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def validate_all(self) -> bool:
        """Validate all configuration settings and, optionally, the cluster."""
        self.errors.clear()
        self.warnings.clear()

        self._validate_kubeconfig()
        self._validate_stream_config()
        if self.check_cluster:
            self._validate_cluster_connection()

        if self.warnings:
            for warning in self.warnings:
                logger.warning(f"Configuration warning: {warning}")

        if self.errors:
            for error in self.errors:
                logger.error(f"Configuration error: {error}")
            return False

        return True

    def _validate_kubeconfig(self):
        """Validate the kubeconfig path, if one is set."""
        if not settings.kubeconfig:
            return

        # Several paths are merged by the client; only report the missing ones
        paths = [p for p in settings.kubeconfig.split(os.pathsep) if p]
        missing = [p for p in paths if not os.path.isfile(os.path.expanduser(p))]
        if missing and len(missing) == len(paths):
            self.errors.append(f"Kubeconfig not found: {settings.kubeconfig}")
        elif missing:
            self.warnings.append(f"Some kubeconfig files are missing: {', '.join(missing)}")

    def _validate_stream_config(self):
        """Validate log stream reconnect settings."""
        if settings.stream_reconnect_attempts == 0:
            self.warnings.append("Followed log streams will not reconnect (STREAM_RECONNECT_ATTEMPTS=0)")

        k8s = settings.kubernetes
        total_wait = sum(k8s.get_reconnect_delay(attempt) for attempt in range(k8s.reconnect_attempts))
        if total_wait > 300:
            self.warnings.append(f"Log streams may wait {total_wait:.0f}s before reporting a stopped reconnect")

    def _validate_cluster_connection(self):
        """Validate that the API server is reachable."""
        try:
            if not client.is_available():
                self.errors.append(f"Cannot reach Kubernetes API server: {client.get_initialization_error()}")
        except Exception as e:
            self.errors.append(f"Kubernetes validation error: {e}")


def validate_configuration(check_cluster: bool = True) -> bool:
    """Validate podlens configuration."""
    validator = ConfigValidator(check_cluster=check_cluster)
    return validator.validate_all()


def get_configuration_summary() -> dict[str, Any]:
    """Get a summary of current configuration for debugging."""
    return {
        "log_level": settings.log_level,
        "log_format": settings.log_format,
        "kubeconfig": settings.kubeconfig or "in-cluster/default",
        "context": settings.k8s_context,
        "namespace": client.get_current_namespace(),
        "reconnect_attempts": settings.stream_reconnect_attempts,
    }
