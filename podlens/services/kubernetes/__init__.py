"""Kubernetes-backed collaborators.

This module provides the client factory, the WebSocket/REST transport and
the pod store used against a real API server.
"""

from .client import get_api_client, get_core_api, get_current_namespace, initialize_client, is_available
from .store import KubernetesPodStore
from .transport import KubernetesStreamHandle, KubernetesTransport

__all__ = [
    "KubernetesTransport",
    "KubernetesStreamHandle",
    "KubernetesPodStore",
    "initialize_client",
    "get_api_client",
    "get_core_api",
    "get_current_namespace",
    "is_available",
]
