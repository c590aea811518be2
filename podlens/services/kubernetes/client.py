"""Kubernetes client factory.

Provides configured Kubernetes API clients for pod lookups, eviction and
streaming. Supports both in-cluster and out-of-cluster (kubeconfig)
authentication.
"""

import os

import structlog
from kubernetes import config
from kubernetes.client import ApiClient, ApiException, CoreV1Api

from ...config import settings

logger = structlog.get_logger(__name__)

SERVICE_ACCOUNT_NAMESPACE = "/var/run/secrets/kubernetes.io/serviceaccount/namespace"

# Global client instances
_api_client: ApiClient | None = None
_core_api: CoreV1Api | None = None
_initialized: bool = False
_init_error: str | None = None


def _load_config() -> bool:
    """Load Kubernetes configuration.

    Tries in-cluster config first, falls back to kubeconfig.

    Returns:
        True if configuration was loaded successfully.
    """
    global _init_error

    k8s = settings.kubernetes

    # Try in-cluster config first (when running in a pod), unless a kubeconfig was requested
    if not k8s.kubeconfig:
        try:
            config.load_incluster_config()
            logger.info("Loaded in-cluster Kubernetes configuration")
            return True
        except config.ConfigException:
            pass

    # A KUBECONFIG holding several paths is merged by the client itself
    kubeconfig_path = k8s.kubeconfig
    if kubeconfig_path and os.pathsep in kubeconfig_path:
        kubeconfig_path = None

    try:
        config.load_kube_config(config_file=kubeconfig_path, context=k8s.context)
        logger.info("Loaded kubeconfig", path=kubeconfig_path or "default", context=k8s.context)
        return True
    except Exception as e:
        _init_error = f"Failed to load Kubernetes config: {e}"
        logger.error(_init_error)
        return False


def initialize_client() -> bool:
    """Initialize the Kubernetes client.

    Returns:
        True if initialization was successful.
    """
    global _api_client, _core_api, _initialized, _init_error

    if _initialized:
        return _core_api is not None

    if not _load_config():
        _initialized = True
        return False

    try:
        _api_client = ApiClient()
        _core_api = CoreV1Api(_api_client)
        _initialized = True

        # Test the connection
        _core_api.get_api_resources()
        logger.info("Kubernetes client initialized successfully", host=_api_client.configuration.host)
        return True

    except ApiException as e:
        _init_error = f"Kubernetes API error: {e.reason}"
        logger.error(_init_error)
        _api_client = None
        _core_api = None
        _initialized = True
        return False
    except Exception as e:
        _init_error = f"Failed to initialize Kubernetes client: {e}"
        logger.error(_init_error)
        _api_client = None
        _core_api = None
        _initialized = True
        return False


def reset_client() -> None:
    """Forget the cached clients so the next call reinitializes them."""
    global _api_client, _core_api, _initialized, _init_error

    if _api_client is not None:
        _api_client.close()
    _api_client = None
    _core_api = None
    _initialized = False
    _init_error = None


def get_api_client() -> ApiClient | None:
    """Get the shared API client, or None if not available."""
    if not _initialized:
        initialize_client()
    return _api_client


def get_core_api() -> CoreV1Api | None:
    """Get the Core V1 API client for pod operations."""
    if not _initialized:
        initialize_client()
    return _core_api


def is_available() -> bool:
    """Check if Kubernetes client is available."""
    if not _initialized:
        initialize_client()
    return _core_api is not None


def get_initialization_error() -> str | None:
    """Get the initialization error message if any."""
    return _init_error


def get_current_namespace() -> str:
    """Get the current namespace.

    Uses the configured namespace, then the NAMESPACE/POD_NAMESPACE env
    vars, then the service account namespace when running in-cluster.
    """
    if settings.k8s_namespace:
        return settings.k8s_namespace

    # Check environment variable next
    namespace = os.getenv("NAMESPACE", os.getenv("POD_NAMESPACE"))
    if namespace:
        return namespace

    # Try to read from service account (in-cluster)
    try:
        with open(SERVICE_ACCOUNT_NAMESPACE) as f:
            return f.read().strip()
    except OSError:
        pass

    # Default namespace
    return "default"

