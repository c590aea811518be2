"""Pod lookups through the Core V1 API."""

import asyncio

import structlog
import urllib3
from kubernetes.client import ApiException, CoreV1Api

from ...models.errors import ResourceNotFoundError, ServiceUnavailableError, TransportError
from ..interfaces import PodObjectStore, Transport
from ..pod import Pod
from .client import get_core_api

logger = structlog.get_logger(__name__)


class KubernetesPodStore(PodObjectStore):
    """Fetches pods and binds them to a transport for eviction and streaming."""

    def __init__(self, transport: Transport | None = None, core_api: CoreV1Api | None = None) -> None:
        self.transport = transport
        self._core_api = core_api

    @property
    def core_api(self) -> CoreV1Api:
        if self._core_api is None:
            self._core_api = get_core_api()
        if self._core_api is None:
            raise ServiceUnavailableError("Kubernetes client not available")
        return self._core_api

    async def get_pod(self, namespace: str, name: str) -> Pod:
        core_api = self.core_api
        try:
            raw = await asyncio.to_thread(core_api.read_namespaced_pod, name=name, namespace=namespace)
        except ApiException as e:
            if e.status == 404:
                raise ResourceNotFoundError(namespace, name) from e
            logger.error("Failed to read pod", namespace=namespace, name=name, status=e.status)
            raise TransportError(
                f"Failed to read pod {namespace}/{name}: {e.reason}",
                status=e.status,
                path=f"/api/v1/namespaces/{namespace}/pods/{name}",
            ) from e
        except urllib3.exceptions.HTTPError as e:
            logger.error("Failed to read pod", namespace=namespace, name=name, error=str(e))
            raise TransportError(f"Failed to read pod {namespace}/{name}: {e}") from e

        # Back to the camelCase JSON document the status code works on
        data = core_api.api_client.sanitize_for_serialization(raw)
        return Pod(data, self.transport)
