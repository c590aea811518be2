"""Pod sub-resource paths and eviction."""

from typing import Any
from urllib.parse import quote

import structlog

from ...models.stream import ExecOptions, LogOptions
from ..interfaces import Transport

logger = structlog.get_logger(__name__)

# Characters encodeURIComponent leaves unescaped besides alphanumerics
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _encode(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def pod_path(namespace: str, name: str, subresource: str | None = None) -> str:
    """Build the API path of a pod or one of its sub-resources."""
    path = f"/api/v1/namespaces/{_encode(namespace)}/pods/{_encode(name)}"
    if subresource:
        path += f"/{subresource}"
    return path


def log_path(namespace: str, name: str, container: str, options: LogOptions) -> str:
    """Build the log endpoint path.

    A ``tail_lines`` of -1 requests the whole log, so the parameter is omitted.
    """
    path = (
        f"{pod_path(namespace, name, 'log')}?container={_encode(container)}"
        f"&previous={_flag(options.previous)}"
        f"&timestamps={_flag(options.timestamps)}"
        f"&follow={_flag(options.follow)}"
    )
    if options.tail_lines != -1:
        path += f"&tailLines={options.tail_lines}"
    return path


def exec_path(namespace: str, name: str, container: str, options: ExecOptions) -> str:
    """Build the exec endpoint path with one ``command`` parameter per argument."""
    command = "".join(f"&command={_encode(item)}" for item in options.command)
    return (
        f"{pod_path(namespace, name, 'exec')}?container={_encode(container)}{command}"
        f"&stdin={int(options.stdin)}"
        f"&stderr={int(options.stderr)}"
        f"&stdout={int(options.stdout)}"
        f"&tty={int(options.tty)}"
    )


def attach_path(namespace: str, name: str, container: str) -> str:
    """Build the attach endpoint path."""
    return (
        f"{pod_path(namespace, name, 'attach')}?container={_encode(container)}"
        "&stdin=true&stderr=true&stdout=true&tty=true"
    )


def eviction_body(namespace: str, name: str) -> dict[str, Any]:
    return {
        "apiVersion": "policy/v1",
        "kind": "Eviction",
        "metadata": {"name": name, "namespace": namespace},
    }


async def evict(transport: Transport, namespace: str, name: str) -> Any:
    """Evict a pod through its eviction sub-resource.

    Raises:
        TransportError: If the API server rejects the eviction.
    """
    path = pod_path(namespace, name, "eviction")
    logger.info("Evicting pod", namespace=namespace, pod=name)
    return await transport.post(path, eviction_body(namespace, name))
