"""Cluster interface consumed by the provisioner.

Only the operations the fixture needs are declared here. Pod discovery
polling and port-forward transport are owned by implementations.

Implementations: KubectlCluster
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from pydantic import BaseModel


class Pod(BaseModel):
    """Pod observation result."""

    name: str
    namespace: str
    ready: bool = False

    model_config = {"frozen": True}


PodFetchFunc = Callable[[], Awaitable[list[Pod]]]


class PortForwarder(ABC):
    """Local endpoint forwarding to a port on a pod."""

    @abstractmethod
    async def start(self) -> None:
        """Open the forward. Returns once the local address is known."""
        ...

    @property
    @abstractmethod
    def address(self) -> str:
        """Local host:port of the forward. Valid after start() returns."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Stop forwarding."""
        ...


class Cluster(ABC):
    """Target cluster abstraction."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Cluster identifier used for explicit selection."""
        ...

    @abstractmethod
    async def apply_contents(self, namespace: str, manifest: str) -> None:
        """Apply manifest text into namespace.

        Args:
            namespace: Target namespace
            manifest: YAML manifest contents
        """
        ...

    @abstractmethod
    def new_single_pod_fetch(self, namespace: str, label_selector: str) -> PodFetchFunc:
        """Build a fetch function listing pods matching label_selector.

        Args:
            namespace: Namespace to search
            label_selector: Kubernetes label selector (e.g., "app=stackdriver")

        Returns:
            Async callable returning the matching pods
        """
        ...

    @abstractmethod
    async def wait_until_pods_are_ready(self, fetch: PodFetchFunc) -> list[Pod]:
        """Poll fetch until every returned pod is ready.

        Timeout and polling interval are owned by the implementation.

        Returns:
            The ready pods
        """
        ...

    @abstractmethod
    async def new_port_forwarder(
        self, pod: Pod, local_port: int, remote_port: int
    ) -> PortForwarder:
        """Create (but do not start) a port-forward to pod.

        Args:
            pod: Target pod
            local_port: Local port, 0 for an ephemeral one
            remote_port: Port on the pod
        """
        ...
