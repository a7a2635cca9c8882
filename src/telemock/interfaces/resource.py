"""Resource tracking and environment interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import NewType

from telemock.errors import EnvironmentResolutionError
from telemock.interfaces.cluster import Cluster
from telemock.interfaces.namespace import NamespaceFactory

ResourceID = NewType("ResourceID", str)


class Resource(ABC):
    """Anything a ResourceContext tracks and tears down."""

    @property
    @abstractmethod
    def id(self) -> ResourceID:
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release every external resource held. Must not raise."""
        ...


@dataclass
class Environment:
    """Clusters available to a test run.

    The first cluster is the default unless default_name says otherwise.
    """

    clusters: list[Cluster] = field(default_factory=list)
    default_name: str | None = None

    @property
    def default_cluster(self) -> Cluster | None:
        if self.default_name is not None:
            return self.get(self.default_name)
        return self.clusters[0] if self.clusters else None

    def get(self, name: str) -> Cluster | None:
        for cluster in self.clusters:
            if cluster.name == name:
                return cluster
        return None


def cluster_or_default(name: str | None, env: Environment) -> Cluster:
    """Resolve an explicit cluster name, falling back to the environment default.

    Raises:
        EnvironmentResolutionError: Unknown name, or no default available.
    """
    if name is not None:
        cluster = env.get(name)
        if cluster is None:
            known = ", ".join(c.name for c in env.clusters) or "none"
            raise EnvironmentResolutionError(f"unknown cluster {name!r} (known: {known})")
        return cluster

    cluster = env.default_cluster
    if cluster is None:
        raise EnvironmentResolutionError("environment has no default cluster")
    return cluster


class ResourceContext(ABC):
    """Context handed to fixtures by the test framework.

    Implementations: ResourceRegistry
    """

    @property
    @abstractmethod
    def environment(self) -> Environment:
        ...

    @property
    @abstractmethod
    def namespaces(self) -> NamespaceFactory:
        ...

    @abstractmethod
    def track_resource(self, resource: Resource) -> ResourceID:
        """Register resource for teardown and return its identity."""
        ...
