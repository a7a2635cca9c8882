"""Interfaces of the collaborators the fixture depends on."""

from telemock.interfaces.cluster import Cluster, Pod, PodFetchFunc, PortForwarder
from telemock.interfaces.namespace import Namespace, NamespaceConfig, NamespaceFactory
from telemock.interfaces.resource import (
    Environment,
    Resource,
    ResourceContext,
    ResourceID,
    cluster_or_default,
)

__all__ = [
    # Cluster
    "Cluster",
    "Pod",
    "PodFetchFunc",
    "PortForwarder",
    # Namespace
    "Namespace",
    "NamespaceConfig",
    "NamespaceFactory",
    # Resource tracking
    "Environment",
    "Resource",
    "ResourceContext",
    "ResourceID",
    "cluster_or_default",
]
