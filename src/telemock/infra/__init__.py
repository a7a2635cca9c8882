"""Infrastructure layer."""

from telemock.infra.kubectl import (
    Kubectl,
    KubectlCluster,
    KubectlNamespace,
    KubectlNamespaceFactory,
    KubectlPortForwarder,
)

__all__ = [
    "Kubectl",
    "KubectlCluster",
    "KubectlNamespace",
    "KubectlNamespaceFactory",
    "KubectlPortForwarder",
]
