"""Fixtures for telemock unit tests."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from telemock.config import MockBackendConfig, ProvisionConfig
from telemock.interfaces import (
    Cluster,
    Environment,
    Namespace,
    NamespaceFactory,
    Pod,
    PortForwarder,
)
from telemock.registry import ResourceRegistry

TEST_NAMESPACE = "mock-stackdriver-a1b2c3d4"
TEST_ADDRESS = "127.0.0.1:43210"

MANIFEST = """\
apiVersion: apps/v1
kind: Deployment
metadata:
  name: stackdriver
"""


@pytest.fixture
def pod() -> Pod:
    return Pod(name="stackdriver-7d9f8-x2x4q", namespace=TEST_NAMESPACE, ready=True)


@pytest.fixture
def mock_forwarder() -> MagicMock:
    """Mock PortForwarder that starts successfully."""
    forwarder = MagicMock(spec=PortForwarder)
    forwarder.start = AsyncMock()
    forwarder.close = AsyncMock()
    forwarder.address = TEST_ADDRESS
    return forwarder


@pytest.fixture
def mock_cluster(pod: Pod, mock_forwarder: MagicMock) -> MagicMock:
    """Mock Cluster where every provisioning step succeeds."""
    cluster = MagicMock(spec=Cluster)
    cluster.name = "primary"
    cluster.apply_contents = AsyncMock()
    cluster.new_single_pod_fetch = MagicMock(return_value=AsyncMock(return_value=[pod]))
    cluster.wait_until_pods_are_ready = AsyncMock(return_value=[pod])
    cluster.new_port_forwarder = AsyncMock(return_value=mock_forwarder)
    return cluster


@pytest.fixture
def mock_namespace() -> MagicMock:
    namespace = MagicMock(spec=Namespace)
    namespace.name = TEST_NAMESPACE
    namespace.close = AsyncMock()
    return namespace


@pytest.fixture
def mock_namespace_factory(mock_namespace: MagicMock) -> MagicMock:
    factory = MagicMock(spec=NamespaceFactory)
    factory.new = AsyncMock(return_value=mock_namespace)
    return factory


@pytest.fixture
def registry(
    mock_cluster: MagicMock, mock_namespace_factory: MagicMock
) -> ResourceRegistry:
    """ResourceRegistry with a single default cluster."""
    return ResourceRegistry(Environment(clusters=[mock_cluster]), mock_namespace_factory)


@pytest.fixture
def manifest_path(tmp_path: Path) -> Path:
    path = tmp_path / "stackdriver.yaml"
    path.write_text(MANIFEST)
    return path


@pytest.fixture
def backend_config(manifest_path: Path) -> MockBackendConfig:
    return MockBackendConfig(manifest_path=manifest_path)


@pytest.fixture
def provision_config(backend_config: MockBackendConfig) -> ProvisionConfig:
    return ProvisionConfig(backend=backend_config)
