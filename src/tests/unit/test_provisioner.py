"""Unit tests for provision()."""

import logging
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from telemock.config import MockBackendConfig, ProvisionConfig
from telemock.errors import (
    EnvironmentResolutionError,
    ManifestError,
    PodReadinessError,
    ProvisioningError,
    ProvisioningStep,
    TunnelError,
    UnexpectedPodCountError,
    WorkspaceCreateError,
)
from telemock.fixture import MockBackendInstance, StackdriverInstance, provision
from telemock.interfaces import Environment, Pod, Resource
from telemock.logging_schema import CI_LOGGER
from telemock.registry import ResourceRegistry

from conftest import MANIFEST, TEST_ADDRESS, TEST_NAMESPACE


def _ci_messages(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [r.getMessage() for r in caplog.records if r.name == CI_LOGGER]


class TestProvisionSuccess:
    """Tests for a provisioning run where every step succeeds."""

    async def test_returns_ready_instance(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
    ) -> None:
        """Test the instance has its workspace and an open tunnel."""
        instance = await provision(registry, provision_config)

        assert isinstance(instance, MockBackendInstance)
        assert instance.workspace_name == TEST_NAMESPACE
        assert instance.tunnel is not None
        assert instance.tunnel.address == TEST_ADDRESS
        assert not instance.closed

    async def test_satisfies_instance_and_resource_contracts(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
    ) -> None:
        """Test the provisioned type implements both exported contracts."""
        instance = await provision(registry, provision_config)

        assert isinstance(instance, StackdriverInstance)
        assert isinstance(instance, Resource)

    async def test_tracks_instance_in_registry(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
    ) -> None:
        """Test the instance is registered and carries the registry id."""
        instance = await provision(registry, provision_config)

        assert registry.resources == [instance]
        assert instance.id == "MockBackendInstance/1"

    async def test_runs_steps_in_order(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        mock_cluster: MagicMock,
        mock_namespace_factory: MagicMock,
        mock_forwarder: MagicMock,
        pod: Pod,
    ) -> None:
        """Test namespace, apply, readiness and tunnel run with the right arguments."""
        await provision(registry, provision_config)

        new_call = mock_namespace_factory.new.call_args
        assert new_call.args[1].prefix == "mock-stackdriver"
        mock_cluster.apply_contents.assert_awaited_once_with(TEST_NAMESPACE, MANIFEST)
        mock_cluster.new_single_pod_fetch.assert_called_once_with(
            TEST_NAMESPACE, "app=stackdriver"
        )
        fetch = mock_cluster.new_single_pod_fetch.return_value
        mock_cluster.wait_until_pods_are_ready.assert_awaited_once_with(fetch)
        mock_cluster.new_port_forwarder.assert_awaited_once_with(pod, 0, 8091)
        mock_forwarder.start.assert_awaited_once()

    async def test_logs_begin_and_succeeded_markers(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test deployment outcome markers are logged on the CI logger."""
        with caplog.at_level(logging.INFO, logger=CI_LOGGER):
            await provision(registry, provision_config)

        assert _ci_messages(caplog) == [
            "=== BEGIN: Deploy Stackdriver ===",
            "=== SUCCEEDED: Deploy Stackdriver ===",
        ]

    async def test_uses_custom_backend_settings(
        self,
        registry: ResourceRegistry,
        mock_cluster: MagicMock,
        manifest_path: Path,
        pod: Pod,
    ) -> None:
        """Test selector and remote port come from the backend config."""
        backend = MockBackendConfig(
            manifest_path=manifest_path, label_selector="app=fake", remote_port=9999
        )

        await provision(registry, ProvisionConfig(backend=backend))

        mock_cluster.new_single_pod_fetch.assert_called_once_with(TEST_NAMESPACE, "app=fake")
        mock_cluster.new_port_forwarder.assert_awaited_once_with(pod, 0, 9999)

    async def test_explicit_cluster_override(
        self,
        mock_cluster: MagicMock,
        mock_namespace_factory: MagicMock,
        backend_config: MockBackendConfig,
    ) -> None:
        """Test ProvisionConfig.cluster selects a non-default cluster."""
        other = MagicMock()
        other.name = "secondary"
        registry = ResourceRegistry(
            Environment(clusters=[other, mock_cluster]), mock_namespace_factory
        )

        instance = await provision(
            registry, ProvisionConfig(cluster="primary", backend=backend_config)
        )

        assert instance.cluster is mock_cluster
        mock_cluster.apply_contents.assert_awaited_once()


class TestProvisionFailure:
    """Tests for failing provisioning steps."""

    async def test_unknown_cluster_fails_before_tracking(
        self,
        registry: ResourceRegistry,
        backend_config: MockBackendConfig,
        mock_namespace_factory: MagicMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test a bad cluster override fails without creating anything."""
        with caplog.at_level(logging.INFO, logger=CI_LOGGER):
            with pytest.raises(EnvironmentResolutionError) as exc_info:
                await provision(
                    registry, ProvisionConfig(cluster="missing", backend=backend_config)
                )

        assert exc_info.value.step == ProvisioningStep.RESOLVE_CLUSTER
        assert "missing" in str(exc_info.value)
        assert registry.resources == []
        mock_namespace_factory.new.assert_not_called()
        assert _ci_messages(caplog) == [
            "=== BEGIN: Deploy Stackdriver ===",
            "=== FAILED: Deploy Stackdriver ===",
        ]

    async def test_no_default_cluster(
        self,
        mock_namespace_factory: MagicMock,
        provision_config: ProvisionConfig,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test an empty environment fails cluster resolution."""
        registry = ResourceRegistry(Environment(), mock_namespace_factory)

        with caplog.at_level(logging.INFO, logger=CI_LOGGER):
            with pytest.raises(EnvironmentResolutionError):
                await provision(registry, provision_config)

        assert registry.resources == []
        mock_namespace_factory.new.assert_not_called()
        failed = [r for r in caplog.records if r.getMessage().startswith("=== FAILED")]
        assert _ci_messages(caplog) == [
            "=== BEGIN: Deploy Stackdriver ===",
            "=== FAILED: Deploy Stackdriver ===",
        ]
        assert failed[0].step == "resolve_cluster"

    async def test_namespace_creation_failure(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        mock_namespace_factory: MagicMock,
        mock_cluster: MagicMock,
    ) -> None:
        """Test namespace failure is wrapped and stops provisioning."""
        cause = RuntimeError("namespaces is forbidden")
        mock_namespace_factory.new.side_effect = cause

        with pytest.raises(WorkspaceCreateError) as exc_info:
            await provision(registry, provision_config)

        assert exc_info.value.__cause__ is cause
        assert "could not create mock-stackdriver Namespace" in str(exc_info.value)
        assert "namespaces is forbidden" in str(exc_info.value)
        mock_cluster.apply_contents.assert_not_called()

    async def test_manifest_apply_failure_is_fail_fast(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        manifest_path: Path,
        mock_cluster: MagicMock,
        mock_namespace: MagicMock,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Test apply failure names the manifest, skips later steps and cleans up."""
        mock_cluster.apply_contents.side_effect = RuntimeError("resource quota exceeded")

        with caplog.at_level(logging.INFO, logger=CI_LOGGER):
            with pytest.raises(ManifestError) as exc_info:
                await provision(registry, provision_config)

        message = str(exc_info.value)
        assert str(manifest_path) in message
        assert "resource quota exceeded" in message
        assert exc_info.value.step == ProvisioningStep.APPLY_MANIFEST
        mock_cluster.wait_until_pods_are_ready.assert_not_called()
        mock_cluster.new_port_forwarder.assert_not_called()
        mock_namespace.close.assert_awaited_once()
        assert _ci_messages(caplog) == [
            "=== BEGIN: Deploy Stackdriver ===",
            "=== FAILED: Deploy Stackdriver ===",
        ]

    async def test_manifest_read_failure(
        self,
        registry: ResourceRegistry,
        tmp_path: Path,
        mock_cluster: MagicMock,
    ) -> None:
        """Test a missing manifest file is reported with its path."""
        missing = tmp_path / "missing.yaml"
        config = ProvisionConfig(backend=MockBackendConfig(manifest_path=missing))

        with pytest.raises(ManifestError) as exc_info:
            await provision(registry, config)

        assert f"failed to read {missing}" in str(exc_info.value)
        mock_cluster.apply_contents.assert_not_called()

    async def test_readiness_failure_keeps_message(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        mock_cluster: MagicMock,
    ) -> None:
        """Test the readiness error message is carried unmodified."""
        cause = TimeoutError("pods not ready after 300s")
        mock_cluster.wait_until_pods_are_ready.side_effect = cause

        with pytest.raises(PodReadinessError) as exc_info:
            await provision(registry, provision_config)

        assert exc_info.value.detail == "pods not ready after 300s"
        assert exc_info.value.__cause__ is cause
        mock_cluster.new_port_forwarder.assert_not_called()

    @pytest.mark.parametrize("count", [0, 2])
    async def test_requires_exactly_one_pod(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        mock_cluster: MagicMock,
        pod: Pod,
        count: int,
    ) -> None:
        """Test any pod count other than one is a named error."""
        mock_cluster.wait_until_pods_are_ready.return_value = [pod] * count

        with pytest.raises(UnexpectedPodCountError) as exc_info:
            await provision(registry, provision_config)

        assert exc_info.value.found == count
        assert f"expected exactly one pod, found {count}" in str(exc_info.value)
        mock_cluster.new_port_forwarder.assert_not_called()

    async def test_forwarder_creation_failure(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        mock_cluster: MagicMock,
        mock_namespace: MagicMock,
    ) -> None:
        """Test port-forward creation failure raises TunnelError."""
        mock_cluster.new_port_forwarder.side_effect = RuntimeError("pod not found")

        with pytest.raises(TunnelError, match="pod not found"):
            await provision(registry, provision_config)

        mock_namespace.close.assert_awaited_once()

    async def test_tunnel_start_failure_tears_down_in_reverse(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        mock_forwarder: MagicMock,
        mock_namespace: MagicMock,
    ) -> None:
        """Test the tunnel is stopped before the namespace is deleted."""
        order: list[str] = []
        mock_forwarder.start.side_effect = OSError("address already in use")
        mock_forwarder.close.side_effect = lambda: order.append("tunnel")
        mock_namespace.close.side_effect = lambda: order.append("namespace")

        with pytest.raises(TunnelError) as exc_info:
            await provision(registry, provision_config)

        assert exc_info.value.step == ProvisioningStep.START_TUNNEL
        assert "address already in use" in str(exc_info.value)
        assert order == ["tunnel", "namespace"]

    async def test_teardown_errors_are_suppressed(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        mock_cluster: MagicMock,
        mock_namespace: MagicMock,
    ) -> None:
        """Test the step error is raised even when cleanup fails."""
        mock_cluster.apply_contents.side_effect = RuntimeError("resource quota exceeded")
        mock_namespace.close.side_effect = RuntimeError("namespace stuck terminating")

        with pytest.raises(ManifestError, match="resource quota exceeded"):
            await provision(registry, provision_config)

    async def test_failed_instance_stays_tracked_and_closed(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        mock_cluster: MagicMock,
    ) -> None:
        """Test registry teardown of a failed instance is a no-op."""
        mock_cluster.wait_until_pods_are_ready.side_effect = TimeoutError("not ready")

        with pytest.raises(ProvisioningError):
            await provision(registry, provision_config)

        [instance] = registry.resources
        assert instance.closed
        await registry.close_all()


class TestProvisionedFetch:
    """Tests fetching through a provisioned instance."""

    async def test_fetches_over_tunnel_address(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
    ) -> None:
        """Test fetches go to the tunnel's local address."""
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json={"timeSeries": []})

        instance = await provision(
            registry, provision_config, transport=httpx.MockTransport(handler)
        )
        result = await instance.list_time_series()

        assert result == []
        assert seen == [f"http://{TEST_ADDRESS}/timeseries"]

    async def test_close_stops_tunnel_and_deletes_namespace(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        mock_forwarder: MagicMock,
        mock_namespace: MagicMock,
    ) -> None:
        """Test registry teardown releases the tunnel and workspace."""
        instance = await provision(registry, provision_config)

        await registry.close_all()

        assert instance.closed
        mock_forwarder.close.assert_awaited_once()
        mock_namespace.close.assert_awaited_once()

    async def test_new_pod_fetch_is_used_for_readiness(
        self,
        registry: ResourceRegistry,
        provision_config: ProvisionConfig,
        mock_cluster: MagicMock,
    ) -> None:
        """Test the fetch function built for the selector is the one polled."""
        fetch = AsyncMock(return_value=[])
        mock_cluster.new_single_pod_fetch.return_value = fetch

        await provision(registry, provision_config)

        assert mock_cluster.wait_until_pods_are_ready.call_args.args == (fetch,)
