"""Deploy, wait for and tunnel to a mock telemetry backend.

provision() runs strictly in order:
1. Resolve the target cluster
2. Track the instance with the resource context
3. Create the workspace namespace
4. Read and apply the deployment manifest
5. Wait for exactly one ready backend pod
6. Open and start a port-forward to the backend port

The BEGIN marker precedes step 1 and every failure logs FAILED. Failures
after step 2 tear down what was created; no partially provisioned instance
is ever returned.
"""

from __future__ import annotations

import logging

import httpx

from telemock.config import MockBackendConfig, ProvisionConfig, TelemockConfig, get_config
from telemock.errors import (
    ManifestError,
    PodReadinessError,
    ProvisioningError,
    TunnelError,
    UnexpectedPodCountError,
    WorkspaceCreateError,
)
from telemock.fixture.instance import MockBackendInstance
from telemock.fixture.tunnel import TunnelHandle
from telemock.interfaces import Cluster, NamespaceConfig, ResourceContext, cluster_or_default
from telemock.logging_schema import CI_LOGGER, LogEvent

logger = logging.getLogger(__name__)
ci_logger = logging.getLogger(CI_LOGGER)


async def provision(
    ctx: ResourceContext,
    config: ProvisionConfig | None = None,
    *,
    settings: TelemockConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MockBackendInstance:
    """Deploy the mock backend and return a ready instance.

    Args:
        ctx: Test resource context (environment, namespaces, registry).
        config: Cluster override and backend settings override.
        settings: Base settings (default: environment configuration).
        transport: httpx transport used by the instance's fetches.

    Raises:
        ProvisioningError: A step failed. ``step`` names it and
            ``__cause__`` holds the underlying error.
    """
    config = config or ProvisionConfig()
    backend = config.backend or (settings or get_config()).backend

    ci_logger.info(
        "=== BEGIN: Deploy Stackdriver ===",
        extra={"event": LogEvent.DEPLOY_STARTED, "cluster": config.cluster},
    )
    try:
        cluster = cluster_or_default(config.cluster, ctx.environment)
    except ProvisioningError as e:
        _log_failed(e, config.cluster)
        raise

    instance = MockBackendInstance(
        cluster, fetch_timeout=backend.fetch_timeout, transport=transport
    )
    instance.bind_id(ctx.track_resource(instance))

    try:
        await _deploy(ctx, instance, cluster, backend)
    except BaseException as e:
        _log_failed(e, cluster.name)
        await instance.close()
        raise

    ci_logger.info(
        "=== SUCCEEDED: Deploy Stackdriver ===",
        extra={
            "event": LogEvent.DEPLOY_SUCCEEDED,
            "cluster": cluster.name,
            "namespace": instance.workspace_name,
        },
    )
    return instance


def _log_failed(e: BaseException, cluster: str | None) -> None:
    ci_logger.info(
        "=== FAILED: Deploy Stackdriver ===",
        extra={
            "event": LogEvent.DEPLOY_FAILED,
            "cluster": cluster,
            "step": e.step.value if isinstance(e, ProvisioningError) else None,
            "error": str(e),
        },
    )


async def _deploy(
    ctx: ResourceContext,
    instance: MockBackendInstance,
    cluster: Cluster,
    backend: MockBackendConfig,
) -> None:
    try:
        namespace = await ctx.namespaces.new(
            ctx, NamespaceConfig(prefix=backend.namespace_prefix)
        )
    except Exception as e:
        raise WorkspaceCreateError(backend.namespace_prefix, e) from e
    instance.attach_namespace(namespace)
    logger.info(
        "Created namespace %s",
        namespace.name,
        extra={"event": LogEvent.NAMESPACE_CREATED, "namespace": namespace.name},
    )

    path = str(backend.manifest_path)
    try:
        manifest = backend.manifest_path.read_text()
    except OSError as e:
        raise ManifestError(path, e, applying=False) from e
    try:
        await cluster.apply_contents(namespace.name, manifest)
    except Exception as e:
        raise ManifestError(path, e, applying=True) from e
    logger.info(
        "Applied %s",
        path,
        extra={"event": LogEvent.MANIFEST_APPLIED, "namespace": namespace.name},
    )

    fetch = cluster.new_single_pod_fetch(namespace.name, backend.label_selector)
    try:
        pods = await cluster.wait_until_pods_are_ready(fetch)
    except Exception as e:
        raise PodReadinessError(e) from e
    if len(pods) != 1:
        raise UnexpectedPodCountError(len(pods))
    pod = pods[0]
    logger.info(
        "Pod %s ready",
        pod.name,
        extra={"event": LogEvent.POD_READY, "namespace": namespace.name, "pod": pod.name},
    )

    try:
        forwarder = await cluster.new_port_forwarder(pod, 0, backend.remote_port)
    except Exception as e:
        raise TunnelError(str(e)) from e
    tunnel = TunnelHandle(forwarder)
    instance.attach_tunnel(tunnel)
    try:
        await tunnel.start()
    except Exception as e:
        raise TunnelError(str(e)) from e

    instance.activate()
    logger.debug("initialized stackdriver port forwarder: %s", tunnel.address)
