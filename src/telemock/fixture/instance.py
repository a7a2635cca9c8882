"""Provisioned mock telemetry backend."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

import httpx

from telemock.errors import TelemetryFetchError
from telemock.fixture.fetcher import (
    DEFAULT_FETCH_TIMEOUT,
    LOGENTRIES_PATH,
    TIMESERIES_PATH,
    TelemetryFetcher,
)
from telemock.fixture.tunnel import TunnelHandle
from telemock.interfaces import Cluster, Namespace, Resource, ResourceID
from telemock.logging_schema import LogEvent
from telemock.models import LogEntry, TimeSeries

logger = logging.getLogger(__name__)

Teardown = Callable[[], Awaitable[None]]


class StackdriverInstance(ABC):
    """What test code gets back from provision()."""

    @abstractmethod
    async def list_time_series(self) -> list[TimeSeries]:
        """Normalized time series buffered by the backend.

        Raises:
            TelemetryFetchError: Fetch failed. The instance stays usable.
        """
        ...

    @abstractmethod
    async def list_log_entries(self) -> list[LogEntry]:
        """Normalized log entries buffered by the backend.

        Raises:
            TelemetryFetchError: Fetch failed. The instance stays usable.
        """
        ...

    @property
    @abstractmethod
    def workspace_name(self) -> str:
        """Namespace the backend is deployed in."""
        ...

    @abstractmethod
    async def close(self) -> None:
        ...


class MockBackendInstance(StackdriverInstance, Resource):
    """Mock backend deployed into its own namespace and reached over a tunnel.

    Fields are set once, during provisioning. Every acquired resource is
    pushed onto a teardown list that close() unwinds in reverse order.
    """

    def __init__(
        self,
        cluster: Cluster,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cluster = cluster
        self._fetch_timeout = fetch_timeout
        self._transport = transport
        self._id: ResourceID | None = None
        self._namespace: Namespace | None = None
        self._tunnel: TunnelHandle | None = None
        self._fetcher: TelemetryFetcher | None = None
        self._teardown: list[tuple[str, Teardown]] = []
        self._closed = False

    # =========================================================================
    # Provisioning (write-once)
    # =========================================================================

    def bind_id(self, resource_id: ResourceID) -> None:
        if self._id is not None:
            raise RuntimeError("instance id already assigned")
        self._id = resource_id

    def attach_namespace(self, namespace: Namespace) -> None:
        if self._namespace is not None:
            raise RuntimeError("namespace already attached")
        self._namespace = namespace
        self._teardown.append((f"namespace {namespace.name}", namespace.close))

    def attach_tunnel(self, tunnel: TunnelHandle) -> None:
        """Register tunnel for teardown. Call before starting it."""
        if self._tunnel is not None:
            raise RuntimeError("tunnel already attached")
        self._tunnel = tunnel
        self._teardown.append(("tunnel", tunnel.close))

    def activate(self) -> None:
        """Enable fetching. Requires a started tunnel."""
        if self._tunnel is None:
            raise RuntimeError("no tunnel attached")
        self._fetcher = TelemetryFetcher(
            self._tunnel.address,
            timeout=self._fetch_timeout,
            transport=self._transport,
        )

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def id(self) -> ResourceID:
        if self._id is None:
            raise RuntimeError("instance is not tracked")
        return self._id

    @property
    def cluster(self) -> Cluster:
        return self._cluster

    @property
    def tunnel(self) -> TunnelHandle | None:
        return self._tunnel

    @property
    def workspace_name(self) -> str:
        if self._namespace is None:
            raise RuntimeError("namespace not created")
        return self._namespace.name

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Fetch
    # =========================================================================

    def _require_fetcher(self, path: str) -> TelemetryFetcher:
        if self._closed:
            raise TelemetryFetchError(path, "instance is closed")
        if self._fetcher is None:
            raise TelemetryFetchError(path, "instance is not provisioned")
        return self._fetcher

    async def list_time_series(self) -> list[TimeSeries]:
        return await self._require_fetcher(TIMESERIES_PATH).list_time_series()

    async def list_log_entries(self) -> list[LogEntry]:
        return await self._require_fetcher(LOGENTRIES_PATH).list_log_entries()

    # =========================================================================
    # Teardown
    # =========================================================================

    async def close(self) -> None:
        """Stop the tunnel and delete the namespace.

        Best effort: each failure is logged and the rest still run.
        Never raises; safe to call more than once.
        """
        if self._closed:
            return
        self._closed = True
        self._fetcher = None

        logger.info("Tearing down mock backend", extra={"event": LogEvent.CLEANUP_STARTED})
        failed = 0
        while self._teardown:
            name, teardown = self._teardown.pop()
            try:
                await teardown()
            except Exception as e:
                failed += 1
                logger.warning(
                    "Teardown of %s failed: %s",
                    name,
                    e,
                    extra={"event": LogEvent.CLEANUP_FAILED, "resource": name},
                )

        logger.info(
            "Mock backend torn down",
            extra={"event": LogEvent.CLEANUP_COMPLETED, "failed": failed},
        )
