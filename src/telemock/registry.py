"""In-process resource registry for test suites."""

from __future__ import annotations

import logging
from types import TracebackType

from telemock.interfaces import Environment, NamespaceFactory, Resource, ResourceContext, ResourceID
from telemock.logging_schema import LogEvent

logger = logging.getLogger(__name__)


class ResourceRegistry(ResourceContext):
    """Tracks fixtures and tears them down in reverse registration order.

    Usage:
        async with ResourceRegistry(env, KubectlNamespaceFactory(kubectl)) as ctx:
            backend = await provision(ctx)
            ...
    """

    def __init__(self, environment: Environment, namespaces: NamespaceFactory) -> None:
        self._environment = environment
        self._namespaces = namespaces
        self._resources: list[Resource] = []
        self._counter = 0

    @property
    def environment(self) -> Environment:
        return self._environment

    @property
    def namespaces(self) -> NamespaceFactory:
        return self._namespaces

    @property
    def resources(self) -> list[Resource]:
        return list(self._resources)

    def track_resource(self, resource: Resource) -> ResourceID:
        self._counter += 1
        resource_id = ResourceID(f"{type(resource).__name__}/{self._counter}")
        self._resources.append(resource)
        logger.debug(
            "Tracking %s",
            resource_id,
            extra={"event": LogEvent.RESOURCE_TRACKED, "resource": resource_id},
        )
        return resource_id

    async def close_all(self) -> None:
        """Close every tracked resource, newest first. Errors are logged."""
        while self._resources:
            resource = self._resources.pop()
            try:
                await resource.close()
            except Exception as e:
                logger.warning(
                    "Closing %s failed: %s",
                    type(resource).__name__,
                    e,
                    extra={"event": LogEvent.CLEANUP_FAILED},
                )

    async def __aenter__(self) -> ResourceRegistry:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close_all()
