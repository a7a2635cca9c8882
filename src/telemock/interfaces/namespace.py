"""Workspace namespace interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from telemock.interfaces.resource import ResourceContext


class NamespaceConfig(BaseModel):
    """Namespace creation options."""

    prefix: str

    model_config = {"frozen": True}


class Namespace(ABC):
    """Isolated, uniquely named namespace owned by one fixture."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def close(self) -> None:
        """Delete the namespace."""
        ...


class NamespaceFactory(ABC):
    """Creates uniquely named namespaces.

    Implementations: KubectlNamespaceFactory
    """

    @abstractmethod
    async def new(self, ctx: ResourceContext, config: NamespaceConfig) -> Namespace:
        """Create a namespace named after config.prefix.

        Every call yields a distinct name, so concurrent fixtures never
        share a namespace.
        """
        ...
