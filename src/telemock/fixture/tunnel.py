"""Lifetime-scoped handle on a port-forward."""

import logging

from telemock.errors import TunnelError
from telemock.interfaces import PortForwarder
from telemock.logging_schema import LogEvent

logger = logging.getLogger(__name__)


class TunnelHandle:
    """Owns the start/stop sequencing of a PortForwarder.

    No reconnect: if the forward dies, fetches fail with a connection error.
    """

    def __init__(self, forwarder: PortForwarder) -> None:
        self._forwarder = forwarder
        self._started = False
        self._closed = False

    @property
    def started(self) -> bool:
        return self._started and not self._closed

    async def start(self) -> None:
        """Start forwarding.

        Errors from the forwarder propagate unchanged.

        Raises:
            TunnelError: Handle already closed.
        """
        if self._closed:
            raise TunnelError("tunnel already closed")
        await self._forwarder.start()
        self._started = True
        logger.info(
            "Tunnel started",
            extra={"event": LogEvent.TUNNEL_STARTED, "address": self._forwarder.address},
        )

    @property
    def address(self) -> str:
        """Local host:port of the open forward."""
        if not self.started:
            raise TunnelError("tunnel is not open")
        return self._forwarder.address

    @property
    def url(self) -> str:
        return f"http://{self.address}"

    async def close(self) -> None:
        """Stop forwarding. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._forwarder.close()
        logger.info("Tunnel stopped", extra={"event": LogEvent.TUNNEL_STOPPED})
