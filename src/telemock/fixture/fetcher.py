"""HTTP fetcher for the mock backend's buffered telemetry."""

from __future__ import annotations

import logging
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from telemock.errors import TelemetryFetchError
from telemock.fixture.normalize import normalize_log_entry, normalize_time_series
from telemock.logging_schema import LogEvent
from telemock.models import ListLogEntriesResponse, ListTimeSeriesResponse, LogEntry, TimeSeries

logger = logging.getLogger(__name__)

TIMESERIES_PATH = "/timeseries"
LOGENTRIES_PATH = "/logentries"

DEFAULT_FETCH_TIMEOUT = 5.0

E = TypeVar("E", bound=BaseModel)


class TelemetryFetcher:
    """Fetches and normalizes records over the tunnel.

    Every call uses its own client with a fixed timeout, so a hung backend
    fails the call instead of stalling the test run.
    """

    def __init__(
        self,
        address: str,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = f"http://{address}"
        self._timeout = timeout
        self._transport = transport

    async def _get(self, path: str, envelope: type[E]) -> E:
        """GET path and decode the body as envelope.

        Raises:
            TelemetryFetchError: Transport, status, read or decode failure.
        """
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                resp = await client.get(path)
                resp.raise_for_status()
                return envelope.model_validate_json(resp.content)
        except (httpx.HTTPError, ValidationError) as e:
            logger.warning(
                "Fetch failed",
                extra={"event": LogEvent.FETCH_FAILED, "path": path, "error": str(e)},
            )
            raise TelemetryFetchError(path, str(e) or type(e).__name__) from e

    async def list_time_series(self) -> list[TimeSeries]:
        """Fetch GET /timeseries, normalized."""
        resp = await self._get(TIMESERIES_PATH, ListTimeSeriesResponse)
        result = [normalize_time_series(ts) for ts in resp.time_series]
        logger.debug(
            "Fetched time series",
            extra={"event": LogEvent.FETCH_COMPLETED, "path": TIMESERIES_PATH, "count": len(result)},
        )
        return result

    async def list_log_entries(self) -> list[LogEntry]:
        """Fetch GET /logentries, normalized."""
        resp = await self._get(LOGENTRIES_PATH, ListLogEntriesResponse)
        result = [normalize_log_entry(entry) for entry in resp.entries]
        logger.debug(
            "Fetched log entries",
            extra={"event": LogEvent.FETCH_COMPLETED, "path": LOGENTRIES_PATH, "count": len(result)},
        )
        return result
