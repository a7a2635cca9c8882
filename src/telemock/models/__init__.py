"""Wire models for mock backend telemetry records."""

from telemock.models.common import MonitoredResource
from telemock.models.logentry import HttpRequest, ListLogEntriesResponse, LogEntry, LogSeverity
from telemock.models.timeseries import (
    ListTimeSeriesResponse,
    Metric,
    Point,
    TimeInterval,
    TimeSeries,
)

__all__ = [
    "MonitoredResource",
    # Logging
    "HttpRequest",
    "ListLogEntriesResponse",
    "LogEntry",
    "LogSeverity",
    # Monitoring
    "ListTimeSeriesResponse",
    "Metric",
    "Point",
    "TimeInterval",
    "TimeSeries",
]
