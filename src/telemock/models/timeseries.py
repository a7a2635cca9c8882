"""Metric time-series records (monitoring v3 ListTimeSeriesResponse)."""

from datetime import datetime
from typing import Any

from telemock.models.common import Envelope, MonitoredResource, WireModel


class Metric(WireModel):
    """Metric descriptor identifying a series."""

    type: str = ""
    labels: dict[str, str] = {}


class TimeInterval(WireModel):
    start_time: datetime | None = None
    end_time: datetime | None = None


class Point(WireModel):
    """Single data point. value is the TypedValue oneof, kept as sent."""

    interval: TimeInterval | None = None
    value: dict[str, Any] = {}


class TimeSeries(WireModel):
    """Metric sample series.

    Tests compare on metric, metric_kind, value_type and unit; points and
    resource are cleared by normalization.
    """

    metric: Metric | None = None
    resource: MonitoredResource | None = None
    metadata: dict[str, Any] | None = None
    metric_kind: str = "METRIC_KIND_UNSPECIFIED"
    value_type: str = "VALUE_TYPE_UNSPECIFIED"
    points: list[Point] = []
    unit: str = ""


class ListTimeSeriesResponse(Envelope):
    """Envelope returned by GET /timeseries."""

    time_series: list[TimeSeries] = []
    next_page_token: str = ""
