"""Structured log records (logging v2 ListLogEntriesResponse)."""

from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import field_serializer, field_validator

from telemock.models.common import Envelope, MonitoredResource, WireModel


class LogSeverity(str, Enum):
    """google.logging.type.LogSeverity."""

    DEFAULT = "DEFAULT"
    DEBUG = "DEBUG"
    INFO = "INFO"
    NOTICE = "NOTICE"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    ALERT = "ALERT"
    EMERGENCY = "EMERGENCY"


# Numeric enum values, accepted on the wire as well as names
_SEVERITY_BY_NUMBER = {
    0: LogSeverity.DEFAULT,
    100: LogSeverity.DEBUG,
    200: LogSeverity.INFO,
    300: LogSeverity.NOTICE,
    400: LogSeverity.WARNING,
    500: LogSeverity.ERROR,
    600: LogSeverity.CRITICAL,
    700: LogSeverity.ALERT,
    800: LogSeverity.EMERGENCY,
}


class HttpRequest(WireModel):
    """HTTP request sub-record of a log entry."""

    request_method: str = ""
    request_url: str = ""
    request_size: int = 0
    status: int = 0
    response_size: int = 0
    user_agent: str = ""
    remote_ip: str = ""
    server_ip: str = ""
    referer: str = ""
    latency: timedelta | None = None
    cache_lookup: bool = False
    cache_hit: bool = False
    cache_validated_with_origin_server: bool = False
    cache_fill_bytes: int = 0
    protocol: str = ""

    @field_validator("latency", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> Any:
        """Accept protobuf Duration JSON ("0.250s")."""
        if isinstance(value, str) and value.endswith("s"):
            return timedelta(seconds=float(value[:-1]))
        return value

    @field_serializer("latency")
    def _dump_duration(self, value: timedelta | None) -> str | None:
        if value is None:
            return None
        return f"{value.total_seconds():g}s"


class LogEntry(WireModel):
    """Structured log entry.

    timestamp, severity, the http_request size/IP/latency fields and the
    request_id/source_name/destination_name labels vary run to run and are
    cleared by normalization.
    """

    log_name: str = ""
    resource: MonitoredResource | None = None
    timestamp: datetime | None = None
    receive_timestamp: datetime | None = None
    severity: LogSeverity = LogSeverity.DEFAULT
    insert_id: str = ""
    http_request: HttpRequest | None = None
    labels: dict[str, str] = {}
    trace: str = ""
    span_id: str = ""
    trace_sampled: bool = False
    text_payload: str | None = None
    json_payload: dict[str, Any] | None = None
    operation: dict[str, Any] | None = None
    source_location: dict[str, Any] | None = None

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            if value not in _SEVERITY_BY_NUMBER:
                raise ValueError(f"unknown LogSeverity value: {value}")
            return _SEVERITY_BY_NUMBER[value]
        return value


class ListLogEntriesResponse(Envelope):
    """Envelope returned by GET /logentries."""

    entries: list[LogEntry] = []
    next_page_token: str = ""
