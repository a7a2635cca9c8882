"""Strip run-to-run varying fields from fetched records.

Both functions return new models and leave their input untouched. Applying
either one twice gives the same result as applying it once.
"""

from telemock.models import LogEntry, LogSeverity, TimeSeries

NONDETERMINISTIC_LABELS = ("request_id", "source_name", "destination_name")


def normalize_time_series(ts: TimeSeries) -> TimeSeries:
    """Keep only the series identity: drop points and the monitored resource."""
    return ts.model_copy(update={"points": [], "resource": None})


def normalize_log_entry(entry: LogEntry) -> LogEntry:
    """Clear timestamp, severity, request sizes/IPs/latency and per-request labels."""
    update: dict = {
        "timestamp": None,
        "severity": LogSeverity.DEFAULT,
        "labels": {
            k: v for k, v in entry.labels.items() if k not in NONDETERMINISTIC_LABELS
        },
    }
    if entry.http_request is not None:
        update["http_request"] = entry.http_request.model_copy(
            update={
                "response_size": 0,
                "request_size": 0,
                "server_ip": "",
                "remote_ip": "",
                "latency": None,
            }
        )
    return entry.model_copy(update=update)
