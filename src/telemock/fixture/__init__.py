"""Mock telemetry backend fixture."""

from telemock.fixture.fetcher import TelemetryFetcher
from telemock.fixture.instance import MockBackendInstance, StackdriverInstance
from telemock.fixture.normalize import (
    NONDETERMINISTIC_LABELS,
    normalize_log_entry,
    normalize_time_series,
)
from telemock.fixture.provisioner import provision
from telemock.fixture.tunnel import TunnelHandle

__all__ = [
    "MockBackendInstance",
    "NONDETERMINISTIC_LABELS",
    "StackdriverInstance",
    "TelemetryFetcher",
    "TunnelHandle",
    "normalize_log_entry",
    "normalize_time_series",
    "provision",
]
