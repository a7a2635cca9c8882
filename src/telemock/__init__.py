"""Mock telemetry backend test fixture.

Deploys a fake Stackdriver backend into an isolated namespace, tunnels to
it and exposes its buffered time series and log entries, normalized for
comparison in test assertions.

The package only emits records through the standard logging module. Test
suites call telemock.logging.setup_logging() once, typically from a
session fixture in conftest.py, to get the text or JSON output configured
by TELEMOCK_LOGGING_*.
"""

from telemock.config import ProvisionConfig
from telemock.fixture import MockBackendInstance, StackdriverInstance, provision
from telemock.registry import ResourceRegistry

__all__ = [
    "MockBackendInstance",
    "ProvisionConfig",
    "ResourceRegistry",
    "StackdriverInstance",
    "provision",
]
