"""Log event types for structured logging."""

from enum import StrEnum

# Logger for scan-friendly deployment markers in CI output
CI_LOGGER = "telemock.ci"


class LogEvent(StrEnum):
    """Log event types for the fixture.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.DEPLOY_STARTED, ...})
    """

    # Deployment lifecycle
    DEPLOY_STARTED = "deploy_started"
    DEPLOY_SUCCEEDED = "deploy_succeeded"
    DEPLOY_FAILED = "deploy_failed"

    # Provisioning steps
    NAMESPACE_CREATED = "namespace_created"
    NAMESPACE_DELETED = "namespace_deleted"
    MANIFEST_APPLIED = "manifest_applied"
    POD_READY = "pod_ready"
    TUNNEL_STARTED = "tunnel_started"
    TUNNEL_STOPPED = "tunnel_stopped"

    # Fetch events
    FETCH_COMPLETED = "fetch_completed"
    FETCH_FAILED = "fetch_failed"

    # Teardown events
    CLEANUP_STARTED = "cleanup_started"
    CLEANUP_COMPLETED = "cleanup_completed"
    CLEANUP_FAILED = "cleanup_failed"

    # Registry events
    RESOURCE_TRACKED = "resource_tracked"
