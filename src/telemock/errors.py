"""Error handling module for telemock.

This module defines error codes and exception classes.

Taxonomy:
- Provisioning errors: one subclass per provisioning step, each naming the
  step that failed and chaining the underlying cause (``__cause__``).
- Fetch errors: a single opaque TelemetryFetchError. Callers treat any
  raised error as "fetch failed" and do not branch on the cause.
- Teardown errors: logged by the code that tears down, never raised.

Usage:
    from telemock.errors import ProvisioningError, TelemetryFetchError

    try:
        instance = await provision(ctx)
    except ProvisioningError as e:
        print(e.step, e.message)
"""

from enum import Enum

import httpx


class ErrorCode(str, Enum):
    """Error codes."""

    ENVIRONMENT_UNRESOLVED = "ENVIRONMENT_UNRESOLVED"
    WORKSPACE_CREATE_FAILED = "WORKSPACE_CREATE_FAILED"
    MANIFEST_FAILED = "MANIFEST_FAILED"
    POD_NOT_READY = "POD_NOT_READY"
    UNEXPECTED_POD_COUNT = "UNEXPECTED_POD_COUNT"
    TUNNEL_FAILED = "TUNNEL_FAILED"
    FETCH_FAILED = "FETCH_FAILED"
    KUBECTL_FAILED = "KUBECTL_FAILED"


class ProvisioningStep(str, Enum):
    """Provisioning steps, in execution order."""

    RESOLVE_CLUSTER = "resolve_cluster"
    CREATE_NAMESPACE = "create_namespace"
    APPLY_MANIFEST = "apply_manifest"
    WAIT_READY = "wait_ready"
    START_TUNNEL = "start_tunnel"


class TelemockError(Exception):
    """Base exception for telemock.

    Attributes:
        code: The error code from ErrorCode enum
        message: Human-readable error message
    """

    def __init__(self, code: ErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


# =============================================================================
# Provisioning
# =============================================================================


class ProvisioningError(TelemockError):
    """Mock backend deployment failed at a specific step."""

    def __init__(self, code: ErrorCode, step: ProvisioningStep, detail: str) -> None:
        self.step = step
        self.detail = detail
        super().__init__(code, f"stackdriver deployment failed: {detail}")


class EnvironmentResolutionError(ProvisioningError):
    """No usable target cluster (bad override or no environment default)."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            ErrorCode.ENVIRONMENT_UNRESOLVED, ProvisioningStep.RESOLVE_CLUSTER, detail
        )


class WorkspaceCreateError(ProvisioningError):
    """Workspace namespace could not be created."""

    def __init__(self, prefix: str, cause: Exception) -> None:
        self.prefix = prefix
        super().__init__(
            ErrorCode.WORKSPACE_CREATE_FAILED,
            ProvisioningStep.CREATE_NAMESPACE,
            f"could not create {prefix} Namespace for Stackdriver install; err: {cause}",
        )


class ManifestError(ProvisioningError):
    """Deployment manifest could not be read or applied."""

    def __init__(self, path: str, cause: Exception, *, applying: bool) -> None:
        self.path = path
        action = "apply rendered" if applying else "read"
        super().__init__(
            ErrorCode.MANIFEST_FAILED,
            ProvisioningStep.APPLY_MANIFEST,
            f"failed to {action} {path}, err: {cause}",
        )


class PodReadinessError(ProvisioningError):
    """Readiness wait failed. Carries the underlying message unmodified."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(ErrorCode.POD_NOT_READY, ProvisioningStep.WAIT_READY, str(cause))


class UnexpectedPodCountError(ProvisioningError):
    """Label selector matched a number of pods other than one."""

    def __init__(self, found: int) -> None:
        self.found = found
        super().__init__(
            ErrorCode.UNEXPECTED_POD_COUNT,
            ProvisioningStep.WAIT_READY,
            f"expected exactly one pod, found {found}",
        )


class TunnelError(ProvisioningError):
    """Port-forward could not be created or started."""

    def __init__(self, detail: str) -> None:
        super().__init__(ErrorCode.TUNNEL_FAILED, ProvisioningStep.START_TUNNEL, detail)


# =============================================================================
# Fetch
# =============================================================================


class TelemetryFetchError(TelemockError):
    """Fetch from the mock backend failed (transport, read, status or decode)."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(ErrorCode.FETCH_FAILED, f"fetch {path} failed: {message}")

    @property
    def timed_out(self) -> bool:
        """True if the underlying cause is a timeout."""
        return isinstance(self.__cause__, (httpx.TimeoutException, TimeoutError))


# =============================================================================
# kubectl adapter
# =============================================================================


class KubectlError(TelemockError):
    """kubectl exited non-zero or did not finish in time."""

    def __init__(self, command: list[str], returncode: int | None, stderr: str) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit code {returncode}"
        super().__init__(ErrorCode.KUBECTL_FAILED, f"kubectl {' '.join(command)}: {detail}")
