"""Fixture configuration using pydantic-settings.

Configuration hierarchy:
- MockBackendConfig: What gets deployed and how it is reached
- KubeConfig: kubectl adapter settings
- LoggingConfig: Logging behavior
- TelemockConfig: Main config aggregating all sub-configs

Environment variable prefix: TELEMOCK_
Example: TELEMOCK_BACKEND_REMOTE_PORT=9091
"""

from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MANIFEST_PATH = Path(__file__).parent / "manifests" / "stackdriver.yaml"


class MockBackendConfig(BaseSettings):
    """Mock telemetry backend deployment settings."""

    model_config = SettingsConfigDict(env_prefix="TELEMOCK_BACKEND_")

    namespace_prefix: str = Field(
        default="mock-stackdriver",
        description="Prefix for the per-instance workspace namespace",
    )
    manifest_path: Path = Field(
        default=DEFAULT_MANIFEST_PATH,
        description="Deployment manifest applied into the workspace",
    )
    label_selector: str = Field(
        default="app=stackdriver",
        description="Selects the single mock backend pod",
    )
    remote_port: int = Field(default=8091, description="HTTP port of the mock backend pod")

    # Hard deadline for each fetch, independent of any caller timeout
    fetch_timeout: float = Field(default=5.0, description="HTTP fetch timeout (seconds)")


class KubeConfig(BaseSettings):
    """kubectl adapter configuration."""

    model_config = SettingsConfigDict(env_prefix="TELEMOCK_KUBE_")

    kubectl: str = Field(default="kubectl", description="kubectl binary")
    context: str | None = Field(default=None, description="kubeconfig context (default: current)")

    # Timeouts
    command_timeout: float = Field(default=60.0, description="Single kubectl call timeout (seconds)")
    pod_ready_timeout: float = Field(default=300.0, description="Pod readiness wait (seconds)")
    poll_interval: float = Field(default=1.0, description="Pod readiness poll interval (seconds)")
    forward_start_timeout: float = Field(
        default=30.0,
        description="Time allowed for port-forward to report its local address (seconds)",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Supports both text and JSON formats:
    - text: Human-readable for local runs
    - json: Structured logging for CI log collection
    """

    model_config = SettingsConfigDict(env_prefix="TELEMOCK_LOGGING_")

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="telemock", description="Service identifier in logs")


class TelemockConfig(BaseSettings):
    """Main configuration aggregating all sub-configs.

    Sub-configs use their own prefixes (TELEMOCK_BACKEND_, TELEMOCK_KUBE_, ...)
    """

    model_config = SettingsConfigDict(
        env_prefix="TELEMOCK_",
        env_nested_delimiter="__",
    )

    backend: MockBackendConfig = Field(default_factory=MockBackendConfig)
    kube: KubeConfig = Field(default_factory=KubeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class ProvisionConfig(BaseModel):
    """Per-call provisioning options.

    cluster: Name of the target cluster. None selects the environment default.
    backend: Overrides the environment-derived backend settings.
    """

    cluster: str | None = None
    backend: MockBackendConfig | None = None


@lru_cache
def get_config() -> TelemockConfig:
    """Get cached configuration singleton."""
    return TelemockConfig()
