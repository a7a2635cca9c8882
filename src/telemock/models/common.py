"""Shared wire model configuration.

The mock backend speaks the JSON mapping of the Google Cloud Monitoring and
Logging list responses: camelCase field names, int64 as strings, RFC 3339
timestamps and "1.5s" durations.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Record decoded from the mock backend.

    Unknown fields are kept so records compare on everything the backend sent.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class Envelope(BaseModel):
    """List response envelope. Only the record list field is interpreted."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class MonitoredResource(WireModel):
    """Monitored resource descriptor (e.g., k8s_container)."""

    type: str = ""
    labels: dict[str, str] = {}
