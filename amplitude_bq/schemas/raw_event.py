"""
Amplitude export event schema.

One object per event as it appears in an export shard. The model is strict:
an object carrying a key outside this field set fails validation, so drift in
the upstream export halts the run instead of dropping data silently.

Absent keys and JSON nulls both leave a field at None. The nested blobs are
kept as parsed JSON values and re-serialized as text on projection.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class RawEvent(BaseModel):
    """A single decoded export event."""

    model_config = ConfigDict(extra="forbid", strict=True)

    # Identity
    uuid: Optional[str] = None
    event_id: Optional[int] = None
    insert_id: Optional[str] = Field(None, alias="$insert_id")
    schema_version: Optional[int] = Field(None, alias="$schema")
    app: Optional[int] = None
    amplitude_id: Optional[int] = None
    user_id: Optional[str] = None
    device_id: Optional[str] = None
    session_id: Optional[int] = None

    # Event
    event_type: Optional[str] = None
    amplitude_event_type: Optional[str] = None
    is_attribution_event: Optional[bool] = None
    amplitude_attribution_ids: Optional[str] = None
    sample_rate: Optional[str] = None

    # Timestamps (source format, e.g. "2024-01-31 12:00:00.123456")
    event_time: Optional[str] = None
    client_event_time: Optional[str] = None
    client_upload_time: Optional[str] = None
    server_received_time: Optional[str] = None
    server_upload_time: Optional[str] = None
    processed_time: Optional[str] = None
    user_creation_time: Optional[str] = None

    # Device
    platform: Optional[str] = None
    os_name: Optional[str] = None
    os_version: Optional[str] = None
    device_brand: Optional[str] = None
    device_carrier: Optional[str] = None
    device_family: Optional[str] = None
    device_manufacturer: Optional[str] = None
    device_model: Optional[str] = None
    device_type: Optional[str] = None
    adid: Optional[str] = None
    idfa: Optional[str] = None
    library: Optional[str] = None
    version_name: Optional[str] = None
    start_version: Optional[str] = None
    language: Optional[str] = None
    paying: Optional[str] = None

    # Location
    city: Optional[str] = None
    country: Optional[str] = None
    region: Optional[str] = None
    dma: Optional[str] = None
    ip_address: Optional[str] = None
    location_lat: Optional[str] = None
    location_lng: Optional[str] = None

    # Opaque nested blobs
    event_properties: Any = None
    user_properties: Any = None
    group_properties: Any = None
    groups: Any = None
    data: Any = None
