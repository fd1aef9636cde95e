"""
Record Projector

Maps a decoded RawEvent to the five columns stored in BigQuery.
"""

import json
from dataclasses import astuple, dataclass
from typing import Any, List, Optional

from amplitude_bq.schemas.raw_event import RawEvent


@dataclass(frozen=True)
class ProjectedRow:
    """One destination row, in column order."""
    event_time: str
    event_type: str
    user_id: str
    event_properties: str
    user_properties: str

    def as_list(self) -> List[str]:
        return list(astuple(self))


def serialize_blob(value: Any) -> str:
    """Canonical compact JSON text for a nested blob."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def _blob_text(event: RawEvent, name: str) -> str:
    # An absent key projects to "", an explicit null to "null".
    if name not in event.model_fields_set:
        return ""
    return serialize_blob(getattr(event, name))


def project(event: RawEvent) -> Optional[ProjectedRow]:
    """
    Project an event onto the destination columns.

    Returns None for events without a user_id; those are skipped.
    """
    if not event.user_id:
        return None

    return ProjectedRow(
        event_time=event.event_time or "",
        event_type=event.event_type or "",
        user_id=event.user_id,
        event_properties=_blob_text(event, "event_properties"),
        user_properties=_blob_text(event, "user_properties"),
    )
