"""Shared fixtures: in-memory export archives and fake collaborators."""

import csv
import gzip
import io
import json
import zipfile
from datetime import date
from typing import Dict, List, Optional, Tuple

import pytest

from amplitude_bq.etl.fetcher import ExportPayload


def event_dict(**overrides) -> Dict:
    """A realistic export event; override or add keys per test."""
    event = {
        "$insert_id": "c0ffee-0001",
        "$schema": 12,
        "app": 123456,
        "amplitude_id": 987654321,
        "uuid": "6f1c1a2e-0000-11ee-8000-000000000001",
        "event_id": 17,
        "session_id": 1700000000000,
        "user_id": "user-1",
        "device_id": "device-1",
        "event_type": "page_view",
        "event_time": "2024-01-01 10:00:00.000000",
        "server_upload_time": "2024-01-01 10:00:01.000000",
        "platform": "Web",
        "country": "Germany",
        "is_attribution_event": False,
        "event_properties": {"path": "/home", "count": 2},
        "user_properties": {"plan": "pro"},
        "group_properties": {},
        "groups": {},
        "data": {},
    }
    event.update(overrides)
    return event


def ndjson(*events: Dict) -> bytes:
    return b"".join(json.dumps(e).encode("utf-8") + b"\n" for e in events)


def gzipped(data: bytes) -> bytes:
    return gzip.compress(data)


def zip_archive(entries: List[Tuple[str, bytes]]) -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, content in entries:
            zf.writestr(name, content)
    return buf.getvalue()


def export_archive(*shards: List[Dict], prefix: str = "123456/123456_2024-01-01") -> bytes:
    """A zip with one gzip NDJSON entry per shard, like the export API returns."""
    return zip_archive([
        (f"{prefix}_{i}#0.json.gz", gzipped(ndjson(*events)))
        for i, events in enumerate(shards)
    ])


class CapturingSink(io.BytesIO):
    """BytesIO that keeps its contents after close and counts closes."""

    def __init__(self):
        super().__init__()
        self.close_count = 0
        self.captured = b""

    def close(self):
        if not self.closed:
            self.captured = self.getvalue()
        self.close_count += 1
        super().close()


class FakeFetcher:
    """Serves prebuilt archives per day and records every request."""

    def __init__(self, archive_for_day):
        self.archive_for_day = archive_for_day
        self.days: List[date] = []

    def fetch_day(self, day: date) -> ExportPayload:
        self.days.append(day)
        content = self.archive_for_day(day)
        return ExportPayload(day=day, content=content, size=len(content))


class FakeTable:
    """
    Stand-in for TableManager.

    Reads the stream the way a resumable upload does (fixed-size reads until
    a short read) and commits rows only when the whole stream was read.
    """

    table_ref = "test-project.analytics.events"

    def __init__(self, fail_after_bytes: Optional[int] = None, chunk_size: int = 1024):
        self.fail_after_bytes = fail_after_bytes
        self.chunk_size = chunk_size
        self.calls: List[str] = []
        self.rows: List[List[str]] = []

    def replace(self):
        self.calls.append("replace")
        self.rows = []

    def load_csv(self, stream) -> int:
        from amplitude_bq.errors import LoadError

        self.calls.append("load")
        assert stream.tell() == 0
        data = bytearray()
        while True:
            chunk = stream.read(self.chunk_size)
            data += chunk
            if self.fail_after_bytes is not None and len(data) >= self.fail_after_bytes:
                raise LoadError("Load job failed", context={"table": self.table_ref})
            if len(chunk) < self.chunk_size:
                break

        loaded = list(csv.reader(io.StringIO(data.decode("utf-8"), newline="")))
        self.rows.extend(loaded)
        return len(loaded)


@pytest.fixture
def make_event():
    return event_dict


@pytest.fixture
def make_archive():
    return export_archive
