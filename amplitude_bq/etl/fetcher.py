"""
Day Fetcher

Downloads one day of the Amplitude export at a time.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional

import httpx

from amplitude_bq.config import DEFAULT_EXPORT_URL
from amplitude_bq.errors import FetchError

logger = logging.getLogger(__name__)

MIB = 1024 * 1024


@dataclass
class DateRange:
    """Inclusive [start, end] window walked in whole-day steps."""
    start: datetime
    end: datetime

    @classmethod
    def last_days(cls, days: int, now: Optional[datetime] = None) -> "DateRange":
        """Range from `days` days before now through now."""
        end = now or datetime.now(timezone.utc)
        return cls(start=end - timedelta(days=days), end=end)

    def days(self) -> Iterator[date]:
        """Yield the calendar date of each 24h step from start while <= end."""
        current = self.start
        while current <= self.end:
            yield current.date()
            current += timedelta(days=1)

    def __len__(self) -> int:
        if self.end < self.start:
            return 0
        return (self.end - self.start) // timedelta(days=1) + 1


@dataclass
class ExportPayload:
    """The raw archive bytes for one day."""
    day: date
    content: bytes
    size: int


def export_params(day: date) -> dict:
    """Query parameters covering 00:00 through 23:59 of `day`."""
    stamp = day.strftime("%Y%m%d")
    return {"start": f"{stamp}T00", "end": f"{stamp}T23"}


class ExportClient:
    """
    Client for the Amplitude export endpoint.

    One GET per day, authenticated with HTTP basic auth (API key, secret key).
    No retries: any transport error or non-2xx status raises FetchError.
    """

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        base_url: str = DEFAULT_EXPORT_URL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url
        self.client = httpx.Client(
            auth=(api_key, secret_key),
            timeout=timeout,
            transport=transport,
        )
        self.stats = {
            "days_fetched": 0,
            "bytes_fetched": 0,
        }

    def fetch_day(self, day: date) -> ExportPayload:
        """
        Download the export archive for a single day.

        Args:
            day: Calendar day to export

        Returns:
            ExportPayload with the full archive bytes
        """
        logger.info(f"Downloading {day.isoformat()}...")

        try:
            with self.client.stream("GET", self.base_url, params=export_params(day)) as response:
                if not response.is_success:
                    raise FetchError(
                        f"Export request failed: {response.status_code} {response.reason_phrase}",
                        status_code=response.status_code,
                        context={"day": day.isoformat()},
                    )
                content = response.read()
                declared = response.headers.get("content-length")
        except httpx.HTTPError as e:
            raise FetchError(
                "Export request failed",
                context={"day": day.isoformat()},
                original_exception=e,
            )

        size = int(declared) if declared and declared.isdigit() else len(content)
        logger.info(f"Export size: {size // MIB} MiB")

        self.stats["days_fetched"] += 1
        self.stats["bytes_fetched"] += len(content)
        return ExportPayload(day=day, content=content, size=size)

    def close(self):
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
