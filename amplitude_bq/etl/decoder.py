"""
Record Decoder

Decodes a byte stream of back-to-back JSON objects into RawEvent values.
Parsing is incremental, so a shard is never held in memory as a whole.
"""

import logging
from typing import BinaryIO, Iterator

import ijson
from pydantic import ValidationError

from amplitude_bq.errors import DecodeError
from amplitude_bq.schemas.raw_event import RawEvent

logger = logging.getLogger(__name__)

JSON_WHITESPACE = b" \t\r\n"


class _ContentTracker:
    """Read-through wrapper noting whether any non-whitespace byte went by."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self.saw_content = False

    def read(self, size: int = -1) -> bytes:
        data = self._stream.read(size)
        if not self.saw_content and data.strip(JSON_WHITESPACE):
            self.saw_content = True
        return data


def iter_events(stream: BinaryIO, source: str = "<stream>") -> Iterator[RawEvent]:
    """
    Yield one RawEvent per top-level JSON object in `stream`.

    An empty or whitespace-only stream yields nothing.

    Args:
        stream: Binary stream holding concatenated JSON objects
        source: Name used in error context (usually the archive entry)

    Raises:
        DecodeError: On malformed JSON, a non-object top-level value, or an
            object carrying fields outside the RawEvent schema
    """
    index = 0
    tracker = _ContentTracker(stream)
    values = ijson.items(tracker, "", multiple_values=True, use_float=True)
    while True:
        try:
            value = next(values)
        except StopIteration:
            break
        except (ijson.JSONError, UnicodeDecodeError) as e:
            # ijson reports a stream without any value as premature EOF
            if not tracker.saw_content:
                break
            raise DecodeError(
                "Malformed JSON",
                context={"source": source, "record": index},
                original_exception=e,
            )

        if not isinstance(value, dict):
            raise DecodeError(
                f"Expected a JSON object, got {type(value).__name__}",
                context={"source": source, "record": index},
            )

        try:
            event = RawEvent.model_validate(value)
        except ValidationError as e:
            raise DecodeError(
                "Event does not match the export schema",
                context={"source": source, "record": index},
                original_exception=e,
            )

        index += 1
        yield event

    logger.debug(f"Decoded {index} events from {source}")
