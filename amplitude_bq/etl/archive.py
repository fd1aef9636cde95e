"""
Archive Extractor

An export payload is a zip container; each entry is a gzip-compressed shard
of the day's events. Entries are exposed one at a time as decompressed
binary streams, in archive order.
"""

import gzip
import io
import logging
import zipfile
import zlib
from dataclasses import dataclass
from typing import BinaryIO, Iterator

from amplitude_bq.errors import ExtractError

logger = logging.getLogger(__name__)

# Raised by zipfile/gzip/zlib when framing or checksums are broken.
_DECOMPRESS_ERRORS = (zipfile.BadZipFile, OSError, EOFError, zlib.error)


@dataclass
class ArchiveEntry:
    """One shard of an export archive."""
    name: str
    compressed_size: int
    stream: BinaryIO


class GzipEntryStream(io.RawIOBase):
    """
    Decompressed view of a single zip entry.

    Decompression errors surface lazily while the decoder reads; they are
    raised as ExtractError so they are not mistaken for bad JSON.
    """

    def __init__(self, raw: BinaryIO, name: str):
        super().__init__()
        self.name = name
        self._raw = raw
        self._gzip = gzip.GzipFile(fileobj=raw, mode="rb")

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        try:
            data = self._gzip.read(len(b))
        except _DECOMPRESS_ERRORS as e:
            raise ExtractError(
                "Corrupt compressed entry",
                context={"entry": self.name},
                original_exception=e,
            )
        n = len(data)
        b[:n] = data
        return n

    def close(self):
        if self.closed:
            return
        try:
            self._gzip.close()
        finally:
            self._raw.close()
            super().close()


def open_archive(payload: bytes) -> zipfile.ZipFile:
    """Open an export payload as a zip archive."""
    try:
        return zipfile.ZipFile(io.BytesIO(payload))
    except _DECOMPRESS_ERRORS as e:
        raise ExtractError(
            "Malformed export archive",
            context={"payload_bytes": len(payload)},
            original_exception=e,
        )


def iter_entries(payload: bytes) -> Iterator[ArchiveEntry]:
    """
    Yield each file entry of the archive as a decompressed stream.

    A yielded entry's stream is closed when the caller advances to the next
    entry or closes the iterator.

    Raises:
        ExtractError: If the container or an entry's compression is malformed
    """
    with open_archive(payload) as archive:
        for info in archive.infolist():
            if info.is_dir():
                continue

            try:
                raw = archive.open(info)
            except (zipfile.BadZipFile, NotImplementedError, RuntimeError) as e:
                raise ExtractError(
                    "Cannot open archive entry",
                    context={"entry": info.filename},
                    original_exception=e,
                )

            stream = GzipEntryStream(raw, info.filename)
            try:
                yield ArchiveEntry(
                    name=info.filename,
                    compressed_size=info.compress_size,
                    stream=stream,
                )
            finally:
                stream.close()
