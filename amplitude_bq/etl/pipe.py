"""
Stream Pipe

Bounded, blocking byte channel between the producer thread (the pipeline
writing CSV) and the consumer (the BigQuery load reading it).

The channel holds at most `max_chunks` chunks of roughly `chunk_size` bytes.
A full channel blocks the writer; an empty one blocks the reader. End of
stream is a sentinel distinct from "no data yet", and the writer can end the
stream with an error that the reader re-raises.
"""

import io
import logging
import queue
import threading
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
_POLL_SECONDS = 0.1

_EOF = object()


class StreamPipe:
    """A single-producer, single-consumer byte pipe."""

    def __init__(self, max_chunks: int = 16, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if max_chunks < 1:
            raise ValueError("max_chunks must be at least 1")
        self.chunk_size = chunk_size
        self._queue: "queue.Queue" = queue.Queue(maxsize=max_chunks)
        self._reader_closed = threading.Event()
        self._error: Optional[BaseException] = None
        self.reader = PipeReader(self)
        self.writer = PipeWriter(self)

    @property
    def reader_closed(self) -> bool:
        return self._reader_closed.is_set()

    def _put(self, item):
        # Poll so a writer blocked on a full queue notices a closed reader.
        while True:
            if self._reader_closed.is_set():
                raise BrokenPipeError("pipe reader is closed")
            try:
                self._queue.put(item, timeout=_POLL_SECONDS)
                return
            except queue.Full:
                continue

    def _get(self):
        return self._queue.get()


class PipeWriter(io.RawIOBase):
    """Write end of a StreamPipe."""

    def __init__(self, pipe: StreamPipe):
        super().__init__()
        self._pipe = pipe
        self._buffer = bytearray()
        self.bytes_written = 0

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        if self.closed:
            raise ValueError("write to closed pipe")
        if self._pipe.reader_closed:
            raise BrokenPipeError("pipe reader is closed")
        n = len(b)
        self._buffer += b
        self.bytes_written += n
        if len(self._buffer) >= self._pipe.chunk_size:
            self._send()
        return n

    def flush(self):
        if not self.closed and self._buffer:
            self._send()

    def _send(self):
        chunk = bytes(self._buffer)
        self._buffer.clear()
        self._pipe._put(chunk)

    def close(self):
        """Flush pending bytes and signal end of stream."""
        if self.closed:
            return
        try:
            self.flush()
            self._pipe._put(_EOF)
        except BrokenPipeError:
            logger.debug("Pipe reader closed before end of stream")
        finally:
            super().close()

    def close_with_error(self, error: BaseException):
        """End the stream so the reader raises `error` instead of seeing EOF."""
        if self.closed:
            return
        self._pipe._error = error
        self._buffer.clear()
        try:
            self._pipe._put(_EOF)
        except BrokenPipeError:
            pass
        finally:
            super().close()


class PipeReader(io.RawIOBase):
    """
    Read end of a StreamPipe.

    `read(n)` blocks until `n` bytes are available or the stream ends, so a
    short read always means end of stream. Resumable uploads rely on that.
    """

    def __init__(self, pipe: StreamPipe):
        super().__init__()
        self._pipe = pipe
        self._pending = b""
        self._eof = False
        self._position = 0

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def tell(self) -> int:
        return self._position

    def _fill(self) -> bool:
        """Block until pending data exists. Returns False at end of stream."""
        while not self._pending:
            if self._eof:
                return False
            item = self._pipe._get()
            if item is _EOF:
                self._eof = True
                if self._pipe._error is not None:
                    raise self._pipe._error
                return False
            self._pending = item
        return True

    def readinto(self, b) -> int:
        if self.closed:
            raise ValueError("read from closed pipe")
        if not self._fill():
            return 0
        n = min(len(b), len(self._pending))
        b[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        self._position += n
        return n

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            return self.readall()
        out = bytearray()
        while len(out) < size:
            chunk = bytearray(size - len(out))
            n = self.readinto(chunk)
            if not n:
                break
            out += chunk[:n]
        return bytes(out)

    def readall(self) -> bytes:
        out = bytearray()
        while self._fill():
            out += self._pending
            self._position += len(self._pending)
            self._pending = b""
        return bytes(out)

    def close(self):
        """Close the read side; a blocked or later write raises BrokenPipeError."""
        self._pipe._reader_closed.set()
        super().close()
