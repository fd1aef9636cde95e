"""
Tabular Encoder

Writes ProjectedRow values as CSV into a binary sink.
"""

import csv
import io
import logging
from typing import BinaryIO

from amplitude_bq.etl.projector import ProjectedRow

logger = logging.getLogger(__name__)


class CsvRowWriter:
    """
    CSV writer over a binary sink.

    Closing flushes buffered text and closes the sink exactly once. The sink's
    close is the end-of-stream signal the load job waits for.
    """

    def __init__(self, sink: BinaryIO, encoding: str = "utf-8"):
        self.sink = sink
        # write_through keeps the text layer from holding more than one row.
        self._text = io.TextIOWrapper(sink, encoding=encoding, newline="", write_through=True)
        self._writer = csv.writer(self._text, lineterminator="\n")
        self.rows_written = 0
        self.closed = False

    def write_row(self, row: ProjectedRow):
        self._writer.writerow(row.as_list())
        self.rows_written += 1

    def close(self):
        if self.closed:
            return
        self.closed = True
        self._text.flush()
        # TextIOWrapper.close() also closes the wrapped sink.
        self._text.close()
        logger.debug(f"CSV stream closed after {self.rows_written} rows")
