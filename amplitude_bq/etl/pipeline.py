"""
Export Pipeline

Streams an Amplitude export into BigQuery.

Stages, per day in the range:
1. FETCH - Download the day's zip archive
2. EXTRACT - Open each gzip shard inside the archive
3. DECODE - Parse events strictly against the export schema
4. PROJECT - Keep the five destination columns, skip events without user_id
5. ENCODE - Append CSV rows to the shared pipe

A producer thread runs stages 1-5 sequentially while the calling thread runs
the BigQuery load job, reading the other end of the pipe.
"""

import logging
import threading
import uuid
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Callable, Dict, Optional

from amplitude_bq.etl.archive import iter_entries
from amplitude_bq.etl.decoder import iter_events
from amplitude_bq.etl.encoder import CsvRowWriter
from amplitude_bq.etl.fetcher import DateRange, ExportClient
from amplitude_bq.etl.pipe import StreamPipe
from amplitude_bq.etl.projector import project
from amplitude_bq.services.bigquery_service import TableManager

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Result of a pipeline run."""
    pipeline_id: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    status: str = "RUNNING"
    days_processed: int = 0
    shards_processed: int = 0
    events_decoded: int = 0
    events_skipped: int = 0
    rows_written: int = 0
    rows_loaded: int = 0
    error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            "pipeline_id": self.pipeline_id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "status": self.status,
            "days_processed": self.days_processed,
            "shards_processed": self.shards_processed,
            "events_decoded": self.events_decoded,
            "events_skipped": self.events_skipped,
            "rows_written": self.rows_written,
            "rows_loaded": self.rows_loaded,
            "error": self.error,
        }


@dataclass
class _ProducerState:
    error: Optional[BaseException] = None


class ExportPipeline:
    """
    Fetch -> extract -> decode -> project -> encode, into one CSV stream.

    Fail-fast: the first error from either side ends the run and is raised
    to the caller unchanged.
    """

    def __init__(
        self,
        fetcher: ExportClient,
        date_range: DateRange,
        table: Optional[TableManager] = None,
        pipe_max_chunks: int = 16,
    ):
        self.fetcher = fetcher
        self.date_range = date_range
        self.table = table
        self.pipe_max_chunks = pipe_max_chunks

        # Progress callback: (day, rows_written)
        self.on_progress: Optional[Callable[[str, int], None]] = None

    def write_to(self, sink: BinaryIO, result: Optional[PipelineResult] = None) -> PipelineResult:
        """
        Run every stage and write the CSV rows into `sink`.

        The sink is closed after the last row. On error it is left open for
        the caller to abandon.
        """
        result = result or self._new_result()
        writer = CsvRowWriter(sink)

        for day in self.date_range.days():
            payload = self.fetcher.fetch_day(day)

            with closing(iter_entries(payload.content)) as entries:
                for entry in entries:
                    logger.info(f"Uploading {entry.name}...")

                    for event in iter_events(entry.stream, source=entry.name):
                        result.events_decoded += 1
                        row = project(event)
                        if row is None:
                            result.events_skipped += 1
                            continue
                        writer.write_row(row)

                    result.shards_processed += 1

            result.days_processed += 1
            result.rows_written = writer.rows_written
            if self.on_progress:
                self.on_progress(day.isoformat(), writer.rows_written)

        writer.close()
        result.rows_written = writer.rows_written
        return result

    def _produce(self, pipe: StreamPipe, result: PipelineResult, state: _ProducerState):
        try:
            self.write_to(pipe.writer, result)
        except BaseException as e:
            # Recorded before the reader can observe it.
            state.error = e
            pipe.writer.close_with_error(e)

    def run(self) -> PipelineResult:
        """
        Replace the destination table and stream the export into it.

        Returns:
            PipelineResult with statistics

        Raises:
            ExportPipelineError: The first error from any stage
        """
        if self.table is None:
            raise ValueError("run() needs a TableManager; use write_to() for local output")

        result = self._new_result()
        logger.info(f"Exporting {len(self.date_range)} days into {self.table.table_ref}")

        try:
            self.table.replace()

            pipe = StreamPipe(max_chunks=self.pipe_max_chunks)
            state = _ProducerState()
            producer = threading.Thread(
                target=self._produce,
                args=(pipe, result, state),
                name="export-producer",
                daemon=True,
            )
            producer.start()

            try:
                rows = self.table.load_csv(pipe.reader)
            except BaseException as e:
                # Unblocks a producer still writing; it stops with BrokenPipeError.
                pipe.reader.close()
                producer_error = state.error
                if (producer_error is not None and e is not producer_error
                        and not isinstance(producer_error, BrokenPipeError)):
                    raise producer_error
                raise
            pipe.reader.close()
            producer.join()
            if state.error is not None:
                raise state.error

            result.rows_loaded = rows
            result.status = "COMPLETED"
            return result

        except BaseException as e:
            result.status = "FAILED"
            result.error = str(e)
            raise

        finally:
            result.completed_at = datetime.utcnow()
            logger.debug(f"Pipeline {result.pipeline_id}: {result.to_dict()}")

    def _new_result(self) -> PipelineResult:
        return PipelineResult(
            pipeline_id=str(uuid.uuid4()),
            started_at=datetime.utcnow(),
        )
