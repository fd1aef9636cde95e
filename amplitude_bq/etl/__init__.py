"""
Streaming export pipeline.

Pipeline Stages:
1. FETCH - Download one day of the export (zip archive)
2. EXTRACT - Decompress each gzip shard in the archive
3. DECODE - Parse events strictly against the export schema
4. PROJECT - Reduce each event to the destination columns
5. ENCODE - Write CSV rows into the stream consumed by the load job

Components:
- fetcher: Day-by-day export download
- archive: Zip/gzip shard extraction
- decoder: Strict JSON event decoding
- projector: Column projection and user_id filter
- encoder: CSV encoding
- pipe: Bounded blocking byte pipe between producer and load job
- pipeline: Orchestration
"""

from amplitude_bq.etl.archive import ArchiveEntry, iter_entries
from amplitude_bq.etl.decoder import iter_events
from amplitude_bq.etl.encoder import CsvRowWriter
from amplitude_bq.etl.fetcher import DateRange, ExportClient, ExportPayload
from amplitude_bq.etl.pipe import StreamPipe
from amplitude_bq.etl.pipeline import ExportPipeline, PipelineResult
from amplitude_bq.etl.projector import ProjectedRow, project

__all__ = [
    "ArchiveEntry",
    "iter_entries",
    "iter_events",
    "CsvRowWriter",
    "DateRange",
    "ExportClient",
    "ExportPayload",
    "StreamPipe",
    "ExportPipeline",
    "PipelineResult",
    "ProjectedRow",
    "project",
]
