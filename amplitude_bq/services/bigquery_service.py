"""
Table lifecycle for the destination events table.

Each run destroys the table, recreates it with the declared schema, and
bulk-loads a CSV stream into it in one load job.
"""

import logging
from typing import BinaryIO, List, Optional

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import bigquery
from requests.exceptions import RequestException

from amplitude_bq.errors import ConfigError, LoadError
from amplitude_bq.schemas.table_schema import get_events_schema

logger = logging.getLogger(__name__)

# API, credential and upload transport failures
CLIENT_ERRORS = (GoogleAPIError, GoogleAuthError, RequestException)


class TableManager:
    """Drop, create and load a single BigQuery table."""

    def __init__(
        self,
        table_ref: str,
        client: Optional[bigquery.Client] = None,
        location: Optional[str] = None,
        schema: Optional[List[bigquery.SchemaField]] = None,
    ):
        self.table_ref = table_ref
        self.location = location
        self.schema = schema or get_events_schema()
        if client is None:
            project = table_ref.split(".")[0]
            try:
                client = bigquery.Client(project=project, location=location)
            except GoogleAuthError as e:
                raise ConfigError("Could not create BigQuery client",
                                  context={"project": project}, original_exception=e)
        self.client = client

    def drop(self):
        """Delete the table; a missing table is not an error."""
        logger.info("Deleting table...")
        try:
            self.client.delete_table(self.table_ref, not_found_ok=True)
        except CLIENT_ERRORS as e:
            raise LoadError("Failed to delete table", context={"table": self.table_ref},
                            original_exception=e)

    def create(self):
        """Create the table with the declared schema."""
        logger.info("Creating table...")
        table = bigquery.Table(self.table_ref, schema=self.schema)
        try:
            self.client.create_table(table)
        except CLIENT_ERRORS as e:
            raise LoadError("Failed to create table", context={"table": self.table_ref},
                            original_exception=e)

    def replace(self):
        """Destroy prior contents and recreate the empty table."""
        self.drop()
        self.create()

    def load_job_config(self) -> bigquery.LoadJobConfig:
        return bigquery.LoadJobConfig(
            source_format=bigquery.SourceFormat.CSV,
            schema=self.schema,
            allow_quoted_newlines=True,
            write_disposition=bigquery.WriteDisposition.WRITE_TRUNCATE,
        )

    def load_csv(self, stream: BinaryIO) -> int:
        """
        Run one load job reading CSV from `stream` until end of stream.

        Returns:
            Number of rows loaded
        """
        try:
            job = self.client.load_table_from_file(
                stream,
                self.table_ref,
                job_config=self.load_job_config(),
                location=self.location,
            )
            job.result()
        except CLIENT_ERRORS as e:
            raise LoadError("Load job failed", context={"table": self.table_ref},
                            original_exception=e)

        rows = job.output_rows or 0
        logger.info(f"Loaded {rows} rows into {self.table_ref}")
        return rows
