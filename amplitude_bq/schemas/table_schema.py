"""BigQuery schema for the destination events table."""

from google.cloud import bigquery

# Column order matches the CSV rows written by the encoder.
COLUMN_NAMES = [
    "event_time",
    "event_type",
    "user_id",
    "event_properties",
    "user_properties",
]


def get_events_schema() -> list[bigquery.SchemaField]:
    """Get schema for the events table.

    All columns are REQUIRED; the table is recreated on every run.
    """
    return [
        bigquery.SchemaField("event_time", "TIMESTAMP", mode="REQUIRED",
                            description="Event timestamp as reported by the export"),
        bigquery.SchemaField("event_type", "STRING", mode="REQUIRED",
                            description="Event type label"),
        bigquery.SchemaField("user_id", "STRING", mode="REQUIRED",
                            description="User identifier"),
        bigquery.SchemaField("event_properties", "STRING", mode="REQUIRED",
                            description="Event-scoped properties as JSON text"),
        bigquery.SchemaField("user_properties", "STRING", mode="REQUIRED",
                            description="User-scoped properties as JSON text"),
    ]
