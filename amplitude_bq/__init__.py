"""Streams the Amplitude event export into a BigQuery table."""

__version__ = "1.0.0"
