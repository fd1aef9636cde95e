"""amplitude_bq.config

Process configuration, read from the environment.

Required values have no default; `require()` turns any problem reported by
`validate()` into a ConfigError before the run touches BigQuery.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from amplitude_bq.errors import ConfigError

DEFAULT_DAYS = 40
DEFAULT_EXPORT_URL = "https://amplitude.com/api/2/export"
DEFAULT_PIPE_MAX_CHUNKS = 16

REQUIRED_SETTINGS = (
  ("bigquery_project", "BIGQUERY_PROJECT"),
  ("bigquery_dataset", "BIGQUERY_DATASET"),
  ("bigquery_table", "BIGQUERY_TABLE"),
  ("api_key", "AMPLITUDE_API_KEY"),
  ("secret_key", "AMPLITUDE_SECRET_KEY"),
)


def _env(name: str) -> str:
  return os.environ.get(name, "")


def _optional_float(name: str) -> Optional[float]:
  raw = os.environ.get(name)
  if not raw:
    return None
  try:
    return float(raw)
  except ValueError as e:
    raise ConfigError(f"{name} must be a number, got {raw!r}", original_exception=e)


def _int_setting(name: str, default: int) -> int:
  raw = os.environ.get(name)
  if not raw:
    return default
  try:
    return int(raw)
  except ValueError as e:
    raise ConfigError(f"{name} must be an integer, got {raw!r}", original_exception=e)


@dataclass
class Config:
  # BigQuery destination
  bigquery_project: str = field(default_factory=lambda: _env("BIGQUERY_PROJECT"))
  bigquery_dataset: str = field(default_factory=lambda: _env("BIGQUERY_DATASET"))
  bigquery_table: str = field(default_factory=lambda: _env("BIGQUERY_TABLE"))
  bq_location: str = field(default_factory=lambda: os.environ.get("BQ_LOCATION", "US"))

  # Amplitude export API
  api_key: str = field(default_factory=lambda: _env("AMPLITUDE_API_KEY"))
  secret_key: str = field(default_factory=lambda: _env("AMPLITUDE_SECRET_KEY"))
  export_url: str = field(
    default_factory=lambda: os.environ.get("AMPLITUDE_EXPORT_URL", DEFAULT_EXPORT_URL)
  )
  # None means no timeout; a day's export can take minutes to arrive.
  export_timeout: Optional[float] = field(
    default_factory=lambda: _optional_float("EXPORT_TIMEOUT_SECONDS")
  )

  # Run shape
  days: int = field(default_factory=lambda: _int_setting("DAYS", DEFAULT_DAYS))
  pipe_max_chunks: int = field(
    default_factory=lambda: _int_setting("PIPE_MAX_CHUNKS", DEFAULT_PIPE_MAX_CHUNKS)
  )

  log_level: str = field(default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO"))

  def validate(self, require_warehouse: bool = True) -> List[str]:
    errors: List[str] = []

    for attr, env_name in REQUIRED_SETTINGS:
      if not require_warehouse and attr.startswith("bigquery_"):
        continue
      if not getattr(self, attr):
        errors.append(f"{env_name} not set")

    if self.days < 0:
      errors.append("DAYS cannot be negative")

    if self.pipe_max_chunks < 1:
      errors.append("PIPE_MAX_CHUNKS must be at least 1")

    return errors

  def require(self, require_warehouse: bool = True) -> "Config":
    """Raise ConfigError listing every problem, or return self."""
    errors = self.validate(require_warehouse=require_warehouse)
    if errors:
      raise ConfigError("; ".join(errors))
    return self

  @property
  def table_fqn(self) -> str:
    return f"{self.bigquery_project}.{self.bigquery_dataset}.{self.bigquery_table}"
