"""
Error taxonomy for the export loader.

Every error is fatal for the run. Each class names the pipeline stage it
belongs to so the top-level handler can report where the run stopped.

    ExportPipelineError
    ├── ConfigError    (config)
    ├── FetchError     (fetch)
    ├── ExtractError   (extract)
    ├── DecodeError    (decode)
    └── LoadError      (load)
"""

from typing import Any, Dict, Optional


class ExportPipelineError(Exception):
    """Base class for all pipeline failures."""

    stage = "pipeline"

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None,
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        super().__init__(message)
        if original_exception is not None:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        msg = self.message
        if self.context:
            msg += " (" + ", ".join(f"{k}={v}" for k, v in self.context.items()) + ")"
        if self.original_exception is not None:
            msg += f": {type(self.original_exception).__name__}: {self.original_exception}"
        return msg


class ConfigError(ExportPipelineError):
    """A required setting is missing or malformed."""

    stage = "config"


class FetchError(ExportPipelineError):
    """The export request failed or returned a non-success status."""

    stage = "fetch"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[BaseException] = None,
    ):
        context = dict(context or {})
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(message, context, original_exception)
        self.status_code = status_code


class ExtractError(ExportPipelineError):
    """The archive or one of its compressed entries is malformed."""

    stage = "extract"


class DecodeError(ExportPipelineError):
    """An entry holds malformed JSON or an event with unrecognized fields."""

    stage = "decode"


class LoadError(ExportPipelineError):
    """BigQuery rejected the table operation or the load job."""

    stage = "load"
