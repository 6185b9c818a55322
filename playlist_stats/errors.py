"""
Error taxonomy for playlist ingestion and querying.

ExtractionMismatch is recoverable (the extractor falls back to the "Unknown"
period). ParseFailure and StoreUnavailable abort the current file or
operation. IngestionError wraps either of them when raised mid-run and
records how many tracks had been written before the failure. Any other
error escaping a run is wrapped the same way.
"""

from pathlib import Path
from typing import Optional, Union


class PlaylistStatsError(Exception):
    """Base class for all playlist-stats errors."""


class ExtractionMismatch(PlaylistStatsError):
    """A file name does not follow the playlist export naming convention."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(f"File name does not match the export convention: {file_name}")


class ParseFailure(PlaylistStatsError):
    """An export file (or the export directory) could not be read."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to parse {self.path}: {reason}")


class StoreUnavailable(PlaylistStatsError):
    """The backing store could not be reached or rejected an operation."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Store operation '{operation}' failed: {reason}")


class IngestionError(PlaylistStatsError):
    """An ingestion run stopped part-way; ``inserted`` tracks were written."""

    def __init__(self, inserted: int, cause: Optional[Exception] = None) -> None:
        self.inserted = inserted
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Ingestion failed after inserting {inserted} tracks{detail}")
