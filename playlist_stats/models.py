"""
Data Models for Playlist Stats

Raw export rows, the persisted track record, aggregate results and
ingestion summaries.
"""

from datetime import date, datetime
from typing import Optional, List, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


UNKNOWN_PERIOD = "Unknown"


# ---------------------------------------------------------------------------
# Ingestion inputs
# ---------------------------------------------------------------------------

class RawTrackRow(BaseModel):
    """The three columns read from one export row."""

    title: str = ""
    artist: str = ""
    added: str = ""


class PlaylistFileMetadata(BaseModel):
    """Period and optional sequence number parsed from an export file name."""

    period: str = Field(UNKNOWN_PERIOD, description="Canonical 'Month Year' or 'Unknown'")
    sequence: Optional[int] = Field(None, description="Ordinal for several exports in one period")

    @property
    def is_unknown(self) -> bool:
        return self.period == UNKNOWN_PERIOD


# ---------------------------------------------------------------------------
# Track record
# ---------------------------------------------------------------------------

class TrackRecord(BaseModel):
    """A playlist track as stored in the ``tracks`` collection."""

    title: str = Field(..., description="Track title")
    artist: str = Field(..., description="Artist credit, possibly comma-separated")
    added: str = Field(..., description="Contributor who added the track")
    playlist_period: str = Field(..., description="Playlist month, e.g. 'March 2024'")
    playlist_period_date: Optional[date] = Field(None, description="First day of the playlist month")
    playlist_sequence: Optional[int] = Field(None, description="Export sequence within the period")
    original_order: int = Field(..., ge=1, description="1-based row position in the export file")
    search_link: str = Field(..., description="External search URL for artist + title")

    def to_document(self) -> Dict[str, Any]:
        """Return a BSON-compatible dict. Dates are stored as midnight datetimes."""
        doc = self.model_dump()
        if self.playlist_period_date is not None:
            d = self.playlist_period_date
            doc["playlist_period_date"] = datetime(d.year, d.month, d.day)
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "TrackRecord":
        data = {k: v for k, v in doc.items() if k != "_id"}
        period_date = data.get("playlist_period_date")
        if isinstance(period_date, datetime):
            data["playlist_period_date"] = period_date.date()
        return cls(**data)


# ---------------------------------------------------------------------------
# Aggregate results
# ---------------------------------------------------------------------------

class ContributorCount(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    added: str
    track_count: int = Field(..., serialization_alias="trackCount")


class ArtistCount(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    artist: str
    play_count: int = Field(..., serialization_alias="playCount")


class TitleCount(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    play_count: int = Field(..., serialization_alias="playCount")


# ---------------------------------------------------------------------------
# Ingestion summaries
# ---------------------------------------------------------------------------

class FileSummary(BaseModel):
    """What one export file contributed to an ingestion run."""

    file_name: str
    period: str
    sequence: Optional[int] = None
    rows: int = 0


class IngestionResult(BaseModel):
    """Outcome of a successful ingestion run."""

    inserted: int = 0
    deleted: int = 0
    mode: str = "destructive"
    files: List[FileSummary] = Field(default_factory=list)
