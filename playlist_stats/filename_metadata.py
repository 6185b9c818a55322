"""
Playlist period extraction from export file names.

Exports are named ``<prefix>_[<sequence>_]<month>_<year>.<ext>``, e.g.
``rate_wonder_spotify_stream_april_2024.csv`` or
``rate_wonder_spotify_stream_2_april_2024.csv``. Names that do not follow the
convention map to the "Unknown" period instead of failing.
"""

import calendar
import re
from datetime import MAXYEAR, MINYEAR, date
from typing import Optional

from loguru import logger

from .errors import ExtractionMismatch
from .models import PlaylistFileMetadata, UNKNOWN_PERIOD

DEFAULT_PREFIX = "rate_wonder_spotify_stream"
DEFAULT_EXTENSION = ".csv"

_MONTHS: dict[str, int] = {
    name.lower(): index for index, name in enumerate(calendar.month_name) if name
}


def _filename_regex(prefix: str, extension: str) -> re.Pattern:
    return re.compile(
        rf"^{re.escape(prefix)}_"
        r"(?:(?P<sequence>\d+)_)?"
        r"(?P<month>[A-Za-z]+)_(?P<year>\d{4})"
        rf"{re.escape(extension)}$",
        re.IGNORECASE,
    )


def _match_filename(file_name: str, prefix: str, extension: str) -> PlaylistFileMetadata:
    match = _filename_regex(prefix, extension).match(file_name)
    if not match or match.group("month").lower() not in _MONTHS:
        raise ExtractionMismatch(file_name)
    if not MINYEAR <= int(match.group("year")) <= MAXYEAR:
        raise ExtractionMismatch(file_name)

    sequence = match.group("sequence")
    return PlaylistFileMetadata(
        period=f"{match.group('month').capitalize()} {match.group('year')}",
        sequence=int(sequence) if sequence is not None else None,
    )


def extract_metadata(
    file_name: str,
    prefix: str = DEFAULT_PREFIX,
    extension: str = DEFAULT_EXTENSION,
) -> PlaylistFileMetadata:
    """Return the period and sequence encoded in ``file_name``.

    Never raises: a name that does not match yields ``period="Unknown"`` and
    no sequence.
    """
    try:
        return _match_filename(file_name, prefix, extension)
    except ExtractionMismatch as e:
        logger.warning(f"{e}; using period '{UNKNOWN_PERIOD}'")
        return PlaylistFileMetadata(period=UNKNOWN_PERIOD, sequence=None)


def period_to_date(period: str) -> Optional[date]:
    """Convert 'Month Year' to the first day of that month, or None."""
    parts = period.split()
    if len(parts) != 2:
        return None
    month, year = parts
    month_index = _MONTHS.get(month.lower())
    if month_index is None or not year.isdigit():
        return None
    if not MINYEAR <= int(year) <= MAXYEAR:
        return None
    return date(int(year), month_index, 1)
