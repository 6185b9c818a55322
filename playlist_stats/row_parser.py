"""
Streaming CSV reader for playlist exports.

Only the ``title``, ``artist`` and ``added`` columns are kept. Rows are
yielded one at a time so arbitrarily large exports never sit in memory.
"""

import csv
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Iterator, Union

from .errors import ParseFailure
from .models import RawTrackRow

REQUIRED_COLUMNS = ("title", "artist", "added")


@contextmanager
def open_export(path: Union[str, Path]) -> Iterator[IO[str]]:
    with open(path, newline="", encoding="utf-8-sig") as fh:
        yield fh


def iter_rows(handle: IO[str]) -> Iterator[RawTrackRow]:
    """Yield one RawTrackRow per data row of ``handle``, in file order.

    Raises ValueError if the header lacks a required column.
    """
    reader = csv.DictReader(handle)
    fieldnames = reader.fieldnames or []
    missing = [c for c in REQUIRED_COLUMNS if c not in fieldnames]
    if missing:
        raise ValueError(f"missing column(s): {', '.join(missing)}")

    for row in reader:
        yield RawTrackRow(
            title=row.get("title") or "",
            artist=row.get("artist") or "",
            added=row.get("added") or "",
        )


def parse_file(path: Union[str, Path]) -> Iterator[RawTrackRow]:
    """Stream the rows of the export at ``path``.

    Single pass: the file is closed once the generator is exhausted or
    closed. Read and decode errors surface as ParseFailure at the row where
    they happen.
    """
    try:
        with open_export(path) as fh:
            yield from iter_rows(fh)
    except (OSError, UnicodeDecodeError, csv.Error, ValueError) as e:
        raise ParseFailure(path, str(e)) from e
