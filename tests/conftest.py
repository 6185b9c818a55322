"""Shared fixtures: playlist export files and an in-memory store."""

import asyncio
import csv
from pathlib import Path

import pytest

from playlist_stats.config import Settings
from playlist_stats.memory_store import MemoryStoreProvider

PREFIX = "rate_wonder_spotify_stream"


def write_export(directory: Path, name: str, rows) -> Path:
    """Write an export CSV with the columns the playlist tool produces."""
    path = directory / name
    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow(["title", "artist", "album", "added", "duration"])
        for title, artist, added in rows:
            writer.writerow([title, artist, "Some Album", added, "3:30"])
    return path


def seed(provider: MemoryStoreProvider, docs, collection: str = "tracks") -> None:
    async def _insert():
        async with provider.session() as session:
            for doc in docs:
                await session.collection(collection).insert_one(doc)

    asyncio.run(_insert())


@pytest.fixture
def playlists_dir(tmp_path):
    d = tmp_path / "playlists"
    d.mkdir()
    return d


@pytest.fixture
def settings(playlists_dir):
    return Settings(
        backend="memory",
        playlists_dir=playlists_dir,
        insert_delay_ms=0,
    )


@pytest.fixture
def provider():
    return MemoryStoreProvider()
