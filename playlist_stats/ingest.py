"""
Playlist ingestion: rebuild the track collection from the export directory.

Every run is a full reload. In destructive mode (default) the live
collection is emptied first and refilled file by file; if the run fails the
collection holds whatever was written before the failure and the whole
reload has to be re-run. In staged mode records go to
``<collection>_staging`` and replace the live collection in one rename at the
end, so a failed run leaves the live data untouched at the cost of holding two
copies during the run.

Writes are strictly sequential with a minimum pause between writes
(``WritePolicy``) so the store is never flooded.
"""

import asyncio
from contextlib import closing
from pathlib import Path
from typing import List, Optional

from loguru import logger
from pydantic import BaseModel, Field

from .config import ReloadMode, Settings
from .errors import IngestionError, ParseFailure, PlaylistStatsError, StoreUnavailable
from .filename_metadata import extract_metadata, period_to_date
from .models import FileSummary, IngestionResult, RawTrackRow, TrackRecord
from .row_parser import parse_file
from .search_link import synthesize_search_link
from .store import Document, StoreProvider, TrackCollection


class WritePolicy(BaseModel):
    """How records are written: ``batch_size`` per write, ``insert_delay`` seconds apart."""

    insert_delay: float = Field(0.05, ge=0.0)
    batch_size: int = Field(1, ge=1)

    @classmethod
    def from_settings(cls, settings: Settings) -> "WritePolicy":
        return cls(
            insert_delay=settings.insert_delay_ms / 1000.0,
            batch_size=settings.insert_batch_size,
        )


def discover_playlist_files(directory: Path, extension: str = ".csv") -> List[Path]:
    """Return the export files in ``directory`` (suffix match, sorted by name)."""
    try:
        entries = list(directory.iterdir())
    except OSError as e:
        raise ParseFailure(directory, f"cannot list playlist directory: {e}") from e
    return sorted(
        (p for p in entries if p.is_file() and p.name.lower().endswith(extension.lower())),
        key=lambda p: p.name,
    )


class PlaylistLoader:
    """Loads every export file in the playlist directory into the store."""

    def __init__(
        self,
        provider: StoreProvider,
        settings: Settings,
        policy: Optional[WritePolicy] = None,
    ) -> None:
        self.provider = provider
        self.settings = settings
        self.policy = policy or WritePolicy.from_settings(settings)
        self._inserted = 0

    @property
    def staging_collection(self) -> str:
        return f"{self.settings.collection}_staging"

    # ------------------------------------------------------------------
    # Record construction
    # ------------------------------------------------------------------

    def build_record(self, row: RawTrackRow, period: str, sequence: Optional[int], index: int) -> TrackRecord:
        """Compose the stored record for the ``index``-th (0-based) row of a file."""
        return TrackRecord(
            title=row.title,
            artist=row.artist,
            added=row.added,
            playlist_period=period,
            playlist_period_date=period_to_date(period),
            playlist_sequence=sequence,
            original_order=index + 1,
            search_link=synthesize_search_link(row.artist, row.title, self.settings.search_link_base),
        )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> IngestionResult:
        """Reload all playlists. Raises IngestionError with the partial count on failure."""
        self._inserted = 0
        mode = self.settings.reload_mode

        try:
            files = discover_playlist_files(self.settings.playlists_dir, self.settings.file_extension)
        except ParseFailure as e:
            logger.error(f"Playlist discovery failed: {e}")
            raise IngestionError(0, e) from e

        logger.info(f"Found {len(files)} playlist file(s) in {self.settings.playlists_dir} ({mode.value} reload)")
        result = IngestionResult(mode=mode.value)

        try:
            async with self.provider.session() as session:
                if mode == ReloadMode.STAGED:
                    target = session.collection(self.staging_collection)
                else:
                    target = session.collection(self.settings.collection)

                cleared = await target.delete_all()
                if mode == ReloadMode.DESTRUCTIVE:
                    result.deleted = cleared
                    logger.info(f"Existing tracks collection cleared ({cleared} removed).")

                try:
                    for path in files:
                        result.files.append(await self._load_file(path, target))
                except Exception as e:
                    if mode == ReloadMode.STAGED:
                        await self._discard_staging(target)
                    if isinstance(e, PlaylistStatsError):
                        raise
                    logger.exception(f"Unexpected error after {self._inserted} tracks: {e}")
                    raise IngestionError(self._inserted, e) from e

                if mode == ReloadMode.STAGED:
                    result.deleted = await self._promote_staging(session)
        except (ParseFailure, StoreUnavailable) as e:
            logger.error(f"Ingestion aborted after {self._inserted} tracks: {e}")
            raise IngestionError(self._inserted, e) from e

        result.inserted = self._inserted
        logger.info(f"All playlists have been loaded: {result.inserted} tracks from {len(result.files)} file(s).")
        return result

    async def _load_file(self, path: Path, target: TrackCollection) -> FileSummary:
        metadata = extract_metadata(
            path.name,
            prefix=self.settings.file_prefix,
            extension=self.settings.file_extension,
        )
        rows = 0
        batch: List[Document] = []

        with closing(parse_file(path)) as parsed:
            for index, row in enumerate(parsed):
                record = self.build_record(row, metadata.period, metadata.sequence, index)
                batch.append(record.to_document())
                rows += 1
                if len(batch) >= self.policy.batch_size:
                    await self._write(target, batch)
                    batch = []

        if batch:
            await self._write(target, batch)

        logger.info(f"Loaded {rows} tracks from {path.name} ({metadata.period})")
        return FileSummary(
            file_name=path.name,
            period=metadata.period,
            sequence=metadata.sequence,
            rows=rows,
        )

    async def _write(self, target: TrackCollection, batch: List[Document]) -> None:
        if len(batch) == 1:
            inserted_id = await target.insert_one(batch[0])
            logger.debug(f"Track inserted with ID: {inserted_id}")
        else:
            ids = await target.insert_many(batch)
            logger.debug(f"Inserted batch of {len(ids)} tracks")
        self._inserted += len(batch)
        if self.policy.insert_delay > 0:
            await asyncio.sleep(self.policy.insert_delay)

    async def _promote_staging(self, session) -> int:
        live = session.collection(self.settings.collection)
        replaced = await live.count()
        if self._inserted == 0:
            # Nothing staged, so there is no collection to rename.
            await live.delete_all()
            await session.collection(self.staging_collection).drop()
        else:
            await session.swap(self.staging_collection, self.settings.collection)
        logger.info(f"Staged tracks promoted to '{self.settings.collection}' ({replaced} replaced).")
        return replaced

    async def _discard_staging(self, staging: TrackCollection) -> None:
        try:
            await staging.drop()
        except StoreUnavailable as e:
            logger.warning(f"Could not drop staging collection: {e}")
