"""
Query protocol for Playlist Stats.

Maps the public operation names (searchByArtist, totalSongs, loadPlaylists,
...) onto the query engine and the playlist loader and returns JSON-ready
values. Transports (FastAPI, MCP) only forward arguments to this class.
"""

from typing import Any, Dict, List, Optional

from .config import Settings
from .ingest import PlaylistLoader, WritePolicy
from .queries import TrackQueryEngine
from .store import StoreProvider, build_provider


def _dump(items) -> List[Dict[str, Any]]:
    return [item.model_dump(mode="json", by_alias=True) for item in items]


class PlaylistStatsAPI:
    """The read operations plus the ingestion trigger."""

    def __init__(
        self,
        settings: Settings,
        provider: Optional[StoreProvider] = None,
        policy: Optional[WritePolicy] = None,
    ) -> None:
        self.settings = settings
        self.provider = provider or build_provider(settings)
        self.engine = TrackQueryEngine(self.provider, collection=settings.collection)
        self.loader = PlaylistLoader(self.provider, settings, policy=policy)

    async def searchByArtist(self, artist: str) -> List[Dict[str, Any]]:
        return _dump(await self.engine.find_by_artist(artist))

    async def searchByTitle(self, title: str) -> List[Dict[str, Any]]:
        return _dump(await self.engine.find_by_title(title))

    async def searchByAdded(self, added: str) -> List[Dict[str, Any]]:
        return _dump(await self.engine.find_by_contributor(added))

    async def getPlaylistTracks(self, playlist_period: str) -> List[Dict[str, Any]]:
        return _dump(await self.engine.get_period_tracks(playlist_period))

    async def totalSongs(self) -> int:
        return await self.engine.total_count()

    async def mostTracksByUser(self) -> List[Dict[str, Any]]:
        return _dump(await self.engine.top_contributors())

    async def mostPlayedArtists(self, limit: int = 10) -> List[Dict[str, Any]]:
        return _dump(await self.engine.top_artists(limit))

    async def mostPlayedTitles(self, limit: int = 10) -> List[Dict[str, Any]]:
        return _dump(await self.engine.top_titles(limit))

    async def loadPlaylists(self) -> Dict[str, Any]:
        """Run a full reload. IngestionError propagates to the transport."""
        result = await self.loader.run()
        return result.model_dump(mode="json")
