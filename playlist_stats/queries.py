"""
Read-only queries and statistics over the track collection.

Every method opens its own store session. Errors never reach the caller:
they are logged and the method returns an empty list (or 0 for counts), so
an outage looks the same as "no matches".
"""

from typing import Any, Dict, List

from loguru import logger

from .matching import artist_pattern, contains_pattern, regex_filter
from .models import ArtistCount, ContributorCount, TitleCount, TrackRecord
from .store import ASCENDING, DESCENDING, StoreProvider

# Most recent period first; ties keep playlist order.
RECENT_FIRST = [
    ("playlist_period_date", DESCENDING),
    ("playlist_sequence", ASCENDING),
    ("original_order", ASCENDING),
]
PLAYLIST_ORDER = [("playlist_sequence", ASCENDING), ("original_order", ASCENDING)]


def _base_title_expr() -> Dict[str, Any]:
    """Title text before the first '-' or '(', trimmed."""
    before_hyphen = {"$arrayElemAt": [{"$split": ["$title", "-"]}, 0]}
    before_paren = {"$arrayElemAt": [{"$split": [before_hyphen, "("]}, 0]}
    return {"$trim": {"input": before_paren}}


class TrackQueryEngine:
    """Lookups and aggregate statistics over stored playlist tracks."""

    def __init__(self, provider: StoreProvider, collection: str = "tracks") -> None:
        self.provider = provider
        self.collection = collection

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _find(self, filter: Dict[str, Any], sort) -> List[TrackRecord]:
        async with self.provider.session() as session:
            docs = await session.collection(self.collection).find(filter, sort)
        return [TrackRecord.from_document(d) for d in docs]

    async def _aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        async with self.provider.session() as session:
            return await session.collection(self.collection).aggregate(pipeline)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def find_by_artist(self, query: str) -> List[TrackRecord]:
        """Whole-word, case-insensitive artist match ("Dr Dre" finds "Dr. Dre")."""
        pattern = artist_pattern(query)
        if pattern is None:
            return []
        try:
            return await self._find(regex_filter("artist", pattern), RECENT_FIRST)
        except Exception as e:
            logger.error(f"Error retrieving tracks by artist '{query}': {e}")
            return []

    async def find_by_title(self, query: str) -> List[TrackRecord]:
        pattern = contains_pattern(query)
        if pattern is None:
            return []
        try:
            return await self._find(regex_filter("title", pattern), RECENT_FIRST)
        except Exception as e:
            logger.error(f"Error retrieving tracks by title '{query}': {e}")
            return []

    async def find_by_contributor(self, query: str) -> List[TrackRecord]:
        pattern = contains_pattern(query)
        if pattern is None:
            return []
        try:
            return await self._find(regex_filter("added", pattern), RECENT_FIRST)
        except Exception as e:
            logger.error(f"Error retrieving tracks for contributor '{query}': {e}")
            return []

    async def get_period_tracks(self, period: str) -> List[TrackRecord]:
        """Tracks of one playlist period in their original file order."""
        try:
            return await self._find({"playlist_period": period}, PLAYLIST_ORDER)
        except Exception as e:
            logger.error(f"Error retrieving tracks for playlist '{period}': {e}")
            return []

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    async def total_count(self) -> int:
        try:
            async with self.provider.session() as session:
                return await session.collection(self.collection).count()
        except Exception as e:
            logger.error(f"Error counting tracks: {e}")
            return 0

    async def top_contributors(self) -> List[ContributorCount]:
        """Every contributor with their track count, most tracks first."""
        pipeline = [
            {"$group": {"_id": "$added", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
        ]
        try:
            rows = await self._aggregate(pipeline)
        except Exception as e:
            logger.error(f"Error computing top contributors: {e}")
            return []
        return [ContributorCount(added=r["_id"] or "", track_count=r["count"]) for r in rows]

    async def top_artists(self, limit: int = 10) -> List[ArtistCount]:
        """
        Most frequent artist credits.

        A record credited to "A, B" counts once for A and once for B.
        """
        if limit < 1:
            return []
        pipeline = [
            {"$project": {"credits": {"$split": ["$artist", ","]}}},
            {"$unwind": "$credits"},
            {"$project": {"artist": {"$trim": {"input": "$credits"}}}},
            {"$match": {"artist": {"$gt": ""}}},
            {"$group": {"_id": "$artist", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": limit},
        ]
        try:
            rows = await self._aggregate(pipeline)
        except Exception as e:
            logger.error(f"Error computing top artists: {e}")
            return []
        return [ArtistCount(artist=r["_id"], play_count=r["count"]) for r in rows]

    async def top_titles(self, limit: int = 10) -> List[TitleCount]:
        """
        Most repeated base titles.

        "Song - Remix" and "Song (Live)" both count as "Song". Titles seen
        only once are left out.
        """
        if limit < 1:
            return []
        pipeline = [
            {"$project": {"base_title": _base_title_expr()}},
            {"$match": {"base_title": {"$gt": ""}}},
            {"$group": {"_id": "$base_title", "count": {"$sum": 1}}},
            {"$match": {"count": {"$gt": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
            {"$limit": limit},
        ]
        try:
            rows = await self._aggregate(pipeline)
        except Exception as e:
            logger.error(f"Error computing top titles: {e}")
            return []
        return [TitleCount(title=r["_id"], play_count=r["count"]) for r in rows]
