"""
Document store layer for Playlist Stats

The ingestion and query code only rely on the capabilities declared here:
delete-all, insert, find-with-filter-and-sort, count and aggregation
pipelines. A StoreProvider hands out one session per logical operation:

    async with provider.session() as session:
        tracks = session.collection("tracks")
        total = await tracks.count()

The session is connected on entry and released on every exit path. No
client is shared between operations.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence, Tuple

from loguru import logger
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from .config import Settings, StoreBackend
from .errors import StoreUnavailable

Document = Dict[str, Any]
SortSpec = Sequence[Tuple[str, int]]

ASCENDING = 1
DESCENDING = -1


# ---------------------------------------------------------------------------
# Capability interfaces
# ---------------------------------------------------------------------------

class TrackCollection(ABC):
    """One named collection of track documents."""

    @abstractmethod
    async def delete_all(self) -> int:
        """Remove every document; return how many were removed."""

    @abstractmethod
    async def drop(self) -> None:
        ...

    @abstractmethod
    async def insert_one(self, doc: Document) -> str:
        """Insert ``doc`` and return the generated identifier."""

    @abstractmethod
    async def insert_many(self, docs: List[Document]) -> List[str]:
        """Insert ``docs`` in order and return their identifiers."""

    @abstractmethod
    async def find(self, filter: Document, sort: Optional[SortSpec] = None) -> List[Document]:
        """Return matching documents (without ``_id``) in ``sort`` order."""

    @abstractmethod
    async def count(self) -> int:
        ...

    @abstractmethod
    async def aggregate(self, pipeline: List[Document]) -> List[Document]:
        ...


class StoreSession(ABC):
    """A connected handle, valid inside ``StoreProvider.session()`` only."""

    @abstractmethod
    def collection(self, name: str) -> TrackCollection:
        ...

    @abstractmethod
    async def swap(self, staging: str, target: str) -> None:
        """Atomically replace ``target`` with the contents of ``staging``."""


class StoreProvider(ABC):
    """Opens scoped store sessions."""

    @abstractmethod
    def session(self) -> "AsyncIterator[StoreSession]":
        """Async context manager yielding a connected StoreSession."""


# ---------------------------------------------------------------------------
# MongoDB backend
# ---------------------------------------------------------------------------

@contextmanager
def _store_errors(operation: str):
    try:
        yield
    except PyMongoError as e:
        raise StoreUnavailable(operation, str(e)) from e


class MongoTrackCollection(TrackCollection):
    def __init__(self, collection) -> None:
        self._collection = collection

    async def delete_all(self) -> int:
        with _store_errors("delete_all"):
            result = await self._collection.delete_many({})
        return result.deleted_count

    async def drop(self) -> None:
        with _store_errors("drop"):
            await self._collection.drop()

    async def insert_one(self, doc: Document) -> str:
        with _store_errors("insert_one"):
            result = await self._collection.insert_one(dict(doc))
        return str(result.inserted_id)

    async def insert_many(self, docs: List[Document]) -> List[str]:
        if not docs:
            return []
        with _store_errors("insert_many"):
            result = await self._collection.insert_many([dict(d) for d in docs], ordered=True)
        return [str(i) for i in result.inserted_ids]

    async def find(self, filter: Document, sort: Optional[SortSpec] = None) -> List[Document]:
        with _store_errors("find"):
            cursor = self._collection.find(filter, {"_id": False})
            if sort:
                cursor = cursor.sort(list(sort))
            return await cursor.to_list()

    async def count(self) -> int:
        with _store_errors("count"):
            return await self._collection.count_documents({})

    async def aggregate(self, pipeline: List[Document]) -> List[Document]:
        with _store_errors("aggregate"):
            cursor = await self._collection.aggregate(pipeline)
            return await cursor.to_list()


class MongoStoreSession(StoreSession):
    def __init__(self, database) -> None:
        self._database = database

    def collection(self, name: str) -> MongoTrackCollection:
        return MongoTrackCollection(self._database[name])

    async def swap(self, staging: str, target: str) -> None:
        with _store_errors("swap"):
            await self._database[staging].rename(target, dropTarget=True)


class MongoStoreProvider(StoreProvider):
    """
    Opens a fresh AsyncMongoClient per session and closes it on exit.
    """

    def __init__(
        self,
        uri: str,
        database: str,
        tls: bool = False,
        server_selection_timeout_ms: int = 5000,
    ) -> None:
        self.uri = uri
        self.database = database
        self.tls = tls
        self.server_selection_timeout_ms = server_selection_timeout_ms

    @asynccontextmanager
    async def session(self) -> AsyncIterator[MongoStoreSession]:
        with _store_errors("connect"):
            client = AsyncMongoClient(
                self.uri,
                tls=self.tls,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
            )
        try:
            with _store_errors("connect"):
                await client.admin.command("ping")
            yield MongoStoreSession(client[self.database])
        finally:
            try:
                await client.close()
            except PyMongoError as e:
                logger.warning(f"Error closing MongoDB client: {e}")


def build_provider(settings: Settings) -> StoreProvider:
    """Return the store provider selected by ``settings.backend``."""
    if settings.backend == StoreBackend.MEMORY:
        from .memory_store import MemoryStoreProvider

        logger.info("Using in-memory track store")
        return MemoryStoreProvider()

    logger.info(f"Using MongoDB track store (database '{settings.database}')")
    return MongoStoreProvider(
        uri=settings.mongo_uri,
        database=settings.database,
        tls=settings.mongo_tls,
    )
