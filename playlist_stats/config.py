"""
Runtime configuration for Playlist Stats.

All settings come from environment variables, optionally seeded from a
``.env`` file in the working directory. Entry points call load_env_file() and
Settings.from_env() and pass the result down; nothing reads os.environ
elsewhere.
"""

import os
import sys
from enum import Enum
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from loguru import logger
from pydantic import BaseModel, Field


class ReloadMode(str, Enum):
    DESTRUCTIVE = "destructive"
    STAGED = "staged"


class StoreBackend(str, Enum):
    MONGO = "mongo"
    MEMORY = "memory"


_TRUE_VALUES = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Connection, ingestion and server settings."""

    mongo_uri: str = Field("mongodb://localhost:27017", description="MongoDB connection string")
    mongo_tls: bool = Field(False, description="Connect to MongoDB over TLS")
    database: str = Field("rates-community-stats", description="Database name")
    collection: str = Field("tracks", description="Track collection name")
    backend: StoreBackend = Field(StoreBackend.MONGO, description="mongo or memory")

    playlists_dir: Path = Field(Path("playlists"), description="Directory holding the exports")
    file_prefix: str = Field("rate_wonder_spotify_stream", description="Export file name prefix")
    file_extension: str = Field(".csv", description="Export file suffix")

    insert_delay_ms: int = Field(50, ge=0, description="Minimum pause between writes")
    insert_batch_size: int = Field(1, ge=1, description="Records per write")
    reload_mode: ReloadMode = Field(ReloadMode.DESTRUCTIVE, description="destructive or staged")

    search_link_base: str = Field("https://open.spotify.com/search/", description="Search URL prefix")

    port: int = Field(4000, ge=1, le=65535)
    log_level: str = Field("INFO")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ
        values = {
            "mongo_uri": env.get("MONGO_CONNECTION_STRING"),
            "mongo_tls": (
                env["MONGO_TLS"].strip().lower() in _TRUE_VALUES if "MONGO_TLS" in env else None
            ),
            "database": env.get("PLAYLIST_STATS_DB"),
            "collection": env.get("PLAYLIST_STATS_COLLECTION"),
            "backend": env.get("STORE_BACKEND"),
            "playlists_dir": env.get("PLAYLISTS_DIR"),
            "file_prefix": env.get("PLAYLIST_FILE_PREFIX"),
            "file_extension": env.get("PLAYLIST_FILE_EXTENSION"),
            "insert_delay_ms": env.get("INSERT_DELAY_MS"),
            "insert_batch_size": env.get("INSERT_BATCH_SIZE"),
            "reload_mode": env.get("RELOAD_MODE"),
            "search_link_base": env.get("SEARCH_LINK_BASE"),
            "port": env.get("PORT"),
            "log_level": env.get("LOG_LEVEL"),
        }
        return cls(**{k: v for k, v in values.items() if v is not None})


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a stderr sink at ``level``."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def load_env_file() -> bool:
    """Load ``.env`` from the working directory. Variables already set win."""
    return load_dotenv(find_dotenv(usecwd=True))
