"""
FastAPI Web Application for Playlist Stats

Endpoints:
  GET  /                                  - List of available operations
  GET  /api/searchByArtist?artist=        - Fuzzy artist lookup
  GET  /api/searchByTitle?title=          - Title substring lookup
  GET  /api/searchByAdded?added=          - Contributor substring lookup
  GET  /api/getPlaylistTracks?playlist_period=
                                          - One period's tracks in playlist order
  GET  /api/totalSongs                    - Number of stored tracks
  GET  /api/mostTracksByUser              - Track count per contributor
  GET  /api/mostPlayedArtists?limit=10    - Most frequent artist credits
  GET  /api/mostPlayedTitles?limit=10     - Most repeated base titles
  POST /api/loadPlaylists                 - Reload every playlist export
"""

from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .api import PlaylistStatsAPI
from .config import Settings, configure_logging, load_env_file
from .errors import IngestionError


def create_app(api: Optional[PlaylistStatsAPI] = None) -> FastAPI:
    """Build the FastAPI app around ``api`` (default: settings from the environment)."""
    if api is None:
        load_env_file()
        api = PlaylistStatsAPI(Settings.from_env())

    app = FastAPI(title="Playlist Stats")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.api = api

    # -----------------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------------

    @app.get("/")
    async def index():
        return {
            "service": "playlist-stats",
            "operations": [
                "searchByArtist", "searchByTitle", "searchByAdded",
                "getPlaylistTracks", "totalSongs", "mostTracksByUser",
                "mostPlayedArtists", "mostPlayedTitles", "loadPlaylists",
            ],
        }

    @app.get("/api/searchByArtist")
    async def search_by_artist(artist: str = ""):
        return JSONResponse(await api.searchByArtist(artist))

    @app.get("/api/searchByTitle")
    async def search_by_title(title: str = ""):
        return JSONResponse(await api.searchByTitle(title))

    @app.get("/api/searchByAdded")
    async def search_by_added(added: str = ""):
        return JSONResponse(await api.searchByAdded(added))

    @app.get("/api/getPlaylistTracks")
    async def get_playlist_tracks(playlist_period: str):
        return JSONResponse(await api.getPlaylistTracks(playlist_period))

    # -----------------------------------------------------------------------
    # Statistics
    # -----------------------------------------------------------------------

    @app.get("/api/totalSongs")
    async def total_songs():
        return {"totalSongs": await api.totalSongs()}

    @app.get("/api/mostTracksByUser")
    async def most_tracks_by_user():
        return JSONResponse(await api.mostTracksByUser())

    @app.get("/api/mostPlayedArtists")
    async def most_played_artists(limit: int = 10):
        return JSONResponse(await api.mostPlayedArtists(limit))

    @app.get("/api/mostPlayedTitles")
    async def most_played_titles(limit: int = 10):
        return JSONResponse(await api.mostPlayedTitles(limit))

    # -----------------------------------------------------------------------
    # Ingestion
    # -----------------------------------------------------------------------

    @app.post("/api/loadPlaylists")
    async def load_playlists():
        try:
            return JSONResponse(await api.loadPlaylists())
        except IngestionError as e:
            logger.error(f"Error loading playlists: {e}")
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to load playlists", "detail": str(e), "inserted": e.inserted},
            )

    return app


app = create_app()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    load_env_file()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info(f"Starting Playlist Stats API on port {settings.port}")
    uvicorn.run(
        "playlist_stats.app:app",
        host="0.0.0.0",
        port=settings.port,
        reload=False,
    )


if __name__ == "__main__":
    main()
