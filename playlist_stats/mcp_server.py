"""
FastMCP Server for Playlist Stats

Exposes the playlist query protocol as MCP tools so an assistant can search
the community playlists and read their statistics.

Run over stdio:
  python -m playlist_stats.mcp_server

Run over HTTP (SSE):
  python -m playlist_stats.mcp_server --transport sse [--host 127.0.0.1] [--port 8000]
"""

from typing import Any, Dict, List, Optional

from fastmcp import FastMCP
from loguru import logger

from .api import PlaylistStatsAPI
from .config import Settings, configure_logging, load_env_file
from .errors import IngestionError

# ---------------------------------------------------------------------------
# Global state
# ---------------------------------------------------------------------------

mcp = FastMCP("Playlist Stats")

_api: Optional[PlaylistStatsAPI] = None


def _get_api() -> PlaylistStatsAPI:
    """Build the protocol object on first tool call."""
    global _api
    if _api is None:
        load_env_file()
        _api = PlaylistStatsAPI(Settings.from_env())
        logger.info("Playlist Stats MCP server initialized")
    return _api


# ---------------------------------------------------------------------------
# Lookup tools
# ---------------------------------------------------------------------------

@mcp.tool()
async def search_by_artist(artist: str) -> List[Dict[str, Any]]:
    """
    Find playlist tracks by artist.

    Matching is case-insensitive and whole-word; spaces and hyphens are
    interchangeable and abbreviation periods are optional, so "Dr Dre" also
    finds "Dr. Dre". Most recent playlists first.
    """
    return await _get_api().searchByArtist(artist)


@mcp.tool()
async def search_by_title(title: str) -> List[Dict[str, Any]]:
    """Find playlist tracks whose title contains ``title`` (case-insensitive)."""
    return await _get_api().searchByTitle(title)


@mcp.tool()
async def search_by_added(added: str) -> List[Dict[str, Any]]:
    """Find playlist tracks added by a contributor (case-insensitive substring)."""
    return await _get_api().searchByAdded(added)


@mcp.tool()
async def get_playlist_tracks(playlist_period: str) -> List[Dict[str, Any]]:
    """
    Get one month's playlist in its original order.

    Args:
        playlist_period: Month and year, e.g. "March 2024"
    """
    return await _get_api().getPlaylistTracks(playlist_period)


# ---------------------------------------------------------------------------
# Statistics tools
# ---------------------------------------------------------------------------

@mcp.tool()
async def total_songs() -> int:
    """Total number of tracks across all playlists."""
    return await _get_api().totalSongs()


@mcp.tool()
async def most_tracks_by_user() -> List[Dict[str, Any]]:
    """Every contributor with the number of tracks they added, most first."""
    return await _get_api().mostTracksByUser()


@mcp.tool()
async def most_played_artists(limit: int = 10) -> List[Dict[str, Any]]:
    """
    Artists credited most often. Multi-artist tracks count for each artist.

    Args:
        limit: Maximum number of artists to return (default 10)
    """
    return await _get_api().mostPlayedArtists(limit)


@mcp.tool()
async def most_played_titles(limit: int = 10) -> List[Dict[str, Any]]:
    """
    Titles that appear more than once, ignoring "- Remix" / "(Live)" style suffixes.

    Args:
        limit: Maximum number of titles to return (default 10)
    """
    return await _get_api().mostPlayedTitles(limit)


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

@mcp.tool()
async def load_playlists() -> Dict[str, Any]:
    """
    Reload every playlist export into the store.

    Returns the inserted count, or an error with the number of tracks written
    before the failure (the store then needs another full reload).
    """
    try:
        return await _get_api().loadPlaylists()
    except IngestionError as e:
        logger.error(f"Error loading playlists: {e}")
        return {"error": str(e), "inserted": e.inserted}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    """Run the MCP server."""
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument("--transport", default="stdio", choices=["stdio", "sse"])
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    load_env_file()
    configure_logging(Settings.from_env().log_level)
    logger.info("Starting Playlist Stats MCP Server...")

    if args.transport == "sse":
        mcp.run(transport="sse", host=args.host, port=args.port)
    else:
        mcp.run()


if __name__ == "__main__":
    main()
