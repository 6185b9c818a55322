"""Search URL synthesis for tracks."""

from urllib.parse import quote

SPOTIFY_SEARCH_URL = "https://open.spotify.com/search/"
EXPLICIT_MARKER = "(Explicit)"

# Same unreserved set as JavaScript's encodeURIComponent.
_SAFE_CHARS = "!*'()"


def _encode(text: str) -> str:
    return quote(text, safe=_SAFE_CHARS)


def synthesize_search_link(artist: str, title: str, base_url: str = SPOTIFY_SEARCH_URL) -> str:
    """Return the search URL for ``artist`` + ``title``.

    The "(Explicit)" marker is removed from the encoded query, repeatedly, so
    that no occurrence survives even when removal joins two fragments.
    """
    if not isinstance(artist, str) or not isinstance(title, str):
        raise TypeError("artist and title must be strings")

    query = _encode(f"{artist} {title}")
    marker = _encode(EXPLICIT_MARKER)
    while marker in query:
        query = query.replace(marker, "")
    return f"{base_url}{query}"
