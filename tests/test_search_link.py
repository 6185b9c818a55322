"""Tests for search URL synthesis."""

import pytest

from playlist_stats.search_link import SPOTIFY_SEARCH_URL, synthesize_search_link


def test_encodes_artist_and_title():
    link = synthesize_search_link("Artist A", "Song X")
    assert link == "https://open.spotify.com/search/Artist%20A%20Song%20X"


def test_matches_encode_uri_component():
    # encodeURIComponent leaves - _ . ! ~ * ' ( ) alone and escapes the rest.
    link = synthesize_search_link("AC/DC", "Back & Forth (It's ~ok!)")
    assert link == SPOTIFY_SEARCH_URL + "AC%2FDC%20Back%20%26%20Forth%20(It's%20~ok!)"


def test_non_ascii():
    assert synthesize_search_link("Beyoncé", "Halo").endswith("Beyonc%C3%A9%20Halo")


def test_explicit_marker_removed():
    link = synthesize_search_link("Drake", "Nonstop (Explicit)")
    assert link == SPOTIFY_SEARCH_URL + "Drake%20Nonstop%20"


def test_explicit_marker_in_artist_removed():
    link = synthesize_search_link("Someone (Explicit)", "Song")
    assert "(Explicit)" not in link


@pytest.mark.parametrize("artist,title", [
    ("A", "(Explicit) Song (Explicit)"),
    ("A", "Song (Expl(Explicit)icit)"),
    ("(Explicit)", "(Explicit)"),
])
def test_marker_never_survives(artist, title):
    assert "(Explicit)" not in synthesize_search_link(artist, title)


def test_pure():
    first = synthesize_search_link("Dr. Dre", "Still D.R.E.")
    second = synthesize_search_link("Dr. Dre", "Still D.R.E.")
    assert first == second


def test_custom_base_url():
    assert synthesize_search_link("A", "B", base_url="https://example.com/q=") == "https://example.com/q=A%20B"


def test_rejects_non_strings():
    with pytest.raises(TypeError):
        synthesize_search_link(None, "Song")
