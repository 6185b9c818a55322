"""Tests for the streaming export reader."""

import io

import pytest

from playlist_stats.errors import ParseFailure
from playlist_stats.row_parser import iter_rows, parse_file

from conftest import write_export


CSV_TEXT = (
    "title,artist,album,added\n"
    "Song X,Artist A,Album,alice\n"
    "Song Y,\"Artist B, Artist C\",Album,bob\n"
    "Song Z,Artist D,Album,carol\n"
)


class TestIterRows:
    def test_rows_in_file_order(self):
        rows = list(iter_rows(io.StringIO(CSV_TEXT)))
        assert [r.title for r in rows] == ["Song X", "Song Y", "Song Z"]

    def test_only_three_fields_kept(self):
        row = next(iter_rows(io.StringIO(CSV_TEXT)))
        assert row.model_dump() == {"title": "Song X", "artist": "Artist A", "added": "alice"}

    def test_quoted_multi_artist_value(self):
        rows = list(iter_rows(io.StringIO(CSV_TEXT)))
        assert rows[1].artist == "Artist B, Artist C"

    def test_short_row_gives_empty_strings(self):
        rows = list(iter_rows(io.StringIO("title,artist,added\nOnly Title\n")))
        assert rows[0].title == "Only Title"
        assert rows[0].artist == ""
        assert rows[0].added == ""

    def test_missing_column_rejected(self):
        with pytest.raises(ValueError, match="added"):
            list(iter_rows(io.StringIO("title,artist\nA,B\n")))

    def test_is_lazy(self):
        handle = io.StringIO(CSV_TEXT)
        rows = iter_rows(handle)
        first = next(rows)
        assert first.title == "Song X"
        assert handle.tell() > 0


class TestParseFile:
    def test_reads_export(self, tmp_path):
        path = write_export(tmp_path, "export.csv", [("Song X", "Artist A", "alice")])
        rows = list(parse_file(path))
        assert len(rows) == 1
        assert rows[0].added == "alice"

    def test_utf8_bom_header(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_bytes("\ufefftitle,artist,added\nSong,Beyoncé,dana\n".encode("utf-8"))
        rows = list(parse_file(path))
        assert rows[0].title == "Song"
        assert rows[0].artist == "Beyoncé"

    def test_single_pass(self, tmp_path):
        path = write_export(tmp_path, "export.csv", [("A", "B", "c"), ("D", "E", "f")])
        rows = parse_file(path)
        assert len(list(rows)) == 2
        assert list(rows) == []

    def test_missing_file_fails_on_iteration(self, tmp_path):
        rows = parse_file(tmp_path / "missing.csv")
        with pytest.raises(ParseFailure):
            next(rows)

    def test_malformed_encoding(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_bytes(b"title,artist,added\n\xff\xfe\xfa,x,y\n")
        with pytest.raises(ParseFailure):
            list(parse_file(path))

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(ParseFailure, match="missing column"):
            list(parse_file(path))
