"""Tests for settings, provider selection and the load-playlists CLI."""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from playlist_stats import load_playlists
from playlist_stats.config import ReloadMode, Settings, StoreBackend, load_env_file
from playlist_stats.memory_store import MemoryStoreProvider
from playlist_stats.store import MongoStoreProvider, build_provider

from conftest import write_export


ENV_VARS = [
    "MONGO_CONNECTION_STRING", "MONGO_TLS", "PLAYLIST_STATS_DB", "PLAYLIST_STATS_COLLECTION",
    "STORE_BACKEND", "PLAYLISTS_DIR", "PLAYLIST_FILE_PREFIX", "PLAYLIST_FILE_EXTENSION",
    "INSERT_DELAY_MS", "INSERT_BATCH_SIZE", "RELOAD_MODE", "SEARCH_LINK_BASE", "PORT", "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env):
        settings = Settings.from_env()
        assert settings.backend == StoreBackend.MONGO
        assert settings.reload_mode == ReloadMode.DESTRUCTIVE
        assert settings.insert_delay_ms == 50
        assert settings.insert_batch_size == 1
        assert settings.collection == "tracks"
        assert settings.file_prefix == "rate_wonder_spotify_stream"
        assert settings.port == 4000

    def test_from_env(self, clean_env):
        clean_env.setenv("MONGO_CONNECTION_STRING", "mongodb://db.example:27017")
        clean_env.setenv("MONGO_TLS", "yes")
        clean_env.setenv("STORE_BACKEND", "memory")
        clean_env.setenv("PLAYLISTS_DIR", "/data/exports")
        clean_env.setenv("INSERT_DELAY_MS", "0")
        clean_env.setenv("INSERT_BATCH_SIZE", "250")
        clean_env.setenv("RELOAD_MODE", "staged")
        clean_env.setenv("PORT", "8080")

        settings = Settings.from_env()
        assert settings.mongo_uri == "mongodb://db.example:27017"
        assert settings.mongo_tls is True
        assert settings.backend == StoreBackend.MEMORY
        assert settings.playlists_dir == Path("/data/exports")
        assert settings.insert_delay_ms == 0
        assert settings.insert_batch_size == 250
        assert settings.reload_mode == ReloadMode.STAGED
        assert settings.port == 8080

    @pytest.mark.parametrize("name,value", [
        ("RELOAD_MODE", "sometimes"),
        ("INSERT_BATCH_SIZE", "0"),
        ("INSERT_DELAY_MS", "-5"),
        ("STORE_BACKEND", "redis"),
    ])
    def test_invalid_values(self, clean_env, name, value):
        clean_env.setenv(name, value)
        with pytest.raises(ValidationError):
            Settings.from_env()


class TestEnvFile:
    @pytest.fixture
    def env_dir(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text(
            "PLAYLIST_STATS_COLLECTION=from_env_file\n"
            "RELOAD_MODE=staged\n"
            "PORT=1234\n"
        )
        clean_env.chdir(tmp_path)
        # Recorded so the values loaded from the file are removed afterwards.
        for name in ("PLAYLIST_STATS_COLLECTION", "RELOAD_MODE", "PORT"):
            clean_env.setenv(name, "")
            clean_env.delenv(name)
        return clean_env

    def test_values_from_file(self, env_dir):
        env_dir.setenv("PORT", "9000")
        assert load_env_file()
        settings = Settings.from_env()
        assert settings.collection == "from_env_file"
        assert settings.reload_mode == ReloadMode.STAGED
        assert settings.port == 9000

    def test_no_file(self, clean_env, tmp_path):
        clean_env.chdir(tmp_path)
        assert not load_env_file()
        assert Settings.from_env().collection == "tracks"

    def test_cli_reads_env_file(self, env_dir, tmp_path, capsys):
        playlists = tmp_path / "exports"
        playlists.mkdir()
        write_export(playlists, "rate_wonder_spotify_stream_may_2024.csv", [("A", "B", "c")])
        env_dir.setattr(load_playlists, "configure_logging", lambda level: None)

        code = load_playlists.main(["--dir", str(playlists), "--backend", "memory", "--delay-ms", "0"])
        assert code == 0
        assert "Inserted 1 tracks" in capsys.readouterr().out
        assert os.environ["RELOAD_MODE"] == "staged"


class TestBuildProvider:
    def test_memory(self, settings):
        assert isinstance(build_provider(settings), MemoryStoreProvider)

    def test_mongo_does_not_connect_eagerly(self, settings):
        provider = build_provider(settings.model_copy(update={"backend": StoreBackend.MONGO}))
        assert isinstance(provider, MongoStoreProvider)
        assert provider.database == "rates-community-stats"


class TestLoadPlaylistsCli:
    @pytest.fixture(autouse=True)
    def quiet(self, clean_env, tmp_path):
        clean_env.setattr(load_playlists, "configure_logging", lambda level: None)
        clean_env.chdir(tmp_path)
        return clean_env

    def test_success(self, playlists_dir, capsys):
        write_export(playlists_dir, "rate_wonder_spotify_stream_march_2024.csv", [("A", "B", "c")])
        code = load_playlists.main([
            "--dir", str(playlists_dir), "--backend", "memory", "--delay-ms", "0", "--mode", "staged",
        ])
        assert code == 0
        assert "Inserted 1 tracks from 1 file(s)." in capsys.readouterr().out

    def test_missing_directory(self, tmp_path, capsys):
        code = load_playlists.main(["--dir", str(tmp_path / "missing"), "--backend", "memory"])
        assert code == 1
        assert capsys.readouterr().err.startswith("ERROR:")

    def test_rejects_unknown_mode(self):
        with pytest.raises(SystemExit):
            load_playlists.main(["--mode", "sometimes"])

    def test_overrides_merge_with_environment(self, quiet, tmp_path):
        quiet.setenv("INSERT_BATCH_SIZE", "40")
        args = load_playlists._parse_args(["--dir", str(tmp_path), "--delay-ms", "5"])
        settings = load_playlists._settings_from_args(args)
        assert settings.playlists_dir == tmp_path
        assert settings.insert_delay_ms == 5
        assert settings.insert_batch_size == 40
