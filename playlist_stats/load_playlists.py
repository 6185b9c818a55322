"""
load-playlists: rebuild the track collection from the playlist exports.

Usage:
    python -m playlist_stats.load_playlists
    python -m playlist_stats.load_playlists --dir ./playlists --mode staged
    python -m playlist_stats.load_playlists --batch-size 100 --delay-ms 10
    python -m playlist_stats.load_playlists --backend memory      # dry run
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .config import ReloadMode, Settings, StoreBackend, configure_logging, load_env_file
from .errors import IngestionError
from .ingest import PlaylistLoader
from .store import build_provider


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Delete all stored tracks and reload every playlist export.",
    )
    parser.add_argument("--dir", type=Path, default=None, metavar="PATH",
                        help="Playlist export directory (default: $PLAYLISTS_DIR)")
    parser.add_argument("--mode", choices=[m.value for m in ReloadMode], default=None,
                        help="destructive (clear then load) or staged (load then swap)")
    parser.add_argument("--delay-ms", type=int, default=None, metavar="N",
                        help="Minimum pause between writes in milliseconds")
    parser.add_argument("--batch-size", type=int, default=None, metavar="N",
                        help="Records per write (1 = one insert per track)")
    parser.add_argument("--backend", choices=[b.value for b in StoreBackend], default=None,
                        help="Store backend (default: $STORE_BACKEND)")
    return parser.parse_args(argv)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        "playlists_dir": args.dir,
        "reload_mode": args.mode,
        "insert_delay_ms": args.delay_ms,
        "insert_batch_size": args.batch_size,
        "backend": args.backend,
    }
    settings = Settings.from_env()
    return Settings.model_validate({
        **settings.model_dump(),
        **{k: v for k, v in overrides.items() if v is not None},
    })


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    load_env_file()
    settings = _settings_from_args(args)
    configure_logging(settings.log_level)

    loader = PlaylistLoader(build_provider(settings), settings)
    try:
        result = asyncio.run(loader.run())
    except IngestionError as e:
        if settings.reload_mode == ReloadMode.STAGED:
            logger.error(f"{e}. Live tracks were left unchanged.")
        else:
            logger.error(f"{e}. Store contents are indeterminate; re-run the full reload.")
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Inserted {result.inserted} tracks from {len(result.files)} file(s).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
