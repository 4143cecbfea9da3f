# -*- coding: utf-8 -*-
"""
Weather Mood Playlist - Main Application
Builds a Spotify playlist from your liked songs that matches a mood or the current weather
"""
import argparse
import logging
import os
import sys
import uuid
from typing import Optional

from moodplaylist.config_loader import Config
from moodplaylist.errors import (
    AuthFailure,
    InsufficientCandidates,
    LibraryFetchFailed,
    PlaylistWriteError,
    WeatherLookupFailed,
)
from moodplaylist.logging_utils import add_logging_args, configure_logging, resolve_log_level
from moodplaylist.mood import Mood
from moodplaylist.playlist_generator import PlaylistGenerator
from moodplaylist.session import AuthSession
from moodplaylist.weather_client import WeatherClient

logger = logging.getLogger(__name__)


class PlaylistApp:
    """Main application orchestrator"""

    def __init__(self, config_path: str = "config.yaml", cache_path: Optional[str] = ".spotify_cache"):
        self.config = Config(config_path)
        self.session = AuthSession.from_config(self.config)
        self.weather = WeatherClient(
            self.config.weather_api_key,
            base_url=self.config.weather_base_url,
            units=self.config.weather_units,
            timeout=self.config.weather_timeout,
        )
        self.cache_path = cache_path
        self._generator: Optional[PlaylistGenerator] = None

    @property
    def generator(self) -> PlaylistGenerator:
        if self._generator is None:
            client = self.session.interactive_client(cache_path=self.cache_path)
            self._generator = PlaylistGenerator(client, self.config, weather_client=self.weather)
        return self._generator

    def run(self, mood: Optional[str] = None, city: Optional[str] = None, dry_run: bool = False) -> None:
        if dry_run:
            if city:
                try:
                    report = self.weather.current(city)
                    mood = report.mood.value
                    print(f"Weather in {report.city}: {report.description} ({report.temperature:.1f}) -> {mood}")
                except WeatherLookupFailed as e:
                    logger.warning("Error getting weather for %s: %s; using the neutral mood", city, e)
                    mood = Mood.NEUTRAL.value
            assembled = self.generator.preview(mood)
            print(f"\n{assembled.mood.value.title()} playlist preview ({len(assembled.tracks)} tracks):")
            for i, track in enumerate(assembled.tracks, 1):
                print(f"  {i:2d}. {track.primary_artist} - {track.name}")
            for outcome in assembled.outcomes:
                print(f"  [{outcome.status:8s}] {outcome.stage}: +{outcome.added}")
            return

        if city:
            result = self.generator.generate_for_city(city)
        else:
            result = self.generator.generate(mood)

        if result.weather:
            print(f"Weather in {result.weather.city}: {result.weather.description} -> {result.mood.value}")
        print(f"\nCreated '{result.playlist.name}' with {len(result.tracks)} tracks")
        if result.playlist.url:
            print(f"  {result.playlist.url}")


def main():
    """Entry point"""
    parser = argparse.ArgumentParser(
        description="Generate a Spotify playlist from your liked songs for a mood or the current weather"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--mood",
        choices=[m.value for m in Mood],
        help="Generate a playlist for this mood",
    )
    source.add_argument(
        "--city",
        type=str,
        help="Derive the mood from the current weather in this city (e.g., --city \"London\")",
    )
    source.add_argument(
        "--serve",
        action="store_true",
        help="Run the local web server with the browser login flow",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview the tracks without creating a playlist",
    )
    parser.add_argument(
        "--config",
        default=os.getenv("MOODPLAYLIST_CONFIG_PATH", "config.yaml"),
        help="Path to config.yaml (default: config.yaml)",
    )
    add_logging_args(parser)
    args = parser.parse_args()

    if not os.path.exists(args.config):
        print(f"Error: {args.config} not found")
        print("\nCopy config.example.yaml to config.yaml and add your API credentials.\n")
        sys.exit(1)

    configure_logging(level=resolve_log_level(args), log_file=args.log_file, run_id=uuid.uuid4().hex[:8])

    if args.serve:
        import uvicorn

        os.environ["MOODPLAYLIST_CONFIG_PATH"] = args.config
        config = Config(args.config)
        uvicorn.run("api.main:app", host=config.server_host, port=config.server_port)
        return

    if not args.mood and not args.city:
        parser.error("one of --mood, --city or --serve is required")

    try:
        app = PlaylistApp(args.config)
        app.run(mood=args.mood, city=args.city, dry_run=args.dry_run)
    except ValueError as e:
        print(f"\nConfiguration Error: {e}")
        print("\nPlease check your config.yaml file.\n")
        sys.exit(1)
    except AuthFailure as e:
        print(f"\nLogin failed: {e}\n")
        sys.exit(1)
    except (LibraryFetchFailed, InsufficientCandidates) as e:
        print(f"\nCould not build a playlist: {e}\n")
        sys.exit(1)
    except PlaylistWriteError as e:
        print(f"\nCould not save the playlist: {e}\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
