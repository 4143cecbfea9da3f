"""
Playlist Generator - mood or weather in, Spotify playlist out
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .errors import WeatherLookupFailed
from .models import Playlist, Track
from .mood import Mood, resolve_mood
from .playlist.assembler import AssemblyResult, RecommendationAssembler
from .playlist.config import AssemblyConfig
from .playlist_writer import PlaylistWriter
from .spotify_client import CatalogClient
from .weather_client import WeatherClient, WeatherReport

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    mood: Mood
    tracks: List[Track]
    playlist: Optional[Playlist] = None
    weather: Optional[WeatherReport] = None
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "mood": self.mood.value,
            "track_count": len(self.tracks),
            "tracks": [
                {"id": t.id, "name": t.name, "artist": t.primary_artist} for t in self.tracks
            ],
        }
        if self.playlist is not None:
            data["playlist"] = {
                "id": self.playlist.id,
                "name": self.playlist.name,
                "url": self.playlist.url,
            }
        if self.weather is not None:
            data["weather"] = {
                "city": self.weather.city,
                "temperature": self.weather.temperature,
                "description": self.weather.description,
            }
        return data


class PlaylistGenerator:
    """Runs assembly for a mood and writes the result as a new playlist"""

    def __init__(self, client: CatalogClient, config=None, weather_client: Optional[WeatherClient] = None):
        """
        Args:
            client: Authenticated catalog client
            config: Config instance (None -> built-in defaults)
            weather_client: Needed only for generate_for_city()
        """
        self.client = client
        self.config = config
        self.weather = weather_client
        assembly_config = config.assembly_config() if config is not None else AssemblyConfig()
        self.assembler = RecommendationAssembler(client, assembly_config)
        if config is not None:
            self.writer = PlaylistWriter(
                client,
                public=config.playlist_public,
                name_template=config.playlist_name_template,
                description=config.playlist_description,
            )
        else:
            self.writer = PlaylistWriter(client)

    def preview(self, mood: Union[Mood, str, None]) -> AssemblyResult:
        """Assemble tracks without writing a playlist"""
        return self.assembler.assemble(mood)

    def generate(self, mood: Union[Mood, str, None], weather: Optional[WeatherReport] = None) -> GenerationResult:
        """
        Assemble tracks for `mood` and write them to a new playlist.

        Assembly errors propagate before anything is written.
        """
        assembled = self.assembler.assemble(mood)
        playlist = self.writer.write(assembled.tracks)
        logger.info("Playlist '%s' ready with %d tracks", playlist.name, len(assembled.tracks))
        return GenerationResult(
            mood=assembled.mood,
            tracks=assembled.tracks,
            playlist=playlist,
            weather=weather,
            stats=assembled.stats,
        )

    def generate_for_city(self, city: str) -> GenerationResult:
        """Weather mode: map the city's current weather to a mood, then generate"""
        report: Optional[WeatherReport] = None
        mood = Mood.NEUTRAL
        if self.weather is None:
            logger.warning("No weather client configured; using the neutral mood")
        else:
            try:
                report = self.weather.current(city)
                mood = report.mood
            except WeatherLookupFailed as e:
                logger.warning("Error getting weather for %s: %s; using the neutral mood", city, e)
        return self.generate(resolve_mood(mood), weather=report)
