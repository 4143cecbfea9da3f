"""
Mood table: thresholds, genre keywords and search queries per mood.

All lookups are pure and go through one table keyed by Mood. Unknown mood
strings resolve to Mood.NEUTRAL.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .models import AudioFeatures

logger = logging.getLogger(__name__)


class Mood(str, Enum):
    ENERGETIC = "energetic"
    RELAXED = "relaxed"
    INTENSE = "intense"
    THOUGHTFUL = "thoughtful"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class FeatureBand:
    """Inclusive [minimum, maximum] band. None on either side means open."""
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    @property
    def is_bounded(self) -> bool:
        return self.minimum is not None or self.maximum is not None

    def contains(self, value: float) -> bool:
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


@dataclass(frozen=True)
class FeatureThresholds:
    energy: FeatureBand = FeatureBand()
    danceability: FeatureBand = FeatureBand()
    valence: FeatureBand = FeatureBand()
    tempo: FeatureBand = FeatureBand()
    acousticness: FeatureBand = FeatureBand()
    instrumentalness: FeatureBand = FeatureBand()

    FEATURES = ("energy", "danceability", "valence", "tempo", "acousticness", "instrumentalness")

    def bounded_features(self) -> Tuple[str, ...]:
        return tuple(name for name in self.FEATURES if getattr(self, name).is_bounded)

    def matches(self, features: Optional[AudioFeatures]) -> bool:
        """True when every bounded feature falls inside its band."""
        if features is None:
            return False
        for name in self.bounded_features():
            if not getattr(self, name).contains(getattr(features, name)):
                return False
        return True


@dataclass(frozen=True)
class MoodProfile:
    mood: Mood
    thresholds: FeatureThresholds
    genres: Tuple[str, ...]
    playlist_queries: Tuple[str, ...]
    search_query: str
    seed_genres: Tuple[str, ...]
    recommendation_attributes: Dict[str, float] = field(default_factory=dict)


MOOD_PROFILES: Dict[Mood, MoodProfile] = {
    Mood.ENERGETIC: MoodProfile(
        mood=Mood.ENERGETIC,
        thresholds=FeatureThresholds(
            energy=FeatureBand(minimum=0.7),
            danceability=FeatureBand(minimum=0.6),
            valence=FeatureBand(minimum=0.5),
            tempo=FeatureBand(minimum=120, maximum=300),
            acousticness=FeatureBand(maximum=0.4),
            instrumentalness=FeatureBand(maximum=0.3),
        ),
        genres=(
            "dance", "edm", "electro", "house", "techno", "trance", "dubstep",
            "pop", "power-pop", "dance-pop", "party", "club",
            "disco", "funk", "happy", "upbeat", "workout", "gym",
        ),
        playlist_queries=(
            "workout energy", "party upbeat", "dance energy", "gym motivation", "high energy",
        ),
        search_query="pop dance",
        seed_genres=("pop", "dance", "edm", "party", "house"),
        recommendation_attributes={"min_energy": 0.7, "min_danceability": 0.6, "target_valence": 0.8},
    ),
    Mood.RELAXED: MoodProfile(
        mood=Mood.RELAXED,
        thresholds=FeatureThresholds(
            energy=FeatureBand(maximum=0.5),
            acousticness=FeatureBand(minimum=0.4),
            tempo=FeatureBand(maximum=110),
        ),
        genres=(
            "chill", "acoustic", "ambient", "lofi", "sleep", "study",
            "jazz", "soul", "r-n-b", "folk", "indie-folk",
            "meditation", "calm", "piano", "classical", "soft-rock",
        ),
        playlist_queries=(
            "chill relax", "calm acoustic", "sleep peaceful", "meditation calm", "lofi chill",
        ),
        search_query="chill acoustic",
        seed_genres=("chill", "acoustic", "ambient", "jazz", "lofi"),
        recommendation_attributes={"max_energy": 0.5, "min_valence": 0.3, "target_acousticness": 0.8},
    ),
    Mood.INTENSE: MoodProfile(
        mood=Mood.INTENSE,
        thresholds=FeatureThresholds(
            energy=FeatureBand(minimum=0.8),
            valence=FeatureBand(maximum=0.5),
            tempo=FeatureBand(minimum=100),
            acousticness=FeatureBand(maximum=0.3),
        ),
        genres=(
            "rock", "metal", "hard-rock", "heavy-metal", "punk", "hardcore",
            "alt-rock", "alternative", "grunge", "industrial",
            "emo", "post-hardcore", "thrash", "death-metal",
        ),
        playlist_queries=(
            "intense rock", "metal hardcore", "workout intense", "running intense", "epic intense",
        ),
        search_query="rock metal",
        seed_genres=("rock", "metal", "punk", "hard-rock", "alt-rock"),
        recommendation_attributes={"min_energy": 0.8, "max_valence": 0.4, "target_loudness": 0.8},
    ),
    Mood.THOUGHTFUL: MoodProfile(
        mood=Mood.THOUGHTFUL,
        thresholds=FeatureThresholds(
            energy=FeatureBand(maximum=0.6),
            acousticness=FeatureBand(minimum=0.3),
            instrumentalness=FeatureBand(minimum=0.2),
            tempo=FeatureBand(maximum=120),
        ),
        genres=(
            "indie", "indie-pop", "indie-rock", "alternative", "folk",
            "singer-songwriter", "ambient", "post-rock", "experimental",
            "classical", "instrumental", "soundtrack", "piano", "sad",
        ),
        playlist_queries=(
            "thoughtful indie", "ambient calm", "focus concentration", "study peaceful", "introspective mood",
        ),
        search_query="indie ambient",
        seed_genres=("indie", "folk", "classical", "singer-songwriter", "ambient"),
        recommendation_attributes={"max_energy": 0.6, "target_instrumentalness": 0.5, "target_valence": 0.5},
    ),
    Mood.NEUTRAL: MoodProfile(
        mood=Mood.NEUTRAL,
        thresholds=FeatureThresholds(),
        genres=("pop", "rock", "indie", "alternative"),
        playlist_queries=("mood neutral",),
        search_query="pop",
        seed_genres=("pop", "indie", "alternative", "rock", "electronic"),
        recommendation_attributes={"target_energy": 0.6, "target_danceability": 0.6},
    ),
}

# Weather descriptions as reported by OpenWeatherMap
WEATHER_MOODS: Dict[str, Mood] = {
    "clear sky": Mood.ENERGETIC,
    "overcast clouds": Mood.THOUGHTFUL,
    "light rain": Mood.RELAXED,
    "thunderstorm": Mood.INTENSE,
}


def resolve_mood(value: Union[str, Mood, None]) -> Mood:
    """Map a mood tag (any case) to a Mood, falling back to neutral."""
    if isinstance(value, Mood):
        return value
    key = (value or "").strip().lower()
    try:
        return Mood(key)
    except ValueError:
        logger.debug("Unrecognized mood %r, using neutral", value)
        return Mood.NEUTRAL


def profile_for(mood: Union[str, Mood, None]) -> MoodProfile:
    return MOOD_PROFILES[resolve_mood(mood)]


def thresholds(mood: Union[str, Mood, None]) -> FeatureThresholds:
    return profile_for(mood).thresholds


def genres(mood: Union[str, Mood, None]) -> Tuple[str, ...]:
    return profile_for(mood).genres


def playlist_queries(mood: Union[str, Mood, None]) -> Tuple[str, ...]:
    return profile_for(mood).playlist_queries


def search_query(mood: Union[str, Mood, None]) -> str:
    return profile_for(mood).search_query


def mood_from_weather(description: Optional[str]) -> Mood:
    """Map a weather description to a mood. Unknown descriptions are neutral."""
    key = (description or "").strip().lower()
    return WEATHER_MOODS.get(key, Mood.NEUTRAL)
