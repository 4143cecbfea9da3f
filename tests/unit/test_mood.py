import pytest

from moodplaylist.models import AudioFeatures
from moodplaylist.mood import (
    MOOD_PROFILES,
    FeatureBand,
    Mood,
    genres,
    mood_from_weather,
    playlist_queries,
    resolve_mood,
    search_query,
    thresholds,
)


def _features(**overrides):
    values = dict(energy=0.5, danceability=0.5, valence=0.5, tempo=100.0, acousticness=0.5, instrumentalness=0.1)
    values.update(overrides)
    return AudioFeatures(**values)


class TestResolveMood:

    @pytest.mark.parametrize("value", ["relaxed", "RELAXED", " Relaxed "])
    def test_case_and_whitespace(self, value):
        assert resolve_mood(value) is Mood.RELAXED

    @pytest.mark.parametrize("value", ["whimsical", "", None])
    def test_unknown_is_neutral(self, value):
        assert resolve_mood(value) is Mood.NEUTRAL

    def test_every_mood_has_a_profile(self):
        assert set(MOOD_PROFILES) == set(Mood)


class TestThresholds:

    def test_energetic_bands(self):
        bands = thresholds("energetic")
        assert bands.matches(_features(energy=0.7, danceability=0.6, valence=0.5, tempo=120, acousticness=0.4, instrumentalness=0.3))
        assert bands.matches(_features(energy=0.9, danceability=0.9, valence=0.9, tempo=300, acousticness=0.0, instrumentalness=0.0))
        assert not bands.matches(_features(energy=0.9, danceability=0.9, valence=0.9, tempo=301, acousticness=0.0, instrumentalness=0.0))
        assert not bands.matches(_features(energy=0.69, danceability=0.9, valence=0.9, tempo=130, acousticness=0.0, instrumentalness=0.0))

    def test_relaxed_ignores_unbounded_features(self):
        bands = thresholds(Mood.RELAXED)
        assert bands.bounded_features() == ("energy", "tempo", "acousticness")
        assert bands.matches(_features(energy=0.5, tempo=110, acousticness=0.4, danceability=1.0, valence=0.0))
        assert not bands.matches(_features(energy=0.5, tempo=111, acousticness=0.9))

    def test_intense_bands(self):
        bands = thresholds("intense")
        assert bands.matches(_features(energy=0.8, valence=0.5, tempo=100, acousticness=0.3))
        assert not bands.matches(_features(energy=0.8, valence=0.51, tempo=100, acousticness=0.3))

    def test_thoughtful_bands(self):
        bands = thresholds("thoughtful")
        assert bands.matches(_features(energy=0.6, acousticness=0.3, instrumentalness=0.2, tempo=120))
        assert not bands.matches(_features(energy=0.6, acousticness=0.3, instrumentalness=0.19, tempo=120))

    def test_neutral_accepts_anything_with_features(self):
        bands = thresholds("neutral")
        assert bands.bounded_features() == ()
        assert bands.matches(_features(energy=0.0, tempo=250))
        assert not bands.matches(None)

    def test_open_band(self):
        assert FeatureBand().contains(-5)
        assert not FeatureBand().is_bounded
        assert FeatureBand(minimum=1).is_bounded


class TestLookupsArePure:

    @pytest.mark.parametrize("mood", list(Mood))
    def test_same_answer_every_time(self, mood):
        assert thresholds(mood) == thresholds(mood.value)
        assert genres(mood) == genres(mood.value.upper())
        assert playlist_queries(mood) == playlist_queries(mood)
        assert search_query(mood) == search_query(mood)

    def test_relaxed_genres_include_acoustic(self):
        assert "acoustic" in genres("relaxed")

    def test_unknown_mood_gets_neutral_lists(self):
        assert genres("whimsical") == genres(Mood.NEUTRAL)
        assert playlist_queries("whimsical") == ("mood neutral",)


@pytest.mark.parametrize(
    "description, mood",
    [
        ("clear sky", Mood.ENERGETIC),
        ("Overcast Clouds", Mood.THOUGHTFUL),
        ("light rain", Mood.RELAXED),
        ("thunderstorm", Mood.INTENSE),
        ("few clouds", Mood.NEUTRAL),
        (None, Mood.NEUTRAL),
    ],
)
def test_mood_from_weather(description, mood):
    assert mood_from_weather(description) is mood
