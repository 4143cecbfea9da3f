"""Tests for SpotifyClient against a mocked spotipy.Spotify."""
from unittest.mock import MagicMock

import pytest
import requests
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

from fakes import track_payload
from moodplaylist.errors import AuthFailure, CatalogError, CatalogPermissionError
from moodplaylist.models import RecommendationSeeds
from moodplaylist.rate_limiter import RateLimiter
from moodplaylist.spotify_client import DEFAULT_TIMEOUTS, SpotifyClient


@pytest.fixture()
def sp():
    return MagicMock()


@pytest.fixture()
def client(sp):
    limiter = RateLimiter(calls_per_second=1000, sleep=lambda _: None)
    return SpotifyClient(sp, rate_limiter=limiter)


def test_saved_tracks_keeps_one_entry_per_item(client, sp):
    sp.current_user_saved_tracks.return_value = {
        "items": [{"track": track_payload("t1")}, {"track": None}, {"track": track_payload("t2")}]
    }

    page = client.saved_tracks(limit=50, offset=100)

    assert [t["id"] if t else None for t in page] == ["t1", None, "t2"]
    sp.current_user_saved_tracks.assert_called_once_with(limit=50, offset=100)


def test_per_operation_timeout(client, sp):
    sp.current_user.return_value = {"id": "u"}
    client.current_user()
    assert sp.requests_timeout == DEFAULT_TIMEOUTS["user"]

    sp.artist.return_value = {"id": "a1"}
    client.artist("a1")
    assert sp.requests_timeout == DEFAULT_TIMEOUTS["artist"]


def test_timeout_overrides(sp):
    client = SpotifyClient(sp, timeouts={"search": 3}, rate_limiter=RateLimiter(1000, sleep=lambda _: None))
    sp.search.return_value = {"tracks": {"items": []}}

    client.search("x")

    assert sp.requests_timeout == 3


def test_batch_limits_enforced(client):
    with pytest.raises(ValueError):
        client.tracks([f"t{i}" for i in range(21)])
    with pytest.raises(ValueError):
        client.audio_features([f"t{i}" for i in range(101)])


def test_audio_features_aligned_with_input(client, sp):
    sp.audio_features.return_value = [{"energy": 0.5}, None]
    assert client.audio_features(["t1", "t2"]) == [{"energy": 0.5}, None]


def test_search_drops_null_items(client, sp):
    sp.search.return_value = {"playlists": {"items": [None, {"id": "p1"}]}}

    result = client.search("chill relax", search_type="playlist", limit=5)

    assert result == [{"id": "p1"}]
    sp.search.assert_called_once_with(q="chill relax", type="playlist", limit=5)


def test_playlist_tracks(client, sp):
    sp.playlist_items.return_value = {"items": [{"track": track_payload("t1")}, {"track": None}]}
    assert [t["id"] for t in client.playlist_tracks("p1")] == ["t1"]


def test_recommendations_passes_seeds_and_attributes(client, sp):
    sp.recommendations.return_value = {"tracks": [track_payload("t9")]}
    seeds = RecommendationSeeds(artists=["a1"], genres=["chill"])

    result = client.recommendations(seeds, {"max_energy": 0.5}, limit=100)

    assert result[0]["id"] == "t9"
    sp.recommendations.assert_called_once_with(
        seed_artists=["a1"], seed_tracks=None, seed_genres=["chill"], limit=100, max_energy=0.5
    )


def test_recommendations_requires_a_seed(client):
    with pytest.raises(ValueError):
        client.recommendations(RecommendationSeeds())


def test_add_tracks_chunks_by_100(client, sp):
    client.add_tracks("pl", [f"t{i}" for i in range(150)])
    assert sp.playlist_add_items.call_count == 2


def test_create_playlist(client, sp):
    sp.user_playlist_create.return_value = {"id": "pl1"}

    client.create_playlist("u1", "Rainy", description="d", public=False)

    sp.user_playlist_create.assert_called_once_with("u1", "Rainy", public=False, collaborative=False, description="d")


class TestErrorTranslation:

    def test_forbidden_is_permission_error(self, client, sp):
        sp.audio_features.side_effect = SpotifyException(403, -1, "Forbidden")
        with pytest.raises(CatalogPermissionError) as excinfo:
            client.audio_features(["t1"])
        assert excinfo.value.status == 403
        assert excinfo.value.operation == "audio_features"

    def test_unauthorized_is_auth_failure(self, client, sp):
        sp.current_user.side_effect = SpotifyException(401, -1, "The access token expired")
        with pytest.raises(AuthFailure):
            client.current_user()

    def test_oauth_error_is_auth_failure(self, client, sp):
        sp.current_user_saved_tracks.side_effect = SpotifyOauthError("invalid_grant")
        with pytest.raises(AuthFailure):
            client.saved_tracks()

    def test_server_error_is_catalog_error(self, client, sp):
        sp.artist.side_effect = SpotifyException(503, -1, "Service unavailable")
        with pytest.raises(CatalogError) as excinfo:
            client.artist("a1")
        assert not isinstance(excinfo.value, CatalogPermissionError)
        assert excinfo.value.status == 503

    def test_timeout_is_catalog_error(self, client, sp):
        sp.search.side_effect = requests.exceptions.ReadTimeout("read timed out")
        with pytest.raises(CatalogError, match="timed out"):
            client.search("x")

    def test_each_call_attempted_once(self, client, sp):
        sp.tracks.side_effect = requests.exceptions.ConnectionError("reset")
        with pytest.raises(CatalogError):
            client.tracks(["t1"])
        assert sp.tracks.call_count == 1


def test_rate_limiter_consulted_per_call(sp):
    limiter = RateLimiter(calls_per_second=1000, sleep=lambda _: None)
    client = SpotifyClient(sp, rate_limiter=limiter)
    sp.current_user.return_value = {"id": "u"}

    client.current_user()
    client.current_user()

    assert limiter.get_stats()["calls"] == 2
