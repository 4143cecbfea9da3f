"""In-memory catalog double with call counting."""
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from moodplaylist.models import RecommendationSeeds
from moodplaylist.spotify_client import CatalogClient


def track_payload(track_id: str, artist_ids: Sequence[str] = ("a1",), name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": track_id,
        "type": "track",
        "name": name or f"Song {track_id}",
        "uri": f"spotify:track:{track_id}",
        "artists": [{"id": a, "name": f"Artist {a}"} for a in artist_ids],
        "album": {"id": f"al-{track_id}", "name": f"Album {track_id}"},
    }


def features_payload(
    energy: float = 0.5,
    danceability: float = 0.5,
    valence: float = 0.5,
    tempo: float = 100.0,
    acousticness: float = 0.5,
    instrumentalness: float = 0.1,
) -> Dict[str, float]:
    return {
        "energy": energy,
        "danceability": danceability,
        "valence": valence,
        "tempo": tempo,
        "acousticness": acousticness,
        "instrumentalness": instrumentalness,
    }


# Passes the energetic bands
ENERGETIC = features_payload(energy=0.9, danceability=0.8, valence=0.7, tempo=128, acousticness=0.1, instrumentalness=0.0)
# Passes the relaxed bands
RELAXED = features_payload(energy=0.2, danceability=0.3, valence=0.4, tempo=80, acousticness=0.9, instrumentalness=0.1)


class FakeCatalog(CatalogClient):
    """
    CatalogClient backed by dicts.

    `fail` maps an operation name to an exception raised on every call of
    that operation. `calls` counts invocations per operation.
    """

    def __init__(
        self,
        liked: Optional[List[Dict[str, Any]]] = None,
        features: Optional[Dict[str, Optional[Dict[str, float]]]] = None,
        artists: Optional[Dict[str, List[str]]] = None,
        playlists: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        playlist_items: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        recommended: Optional[List[Dict[str, Any]]] = None,
        track_search: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        top_artists: Optional[List[Dict[str, Any]]] = None,
        top_tracks: Optional[List[Dict[str, Any]]] = None,
        extra_tracks: Optional[List[Dict[str, Any]]] = None,
        user: Optional[Dict[str, Any]] = None,
        fail: Optional[Dict[str, Exception]] = None,
    ):
        self.liked = list(liked or [])
        self.features = dict(features or {})
        self.artist_genres = dict(artists or {})
        self.playlists = dict(playlists or {})
        self.playlist_items = dict(playlist_items or {})
        self.recommended = list(recommended or [])
        self.track_search = dict(track_search or {})
        self._top_artists = list(top_artists or [])
        self._top_tracks = list(top_tracks or [])
        self.catalog = {t["id"]: t for t in self.liked + list(extra_tracks or []) + self.recommended}
        self.user = user if user is not None else {"id": "user1", "display_name": "Test User"}
        self.fail = dict(fail or {})

        self.calls: Counter = Counter()
        self.seeds: List[RecommendationSeeds] = []
        self.search_limits: List[int] = []
        self.created: List[Dict[str, Any]] = []
        self.added: List[List[str]] = []

    def _record(self, operation: str) -> None:
        self.calls[operation] += 1
        if operation in self.fail:
            raise self.fail[operation]

    def saved_tracks(self, limit=50, offset=0):
        self._record("saved_tracks")
        return self.liked[offset:offset + limit]

    def top_artists(self, limit=5, time_range="medium_term"):
        self._record("top_artists")
        return self._top_artists[:limit]

    def top_tracks(self, limit=5, time_range="medium_term"):
        self._record("top_tracks")
        return self._top_tracks[:limit]

    def tracks(self, track_ids):
        self._record("tracks")
        assert len(track_ids) <= 20
        return [self.catalog.get(tid) for tid in track_ids]

    def audio_features(self, track_ids):
        self._record("audio_features")
        assert len(track_ids) <= 100
        return [self.features.get(tid) for tid in track_ids]

    def artist(self, artist_id):
        self._record("artist")
        return {"id": artist_id, "name": f"Artist {artist_id}", "genres": self.artist_genres.get(artist_id, [])}

    def search(self, query, search_type="track", limit=20):
        self._record(f"search_{search_type}")
        self.search_limits.append(limit)
        if search_type == "playlist":
            return self.playlists.get(query, [])[:limit]
        return self.track_search.get(query, [])[:limit]

    def playlist_tracks(self, playlist_id):
        self._record("playlist_tracks")
        return self.playlist_items.get(playlist_id, [])

    def recommendations(self, seeds, attributes=None, limit=100):
        self._record("recommendations")
        self.seeds.append(seeds)
        return self.recommended[:limit]

    def current_user(self):
        self._record("current_user")
        return self.user

    def create_playlist(self, user_id, name, description="", public=False):
        self._record("create_playlist")
        playlist = {
            "id": f"pl{len(self.created) + 1}",
            "name": name,
            "description": description,
            "public": public,
            "owner": {"id": user_id},
            "external_urls": {"spotify": f"https://open.spotify.com/playlist/pl{len(self.created) + 1}"},
        }
        self.created.append(playlist)
        return playlist

    def add_tracks(self, playlist_id, track_ids):
        self._record("add_tracks")
        self.added.append(list(track_ids))
