"""
Spotify catalog client.

CatalogClient is the capability interface the pipeline depends on.
SpotifyClient implements it on top of spotipy, returning raw catalog payloads
and translating transport failures into the errors in moodplaylist.errors.
Every call is attempted exactly once, with a per-operation timeout.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests
import spotipy
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

from .errors import AuthFailure, CatalogError, CatalogPermissionError
from .models import RecommendationSeeds
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# Provider-imposed batch ceilings
LIBRARY_PAGE_LIMIT = 50
TRACKS_BATCH_LIMIT = 20
AUDIO_FEATURES_BATCH_LIMIT = 100
RECOMMENDATIONS_LIMIT = 100
PLAYLIST_ADD_LIMIT = 100

DEFAULT_TIMEOUTS: Dict[str, float] = {
    "library": 60,
    "tracks": 60,
    "audio_features": 60,
    "artist": 30,
    "search": 15,
    "playlist_items": 15,
    "recommendations": 30,
    "top": 10,
    "user": 5,
    "create_playlist": 10,
    "add_tracks": 10,
}


class CatalogClient(ABC):
    """Operations the playlist pipeline needs from the music catalog.

    Methods return catalog payloads (dicts) and raise CatalogError,
    CatalogPermissionError or AuthFailure on failure.
    """

    @abstractmethod
    def saved_tracks(self, limit: int = LIBRARY_PAGE_LIMIT, offset: int = 0) -> List[Optional[Dict[str, Any]]]:
        """One page of the user's liked tracks (track objects, not saved-track wrappers).

        One entry per saved item, None where the catalog returned no track,
        so the page length says whether more pages follow.
        """

    @abstractmethod
    def top_artists(self, limit: int = 5, time_range: str = "medium_term") -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def top_tracks(self, limit: int = 5, time_range: str = "medium_term") -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def tracks(self, track_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        """Full track records for at most TRACKS_BATCH_LIMIT IDs."""

    @abstractmethod
    def audio_features(self, track_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        """Audio features for at most AUDIO_FEATURES_BATCH_LIMIT IDs, aligned with the input."""

    @abstractmethod
    def artist(self, artist_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    def search(self, query: str, search_type: str = "track", limit: int = 20) -> List[Dict[str, Any]]:
        """Items of the requested type matching the query."""

    @abstractmethod
    def playlist_tracks(self, playlist_id: str) -> List[Dict[str, Any]]:
        """Track objects contained in a playlist."""

    @abstractmethod
    def recommendations(
        self,
        seeds: RecommendationSeeds,
        attributes: Optional[Dict[str, float]] = None,
        limit: int = RECOMMENDATIONS_LIMIT,
    ) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def current_user(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    def create_playlist(self, user_id: str, name: str, description: str = "", public: bool = False) -> Dict[str, Any]:
        pass

    @abstractmethod
    def add_tracks(self, playlist_id: str, track_ids: Sequence[str]) -> None:
        pass


def _translate(operation: str, exc: Exception) -> Exception:
    """Map a spotipy/requests failure to a package error."""
    if isinstance(exc, SpotifyOauthError):
        return AuthFailure(f"{operation}: authorization failed: {exc}")
    if isinstance(exc, SpotifyException):
        status = exc.http_status
        message = f"{operation} failed ({status}): {exc.msg}"
        if status == 401:
            return AuthFailure(message)
        if status == 403:
            return CatalogPermissionError(message, operation=operation, status=status)
        return CatalogError(message, operation=operation, status=status)
    if isinstance(exc, requests.exceptions.Timeout):
        return CatalogError(f"{operation} timed out: {exc}", operation=operation)
    return CatalogError(f"{operation} failed: {exc}", operation=operation)


class SpotifyClient(CatalogClient):
    """CatalogClient backed by a spotipy.Spotify instance"""

    def __init__(
        self,
        sp: spotipy.Spotify,
        *,
        timeouts: Optional[Dict[str, float]] = None,
        rate_limiter: Optional[RateLimiter] = None,
        market: Optional[str] = None,
    ):
        """
        Args:
            sp: Authenticated spotipy client (construct with retries=0)
            timeouts: Per-operation timeouts in seconds, merged over DEFAULT_TIMEOUTS
            rate_limiter: Spacing between calls (default 10 calls/sec)
            market: Optional market code used for track lookups
        """
        self._sp = sp
        self.timeouts = {**DEFAULT_TIMEOUTS, **(timeouts or {})}
        self.rate_limiter = rate_limiter or RateLimiter(calls_per_second=10.0)
        self.market = market

    @classmethod
    def from_auth_manager(cls, auth_manager, **kwargs) -> "SpotifyClient":
        sp = spotipy.Spotify(
            auth_manager=auth_manager,
            requests_timeout=DEFAULT_TIMEOUTS["library"],
            retries=0,
            status_retries=0,
        )
        return cls(sp, **kwargs)

    def _call(self, operation: str, timeout_key: str, fn: Callable[..., Any], *args, **kwargs) -> Any:
        self.rate_limiter.wait()
        # spotipy reads requests_timeout on every request
        self._sp.requests_timeout = self.timeouts.get(timeout_key, DEFAULT_TIMEOUTS[timeout_key])
        try:
            return fn(*args, **kwargs)
        except (SpotifyException, SpotifyOauthError, requests.exceptions.RequestException) as e:
            raise _translate(operation, e) from e

    def saved_tracks(self, limit: int = LIBRARY_PAGE_LIMIT, offset: int = 0) -> List[Optional[Dict[str, Any]]]:
        page = self._call(
            "saved_tracks", "library", self._sp.current_user_saved_tracks,
            limit=min(limit, LIBRARY_PAGE_LIMIT), offset=offset,
        ) or {}
        return [(item or {}).get("track") for item in page.get("items") or []]

    def top_artists(self, limit: int = 5, time_range: str = "medium_term") -> List[Dict[str, Any]]:
        page = self._call(
            "top_artists", "top", self._sp.current_user_top_artists, limit=limit, time_range=time_range
        ) or {}
        return [a for a in page.get("items") or [] if a]

    def top_tracks(self, limit: int = 5, time_range: str = "medium_term") -> List[Dict[str, Any]]:
        page = self._call(
            "top_tracks", "top", self._sp.current_user_top_tracks, limit=limit, time_range=time_range
        ) or {}
        return [t for t in page.get("items") or [] if t]

    def tracks(self, track_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        ids = list(track_ids)
        if len(ids) > TRACKS_BATCH_LIMIT:
            raise ValueError(f"tracks() accepts at most {TRACKS_BATCH_LIMIT} IDs, got {len(ids)}")
        if not ids:
            return []
        payload = self._call("tracks", "tracks", self._sp.tracks, ids, market=self.market) or {}
        return list(payload.get("tracks") or [])

    def audio_features(self, track_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        ids = list(track_ids)
        if len(ids) > AUDIO_FEATURES_BATCH_LIMIT:
            raise ValueError(f"audio_features() accepts at most {AUDIO_FEATURES_BATCH_LIMIT} IDs, got {len(ids)}")
        if not ids:
            return []
        return list(self._call("audio_features", "audio_features", self._sp.audio_features, ids) or [])

    def artist(self, artist_id: str) -> Dict[str, Any]:
        return self._call("artist", "artist", self._sp.artist, artist_id)

    def search(self, query: str, search_type: str = "track", limit: int = 20) -> List[Dict[str, Any]]:
        payload = self._call("search", "search", self._sp.search, q=query, type=search_type, limit=limit) or {}
        # Spotify returns null entries for playlists it can no longer serve
        return [item for item in (payload.get(f"{search_type}s") or {}).get("items") or [] if item]

    def playlist_tracks(self, playlist_id: str) -> List[Dict[str, Any]]:
        payload = self._call(
            "playlist_items", "playlist_items", self._sp.playlist_items,
            playlist_id, additional_types=("track",),
        ) or {}
        return [item["track"] for item in payload.get("items") or [] if item and item.get("track")]

    def recommendations(
        self,
        seeds: RecommendationSeeds,
        attributes: Optional[Dict[str, float]] = None,
        limit: int = RECOMMENDATIONS_LIMIT,
    ) -> List[Dict[str, Any]]:
        if not len(seeds):
            raise ValueError("recommendations() needs at least one seed")
        payload = self._call(
            "recommendations", "recommendations", self._sp.recommendations,
            seed_artists=list(seeds.artists) or None,
            seed_tracks=list(seeds.tracks) or None,
            seed_genres=list(seeds.genres) or None,
            limit=min(limit, RECOMMENDATIONS_LIMIT),
            **(attributes or {}),
        ) or {}
        return [t for t in payload.get("tracks") or [] if t]

    def current_user(self) -> Dict[str, Any]:
        return self._call("current_user", "user", self._sp.current_user)

    def create_playlist(self, user_id: str, name: str, description: str = "", public: bool = False) -> Dict[str, Any]:
        return self._call(
            "create_playlist", "create_playlist", self._sp.user_playlist_create,
            user_id, name, public=public, collaborative=False, description=description,
        )

    def add_tracks(self, playlist_id: str, track_ids: Sequence[str]) -> None:
        ids = list(track_ids)
        for start in range(0, len(ids), PLAYLIST_ADD_LIMIT):
            self._call(
                "add_tracks", "add_tracks", self._sp.playlist_add_items,
                playlist_id, ids[start:start + PLAYLIST_ADD_LIMIT],
            )
