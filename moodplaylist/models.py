"""
Catalog data model.

Tracks, artists and audio features are immutable snapshots built from catalog
payloads. IDs are opaque strings wrapped in NewTypes so that track and artist
identifiers are not mixed up.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, NewType, Optional, Tuple

TrackId = NewType("TrackId", str)
ArtistId = NewType("ArtistId", str)


@dataclass(frozen=True)
class ArtistRef:
    id: ArtistId
    name: str = ""


@dataclass(frozen=True)
class AlbumRef:
    id: Optional[str]
    name: str = ""


@dataclass(frozen=True)
class AudioFeatures:
    """Sonic descriptors of a track. All values in [0, 1] except tempo (BPM)."""
    energy: float
    danceability: float
    valence: float
    tempo: float
    acousticness: float
    instrumentalness: float

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "AudioFeatures":
        return cls(
            energy=float(payload.get("energy") or 0.0),
            danceability=float(payload.get("danceability") or 0.0),
            valence=float(payload.get("valence") or 0.0),
            tempo=float(payload.get("tempo") or 0.0),
            acousticness=float(payload.get("acousticness") or 0.0),
            instrumentalness=float(payload.get("instrumentalness") or 0.0),
        )


@dataclass(frozen=True)
class Track:
    id: TrackId
    name: str
    artists: Tuple[ArtistRef, ...]
    album: Optional[AlbumRef] = None
    uri: str = ""
    features: Optional[AudioFeatures] = None

    @property
    def artist_ids(self) -> Tuple[ArtistId, ...]:
        return tuple(a.id for a in self.artists if a.id)

    @property
    def primary_artist(self) -> str:
        return self.artists[0].name if self.artists else "Unknown"

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> Optional["Track"]:
        """Build a Track from a catalog track object.

        Returns None for entries without an ID (local files, removed tracks,
        podcast episodes).
        """
        if not payload or not payload.get("id"):
            return None
        if payload.get("type") not in (None, "track"):
            return None
        artists = tuple(
            ArtistRef(id=ArtistId(a["id"]), name=a.get("name") or "")
            for a in payload.get("artists") or []
            if a and a.get("id")
        )
        album_payload = payload.get("album") or None
        album = None
        if album_payload:
            album = AlbumRef(id=album_payload.get("id"), name=album_payload.get("name") or "")
        return cls(
            id=TrackId(payload["id"]),
            name=payload.get("name") or "",
            artists=artists,
            album=album,
            uri=payload.get("uri") or f"spotify:track:{payload['id']}",
        )


@dataclass(frozen=True)
class Artist:
    id: ArtistId
    name: str
    genres: Tuple[str, ...] = ()

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Artist":
        return cls(
            id=ArtistId(payload["id"]),
            name=payload.get("name") or "",
            genres=tuple(payload.get("genres") or ()),
        )


@dataclass(frozen=True)
class Playlist:
    id: str
    name: str
    description: str
    owner_id: str
    track_ids: Tuple[TrackId, ...] = ()
    url: Optional[str] = None


@dataclass
class RecommendationSeeds:
    """Seeds for a catalog recommendation request (at most 5 in total)."""
    artists: List[ArtistId] = field(default_factory=list)
    tracks: List[TrackId] = field(default_factory=list)
    genres: List[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.artists) + len(self.tracks) + len(self.genres)
