from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AssemblyConfig:
    # Stages keep running while the pool holds fewer candidates than this
    pool_floor: int = 50
    # Genre and playlist stages stop admitting past this size
    pool_ceiling: int = 100
    playlist_size: int = 50
    max_tracks_per_artist: int = 5

    library_page_size: int = 50
    library_max_tracks: int = 1000

    track_batch_size: int = 20
    audio_feature_batch_size: int = 100
    audio_check_size: int = 5

    playlist_search_limit: int = 5
    mined_track_limit: int = 200

    max_seeds: int = 5
    max_seed_artists: int = 2
    top_items_limit: int = 5
    recommendation_limit: int = 100

    search_limit: int = 20

    # None -> seeded from the current time on every run
    shuffle_seed: Optional[int] = None


# Provider ceilings that overrides may not exceed
_CEILINGS = {
    "library_page_size": 50,
    "track_batch_size": 20,
    "audio_feature_batch_size": 100,
    "max_seeds": 5,
    "recommendation_limit": 100,
    "playlist_size": 50,
}


def default_assembly_config(overrides: Optional[Dict[str, Any]] = None) -> AssemblyConfig:
    """
    Build an AssemblyConfig from defaults plus config.yaml overrides.

    Unknown keys are ignored. Values above the catalog's batch ceilings are
    clamped to the ceiling; non-positive sizes are rejected.

    Args:
        overrides: The `playlists` section of config.yaml (or any subset)
    """
    overrides = dict(overrides or {})
    # config.yaml spells these the way the rest of the file does
    aliases = {"target_size": "playlist_size", "max_artist_tracks": "max_tracks_per_artist"}
    for old, new in aliases.items():
        if old in overrides and new not in overrides:
            overrides[new] = overrides.pop(old)

    known = {f.name for f in fields(AssemblyConfig)}
    values: Dict[str, Any] = {}
    for key, value in overrides.items():
        if key not in known or value is None:
            continue
        if key == "shuffle_seed":
            values[key] = int(value)
            continue
        value = int(value)
        if value <= 0:
            raise ValueError(f"playlists.{key} must be positive, got {value}")
        if key in _CEILINGS:
            value = min(value, _CEILINGS[key])
        values[key] = value
    return AssemblyConfig(**values)
