"""
Post-processing for assembled candidates: membership re-check, per-artist
cap, shuffle and truncation.

The cap runs before the shuffle, so when an artist has more candidates than
its quota the ones pooled earliest win.
"""
from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from moodplaylist.library import LikedLibrary
from moodplaylist.models import ArtistId, Track

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiversityResult:
    tracks: List[Track]
    stats: Dict[str, Any] = field(default_factory=dict)


def filter_to_library(tracks: List[Track], library: LikedLibrary) -> List[Track]:
    """Drop any track that is not in the liked library."""
    kept = library.filter_tracks(tracks)
    dropped = len(tracks) - len(kept)
    if dropped:
        logger.warning("Dropped %d candidates that are not in your liked songs", dropped)
    return kept


def artist_distribution(tracks: List[Track]) -> Counter:
    """Count how many tracks credit each artist."""
    counts: Counter = Counter()
    for track in tracks:
        counts.update(set(track.artist_ids))
    return counts


def top_artists(tracks: List[Track], n: int = 5) -> List[Tuple[ArtistId, int]]:
    return artist_distribution(tracks).most_common(n)


def limit_tracks_per_artist(tracks: List[Track], max_per_artist: int) -> DiversityResult:
    """
    Keep tracks in order while no credited artist exceeds its quota.

    Each artist starts with `max_per_artist` slots. A track is admitted only
    if every one of its artists still has a slot; admission uses one slot
    from each of them.

    Args:
        tracks: Candidates in pool order
        max_per_artist: Quota per artist (<= 0 disables the cap)
    """
    if max_per_artist <= 0 or not tracks:
        return DiversityResult(tracks=list(tracks), stats={"dropped": 0})

    remaining: Dict[ArtistId, int] = {}
    for track in tracks:
        for artist_id in track.artist_ids:
            remaining.setdefault(artist_id, max_per_artist)

    kept: List[Track] = []
    dropped = 0
    for track in tracks:
        artist_ids = set(track.artist_ids)
        if any(remaining[a] <= 0 for a in artist_ids):
            dropped += 1
            continue
        for a in artist_ids:
            remaining[a] -= 1
        kept.append(track)

    before = top_artists(tracks)
    logger.debug("Top artists before cap: %s", ", ".join(f"{a}={c}" for a, c in before) or "(none)")
    logger.info(
        "Limited %d -> %d tracks (max %d per artist)", len(tracks), len(kept), max_per_artist
    )
    return DiversityResult(
        tracks=kept,
        stats={
            "dropped": dropped,
            "exhausted_artists": sorted(a for a, left in remaining.items() if left <= 0),
        },
    )


def shuffle_tracks(tracks: List[Track], seed: Optional[int] = None) -> List[Track]:
    """Uniformly permute tracks. Without a seed the current time is used."""
    if seed is None:
        seed = time.time_ns()
    rng = np.random.default_rng(seed)
    order = rng.permutation(len(tracks))
    return [tracks[i] for i in order]


def finalize_tracks(
    tracks: List[Track],
    library: LikedLibrary,
    *,
    max_per_artist: int,
    playlist_size: int,
    seed: Optional[int] = None,
) -> DiversityResult:
    """Membership re-filter, artist cap, shuffle, truncate - in that order."""
    member = filter_to_library(tracks, library)
    capped = limit_tracks_per_artist(member, max_per_artist)
    shuffled = shuffle_tracks(capped.tracks, seed=seed)
    final = shuffled[:playlist_size]
    return DiversityResult(
        tracks=final,
        stats={
            "candidates": len(tracks),
            "not_liked_dropped": len(tracks) - len(member),
            "artist_cap_dropped": capped.stats.get("dropped", 0),
            "truncated": len(shuffled) - len(final),
            "final": len(final),
        },
    )
