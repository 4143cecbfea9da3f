"""
Liked-library index.

The set of liked track IDs is the ground truth for every playlist: nothing
outside it may be added. Built once per run by paging the saved-tracks
endpoint.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Set, Tuple

from .errors import CatalogError, LibraryFetchFailed, NoLikedSongs
from .logging_utils import format_count
from .models import ArtistId, Track, TrackId
from .spotify_client import LIBRARY_PAGE_LIMIT, CatalogClient

logger = logging.getLogger(__name__)

# Paging stops after this many tracks (20 pages of 50) to bound latency and
# rate-limit exposure. Larger libraries are only partially indexed.
DEFAULT_MAX_LIBRARY_TRACKS = 1000


@dataclass(frozen=True)
class LikedLibrary:
    track_ids: Tuple[TrackId, ...]
    artist_ids: FrozenSet[ArtistId]
    truncated: bool = False
    track_id_set: FrozenSet[TrackId] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "track_id_set", frozenset(self.track_ids))

    def __contains__(self, track_id: object) -> bool:
        return track_id in self.track_id_set

    def __len__(self) -> int:
        return len(self.track_ids)

    def contains_track(self, track: Track) -> bool:
        return track.id in self.track_id_set

    def contains_artist(self, artist_id: str) -> bool:
        return artist_id in self.artist_ids

    def filter_tracks(self, tracks: Iterable[Track]) -> List[Track]:
        return [t for t in tracks if t.id in self.track_id_set]


def build_liked_library(
    client: CatalogClient,
    *,
    page_size: int = LIBRARY_PAGE_LIMIT,
    max_tracks: int = DEFAULT_MAX_LIBRARY_TRACKS,
) -> LikedLibrary:
    """
    Page through the user's liked songs and index track and artist IDs.

    Args:
        client: Catalog client for the authenticated user
        page_size: Tracks per page (catalog maximum is 50)
        max_tracks: Safety cap on the number of tracks read

    Returns:
        LikedLibrary with track IDs in library order

    Raises:
        LibraryFetchFailed: a page could not be fetched
        NoLikedSongs: the library is empty
        AuthFailure: the client is not authenticated
    """
    page_size = max(1, min(page_size, LIBRARY_PAGE_LIMIT))
    track_ids: List[TrackId] = []
    seen: Set[TrackId] = set()
    artist_ids: Set[ArtistId] = set()
    offset = 0
    truncated = False

    logger.info("Fetching liked songs...")
    while True:
        try:
            page = client.saved_tracks(limit=page_size, offset=offset)
        except CatalogError as e:
            raise LibraryFetchFailed(f"Failed to get liked songs at offset {offset}: {e}") from e

        if not page:
            break

        for payload in page:
            track = Track.from_api(payload)
            if track is None or track.id in seen:
                continue
            seen.add(track.id)
            track_ids.append(track.id)
            artist_ids.update(track.artist_ids)

        logger.debug("Processed %d liked songs (%d artists)", len(track_ids), len(artist_ids))

        # Judged on the raw page length; entries without a track still count
        if len(page) < page_size:
            break

        offset += page_size
        if offset >= max_tracks:
            truncated = True
            logger.warning(
                "Reached the limit of %d liked songs; songs beyond it are not considered", max_tracks
            )
            break

    if not track_ids:
        raise NoLikedSongs("No liked songs found - like some songs on Spotify first")

    logger.info(
        "Found %s by %s", format_count(len(track_ids), "liked song"), format_count(len(artist_ids), "artist")
    )
    return LikedLibrary(track_ids=tuple(track_ids), artist_ids=frozenset(artist_ids), truncated=truncated)
