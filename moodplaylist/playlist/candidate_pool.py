from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, Iterable, Iterator, List, Optional, Set

from moodplaylist.library import LikedLibrary
from moodplaylist.models import Track, TrackId

logger = logging.getLogger(__name__)


class CandidatePool:
    """
    Ordered, deduplicated accumulator of candidate tracks.

    Every insertion is gated: a track is admitted only if it belongs to the
    liked library and its ID is not already pooled. Insertion order is kept.
    """

    def __init__(self, library: LikedLibrary):
        self.library = library
        self._tracks: List[Track] = []
        self._ids: Set[TrackId] = set()
        self.added_by_source: Counter = Counter()
        self.rejected_not_liked = 0
        self.rejected_duplicate = 0

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def __contains__(self, track_id: object) -> bool:
        return track_id in self._ids

    @property
    def tracks(self) -> List[Track]:
        return list(self._tracks)

    def offer(self, track: Optional[Track], source: str = "unknown") -> bool:
        """Admit a single track. Returns True when it was added."""
        if track is None:
            return False
        if track.id not in self.library:
            self.rejected_not_liked += 1
            return False
        if track.id in self._ids:
            self.rejected_duplicate += 1
            return False
        self._tracks.append(track)
        self._ids.add(track.id)
        self.added_by_source[source] += 1
        return True

    def extend(self, tracks: Iterable[Optional[Track]], source: str = "unknown", limit: Optional[int] = None) -> int:
        """
        Offer tracks in order, stopping once the pool reaches `limit`.

        Returns:
            Number of tracks added
        """
        added = 0
        for track in tracks:
            if limit is not None and len(self._tracks) >= limit:
                break
            if self.offer(track, source):
                added += 1
        return added

    def stats(self) -> Dict[str, object]:
        return {
            "size": len(self._tracks),
            "by_source": dict(self.added_by_source),
            "rejected_not_liked": self.rejected_not_liked,
            "rejected_duplicate": self.rejected_duplicate,
        }
