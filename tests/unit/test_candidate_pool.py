from fakes import track_payload
from moodplaylist.library import LikedLibrary
from moodplaylist.models import Track
from moodplaylist.playlist.candidate_pool import CandidatePool


def _track(track_id, artist="a1"):
    return Track.from_api(track_payload(track_id, (artist,)))


def _library(*ids):
    return LikedLibrary(track_ids=tuple(ids), artist_ids=frozenset({"a1"}))


def test_rejects_tracks_outside_library():
    pool = CandidatePool(_library("t1", "t2"))

    assert pool.offer(_track("t1"), "genre_match")
    assert not pool.offer(_track("x1"), "genre_match")
    assert not pool.offer(None)

    assert len(pool) == 1
    assert pool.rejected_not_liked == 1


def test_rejects_duplicates_and_keeps_order():
    pool = CandidatePool(_library("t1", "t2", "t3"))

    added = pool.extend([_track("t3"), _track("t1"), _track("t3"), _track("t2")], "recommendations")

    assert added == 3
    assert [t.id for t in pool] == ["t3", "t1", "t2"]
    assert pool.rejected_duplicate == 1
    assert "t1" in pool


def test_extend_stops_at_limit():
    pool = CandidatePool(_library(*[f"t{i}" for i in range(10)]))

    added = pool.extend([_track(f"t{i}") for i in range(10)], "mood_playlists", limit=4)

    assert added == 4
    assert len(pool) == 4


def test_stats_by_source():
    pool = CandidatePool(_library("t1", "t2"))
    pool.offer(_track("t1"), "audio_features")
    pool.offer(_track("t2"), "genre_match")
    pool.offer(_track("t2"), "genre_match")

    stats = pool.stats()

    assert stats["size"] == 2
    assert stats["by_source"] == {"audio_features": 1, "genre_match": 1}
    assert stats["rejected_duplicate"] == 1


def test_tracks_returns_copy():
    pool = CandidatePool(_library("t1"))
    pool.offer(_track("t1"))

    snapshot = pool.tracks
    snapshot.clear()

    assert len(pool) == 1
