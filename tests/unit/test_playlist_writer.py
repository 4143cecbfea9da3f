from datetime import datetime

import pytest

from fakes import FakeCatalog, track_payload
from moodplaylist.errors import (
    AddTracksFailed,
    CatalogError,
    NoTracksProvided,
    PlaylistCreateFailed,
    UserLookupFailed,
)
from moodplaylist.models import Track
from moodplaylist.playlist_writer import PlaylistWriter, create_and_fill, default_playlist_name


def _tracks(n):
    return [Track.from_api(track_payload(f"t{i}")) for i in range(n)]


def test_creates_and_fills_in_one_call():
    fake = FakeCatalog()
    writer = PlaylistWriter(fake, clock=lambda: datetime(2024, 3, 5, 14, 7))

    playlist = writer.write(_tracks(3))

    assert playlist.name == "Your Personalized Weather Mood Playlist - Mar 05 14:07"
    assert playlist.description == "Playlist generated based on your music taste and current weather mood"
    assert playlist.owner_id == "user1"
    assert playlist.track_ids == ("t0", "t1", "t2")
    assert playlist.url.endswith("/pl1")
    assert fake.created[0]["public"] is False
    assert fake.added == [["spotify:track:t0", "spotify:track:t1", "spotify:track:t2"]]


def test_default_name_template():
    name = default_playlist_name("Mood {timestamp}", datetime(2024, 12, 31, 9, 0))
    assert name == "Mood Dec 31 09:00"


def test_empty_tracks_rejected():
    fake = FakeCatalog()
    with pytest.raises(NoTracksProvided):
        create_and_fill(fake, [])
    assert fake.calls["current_user"] == 0


def test_user_lookup_failure():
    fake = FakeCatalog(fail={"current_user": CatalogError("timeout")})
    with pytest.raises(UserLookupFailed):
        create_and_fill(fake, _tracks(1))
    assert fake.calls["create_playlist"] == 0


def test_create_failure():
    fake = FakeCatalog(fail={"create_playlist": CatalogError("500", status=500)})
    with pytest.raises(PlaylistCreateFailed):
        create_and_fill(fake, _tracks(1), name="Rainy")


def test_add_failure_keeps_playlist_id():
    fake = FakeCatalog(fail={"add_tracks": CatalogError("timeout")})

    with pytest.raises(AddTracksFailed) as excinfo:
        create_and_fill(fake, _tracks(2))

    assert excinfo.value.playlist_id == "pl1"
    assert len(fake.created) == 1


def test_public_flag_and_custom_name():
    fake = FakeCatalog()
    playlist = create_and_fill(fake, _tracks(1), name="Sunny", public=True)

    assert playlist.name == "Sunny"
    assert fake.created[0]["public"] is True
