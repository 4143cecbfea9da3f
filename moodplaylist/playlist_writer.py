"""
Playlist writer - creates a Spotify playlist and fills it with assembled tracks.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from .errors import (
    AddTracksFailed,
    CatalogError,
    NoTracksProvided,
    PlaylistCreateFailed,
    UserLookupFailed,
)
from .models import Playlist, Track, TrackId
from .spotify_client import PLAYLIST_ADD_LIMIT, CatalogClient

logger = logging.getLogger(__name__)

DEFAULT_NAME_TEMPLATE = "Your Personalized Weather Mood Playlist - {timestamp}"
DEFAULT_DESCRIPTION = "Playlist generated based on your music taste and current weather mood"
TIMESTAMP_FORMAT = "%b %d %H:%M"


def default_playlist_name(template: str = DEFAULT_NAME_TEMPLATE, now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return template.format(timestamp=now.strftime(TIMESTAMP_FORMAT))


class PlaylistWriter:
    """Writes assembled tracks to a new playlist owned by the current user."""

    def __init__(
        self,
        client: CatalogClient,
        *,
        public: bool = False,
        name_template: str = DEFAULT_NAME_TEMPLATE,
        description: str = DEFAULT_DESCRIPTION,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.client = client
        self.public = public
        self.name_template = name_template
        self.description = description
        self._clock = clock

    def _user_id(self) -> str:
        try:
            user = self.client.current_user()
        except CatalogError as e:
            raise UserLookupFailed(f"Failed to get current user: {e}") from e
        user_id = (user or {}).get("id")
        if not user_id:
            raise UserLookupFailed("Current user has no id")
        return user_id

    def write(
        self,
        tracks: Sequence[Track],
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Playlist:
        """
        Create a playlist and append `tracks` in order.

        If adding tracks fails after the playlist was created, the playlist is
        left in place and AddTracksFailed carries its id.

        Raises:
            NoTracksProvided: `tracks` is empty
            AuthFailure: the client is not authenticated
            UserLookupFailed, PlaylistCreateFailed, AddTracksFailed
        """
        if not tracks:
            raise NoTracksProvided("No tracks to add to playlist")

        name = name or default_playlist_name(self.name_template, self._clock())
        description = self.description if description is None else description
        user_id = self._user_id()

        try:
            payload = self.client.create_playlist(user_id, name, description=description, public=self.public)
        except CatalogError as e:
            raise PlaylistCreateFailed(f"Failed to create playlist '{name}': {e}") from e
        playlist_id = (payload or {}).get("id")
        if not playlist_id:
            raise PlaylistCreateFailed(f"Playlist '{name}' was created without an id")
        logger.info("Created playlist '%s' (id=%s)", name, playlist_id)

        track_ids: List[TrackId] = [t.id for t in tracks]
        uris = [t.uri or f"spotify:track:{t.id}" for t in tracks]
        for start in range(0, len(uris), PLAYLIST_ADD_LIMIT):
            chunk = uris[start:start + PLAYLIST_ADD_LIMIT]
            try:
                self.client.add_tracks(playlist_id, chunk)
            except CatalogError as e:
                logger.warning(
                    "Adding tracks failed; playlist %s is left with %d of %d tracks",
                    playlist_id, start, len(uris),
                )
                raise AddTracksFailed(
                    f"Failed to add tracks to playlist {playlist_id}: {e}", playlist_id=playlist_id
                ) from e

        logger.info("Added %d tracks to playlist '%s'", len(uris), name)
        return Playlist(
            id=playlist_id,
            name=name,
            description=description,
            owner_id=user_id,
            track_ids=tuple(track_ids),
            url=((payload.get("external_urls") or {}).get("spotify")),
        )


def create_and_fill(
    client: CatalogClient,
    tracks: Sequence[Track],
    name: Optional[str] = None,
    description: str = DEFAULT_DESCRIPTION,
    public: bool = False,
) -> Playlist:
    return PlaylistWriter(client, public=public, description=description).write(tracks, name=name)
