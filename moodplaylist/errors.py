"""
Error types for the mood playlist pipeline.

Fatal errors (auth, library fetch, no candidates, write side) propagate to the
caller and end the run. StageDegraded and CatalogError raised inside a
candidate stage are caught by the assembler and only degrade that stage.
"""
from typing import Optional


class MoodPlaylistError(Exception):
    """Base exception for everything raised by this package"""
    pass


class AuthFailure(MoodPlaylistError):
    """Raised when the catalog client is not (or no longer) authenticated"""
    pass


class StateMismatch(AuthFailure):
    """Raised when an OAuth callback carries a state this session did not issue"""
    pass


class CatalogError(MoodPlaylistError):
    """Raised when a catalog call fails (HTTP error, timeout, bad payload)"""

    def __init__(self, message: str, *, operation: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.operation = operation
        self.status = status


class CatalogPermissionError(CatalogError):
    """Raised when the catalog denies access to an endpoint (403)"""
    pass


class LibraryFetchFailed(MoodPlaylistError):
    """Raised when the liked-songs library cannot be paged"""
    pass


class InsufficientCandidates(MoodPlaylistError):
    """Raised when the pipeline ends with no usable tracks"""
    pass


class NoLikedSongs(InsufficientCandidates):
    """Raised when the user's liked-songs library is empty"""
    pass


class StageDegraded(MoodPlaylistError):
    """Raised by a candidate stage that cannot contribute (non-fatal)"""
    pass


class PlaylistWriteError(MoodPlaylistError):
    """Base exception for write-side failures"""
    pass


class NoTracksProvided(PlaylistWriteError):
    """Raised when asked to write a playlist without tracks"""
    pass


class UserLookupFailed(PlaylistWriteError):
    """Raised when the current user cannot be resolved"""
    pass


class PlaylistCreateFailed(PlaylistWriteError):
    """Raised when the playlist cannot be created"""
    pass


class AddTracksFailed(PlaylistWriteError):
    """Raised when tracks cannot be added to a freshly created playlist.

    The created playlist is left in place (empty or partially filled).
    """

    def __init__(self, message: str, *, playlist_id: Optional[str] = None):
        super().__init__(message)
        self.playlist_id = playlist_id


class WeatherLookupFailed(MoodPlaylistError):
    """Raised when current weather cannot be fetched or parsed"""
    pass
