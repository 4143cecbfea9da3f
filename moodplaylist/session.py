"""
OAuth session for a single local user.

AuthSession owns the spotipy auth manager and the authenticated
SpotifyClient. The web server keeps one instance on app.state; the CLI uses
interactive_client() for spotipy's browser flow.
"""
import logging
import secrets
from typing import Any, Dict, List, Optional

import requests
from spotipy.cache_handler import CacheFileHandler, MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from .errors import AuthFailure, CatalogError, StateMismatch
from .rate_limiter import RateLimiter
from .spotify_client import SpotifyClient

logger = logging.getLogger(__name__)


class AuthSession:
    """Authorization-code handshake plus the resulting catalog client"""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: List[str],
        *,
        client_kwargs: Optional[Dict[str, Any]] = None,
        oauth: Optional[SpotifyOAuth] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = list(scopes)
        self.cache_handler = MemoryCacheHandler()
        self.oauth = oauth or SpotifyOAuth(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            scope=" ".join(self.scopes),
            cache_handler=self.cache_handler,
            open_browser=False,
        )
        self._client_kwargs = dict(client_kwargs or {})
        self._pending_state: Optional[str] = None
        self._client: Optional[SpotifyClient] = None
        self._user: Optional[Dict[str, Any]] = None

    @classmethod
    def from_config(cls, config) -> "AuthSession":
        return cls(
            config.spotify_client_id,
            config.spotify_client_secret,
            config.spotify_redirect_uri,
            config.spotify_scopes,
            client_kwargs={
                "timeouts": config.spotify_timeouts,
                "rate_limiter": RateLimiter(calls_per_second=config.spotify_calls_per_second),
                "market": config.spotify_market,
            },
        )

    @property
    def is_authenticated(self) -> bool:
        return self._client is not None

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._user

    @property
    def client(self) -> SpotifyClient:
        if self._client is None:
            raise AuthFailure("Not logged in - visit /login first")
        return self._client

    def authorize_url(self) -> str:
        """Start a login: returns the provider URL carrying a fresh state value"""
        self._pending_state = secrets.token_urlsafe(16)
        return self.oauth.get_authorize_url(state=self._pending_state)

    def _verify(self, client: SpotifyClient) -> Dict[str, Any]:
        try:
            user = client.current_user()
        except (AuthFailure, CatalogError) as e:
            raise AuthFailure(f"Failed to get user details: {e}") from e
        if not user or not user.get("id"):
            raise AuthFailure("Authorized user has no id")
        return user

    def complete(self, code: Optional[str], state: Optional[str]) -> Dict[str, Any]:
        """
        Finish the handshake from the provider callback.

        Returns:
            The current-user payload

        Raises:
            AuthFailure: state mismatch, missing code, token exchange failure,
                or the new client cannot read the current user
        """
        expected = self._pending_state
        if not expected or not state or not secrets.compare_digest(state, expected):
            raise StateMismatch("State mismatch")
        self._pending_state = None
        if not code:
            raise AuthFailure("Authorization code missing from callback")

        try:
            self.oauth.get_access_token(code, as_dict=False, check_cache=False)
        except (SpotifyOauthError, requests.exceptions.RequestException) as e:
            raise AuthFailure(f"Couldn't get token: {e}") from e

        client = SpotifyClient.from_auth_manager(self.oauth, **self._client_kwargs)
        user = self._verify(client)
        self._client, self._user = client, user
        logger.info("Logged in as %s (%s)", user.get("display_name") or "-", user["id"])
        return user

    def interactive_client(self, cache_path: Optional[str] = None) -> SpotifyClient:
        """
        Log in through spotipy's browser flow (CLI use).

        Tokens are cached in `cache_path` so later runs skip the browser.
        """
        oauth = SpotifyOAuth(
            client_id=self.client_id,
            client_secret=self.client_secret,
            redirect_uri=self.redirect_uri,
            scope=" ".join(self.scopes),
            cache_handler=CacheFileHandler(cache_path=cache_path) if cache_path else self.cache_handler,
            open_browser=True,
        )
        try:
            oauth.get_access_token(as_dict=False)
        except (SpotifyOauthError, requests.exceptions.RequestException) as e:
            raise AuthFailure(f"Couldn't get token: {e}") from e

        client = SpotifyClient.from_auth_manager(oauth, **self._client_kwargs)
        user = self._verify(client)
        self.oauth = oauth
        self._client, self._user = client, user
        logger.info("Logged in as %s (%s)", user.get("display_name") or "-", user["id"])
        return client

    def logout(self) -> None:
        self.cache_handler.save_token_to_cache(None)
        self._client = None
        self._user = None
        self._pending_state = None
