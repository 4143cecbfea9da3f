"""
Configuration Loader - Manages YAML configuration and environment variables
"""
import yaml
import os
from typing import Dict, List, Optional

from .playlist.config import AssemblyConfig, default_assembly_config
from .playlist_writer import DEFAULT_DESCRIPTION, DEFAULT_NAME_TEMPLATE
from .spotify_client import DEFAULT_TIMEOUTS

DEFAULT_SCOPES = [
    'user-read-private',
    'user-read-email',
    'playlist-modify-private',
    'playlist-modify-public',
    'user-top-read',
    'user-library-read',
]


class Config:
    """Configuration manager for the mood playlist generator"""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = config_path
        self.config = self._load_config()
        self._validate_config()

    def _load_config(self) -> dict:
        """Load configuration from YAML file"""
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            return yaml.safe_load(f) or {}

    def _validate_config(self):
        """Validate required configuration fields (after environment overrides)"""
        required = [
            ('spotify', 'client_id', self.spotify_client_id),
            ('spotify', 'client_secret', self.spotify_client_secret),
        ]
        for section, field, value in required:
            if not value or str(value).startswith('YOUR_'):
                raise ValueError(f"Please set {section}.{field} in {self.config_path}")

        port = self.server_port
        if not isinstance(port, int) or not 0 < port < 65536:
            raise ValueError(f"server.port must be a valid port number, got {port!r}")

    def _section(self, name: str) -> dict:
        return self.config.get(name) or {}

    # Spotify
    @property
    def spotify_client_id(self) -> str:
        """Get Spotify client ID (with environment variable override)"""
        return os.getenv('SPOTIFY_CLIENT_ID') or self._section('spotify').get('client_id', '')

    @property
    def spotify_client_secret(self) -> str:
        """Get Spotify client secret (with environment variable override)"""
        return os.getenv('SPOTIFY_CLIENT_SECRET') or self._section('spotify').get('client_secret', '')

    @property
    def spotify_redirect_uri(self) -> str:
        """Get OAuth redirect URI (with environment variable override)"""
        default = f"http://localhost:{self.server_port}/callback"
        return os.getenv('SPOTIFY_REDIRECT_URI') or self._section('spotify').get('redirect_uri', default)

    @property
    def spotify_scopes(self) -> List[str]:
        scopes = self._section('spotify').get('scopes') or DEFAULT_SCOPES
        if isinstance(scopes, str):
            scopes = scopes.split()
        return list(scopes)

    @property
    def spotify_calls_per_second(self) -> float:
        """Get client-side rate limit for catalog calls"""
        return float(self._section('spotify').get('calls_per_second', 10.0))

    @property
    def spotify_market(self) -> Optional[str]:
        return self._section('spotify').get('market')

    @property
    def spotify_timeouts(self) -> Dict[str, float]:
        """Get per-operation timeouts in seconds (config over defaults)"""
        overrides = self._section('spotify').get('timeouts') or {}
        timeouts = dict(DEFAULT_TIMEOUTS)
        for key, value in overrides.items():
            if key in timeouts and value:
                timeouts[key] = float(value)
        return timeouts

    # Weather
    @property
    def weather_api_key(self) -> str:
        """Get weather API key (with environment variable override)"""
        return os.getenv('WEATHER_API_KEY') or self._section('weather').get('api_key', '')

    @property
    def weather_base_url(self) -> Optional[str]:
        return self._section('weather').get('base_url')

    @property
    def weather_units(self) -> str:
        return self._section('weather').get('units', 'metric')

    @property
    def weather_timeout(self) -> float:
        return float(self._section('weather').get('timeout', 10))

    # Playlists
    @property
    def playlist_name_template(self) -> str:
        """Get playlist name template ({timestamp} is replaced)"""
        return self._section('playlists').get('name_template', DEFAULT_NAME_TEMPLATE)

    @property
    def playlist_description(self) -> str:
        return self._section('playlists').get('description', DEFAULT_DESCRIPTION)

    @property
    def playlist_public(self) -> bool:
        """Check if generated playlists are public"""
        return bool(self._section('playlists').get('public', False))

    def assembly_config(self) -> AssemblyConfig:
        """Build the assembly tuning from the playlists section"""
        return default_assembly_config(self._section('playlists'))

    # Server
    @property
    def server_host(self) -> str:
        return self._section('server').get('host', '127.0.0.1')

    @property
    def server_port(self) -> int:
        return self._section('server').get('port', 8080)

    # Logging
    @property
    def log_level(self) -> str:
        return str(self._section('logging').get('level', 'INFO')).upper()

    @property
    def log_file(self) -> Optional[str]:
        return self._section('logging').get('file')
