"""Test configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add repo root (for moodplaylist) and this directory (for fakes) to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from fakes import FakeCatalog, track_payload  # noqa: E402
from moodplaylist.playlist.config import AssemblyConfig  # noqa: E402


@pytest.fixture()
def assembly_config():
    """Default tuning with a fixed shuffle seed."""
    return AssemblyConfig(shuffle_seed=7)


@pytest.fixture()
def small_library():
    """Ten liked tracks, t1..t10, alternating between two artists."""
    return [track_payload(f"t{i}", artist_ids=("a1" if i % 2 else "a2",)) for i in range(1, 11)]


@pytest.fixture()
def fake_catalog(small_library):
    return FakeCatalog(liked=small_library)


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    for name in ("SPOTIFY_CLIENT_ID", "SPOTIFY_CLIENT_SECRET", "SPOTIFY_REDIRECT_URI", "WEATHER_API_KEY", "LOG_LEVEL", "LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
