import logging
import os
import sys
import uuid
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Callable, Dict, List, Literal, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel, Field

# Allow importing the package when run from a checkout
ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from moodplaylist.config_loader import Config  # type: ignore
from moodplaylist.errors import (  # type: ignore
    AuthFailure,
    InsufficientCandidates,
    LibraryFetchFailed,
    PlaylistWriteError,
    StateMismatch,
)
from moodplaylist.logging_utils import configure_logging, set_run_id  # type: ignore
from moodplaylist.mood import Mood  # type: ignore
from moodplaylist.playlist_generator import GenerationResult, PlaylistGenerator  # type: ignore
from moodplaylist.session import AuthSession  # type: ignore
from moodplaylist.spotify_client import CatalogClient  # type: ignore
from moodplaylist.weather_client import WeatherClient  # type: ignore

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(os.getenv("MOODPLAYLIST_CONFIG_PATH", ROOT_DIR / "config.yaml"))

GeneratorFactory = Callable[[CatalogClient], PlaylistGenerator]


class GenerateRequest(BaseModel):
    mode: Literal["weather", "mood"] = "weather"
    city: Optional[str] = Field(None, description="City for weather mode")
    mood: Optional[str] = Field(None, description="Mood name for mood mode")


class PlaylistTrack(BaseModel):
    id: str
    name: str
    artist: str


class PlaylistInfo(BaseModel):
    id: str
    name: str
    url: Optional[str] = None


class WeatherInfo(BaseModel):
    city: str
    temperature: float
    description: str


class PlaylistResponse(BaseModel):
    mood: str
    track_count: int
    tracks: List[PlaylistTrack]
    playlist: Optional[PlaylistInfo] = None
    weather: Optional[WeatherInfo] = None


SUCCESS_HTML = """<!DOCTYPE html>
<html>
<head>
    <title>Weather Mood Playlist</title>
    <style>
        body {
            font-family: 'Circular', Helvetica, Arial, sans-serif;
            background-color: #121212;
            color: white;
            text-align: center;
            padding: 40px;
            max-width: 600px;
            margin: 0 auto;
        }
        h1 { color: #1DB954; font-size: 32px; margin-bottom: 20px; }
        p { font-size: 18px; margin-bottom: 30px; }
        input, select { padding: 10px; font-size: 16px; border-radius: 6px; border: none; margin: 6px; }
        button {
            background-color: #1DB954;
            color: white;
            border: none;
            padding: 16px 32px;
            font-size: 16px;
            font-weight: bold;
            border-radius: 30px;
            cursor: pointer;
        }
        button:hover { background-color: #1ed760; }
        #result { margin-top: 30px; }
    </style>
</head>
<body>
    <h1>Successfully logged in!</h1>
    <p>Enter a city for a weather-based playlist, or pick a mood:</p>
    <div>
        <input id="city" placeholder="City">
        <select id="mood">
            <option value="">(use the weather)</option>
            __MOOD_OPTIONS__
        </select>
    </div>
    <p><button id="create">Create Playlist</button></p>
    <div id="result"></div>
    <script>
        document.getElementById("create").addEventListener("click", async () => {
            const city = document.getElementById("city").value;
            const mood = document.getElementById("mood").value;
            const body = mood ? {mode: "mood", mood: mood} : {mode: "weather", city: city};
            const result = document.getElementById("result");
            result.textContent = "Creating playlist...";
            const resp = await fetch("/api/playlist/generate", {
                method: "POST",
                headers: {"Content-Type": "application/json"},
                body: JSON.stringify(body),
            });
            const data = await resp.json();
            if (!resp.ok) {
                result.textContent = "Error: " + (data.detail || resp.status);
                return;
            }
            result.innerHTML = "<h2>Playlist created successfully!</h2><p>" +
                data.track_count + " " + data.mood + " tracks. Check your Spotify account.</p>";
        });
    </script>
</body>
</html>
"""


def _success_page() -> str:
    options = "\n            ".join(
        f'<option value="{m.value}">{m.value.title()}</option>' for m in Mood
    )
    return SUCCESS_HTML.replace("__MOOD_OPTIONS__", options)


def _init_services(app: FastAPI) -> None:
    """Initialize shared services once for the API process."""
    state = app.state
    if getattr(state, "session", None) is not None:
        return

    config = Config(str(CONFIG_PATH))
    configure_logging(level=config.log_level, log_file=config.log_file)
    state.config = config
    state.session = AuthSession.from_config(config)
    weather = WeatherClient(
        config.weather_api_key,
        base_url=config.weather_base_url,
        units=config.weather_units,
        timeout=config.weather_timeout,
    )
    state.generator_factory = lambda client: PlaylistGenerator(client, config, weather_client=weather)
    logger.info("Server ready on port %d - visit /login to begin", config.server_port)


def create_app(
    session: Optional[AuthSession] = None,
    generator_factory: Optional[GeneratorFactory] = None,
) -> FastAPI:
    """
    Build the web app.

    Without arguments the services are created from config.yaml at startup;
    tests pass a session and a generator factory directly.
    """

    @asynccontextmanager
    async def lifespan(app_: FastAPI):
        _init_services(app_)
        yield

    app_ = FastAPI(title="Weather Mood Playlist", lifespan=lifespan)
    app_.state.session = session
    app_.state.generator_factory = generator_factory
    _register_routes(app_)
    return app_


def _session(request: Request) -> AuthSession:
    session = request.app.state.session
    if session is None:
        raise HTTPException(status_code=503, detail="Server is not configured")
    return session


def _register_routes(app_: FastAPI) -> None:

    @app_.get("/health")
    def health(request: Request) -> Dict[str, object]:
        session = request.app.state.session
        return {"status": "ok", "authenticated": bool(session and session.is_authenticated)}

    @app_.get("/login")
    def login(request: Request) -> RedirectResponse:
        url = _session(request).authorize_url()
        logger.debug("Redirecting to authorization page")
        return RedirectResponse(url, status_code=302)

    @app_.get("/callback")
    def callback(
        request: Request,
        code: Optional[str] = None,
        state: Optional[str] = None,
        error: Optional[str] = None,
    ) -> RedirectResponse:
        if error:
            raise HTTPException(status_code=400, detail=f"Authorization denied: {error}")
        try:
            _session(request).complete(code, state)
        except StateMismatch as e:
            logger.warning("Login failed: %s", e)
            raise HTTPException(status_code=400, detail=str(e))
        except AuthFailure as e:
            logger.warning("Login failed: %s", e)
            raise HTTPException(status_code=403, detail=str(e))
        return RedirectResponse("/success", status_code=303)

    @app_.get("/success", response_model=None)
    def success(request: Request):
        if not _session(request).is_authenticated:
            return RedirectResponse("/login", status_code=303)
        return HTMLResponse(_success_page())

    @app_.post("/logout")
    def logout(request: Request) -> Dict[str, bool]:
        _session(request).logout()
        return {"ok": True}

    @app_.get("/api/moods")
    def list_moods() -> Dict[str, List[str]]:
        return {"moods": [m.value for m in Mood]}

    @app_.post("/api/playlist/generate", response_model=PlaylistResponse)
    def generate_playlist(payload: GenerateRequest, request: Request) -> PlaylistResponse:
        session = _session(request)
        if not session.is_authenticated:
            raise HTTPException(status_code=401, detail="Not logged in - visit /login first")
        if payload.mode == "weather" and not (payload.city and payload.city.strip()):
            raise HTTPException(status_code=400, detail="city is required in weather mode")
        if payload.mode == "mood" and not payload.mood:
            raise HTTPException(status_code=400, detail="mood is required in mood mode")

        set_run_id(uuid.uuid4().hex[:8])
        generator = request.app.state.generator_factory(session.client)
        try:
            if payload.mode == "weather":
                result: GenerationResult = generator.generate_for_city(payload.city)
            else:
                result = generator.generate(payload.mood)
        except AuthFailure as e:
            raise HTTPException(status_code=401, detail=str(e))
        except (LibraryFetchFailed, InsufficientCandidates) as e:
            logger.warning("Playlist generation failed: %s", e)
            raise HTTPException(status_code=422, detail=str(e))
        except PlaylistWriteError as e:
            logger.error("Playlist write failed: %s", e)
            raise HTTPException(status_code=502, detail=str(e))
        finally:
            set_run_id(None)

        return PlaylistResponse(**result.to_dict())


app = create_app()
