"""
Weather client - looks up current conditions for a city (OpenWeatherMap)
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .errors import WeatherLookupFailed
from .logging_utils import redact
from .mood import Mood, mood_from_weather
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeatherReport:
    city: str
    temperature: float
    description: str

    @property
    def mood(self) -> Mood:
        return mood_from_weather(self.description)


class WeatherClient:
    """Client for the current-weather endpoint"""

    BASE_URL = "http://api.openweathermap.org/data/2.5/weather"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        units: str = "metric",
        timeout: float = 10,
    ):
        """
        Initialize weather client

        Args:
            api_key: OpenWeatherMap API key
            base_url: Override for the current-weather endpoint
            units: Units passed to the API (metric, imperial, standard)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.base_url = base_url or self.BASE_URL
        self.units = units
        self.timeout = timeout
        self.session = requests.Session()
        self.rate_limiter = RateLimiter(calls_per_second=1.0)

    def _request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        self.rate_limiter.wait()
        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise WeatherLookupFailed(f"Weather request failed: {redact(e)}") from e

        if response.status_code >= 400:
            raise WeatherLookupFailed(
                f"Weather API returned {response.status_code} for {params.get('q')!r}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise WeatherLookupFailed("Weather API returned invalid JSON") from e

    def current(self, city: str) -> WeatherReport:
        """
        Fetch current weather for `city`.

        Raises:
            WeatherLookupFailed: no API key, blank city, HTTP/network failure,
                or a response without a weather description
        """
        if not self.api_key:
            raise WeatherLookupFailed("Weather API key is not configured")
        if not city or not city.strip():
            raise WeatherLookupFailed("City is required")

        data = self._request({"q": city.strip(), "appid": self.api_key, "units": self.units})
        conditions = data.get("weather") or []
        description = (conditions[0] or {}).get("description") if conditions else None
        if not description:
            raise WeatherLookupFailed(f"No weather description returned for {city!r}")

        temperature = float((data.get("main") or {}).get("temp") or 0.0)
        report = WeatherReport(city=data.get("name") or city.strip(), temperature=temperature, description=description)
        logger.info(
            "Weather in %s: %s, %.1f degrees -> %s mood",
            report.city, report.description, report.temperature, report.mood.value,
        )
        return report
