"""
Weather client - fetches the current observation for a city.

Only the OpenWeatherMap current-weather endpoint is used.  Responses are
validated against weather.current.schema.json before anything downstream
sees them, so a missing description or temperature fails here instead of
leaking into token metadata.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import httpx

from .errors import ConfigurationError, MalformedWeatherDataError, WeatherFetchError
from .spec.models import WeatherObservation
from .spec.schemas import WEATHER_SCHEMA, SchemaRegistry, SchemaValidationError

logger = logging.getLogger(__name__)

DEFAULT_CITY = "Washington"


def resolve_city(city: Optional[str]) -> str:
    """Trim the requested city; an empty request falls back to DEFAULT_CITY."""
    return (city or "").strip() or DEFAULT_CITY


def parse_observation(
    payload: Any, registry: Optional[SchemaRegistry] = None
) -> WeatherObservation:
    """
    Turn a current-weather response into a WeatherObservation.

    Raises:
        MalformedWeatherDataError: If the payload does not carry a name,
            at least one condition with a description, and a numeric
            temperature
    """
    registry = registry or SchemaRegistry.default()
    try:
        registry.validate_instance(payload, WEATHER_SCHEMA)
    except SchemaValidationError as exc:
        raise MalformedWeatherDataError(
            "Malformed upstream weather data: " + "; ".join(exc.errors),
            errors=exc.errors,
        ) from exc

    return WeatherObservation(
        name=payload["name"],
        description=payload["weather"][0]["description"],
        temperature=payload["main"]["temp"],
    )


class OpenWeatherClient:
    """
    OpenWeatherMap wrapper.

    Endpoint used:
    - Current weather:
        /data/2.5/weather?q=CITY&appid=KEY&units=metric
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org",
        timeout_s: float = 10.0,
        max_retries: int = 2,
        retry_delay: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ConfigurationError(
                "OPENWEATHER_API_KEY not set. Export it or add it to ~/.weathermint/.env"
            )
        self.api_key = api_key
        self.base = base_url.rstrip("/")
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport

    async def fetch_current(self, city: str) -> dict[str, Any]:
        """
        Retrieve the raw current-weather payload for a city.

        Connection-level failures are retried up to ``max_retries`` times;
        HTTP error statuses are not.
        """
        params = {"q": city, "appid": self.api_key, "units": "metric"}
        attempt = 0
        while True:
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout_s, transport=self._transport
                ) as client:
                    r = await client.get(f"{self.base}/data/2.5/weather", params=params)
                break
            except httpx.TransportError as exc:
                if attempt >= self.max_retries:
                    raise WeatherFetchError(f"Weather request failed: {exc}") from exc
                attempt += 1
                logger.warning("Weather request for %s failed (%s), retry %d", city, exc, attempt)
                await asyncio.sleep(self.retry_delay * attempt)

        if r.status_code != 200:
            raise WeatherFetchError(f"Current weather failed ({r.status_code}): {r.text}")

        try:
            return r.json()
        except ValueError as exc:
            raise MalformedWeatherDataError(f"Weather response is not JSON: {exc}") from exc

    async def observe(self, city: str) -> WeatherObservation:
        payload = await self.fetch_current(city)
        observation = parse_observation(payload)
        logger.debug(
            "Observed %s: %s, %s C", observation.name, observation.description, observation.temperature
        )
        return observation
