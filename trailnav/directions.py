"""Directions fetching via the Google Directions web service."""

import html
import re
from typing import Optional

import requests

from .config import CONFIG
from .models import Coordinate, Leg, Route, Step


class DirectionsError(Exception):
    """Base class for directions fetch failures"""


class NetworkTimeout(DirectionsError):
    """Provider could not be reached in time"""


class NoRouteFound(DirectionsError):
    """Provider answered but has no route between the points"""


class InvalidRequest(DirectionsError):
    """Origin, destination or mode rejected (locally or by the provider)"""


class ProviderError(DirectionsError):
    """Non-2xx response or a payload we cannot make sense of"""


_DIV_TAG = re.compile(r"<div[^>]*>", re.IGNORECASE)
_ANY_TAG = re.compile(r"<[^>]+>")
_SPACES = re.compile(r"\s+")


def clean_instruction(text: str) -> str:
    """Turn provider HTML instructions into plain speakable text.

    'Turn <b>left</b><div style="...">Destination will be on the right</div>'
    becomes 'Turn left. Destination will be on the right'.
    """
    text = _DIV_TAG.sub(". ", text)
    text = _ANY_TAG.sub("", text)
    text = html.unescape(text)
    text = _SPACES.sub(" ", text).strip()
    return text.replace(" .", ".").strip(". ")


class DirectionsProvider:
    """Fetch routes from the Google Directions JSON API"""

    DIRECTIONS_URL = CONFIG["directions_url"]

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 language: Optional[str] = None):
        self.api_key = api_key
        self.base_url = base_url or self.DIRECTIONS_URL
        self.session = session or requests.Session()
        self.language = language or CONFIG["directions_language"]

    def fetch(self, origin: Coordinate, destination: Coordinate,
              mode: Optional[str] = None, timeout: Optional[float] = None) -> Route:
        """Fetch a route from origin to destination.

        Raises:
            InvalidRequest: bad origin/destination/mode, or provider rejected them
            NetworkTimeout: timed out or could not connect
            NoRouteFound: provider returned zero routes
            ProviderError: non-2xx status or unexpected payload
        """
        mode = mode or CONFIG["default_travel_mode"]
        if timeout is None:
            timeout = CONFIG["directions_timeout"]

        if not isinstance(origin, Coordinate) or not isinstance(destination, Coordinate):
            raise InvalidRequest("origin and destination must be coordinates")
        if mode not in CONFIG["travel_modes"]:
            raise InvalidRequest(f"unknown travel mode: {mode}")
        if timeout <= 0:
            raise InvalidRequest(f"timeout must be positive, got {timeout}")

        params = {
            "origin": f"{origin.lat},{origin.lon}",
            "destination": f"{destination.lat},{destination.lon}",
            "mode": mode,
            "language": self.language,
        }
        if self.api_key:
            params["key"] = self.api_key

        try:
            response = self.session.get(self.base_url, params=params, timeout=timeout)
            response.raise_for_status()
        except (requests.Timeout, requests.ConnectionError) as e:
            raise NetworkTimeout(f"directions request failed: {e}") from e
        except requests.HTTPError as e:
            raise ProviderError(f"directions provider returned HTTP {response.status_code}") from e
        except requests.RequestException as e:
            raise ProviderError(f"directions request error: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError("directions response is not JSON") from e

        return self.parse_response(payload)

    @classmethod
    def parse_response(cls, payload: dict) -> Route:
        """Map a Directions API payload to a Route (first route only)"""
        if not isinstance(payload, dict):
            raise ProviderError("directions response is not an object")

        status = payload.get("status")
        if status == "ZERO_RESULTS":
            raise NoRouteFound("no route between origin and destination")
        if status in ("NOT_FOUND", "INVALID_REQUEST"):
            detail = payload.get("error_message") or status
            raise InvalidRequest(f"provider rejected request: {detail}")
        if status != "OK":
            detail = payload.get("error_message") or status
            raise ProviderError(f"provider status: {detail}")

        routes = payload.get("routes")
        if not routes:
            raise NoRouteFound("provider returned no routes")

        try:
            return cls._parse_route(routes[0])
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise ProviderError(f"unexpected route payload: {e}") from e

    @classmethod
    def _parse_route(cls, data: dict) -> Route:
        legs = []
        for leg_data in data["legs"]:
            steps = tuple(cls._parse_step(s) for s in leg_data["steps"])
            legs.append(Leg(
                steps=steps,
                start_address=leg_data.get("start_address"),
                end_address=leg_data.get("end_address"),
                distance=_value(leg_data.get("distance")),
                duration=_value(leg_data.get("duration")),
            ))
        return Route(legs=tuple(legs), summary=data.get("summary", ""))

    @staticmethod
    def _parse_step(data: dict) -> Step:
        end = data["end_location"]
        return Step(
            end_location=Coordinate(lat=end["lat"], lon=end["lng"]),
            instruction=clean_instruction(data.get("html_instructions", "")),
            maneuver=data.get("maneuver"),
            distance=_value(data.get("distance")),
            duration=_value(data.get("duration")),
        )


def _value(field: Optional[dict]) -> Optional[float]:
    """Extract the numeric part of a {"text": ..., "value": ...} field"""
    if field is None:
        return None
    if not isinstance(field, dict):
        raise ValueError(f"expected {{text, value}} object, got {field!r}")
    if field.get("value") is None:
        return None
    return float(field["value"])
