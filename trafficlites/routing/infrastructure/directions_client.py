"""
Google Directions API client.
"""
from typing import Any, Dict, List, Optional

import httpx

from ...common.exceptions import DirectionsUnavailableError, NoRouteFoundError
from ...common.logging import setup_logger
from ...signals.domain import GeoPoint
from ..domain import DirectionsProvider, Route, RouteStep

logger = setup_logger(__name__)

DIRECTIONS_PATH = "/maps/api/directions/json"
NO_ROUTE_STATUSES = {"ZERO_RESULTS", "NOT_FOUND"}

def decode_polyline(encoded: str, precision: int = 5) -> List[GeoPoint]:
    """
    Decodes a Google encoded polyline string.
    """
    points = []
    index = lat = lng = 0
    factor = 10 ** precision
    while index < len(encoded):
        deltas = []
        for _ in range(2):
            result = shift = 0
            while True:
                b = ord(encoded[index]) - 63
                index += 1
                result |= (b & 0x1f) << shift
                shift += 5
                if b < 0x20:
                    break
            deltas.append(~(result >> 1) if (result & 1) else (result >> 1))
        lat += deltas[0]
        lng += deltas[1]
        points.append(GeoPoint(lat / factor, lng / factor))
    return points

def _point(raw: Dict[str, Any]) -> GeoPoint:
    return GeoPoint(float(raw["lat"]), float(raw["lng"]))

def parse_route(payload: Dict[str, Any]) -> Route:
    """
    Builds a Route from the first route of a Directions API response body.
    """
    status = payload.get("status", "OK")
    if status in NO_ROUTE_STATUSES or (status == "OK" and not payload.get("routes")):
        raise NoRouteFoundError(f"Directions provider found no route ({status})")
    if status != "OK":
        message = payload.get("error_message", "")
        raise DirectionsUnavailableError(f"Directions provider returned {status} {message}".strip())

    raw_route = payload["routes"][0]
    steps = []
    for leg in raw_route.get("legs", []):
        for raw in leg.get("steps", []):
            encoded = (raw.get("polyline") or {}).get("points", "")
            steps.append(RouteStep(
                start_point=_point(raw["start_location"]),
                end_point=_point(raw["end_location"]),
                points=decode_polyline(encoded) if encoded else [],
                duration_seconds=float(raw.get("duration", {}).get("value", 0)),
                distance_meters=float(raw.get("distance", {}).get("value", 0)),
                instruction=raw.get("html_instructions"),
            ))
    if not steps:
        raise NoRouteFoundError("Directions provider returned a route without steps")

    return Route(
        steps=steps,
        summary=raw_route.get("summary", ""),
        overview_polyline=(raw_route.get("overview_polyline") or {}).get("points"),
    )

class GoogleDirectionsClient(DirectionsProvider):
    """
    Fetches driving directions. Transport problems map to
    DirectionsUnavailableError; "no route" answers to NoRouteFoundError.
    """
    def __init__(self, api_key: Optional[str], base_url: str = "https://maps.googleapis.com",
                 timeout_seconds: float = 10.0, mode: str = "driving",
                 transport: Optional[httpx.BaseTransport] = None):
        self.api_key = api_key
        self.mode = mode
        self._client = httpx.Client(
            base_url=base_url,
            timeout=httpx.Timeout(timeout_seconds, connect=min(timeout_seconds, 5.0)),
            transport=transport,
        )

    def get_route(self, origin: GeoPoint, destination: GeoPoint) -> Route:
        params = {
            "origin": f"{origin.lat},{origin.lon}",
            "destination": f"{destination.lat},{destination.lon}",
            "mode": self.mode,
        }
        if self.api_key:
            params["key"] = self.api_key

        try:
            response = self._client.get(DIRECTIONS_PATH, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Directions request failed: {e}")
            raise DirectionsUnavailableError(f"Directions provider unreachable: {e}") from e
        except ValueError as e:
            logger.error(f"Directions response was not JSON: {e}")
            raise DirectionsUnavailableError("Directions provider returned an invalid body") from e

        try:
            return parse_route(payload)
        except (KeyError, TypeError, IndexError) as e:
            logger.error(f"Malformed directions response: {e}")
            raise DirectionsUnavailableError("Directions provider returned a malformed route") from e

    def close(self):
        self._client.close()
