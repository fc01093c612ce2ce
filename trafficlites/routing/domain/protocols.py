"""
Domain protocols for the Routing module.
"""
from typing import Protocol

from ...signals.domain import GeoPoint
from .entities import Route

class DirectionsProvider(Protocol):
    """
    External turn-by-turn directions service.
    """
    def get_route(self, origin: GeoPoint, destination: GeoPoint) -> Route:
        ...
