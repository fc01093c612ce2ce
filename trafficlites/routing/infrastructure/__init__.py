"""
Infrastructure module initialization.
"""
from .directions_client import GoogleDirectionsClient, decode_polyline, parse_route

__all__ = ["GoogleDirectionsClient", "decode_polyline", "parse_route"]
