"""
Great-circle helpers over (lat, lon) coordinates in degrees.
"""
import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .entities import GeoPoint

EARTH_RADIUS_M = 6371e3

@dataclass(frozen=True)
class PathProjection:
    closest_index: int
    path_distance_to_closest: float
    min_distance_to_path: float

def _valid(p: Optional[GeoPoint]) -> bool:
    if p is None or p.lat is None or p.lon is None:
        return False
    return math.isfinite(p.lat) and math.isfinite(p.lon)

def distance(a: Optional[GeoPoint], b: Optional[GeoPoint]) -> float:
    """
    Haversine distance in meters. Invalid input yields +inf so that any
    radius comparison rejects it.
    """
    if not _valid(a) or not _valid(b):
        return math.inf
    p1 = math.radians(a.lat)
    p2 = math.radians(b.lat)
    dp = math.radians(b.lat - a.lat)
    dl = math.radians(b.lon - a.lon)
    h = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

def _as_array(points: Sequence[GeoPoint]) -> np.ndarray:
    return np.array([[p.lat, p.lon] for p in points], dtype=float).reshape(-1, 2)

def _haversine_vec(lat1, lon1, lat2, lon2) -> np.ndarray:
    p1, p2 = np.radians(lat1), np.radians(lat2)
    dp = p2 - p1
    dl = np.radians(lon2) - np.radians(lon1)
    h = np.sin(dp / 2) ** 2 + np.cos(p1) * np.cos(p2) * np.sin(dl / 2) ** 2
    h = np.clip(h, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(h), np.sqrt(1 - h))

def cumulative_distances(points: Sequence[GeoPoint]) -> np.ndarray:
    """
    Path length from points[0] to every vertex; first element is 0.
    """
    if len(points) == 0:
        return np.zeros(0)
    arr = _as_array(points)
    legs = _haversine_vec(arr[:-1, 0], arr[:-1, 1], arr[1:, 0], arr[1:, 1])
    return np.concatenate(([0.0], np.cumsum(legs)))

def path_length(points: Sequence[GeoPoint], start: int = 0, end: Optional[int] = None) -> float:
    """
    Sum of consecutive distances over points[start..end] (inclusive).
    Returns 0 for fewer than two points or an empty/invalid range.
    """
    if points is None or len(points) < 2:
        return 0.0
    if end is None:
        end = len(points) - 1
    if start < 0 or end >= len(points) or end <= start:
        return 0.0
    cum = cumulative_distances(points[start:end + 1])
    total = float(cum[-1])
    return total if math.isfinite(total) else 0.0

def project_onto_path(point: GeoPoint, points: Sequence[GeoPoint]) -> Optional[PathProjection]:
    """
    Nearest vertex of the path to point, plus the path length from the
    first vertex up to it. None when the path is empty or point is invalid.
    """
    if not points or not _valid(point):
        return None
    arr = _as_array(points)
    dists = _haversine_vec(point.lat, point.lon, arr[:, 0], arr[:, 1])
    if not np.isfinite(dists).any():
        return None
    # argmin returns the first vertex on ties, keeping the earliest position along the path
    idx = int(np.nanargmin(dists))
    return PathProjection(
        closest_index=idx,
        path_distance_to_closest=float(cumulative_distances(points[:idx + 1])[-1]),
        min_distance_to_path=float(dists[idx]),
    )

def bounding_box(points: Sequence[GeoPoint], margin_meters: float = 0.0):
    """
    (min_lat, min_lon, max_lat, max_lon) enclosing points, grown by margin_meters.
    """
    arr = _as_array(points)
    min_lat, min_lon = arr.min(axis=0)
    max_lat, max_lon = arr.max(axis=0)
    dlat = math.degrees(margin_meters / EARTH_RADIUS_M)
    widest = max(abs(min_lat), abs(max_lat))
    cos_lat = max(math.cos(math.radians(widest)), 1e-6)
    dlon = dlat / cos_lat
    return (float(min_lat) - dlat, float(min_lon) - dlon, float(max_lat) + dlat, float(max_lon) + dlon)
