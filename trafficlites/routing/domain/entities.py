"""
Domain entities for the Routing module.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from ...signals.domain import GeoPoint

@dataclass
class RouteStep:
    """
    One turn-by-turn step as returned by the directions provider.
    """
    start_point: GeoPoint
    end_point: GeoPoint
    points: List[GeoPoint]
    duration_seconds: float
    distance_meters: float
    instruction: Optional[str] = None

    @property
    def path(self) -> List[GeoPoint]:
        # Providers occasionally return an empty polyline for very short steps
        return self.points if len(self.points) >= 2 else [self.start_point, self.end_point]

@dataclass
class Route:
    steps: List[RouteStep]
    summary: str = ""
    overview_polyline: Optional[str] = None

    @property
    def duration_seconds(self) -> float:
        return sum(s.duration_seconds for s in self.steps)

    @property
    def distance_meters(self) -> float:
        return sum(s.distance_meters for s in self.steps)

@dataclass(frozen=True)
class MappedLight:
    """A known cluster found along the route."""
    cluster_id: int
    location: GeoPoint
    path_distance: float
    offset_from_path: float

@dataclass
class TravelSegment:
    """
    A stretch of travel, ending at a light when ends_at_cluster_id is set.
    """
    start: GeoPoint
    end: GeoPoint
    duration_seconds: float
    distance_meters: float
    ends_at_cluster_id: Optional[int] = None
    step_index: int = 0

@dataclass
class SimulationResult:
    departure_offset_seconds: int
    total_wait_seconds: float = 0.0
    low_confidence_light_count: int = 0
    total_lights_simulated: int = 0
    effectively_unknown_light_count: int = 0

@dataclass
class DepartureAdvice:
    advice: str
    optimal_departure_offset_seconds: int
    baseline_wait_time_seconds: float
    optimal_wait_time_seconds: float
    wait_time_savings_seconds: float
    simulation_confidence_level: str
    lights_on_route: int = 0
    candidates: List[SimulationResult] = field(default_factory=list)
