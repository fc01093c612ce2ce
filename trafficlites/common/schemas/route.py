from typing import List, Optional
from pydantic import BaseModel, Field

from .timing import Coordinates

class RouteAdviceRequest(BaseModel):
    origin: Coordinates
    destination: Coordinates

class RouteLight(BaseModel):
    cluster_id: int
    lat: float
    lon: float
    path_distance_meters: float

class RouteSummary(BaseModel):
    summary: str = ""
    distance_meters: float
    duration_seconds: float
    step_count: int
    overview_polyline: Optional[str] = None
    lights: List[RouteLight] = Field(default_factory=list)

class CandidateResult(BaseModel):
    departure_offset_seconds: int
    total_wait_seconds: float
    total_lights_simulated: int
    low_confidence_light_count: int
    effectively_unknown_light_count: int

class RouteAdviceResponse(BaseModel):
    """
    Recommended departure offset and the expected red-light waits behind it.
    """
    advice: str
    optimal_departure_offset_seconds: int
    baseline_wait_time_seconds: float
    optimal_wait_time_seconds: float
    wait_time_savings_seconds: float
    simulation_confidence_level: str
    lights_on_route: int = 0
    candidates: List[CandidateResult] = Field(default_factory=list)
    route: RouteSummary
