"""
Route departure advice: directions -> lights -> statistics -> offset search.
"""
from dataclasses import dataclass, field
from typing import List

from ...common.logging import setup_logger, log_execution_time
from ...signals.application.estimator import DurationEstimator
from ...signals.domain import GeoPoint, SignalRepository
from ...signals.domain.geodesy import bounding_box
from ..domain import DepartureAdvice, DirectionsProvider, MappedLight, Route, TravelSegment
from .light_mapper import segment_route
from .optimizer import DepartureOptimizer

logger = setup_logger(__name__)

@dataclass
class RouteAdvice:
    route: Route
    advice: DepartureAdvice
    segments: List[TravelSegment] = field(default_factory=list)
    lights: List[MappedLight] = field(default_factory=list)

class RouteAdviceService:
    def __init__(self, directions: DirectionsProvider, repository: SignalRepository,
                 estimator: DurationEstimator, optimizer: DepartureOptimizer,
                 tolerance_meters: float = 100.0):
        self.directions = directions
        self.repository = repository
        self.estimator = estimator
        self.optimizer = optimizer
        self.tolerance_meters = tolerance_meters

    @log_execution_time(logger)
    def advise(self, origin: GeoPoint, destination: GeoPoint, now: float) -> RouteAdvice:
        # Provider failures propagate as DirectionsError subclasses
        route = self.directions.get_route(origin, destination)

        points = [p for step in route.steps for p in step.path]
        clusters = []
        if points:
            clusters = self.repository.clusters_in_bbox(*bounding_box(points, self.tolerance_meters))

        segments, lights = segment_route(route, clusters, self.tolerance_meters)

        # One statistics read per light; every offset reuses them
        mapped = {light.cluster_id for light in lights}
        light_stats = self.estimator.statistics_for_many(
            (c for c in clusters if c.id in mapped), now
        )

        advice = self.optimizer.advise(segments, light_stats, now)
        return RouteAdvice(route=route, advice=advice, segments=segments, lights=lights)
