"""
Nearby-light timing query.
"""
from dataclasses import dataclass

from ...common.exceptions import ClusterNotFoundError
from ..domain import ClusterStatistics, Prediction, SignalRepository
from .estimator import DurationEstimator, ConfidencePolicy
from .predictor import SignalStatePredictor

@dataclass
class LightTiming:
    statistics: ClusterStatistics
    prediction: Prediction
    distance_meters: float

class LightTimingService:
    def __init__(self, repository: SignalRepository, predictor: SignalStatePredictor,
                 policy: ConfidencePolicy = ConfidencePolicy(), search_radius_meters: float = 100.0):
        self.repository = repository
        self.estimator = DurationEstimator(repository, policy)
        self.predictor = predictor
        self.search_radius_meters = search_radius_meters

    def nearest(self, lat: float, lon: float, now: float) -> LightTiming:
        match = self.repository.nearest_cluster(lat, lon, self.search_radius_meters)
        if match is None:
            raise ClusterNotFoundError(
                f"No traffic light known within {self.search_radius_meters:.0f} m of ({lat}, {lon})"
            )
        cluster, dist = match
        stats = self.estimator.statistics_for(cluster, now)
        return LightTiming(stats, self.predictor.predict(stats, now), dist)
