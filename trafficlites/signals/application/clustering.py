"""
Assigns observations to intersection clusters.
"""
from typing import Tuple

from ...common.logging import setup_logger
from ..domain import GeoPoint, IntersectionCluster, Observation, SignalRepository

logger = setup_logger(__name__)

DEFAULT_CLUSTERING_RADIUS_M = 50.0

def weighted_center(center: GeoPoint, count: int, point: GeoPoint) -> GeoPoint:
    """
    Incremental mean: center * n/(n+1) + point * 1/(n+1).
    """
    n = max(count, 0)
    w_old = n / (n + 1)
    w_new = 1 / (n + 1)
    return GeoPoint(
        lat=center.lat * w_old + point.lat * w_new,
        lon=center.lon * w_old + point.lon * w_new,
    )

class IntersectionClusterer:
    """
    Snaps each observation to the single nearest cluster within the radius,
    or starts a new cluster at the observation.
    """
    def __init__(self, repository: SignalRepository, radius_meters: float = DEFAULT_CLUSTERING_RADIUS_M):
        self.repository = repository
        self.radius_meters = radius_meters

    def assign(self, observation: Observation) -> Tuple[IntersectionCluster, bool]:
        """
        Returns (cluster, created). Must run inside the caller's transaction:
        the matched cluster row is locked until commit.
        """
        point = observation.point
        # Held until commit: a concurrent report nearby waits here, then sees our cluster
        self.repository.lock_area(point.lat, point.lon, self.radius_meters)
        match = self.repository.nearest_cluster(point.lat, point.lon, self.radius_meters)

        if match is None:
            cluster = self.repository.add_cluster(IntersectionCluster(
                id=None,
                center=point,
                observation_count=1,
                created_at=observation.observed_at,
                updated_at=observation.observed_at,
            ))
            logger.debug(f"Created cluster {cluster.id} at ({point.lat:.6f}, {point.lon:.6f})")
            return cluster, True

        candidate, dist = match
        # Re-read under lock so the center/count we average into is current
        cluster = self.repository.get_cluster(candidate.id, for_update=True) or candidate
        cluster.center = weighted_center(cluster.center, cluster.observation_count, point)
        cluster.observation_count += 1
        cluster.updated_at = max(cluster.updated_at, observation.observed_at)
        cluster = self.repository.update_cluster(cluster)
        logger.debug(
            f"Observation joined cluster {cluster.id} ({dist:.1f} m), count={cluster.observation_count}"
        )
        return cluster, False
