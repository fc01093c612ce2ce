"""
Domain repositories for the Signals module.
"""
from typing import List, Optional, Protocol, Tuple
from .entities import Observation, IntersectionCluster, CycleSegment

class SignalRepository(Protocol):
    """
    Storage for observations, clusters and cycle segments.
    """
    def add_observation(self, observation: Observation) -> Observation:
        ...

    def assign_observation(self, observation_id: int, cluster_id: int):
        ...

    def list_observations(self, limit: int = 100) -> List[Observation]:
        ...

    def get_cluster(self, cluster_id: int, for_update: bool = False) -> Optional[IntersectionCluster]:
        ...

    def lock_area(self, lat: float, lon: float, radius_m: float):
        ...

    def nearest_cluster(self, lat: float, lon: float, max_distance_m: float) -> Optional[Tuple[IntersectionCluster, float]]:
        ...

    def clusters_in_bbox(self, min_lat: float, min_lon: float, max_lat: float, max_lon: float) -> List[IntersectionCluster]:
        ...

    def add_cluster(self, cluster: IntersectionCluster) -> IntersectionCluster:
        ...

    def update_cluster(self, cluster: IntersectionCluster) -> IntersectionCluster:
        ...

    def open_segment(self, cluster_id: int) -> Optional[CycleSegment]:
        ...

    def latest_segment(self, cluster_id: int) -> Optional[CycleSegment]:
        ...

    def add_segment(self, segment: CycleSegment) -> CycleSegment:
        ...

    def close_segment(self, segment: CycleSegment) -> CycleSegment:
        ...

    def closed_segments(self, cluster_id: int) -> List[CycleSegment]:
        ...

    def commit(self):
        ...

    def rollback(self):
        ...

    def close(self):
        ...
