"""
SQLAlchemy implementation of the signal repository.
"""
import math
from typing import List, Optional, Tuple

from sqlalchemy import select, text, update
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ...common.database.models import ObservationDB, IntersectionClusterDB, CycleSegmentDB
from ...common.exceptions import ConcurrentUpdateError
from ...common.logging import setup_logger
from ...common.utils import to_epoch, from_epoch
from ..domain import (
    Observation, IntersectionCluster, CycleSegment, GeoPoint,
    ReportStatus, SignalPhase, SignalRepository,
)
from ..domain.geodesy import distance, EARTH_RADIUS_M

logger = setup_logger(__name__)

def _degree_box(lat: float, lon: float, radius_m: float):
    dlat = math.degrees(radius_m / EARTH_RADIUS_M)
    cos_lat = max(math.cos(math.radians(lat)), 1e-6)
    dlon = dlat / cos_lat
    return lat - dlat, lon - dlon, lat + dlat, lon + dlon

def grid_cells(lat: float, lon: float, radius_m: float) -> List[Tuple[int, int]]:
    """
    Grid cells covering the search box around a point, in lock order. Cells
    are one box-height tall, so two points within radius_m always share one.
    """
    min_lat, min_lon, max_lat, max_lon = _degree_box(lat, lon, radius_m)
    cell = max(max_lat - min_lat, 1e-6)
    rows = range(math.floor(min_lat / cell), math.floor(max_lat / cell) + 1)
    cols = range(math.floor(min_lon / cell), math.floor(max_lon / cell) + 1)
    return sorted((r, c) for r in rows for c in cols)

def _to_observation(row: ObservationDB) -> Observation:
    return Observation(
        id=row.id,
        latitude=row.latitude,
        longitude=row.longitude,
        status=ReportStatus(row.status),
        observed_at=to_epoch(row.observed_at),
        cluster_id=row.cluster_id,
    )

def _to_cluster(row: IntersectionClusterDB) -> IntersectionCluster:
    return IntersectionCluster(
        id=row.id,
        center=GeoPoint(row.center_lat, row.center_lon),
        observation_count=row.observation_count,
        created_at=to_epoch(row.created_at),
        updated_at=to_epoch(row.updated_at),
    )

def _to_segment(row: CycleSegmentDB) -> CycleSegment:
    return CycleSegment(
        id=row.id,
        cluster_id=row.cluster_id,
        previous_phase=SignalPhase(row.previous_phase) if row.previous_phase else None,
        phase=SignalPhase(row.phase),
        start_time=to_epoch(row.start_time),
        end_time=to_epoch(row.end_time),
        duration_seconds=row.duration_seconds,
        is_estimated=bool(row.is_estimated),
    )

class SqlSignalRepository(SignalRepository):
    """
    Persists observations, clusters and segments through a SQLAlchemy session.
    The caller owns the session and the transaction boundaries.
    """
    def __init__(self, session: Session):
        self.session = session

    # --- Observations ---

    def add_observation(self, observation: Observation) -> Observation:
        row = ObservationDB(
            latitude=observation.latitude,
            longitude=observation.longitude,
            status=observation.status.value,
            observed_at=from_epoch(observation.observed_at),
            cluster_id=observation.cluster_id,
        )
        self.session.add(row)
        self.session.flush()
        return _to_observation(row)

    def assign_observation(self, observation_id: int, cluster_id: int):
        self.session.execute(
            update(ObservationDB)
            .where(ObservationDB.id == observation_id)
            .values(cluster_id=cluster_id)
        )

    def list_observations(self, limit: int = 100) -> List[Observation]:
        stmt = (
            select(ObservationDB)
            .order_by(ObservationDB.observed_at.desc(), ObservationDB.id.desc())
            .limit(limit)
        )
        return [_to_observation(r) for r in self.session.scalars(stmt)]

    # --- Clusters ---

    def get_cluster(self, cluster_id: int, for_update: bool = False) -> Optional[IntersectionCluster]:
        stmt = select(IntersectionClusterDB).where(IntersectionClusterDB.id == cluster_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        row = self.session.scalars(stmt).first()
        return _to_cluster(row) if row else None

    def clusters_in_bbox(self, min_lat: float, min_lon: float, max_lat: float, max_lon: float) -> List[IntersectionCluster]:
        stmt = select(IntersectionClusterDB).where(
            IntersectionClusterDB.center_lat.between(min_lat, max_lat),
            IntersectionClusterDB.center_lon.between(min_lon, max_lon),
        )
        return [_to_cluster(r) for r in self.session.scalars(stmt)]

    def lock_area(self, lat: float, lon: float, radius_m: float):
        """
        Serialises clustering around a point until the transaction ends, so two
        first reports for one intersection cannot both create a cluster.
        Uses PostgreSQL transaction-level advisory locks. On SQLite the database
        write lock serialises writers and conflicts surface as OperationalError.
        """
        if self.session.get_bind().dialect.name != "postgresql":
            return
        for row, col in grid_cells(lat, lon, radius_m):
            self.session.execute(
                text("SELECT pg_advisory_xact_lock(:row, :col)"),
                {"row": row, "col": col},
            )

    def nearest_cluster(self, lat: float, lon: float, max_distance_m: float) -> Optional[Tuple[IntersectionCluster, float]]:
        """
        Closest cluster center within max_distance_m, ranked by haversine
        after a bounding-box prefilter on the indexed center columns.
        """
        candidates = self.clusters_in_bbox(*_degree_box(lat, lon, max_distance_m))
        point = GeoPoint(lat, lon)
        best = None
        for cluster in candidates:
            d = distance(point, cluster.center)
            if d <= max_distance_m and (best is None or d < best[1]):
                best = (cluster, d)
        return best

    def add_cluster(self, cluster: IntersectionCluster) -> IntersectionCluster:
        row = IntersectionClusterDB(
            center_lat=cluster.center.lat,
            center_lon=cluster.center.lon,
            observation_count=cluster.observation_count,
            created_at=from_epoch(cluster.created_at),
            updated_at=from_epoch(cluster.updated_at),
        )
        self.session.add(row)
        self.session.flush()
        return _to_cluster(row)

    def update_cluster(self, cluster: IntersectionCluster) -> IntersectionCluster:
        row = self.session.get(IntersectionClusterDB, cluster.id)
        if row is None:
            raise ConcurrentUpdateError(f"Cluster {cluster.id} disappeared")
        row.center_lat = cluster.center.lat
        row.center_lon = cluster.center.lon
        row.observation_count = cluster.observation_count
        row.updated_at = from_epoch(cluster.updated_at)
        try:
            self.session.flush()
        except StaleDataError as e:
            raise ConcurrentUpdateError(f"Cluster {cluster.id} was modified concurrently") from e
        return _to_cluster(row)

    # --- Segments ---

    def open_segment(self, cluster_id: int) -> Optional[CycleSegment]:
        stmt = (
            select(CycleSegmentDB)
            .where(CycleSegmentDB.cluster_id == cluster_id, CycleSegmentDB.end_time.is_(None))
            .order_by(CycleSegmentDB.start_time.desc(), CycleSegmentDB.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        row = self.session.scalars(stmt).first()
        return _to_segment(row) if row else None

    def latest_segment(self, cluster_id: int) -> Optional[CycleSegment]:
        stmt = (
            select(CycleSegmentDB)
            .where(CycleSegmentDB.cluster_id == cluster_id)
            .order_by(CycleSegmentDB.start_time.desc(), CycleSegmentDB.id.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        row = self.session.scalars(stmt).first()
        return _to_segment(row) if row else None

    def add_segment(self, segment: CycleSegment) -> CycleSegment:
        row = CycleSegmentDB(
            cluster_id=segment.cluster_id,
            previous_phase=segment.previous_phase.value if segment.previous_phase else None,
            phase=segment.phase.value,
            start_time=from_epoch(segment.start_time),
            end_time=from_epoch(segment.end_time),
            duration_seconds=segment.duration_seconds,
            is_estimated=segment.is_estimated,
        )
        self.session.add(row)
        self.session.flush()
        return _to_segment(row)

    def close_segment(self, segment: CycleSegment) -> CycleSegment:
        """
        Conditional close: only succeeds while the row is still open.
        """
        result = self.session.execute(
            update(CycleSegmentDB)
            .where(CycleSegmentDB.id == segment.id, CycleSegmentDB.end_time.is_(None))
            .values(
                end_time=from_epoch(segment.end_time),
                duration_seconds=segment.duration_seconds,
                is_estimated=segment.is_estimated,
            )
        )
        if result.rowcount != 1:
            raise ConcurrentUpdateError(f"Segment {segment.id} was already closed")
        return segment

    def closed_segments(self, cluster_id: int) -> List[CycleSegment]:
        stmt = (
            select(CycleSegmentDB)
            .where(CycleSegmentDB.cluster_id == cluster_id, CycleSegmentDB.end_time.is_not(None))
            .order_by(CycleSegmentDB.start_time, CycleSegmentDB.id)
            .execution_options(populate_existing=True)
        )
        return [_to_segment(r) for r in self.session.scalars(stmt)]

    # --- Transactions ---

    def commit(self):
        try:
            self.session.commit()
        except StaleDataError as e:
            self.session.rollback()
            raise ConcurrentUpdateError(str(e)) from e

    def rollback(self):
        self.session.rollback()

    def close(self):
        self.session.close()
