from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Index
from .database import Base
from ..utils import utc_now

# --- Raw reports ---

class ObservationDB(Base):
    __tablename__ = "observations"

    id = Column(Integer, primary_key=True, index=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    status = Column(String(16), nullable=False)
    observed_at = Column(DateTime, nullable=False, default=utc_now, index=True)
    cluster_id = Column(Integer, ForeignKey("intersection_clusters.id"), nullable=True)

# --- Intersections ---

class IntersectionClusterDB(Base):
    __tablename__ = "intersection_clusters"

    id = Column(Integer, primary_key=True, index=True)
    center_lat = Column(Float, nullable=False)
    center_lon = Column(Float, nullable=False)
    observation_count = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=utc_now)
    updated_at = Column(DateTime, nullable=False, default=utc_now)
    # Optimistic concurrency counter, bumped by SQLAlchemy on every UPDATE
    version_id = Column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_clusters_center", "center_lat", "center_lon"),
    )
    __mapper_args__ = {"version_id_col": version_id}

class CycleSegmentDB(Base):
    __tablename__ = "cycle_segments"

    id = Column(Integer, primary_key=True, index=True)
    cluster_id = Column(Integer, ForeignKey("intersection_clusters.id"), nullable=False)
    previous_phase = Column(String(16), nullable=True)
    phase = Column(String(16), nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)  # NULL while the segment is open
    duration_seconds = Column(Float, nullable=True)
    is_estimated = Column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_segments_cluster_start", "cluster_id", "start_time"),
        Index("ix_segments_cluster_open", "cluster_id", "end_time"),
    )
