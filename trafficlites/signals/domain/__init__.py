"""
Domain module initialization.
"""
from .entities import (
    SignalPhase,
    ReportStatus,
    ConfidenceTier,
    GeoPoint,
    Observation,
    IntersectionCluster,
    CycleSegment,
    ClusterStatistics,
    Prediction,
    PHASES,
)
from .geodesy import distance, path_length, project_onto_path, PathProjection
from .repositories import SignalRepository
