"""
Application module initialization.
"""
from .clustering import IntersectionClusterer, weighted_center
from .segment_tracker import CycleSegmentTracker
from .estimator import DurationEstimator, ConfidencePolicy, average_durations, confidence_tier, build_statistics
from .predictor import SignalStatePredictor, PredictorSettings, DEFAULT_DURATIONS
from .ingestion import ReportIngestionService, IngestionResult
from .timing import LightTimingService, LightTiming

__all__ = [
    "IntersectionClusterer", "weighted_center",
    "CycleSegmentTracker",
    "DurationEstimator", "ConfidencePolicy", "average_durations", "confidence_tier", "build_statistics",
    "SignalStatePredictor", "PredictorSettings", "DEFAULT_DURATIONS",
    "ReportIngestionService", "IngestionResult",
    "LightTimingService", "LightTiming",
]
