"""
Domain entities for the Signals module.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

class SignalPhase(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"

    @property
    def next(self) -> "SignalPhase":
        return _CYCLE[self]

_CYCLE = {
    SignalPhase.GREEN: SignalPhase.YELLOW,
    SignalPhase.YELLOW: SignalPhase.RED,
    SignalPhase.RED: SignalPhase.GREEN,
}

PHASES = (SignalPhase.GREEN, SignalPhase.YELLOW, SignalPhase.RED)

class ReportStatus(str, Enum):
    """
    Status a user may report. Only the three signal phases feed the cycle log.
    """
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    MALFUNCTIONING = "malfunctioning"

    def as_phase(self) -> Optional[SignalPhase]:
        if self is ReportStatus.MALFUNCTIONING:
            return None
        return SignalPhase(self.value)

class ConfidenceTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float

@dataclass(frozen=True)
class Observation:
    """
    A single crowd-sourced report of a signal's colour. Timestamps are Unix seconds.
    """
    latitude: float
    longitude: float
    status: ReportStatus
    observed_at: float
    id: Optional[int] = None
    cluster_id: Optional[int] = None

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)

    @property
    def phase(self) -> Optional[SignalPhase]:
        return self.status.as_phase()

@dataclass
class IntersectionCluster:
    """
    One physical intersection, located by the running mean of its reports.
    """
    id: Optional[int]
    center: GeoPoint
    observation_count: int
    created_at: float
    updated_at: float

@dataclass
class CycleSegment:
    """
    Interval during which a cluster was believed to show a single phase.
    Open while end_time is None.
    """
    cluster_id: int
    phase: SignalPhase
    start_time: float
    previous_phase: Optional[SignalPhase] = None
    end_time: Optional[float] = None
    duration_seconds: Optional[float] = None
    is_estimated: bool = False
    id: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.end_time is None

@dataclass
class ClusterStatistics:
    """
    Everything the predictor needs to know about one cluster.
    """
    cluster_id: int
    center: GeoPoint
    observation_count: int
    average_durations: Dict[SignalPhase, Optional[float]] = field(default_factory=dict)
    sample_counts: Dict[SignalPhase, int] = field(default_factory=dict)
    confidence: ConfidenceTier = ConfidenceTier.LOW
    has_complete_averages: bool = False
    last_seen_phase: Optional[SignalPhase] = None
    last_seen_timestamp: Optional[float] = None

@dataclass
class Prediction:
    """
    Forecast of a signal's state at some instant.

    wait_seconds is the cycle-forward wait until green; time_remaining_seconds
    is the time left in the predicted phase.
    """
    status: str  # a SignalPhase value or "unknown"
    wait_seconds: float = 0.0
    time_remaining_seconds: float = 0.0
    used_default_average: bool = False
    effectively_unknown: bool = False
    confidence: float = 0.0
    reason: Optional[str] = None

    @classmethod
    def unknown(cls, reason: str, confidence: float) -> "Prediction":
        return cls(status="unknown", effectively_unknown=True, confidence=confidence, reason=reason)
