"""
Mean phase durations and confidence tiers from the cycle segment log.
"""
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

import numpy as np

from ..domain import (
    ClusterStatistics, ConfidenceTier, CycleSegment, IntersectionCluster,
    SignalPhase, SignalRepository, PHASES,
)

@dataclass(frozen=True)
class ConfidencePolicy:
    high_min_observations: int = 7
    high_max_age_seconds: float = 600.0
    medium_min_observations: int = 3
    medium_max_age_seconds: float = 1800.0
    include_estimated_segments: bool = True

def average_durations(segments: Iterable[CycleSegment], include_estimated: bool = True) -> Tuple[Dict[SignalPhase, Optional[float]], Dict[SignalPhase, int]]:
    """
    Mean duration_seconds per phase over closed segments. Estimated segments
    count unless include_estimated is False. Phases without samples map to None.
    """
    grouped: Dict[SignalPhase, List[float]] = defaultdict(list)
    for seg in segments:
        if seg.is_open or seg.duration_seconds is None:
            continue
        if seg.is_estimated and not include_estimated:
            continue
        grouped[seg.phase].append(seg.duration_seconds)

    averages = {}
    counts = {}
    for phase in PHASES:
        values = grouped.get(phase, [])
        counts[phase] = len(values)
        averages[phase] = float(np.mean(values)) if values else None
    return averages, counts

def confidence_tier(observation_count: int, last_start: Optional[float], now: float,
                    policy: ConfidencePolicy = ConfidencePolicy()) -> ConfidenceTier:
    if last_start is None:
        return ConfidenceTier.LOW
    age = now - last_start
    if observation_count >= policy.high_min_observations and age < policy.high_max_age_seconds:
        return ConfidenceTier.HIGH
    if observation_count >= policy.medium_min_observations and age < policy.medium_max_age_seconds:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW

def estimated_only_phases(segments: Iterable[CycleSegment]) -> Set[SignalPhase]:
    """Phases whose closed samples are all flagged as estimated."""
    exact = set()
    estimated = set()
    for seg in segments:
        if seg.is_open or seg.duration_seconds is None:
            continue
        (estimated if seg.is_estimated else exact).add(seg.phase)
    return estimated - exact

def build_statistics(cluster: IntersectionCluster, closed: List[CycleSegment],
                     latest: Optional[CycleSegment], now: float,
                     policy: ConfidencePolicy = ConfidencePolicy()) -> ClusterStatistics:
    """Pure assembly of a cluster's statistics."""
    averages, counts = average_durations(closed, policy.include_estimated_segments)
    last_start = latest.start_time if latest else None
    tier = confidence_tier(cluster.observation_count, last_start, now, policy)
    # Means resting only on estimated gaps never rate as high
    if tier == ConfidenceTier.HIGH and policy.include_estimated_segments and estimated_only_phases(closed):
        tier = ConfidenceTier.MEDIUM
    return ClusterStatistics(
        cluster_id=cluster.id,
        center=cluster.center,
        observation_count=cluster.observation_count,
        average_durations=averages,
        sample_counts=counts,
        confidence=tier,
        has_complete_averages=all(averages[p] is not None for p in PHASES),
        last_seen_phase=latest.phase if latest else None,
        last_seen_timestamp=last_start,
    )

class DurationEstimator:
    """
    Loads the segment log for a cluster and derives its statistics.
    Nothing is cached; each call reads the current log.
    """
    def __init__(self, repository: SignalRepository, policy: ConfidencePolicy = ConfidencePolicy()):
        self.repository = repository
        self.policy = policy

    def statistics_for(self, cluster: IntersectionCluster, now: float) -> ClusterStatistics:
        closed = self.repository.closed_segments(cluster.id)
        latest = self.repository.latest_segment(cluster.id)
        return build_statistics(cluster, closed, latest, now, self.policy)

    def statistics_for_many(self, clusters: Iterable[IntersectionCluster], now: float) -> Dict[int, ClusterStatistics]:
        return {c.id: self.statistics_for(c, now) for c in clusters}
