"""
Forward-time projection of a signal's state.

Starting from the last reported (phase, start_time), the predictor walks the
fixed green -> yellow -> red cycle using each phase's mean duration until it
reaches the requested instant. The walk is capped at a fixed number of full
cycles; anything beyond that, or anything resting on untrustworthy statistics,
is reported as unknown rather than extrapolated.
"""
import math
from dataclasses import dataclass, field
from typing import Dict, Optional

from ...common.logging import setup_logger
from ..domain import ClusterStatistics, ConfidenceTier, Prediction, SignalPhase, PHASES

logger = setup_logger(__name__)

DEFAULT_DURATIONS = {
    SignalPhase.GREEN: 60.0,
    SignalPhase.YELLOW: 5.0,
    SignalPhase.RED: 45.0,
}

# Scores attached to each outcome
TIER_SCORES = {ConfidenceTier.HIGH: 0.9, ConfidenceTier.MEDIUM: 0.6, ConfidenceTier.LOW: 0.5}
DEFAULT_AVERAGE_PENALTY = 0.8
NO_LAST_STATE_SCORE = 0.2
PAST_ARRIVAL_SCORE = 0.3
DIVERGENCE_SCORE = 0.4

@dataclass
class PredictorSettings:
    max_cycles: int = 10
    past_tolerance_seconds: float = 1.0
    require_complete_averages: bool = True
    default_durations: Dict[SignalPhase, float] = field(default_factory=lambda: dict(DEFAULT_DURATIONS))

class SignalStatePredictor:
    def __init__(self, settings: Optional[PredictorSettings] = None):
        self.settings = settings or PredictorSettings()

    def effective_durations(self, stats: ClusterStatistics):
        """
        Per-phase means with defaults filled in. Returns (durations, used_default).
        """
        durations = {}
        used_default = False
        for phase in PHASES:
            value = stats.average_durations.get(phase)
            if value is None or not math.isfinite(value):
                value = self.settings.default_durations[phase]
                used_default = True
            durations[phase] = max(float(value), 0.0)
        return durations, used_default

    def predict(self, stats: ClusterStatistics, arrival_time: float) -> Prediction:
        base_score = TIER_SCORES[stats.confidence]

        if stats.confidence == ConfidenceTier.LOW:
            return Prediction.unknown("low_confidence", base_score)
        if self.settings.require_complete_averages and not stats.has_complete_averages:
            return Prediction.unknown("incomplete_averages", base_score)
        if stats.last_seen_phase is None or stats.last_seen_timestamp is None:
            return Prediction.unknown("no_last_state", NO_LAST_STATE_SCORE)

        start = stats.last_seen_timestamp
        if arrival_time < start - self.settings.past_tolerance_seconds:
            return Prediction.unknown("arrival_in_past", PAST_ARRIVAL_SCORE)
        arrival_time = max(arrival_time, start)

        durations, used_default = self.effective_durations(stats)
        cycle_length = sum(durations.values())
        if arrival_time - start > self.settings.max_cycles * cycle_length:
            logger.warning(
                f"Cluster {stats.cluster_id}: arrival {arrival_time - start:.0f}s ahead exceeds "
                f"{self.settings.max_cycles} cycles of {cycle_length:.1f}s"
            )
            return Prediction.unknown("cycle_cap_exceeded", DIVERGENCE_SCORE)

        phase = stats.last_seen_phase
        sim_time = start
        cycles = 0
        while sim_time + durations[phase] <= arrival_time:
            sim_time += durations[phase]
            if phase == SignalPhase.RED:
                cycles += 1
                if cycles > self.settings.max_cycles:
                    logger.warning(f"Cluster {stats.cluster_id}: simulation hit the cycle cap")
                    return Prediction.unknown("cycle_cap_exceeded", DIVERGENCE_SCORE)
            phase = phase.next

        remaining = sim_time + durations[phase] - arrival_time
        score = base_score * (DEFAULT_AVERAGE_PENALTY if used_default else 1.0)
        return Prediction(
            status=phase.value,
            wait_seconds=self.wait_until_green(phase, remaining, durations),
            time_remaining_seconds=remaining,
            used_default_average=used_default,
            effectively_unknown=False,
            confidence=score,
        )

    @staticmethod
    def wait_until_green(phase: SignalPhase, remaining: float, durations: Dict[SignalPhase, float]) -> float:
        if phase == SignalPhase.GREEN:
            return 0.0
        if phase == SignalPhase.YELLOW:
            return remaining + durations[SignalPhase.RED]
        return remaining
