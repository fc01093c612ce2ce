"""
Departure-time search over a segmented route.
"""
from typing import List, Mapping, Sequence

from ...common.logging import setup_logger
from ...signals.application.predictor import SignalStatePredictor
from ...signals.domain import ClusterStatistics, ConfidenceTier
from ..domain import DepartureAdvice, SimulationResult, TravelSegment

logger = setup_logger(__name__)

DEFAULT_OFFSETS = (-60, -30, 30, 60, 90, 120, 150, 180)

# Share of degraded (low confidence or unknown) encounters allowed per level
HIGH_CONFIDENCE_MAX_RATIO = 0.25
MEDIUM_CONFIDENCE_MAX_RATIO = 0.6

class DepartureOptimizer:
    """
    Replays a route against predicted light states for a set of departure
    offsets. Statistics are fetched by the caller once and shared by every run.
    """
    def __init__(self, predictor: SignalStatePredictor,
                 offsets: Sequence[int] = DEFAULT_OFFSETS,
                 unknown_ratio_caveat: float = 0.3):
        self.predictor = predictor
        self.offsets = [int(o) for o in offsets]
        self.unknown_ratio_caveat = unknown_ratio_caveat

    def simulate(self, segments: Sequence[TravelSegment], departure_time: float,
                 light_stats: Mapping[int, ClusterStatistics], offset: int = 0) -> SimulationResult:
        result = SimulationResult(departure_offset_seconds=offset)
        elapsed = 0.0
        for segment in segments:
            elapsed += segment.duration_seconds
            if segment.ends_at_cluster_id is None:
                continue

            result.total_lights_simulated += 1
            stats = light_stats.get(segment.ends_at_cluster_id)
            if stats is None:
                result.effectively_unknown_light_count += 1
                continue

            prediction = self.predictor.predict(stats, departure_time + elapsed)
            if prediction.effectively_unknown:
                result.effectively_unknown_light_count += 1
                continue

            if prediction.used_default_average or stats.confidence != ConfidenceTier.HIGH:
                result.low_confidence_light_count += 1
            # Waiting here delays every later light
            result.total_wait_seconds += prediction.wait_seconds
            elapsed += prediction.wait_seconds
        return result

    def confidence_level(self, result: SimulationResult) -> str:
        total = result.total_lights_simulated
        if total == 0:
            return "n/a"
        unknown_ratio = result.effectively_unknown_light_count / total
        if unknown_ratio > self.unknown_ratio_caveat:
            return "low"
        degraded = (result.effectively_unknown_light_count + result.low_confidence_light_count) / total
        if degraded <= HIGH_CONFIDENCE_MAX_RATIO:
            return "high"
        if degraded <= MEDIUM_CONFIDENCE_MAX_RATIO:
            return "medium"
        return "low"

    @staticmethod
    def _rank(result: SimulationResult):
        offset = result.departure_offset_seconds
        # Fewest unpredicted lights, then lowest wait, then closest to now, then later
        return (
            result.effectively_unknown_light_count,
            round(result.total_wait_seconds, 6),
            abs(offset),
            0 if offset >= 0 else 1,
        )

    def advise(self, segments: Sequence[TravelSegment], light_stats: Mapping[int, ClusterStatistics],
               now: float) -> DepartureAdvice:
        lights = sum(1 for s in segments if s.ends_at_cluster_id is not None)
        baseline = self.simulate(segments, now, light_stats, 0)

        if lights == 0:
            return DepartureAdvice(
                advice="No known traffic lights on this route. Leave whenever you are ready.",
                optimal_departure_offset_seconds=0,
                baseline_wait_time_seconds=0.0,
                optimal_wait_time_seconds=0.0,
                wait_time_savings_seconds=0.0,
                simulation_confidence_level="n/a",
                lights_on_route=0,
                candidates=[baseline],
            )

        candidates: List[SimulationResult] = [baseline]
        for offset in self.offsets:
            if offset == 0:
                continue
            candidates.append(self.simulate(segments, now + offset, light_stats, offset))

        best = min(candidates, key=self._rank)
        # Unknown lights add no wait, so only runs with the same coverage compare
        savings = 0.0
        if best.effectively_unknown_light_count == baseline.effectively_unknown_light_count:
            savings = max(baseline.total_wait_seconds - best.total_wait_seconds, 0.0)
        level = self.confidence_level(best)

        logger.info(
            f"Advice over {lights} lights: baseline {baseline.total_wait_seconds:.0f}s, "
            f"best offset {best.departure_offset_seconds:+d}s ({best.total_wait_seconds:.0f}s), "
            f"confidence {level}"
        )
        return DepartureAdvice(
            advice=self._message(best.departure_offset_seconds, savings, level),
            optimal_departure_offset_seconds=best.departure_offset_seconds,
            baseline_wait_time_seconds=baseline.total_wait_seconds,
            optimal_wait_time_seconds=best.total_wait_seconds,
            wait_time_savings_seconds=savings,
            simulation_confidence_level=level,
            lights_on_route=lights,
            candidates=candidates,
        )

    def _message(self, offset: int, savings: float, level: str) -> str:
        if offset == 0:
            text = "Leaving now is best; no nearby departure time reduces the expected wait at red lights."
        elif offset > 0:
            text = f"Wait {offset} seconds before leaving to save about {savings:.0f} seconds at red lights."
        else:
            text = (f"Leaving {abs(offset)} seconds earlier would have saved about {savings:.0f} seconds "
                    f"at red lights; leave as soon as you can.")
        if level == "low":
            text += " Low confidence: timing data for lights on this route is sparse."
        return text
