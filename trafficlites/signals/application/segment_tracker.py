"""
Per-cluster log of phase intervals.
"""
from typing import Optional, Tuple

from ...common.logging import setup_logger
from ..domain import CycleSegment, SignalPhase, SignalRepository

logger = setup_logger(__name__)

class CycleSegmentTracker:
    """
    State machine per cluster: no segment -> open(P); open(P) + P is a no-op;
    open(P) + Q closes P at the observation time and opens Q. Reports older
    than the open segment by more than out_of_order_tolerance_seconds are
    ignored; fresher state wins.
    """
    def __init__(self, repository: SignalRepository, max_phase_seconds: float = 300.0,
                 out_of_order_tolerance_seconds: float = 5.0):
        self.repository = repository
        self.max_phase_seconds = max_phase_seconds
        self.out_of_order_tolerance_seconds = out_of_order_tolerance_seconds

    def record(self, cluster_id: int, phase: SignalPhase, observed_at: float) -> Tuple[Optional[CycleSegment], Optional[CycleSegment]]:
        """
        Applies one observation. Returns (closed_segment, opened_segment);
        both are None for a same-phase confirmation or a stale report.
        """
        current = self.repository.open_segment(cluster_id)

        if current is None:
            opened = self.repository.add_segment(CycleSegment(
                cluster_id=cluster_id,
                phase=phase,
                start_time=observed_at,
                previous_phase=None,
            ))
            logger.debug(f"Cluster {cluster_id}: first segment opened in {phase.value}")
            return None, opened

        if current.phase == phase:
            return None, None
        if observed_at < current.start_time - self.out_of_order_tolerance_seconds:
            logger.warning(
                f"Cluster {cluster_id}: ignoring {phase.value} report "
                f"{current.start_time - observed_at:.1f}s older than the open {current.phase.value} segment"
            )
            return None, None

        closed = self._close(current, observed_at)
        opened = self.repository.add_segment(CycleSegment(
            cluster_id=cluster_id,
            phase=phase,
            start_time=closed.end_time,
            previous_phase=current.phase,
        ))
        return closed, opened

    def _close(self, segment: CycleSegment, observed_at: float) -> CycleSegment:
        raw = observed_at - segment.start_time
        estimated = raw <= 0 or raw > self.max_phase_seconds
        # Out-of-order reports clamp to zero length instead of going backwards
        end_time = max(observed_at, segment.start_time)

        segment.end_time = end_time
        segment.duration_seconds = end_time - segment.start_time
        segment.is_estimated = estimated
        self.repository.close_segment(segment)

        if estimated:
            logger.warning(
                f"Cluster {segment.cluster_id}: {segment.phase.value} segment closed with "
                f"gap {raw:.1f}s, flagged as estimated"
            )
        else:
            logger.info(
                f"Cluster {segment.cluster_id}: {segment.phase.value} lasted {segment.duration_seconds:.1f}s"
            )
        return segment
