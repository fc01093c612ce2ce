"""
Report ingestion: store the observation, then cluster and track it.
"""
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.exc import OperationalError

from ...common.exceptions import ConcurrentUpdateError, ValidationError
from ...common.logging import setup_logger, log_execution_time
from ..domain import CycleSegment, IntersectionCluster, Observation, ReportStatus, SignalRepository
from .clustering import IntersectionClusterer
from .segment_tracker import CycleSegmentTracker

logger = setup_logger(__name__)

@dataclass
class IngestionResult:
    observation: Observation
    cluster: IntersectionCluster
    cluster_created: bool
    closed_segment: Optional[CycleSegment] = None
    opened_segment: Optional[CycleSegment] = None

def validate_observation(observation: Observation):
    """Rejects reports that must never reach clustering."""
    lat, lon = observation.latitude, observation.longitude
    if lat is None or lon is None or not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValidationError(f"Non-numeric coordinates: ({lat}, {lon})")
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        raise ValidationError(f"Coordinates out of range: ({lat}, {lon})")
    if not isinstance(observation.status, ReportStatus):
        raise ValidationError(f"Unknown status: {observation.status!r}")
    if observation.observed_at is None or not math.isfinite(observation.observed_at):
        raise ValidationError("Observation has no timestamp")

class ReportIngestionService:
    """
    Runs clustering and segment tracking for one stored observation inside a
    single transaction, retrying when another writer touched the same cluster.
    """
    def __init__(self, repository_factory: Callable[[], SignalRepository],
                 radius_meters: float = 50.0, max_phase_seconds: float = 300.0,
                 max_retries: int = 3, retry_backoff_seconds: float = 0.05,
                 out_of_order_tolerance_seconds: float = 5.0):
        self.repository_factory = repository_factory
        self.radius_meters = radius_meters
        self.max_phase_seconds = max_phase_seconds
        self.out_of_order_tolerance_seconds = out_of_order_tolerance_seconds
        self.max_retries = max_retries
        self.retry_backoff_seconds = retry_backoff_seconds

    def store(self, observation: Observation) -> Observation:
        validate_observation(observation)
        repo = self.repository_factory()
        try:
            stored = repo.add_observation(observation)
            repo.commit()
            return stored
        except Exception:
            repo.rollback()
            raise
        finally:
            repo.close()

    @log_execution_time(logger)
    def process(self, observation: Observation) -> IngestionResult:
        attempt = 0
        while True:
            attempt += 1
            repo = self.repository_factory()
            try:
                result = self._apply(repo, observation)
                repo.commit()
                return result
            except (ConcurrentUpdateError, OperationalError) as e:
                repo.rollback()
                if attempt > self.max_retries:
                    raise
                logger.warning(
                    f"Concurrent update while ingesting observation {observation.id} "
                    f"(attempt {attempt}/{self.max_retries}): {e}"
                )
                time.sleep(self.retry_backoff_seconds * attempt)
            except Exception:
                repo.rollback()
                raise
            finally:
                repo.close()

    def process_safely(self, observation: Observation) -> Optional[IngestionResult]:
        """
        Best-effort variant for the report endpoint's background task:
        failures are logged, never raised to the client.
        """
        try:
            return self.process(observation)
        except Exception as e:
            logger.error(f"Clustering/tracking failed for observation {observation.id}: {e}")
            return None

    def _apply(self, repo: SignalRepository, observation: Observation) -> IngestionResult:
        clusterer = IntersectionClusterer(repo, self.radius_meters)
        cluster, created = clusterer.assign(observation)
        if observation.id is not None:
            repo.assign_observation(observation.id, cluster.id)

        phase = observation.phase
        if phase is None:
            logger.info(f"Cluster {cluster.id}: malfunction report, cycle log untouched")
            return IngestionResult(observation, cluster, created)

        tracker = CycleSegmentTracker(repo, self.max_phase_seconds, self.out_of_order_tolerance_seconds)
        closed, opened = tracker.record(cluster.id, phase, observation.observed_at)
        return IngestionResult(observation, cluster, created, closed, opened)
