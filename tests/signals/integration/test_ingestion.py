import pytest
from unittest.mock import MagicMock, patch
from conftest import T0
from trafficlites.common.database import SessionLocal
from trafficlites.common.exceptions import ConcurrentUpdateError, ValidationError
from trafficlites.signals.application import (
    DurationEstimator, ReportIngestionService, SignalStatePredictor,
)
from trafficlites.signals.domain import ConfidenceTier, Observation, ReportStatus, SignalPhase
from trafficlites.signals.infrastructure import SqlSignalRepository

SEQUENCE = [
    (0, ReportStatus.GREEN),
    (50, ReportStatus.YELLOW),
    (54, ReportStatus.RED),
    (94, ReportStatus.GREEN),
    (144, ReportStatus.YELLOW),
    (148, ReportStatus.RED),
    (188, ReportStatus.GREEN),
]

def new_repository():
    return SqlSignalRepository(SessionLocal())

@pytest.fixture
def service(engine):
    return ReportIngestionService(new_repository, retry_backoff_seconds=0)

def report(offset, status, lat=40.0, lon=-74.0):
    return Observation(latitude=lat, longitude=lon, status=status, observed_at=T0 + offset)

def ingest(service, observation):
    stored = service.store(observation)
    return service.process(stored)

def test_store_assigns_id(service):
    stored = service.store(report(0, ReportStatus.RED))
    assert stored.id is not None
    assert stored.cluster_id is None

def test_sequence_builds_statistics(service):
    results = [ingest(service, report(offset, status)) for offset, status in SEQUENCE]

    assert results[0].cluster_created
    assert all(not r.cluster_created for r in results[1:])
    cluster = results[-1].cluster
    assert cluster.observation_count == 7

    repo = new_repository()
    try:
        stats = DurationEstimator(repo).statistics_for(cluster, T0 + 200)
        observations = repo.list_observations()
    finally:
        repo.close()

    assert stats.average_durations[SignalPhase.GREEN] == pytest.approx(50)
    assert stats.average_durations[SignalPhase.YELLOW] == pytest.approx(4)
    assert stats.average_durations[SignalPhase.RED] == pytest.approx(40)
    assert stats.confidence == ConfidenceTier.HIGH
    assert stats.last_seen_phase == SignalPhase.GREEN
    assert stats.last_seen_timestamp == pytest.approx(T0 + 188)
    assert all(o.cluster_id == cluster.id for o in observations)

    prediction = SignalStatePredictor().predict(stats, T0 + 200)
    assert prediction.status == "green"
    assert prediction.time_remaining_seconds == pytest.approx(38)

def test_repeated_status_does_not_open_segments(service):
    ingest(service, report(0, ReportStatus.RED))
    result = ingest(service, report(10, ReportStatus.RED))
    assert result.closed_segment is None
    assert result.opened_segment is None
    assert result.cluster.observation_count == 2

def test_distant_reports_form_separate_clusters(service):
    a = ingest(service, report(0, ReportStatus.RED))
    b = ingest(service, report(0, ReportStatus.RED, lat=40.01))
    assert a.cluster.id != b.cluster.id
    assert b.cluster_created

def test_malfunction_report_is_clustered_but_not_tracked(service):
    ingest(service, report(0, ReportStatus.RED))
    result = ingest(service, report(20, ReportStatus.MALFUNCTIONING))

    assert result.cluster.observation_count == 2
    assert result.closed_segment is None
    assert result.opened_segment is None
    repo = new_repository()
    try:
        latest = repo.latest_segment(result.cluster.id)
    finally:
        repo.close()
    assert latest.phase == SignalPhase.RED
    assert latest.is_open

def test_concurrent_update_is_retried(service):
    stored = service.store(report(0, ReportStatus.RED))
    outcome = MagicMock()
    with patch.object(service, "_apply", side_effect=[ConcurrentUpdateError("busy"), outcome]) as apply:
        assert service.process(stored) is outcome
    assert apply.call_count == 2

def test_retries_are_bounded(engine):
    service = ReportIngestionService(new_repository, max_retries=2, retry_backoff_seconds=0)
    stored = service.store(report(0, ReportStatus.RED))
    with patch.object(service, "_apply", side_effect=ConcurrentUpdateError("busy")) as apply:
        with pytest.raises(ConcurrentUpdateError):
            service.process(stored)
    assert apply.call_count == 3

def test_other_errors_are_not_retried(service):
    stored = service.store(report(0, ReportStatus.RED))
    with patch.object(service, "_apply", side_effect=RuntimeError("boom")) as apply:
        with pytest.raises(RuntimeError):
            service.process(stored)
    assert apply.call_count == 1

def test_process_safely_swallows_failures(service):
    stored = service.store(report(0, ReportStatus.RED))
    with patch.object(service, "_apply", side_effect=RuntimeError("boom")):
        assert service.process_safely(stored) is None

@pytest.mark.parametrize("observation", [
    Observation(latitude=95.0, longitude=0.0, status=ReportStatus.RED, observed_at=T0),
    Observation(latitude=float("nan"), longitude=0.0, status=ReportStatus.RED, observed_at=T0),
    Observation(latitude=40.0, longitude=-74.0, status="red", observed_at=T0),
])
def test_invalid_observations_are_not_stored(service, observation):
    with pytest.raises(ValidationError):
        service.store(observation)
    repo = new_repository()
    try:
        assert repo.list_observations() == []
    finally:
        repo.close()

def test_reports_minutes_apart_still_produce_predictions(service):
    for offset, status in [(0, ReportStatus.GREEN), (400, ReportStatus.YELLOW),
                           (800, ReportStatus.RED), (1200, ReportStatus.GREEN)]:
        result = ingest(service, report(offset, status))

    repo = new_repository()
    try:
        stats = DurationEstimator(repo).statistics_for(result.cluster, T0 + 1210)
    finally:
        repo.close()

    assert stats.average_durations == {
        SignalPhase.GREEN: 400.0, SignalPhase.YELLOW: 400.0, SignalPhase.RED: 400.0,
    }
    assert stats.has_complete_averages
    assert stats.confidence == ConfidenceTier.MEDIUM
    prediction = SignalStatePredictor().predict(stats, T0 + 1210)
    assert prediction.status == "green"
    assert prediction.time_remaining_seconds == pytest.approx(390)
