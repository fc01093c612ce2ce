import pytest
from unittest.mock import MagicMock
from sqlalchemy import inspect
from conftest import T0
from trafficlites.common.database.models import CycleSegmentDB, IntersectionClusterDB, ObservationDB
from trafficlites.common.exceptions import ConcurrentUpdateError
from trafficlites.signals.domain import CycleSegment, GeoPoint, IntersectionCluster, Observation, ReportStatus, SignalPhase
from trafficlites.signals.domain.geodesy import distance
from trafficlites.signals.infrastructure import SqlSignalRepository
from trafficlites.signals.infrastructure.repositories import grid_cells

def add_cluster(repository, lat, lon, count=1):
    return repository.add_cluster(IntersectionCluster(
        id=None, center=GeoPoint(lat, lon), observation_count=count, created_at=T0, updated_at=T0
    ))

def test_observation_roundtrip_keeps_timestamp(repository, cluster):
    stored = repository.add_observation(Observation(40.0, -74.0, ReportStatus.YELLOW, T0 + 0.25))
    repository.assign_observation(stored.id, cluster.id)
    repository.commit()

    [loaded] = repository.list_observations()
    assert loaded.observed_at == pytest.approx(T0 + 0.25)
    assert loaded.status == ReportStatus.YELLOW
    assert loaded.cluster_id == cluster.id

def test_list_observations_newest_first(repository):
    for offset in (10, 30, 20):
        repository.add_observation(Observation(40.0, -74.0, ReportStatus.RED, T0 + offset))
    repository.commit()
    times = [o.observed_at for o in repository.list_observations(limit=2)]
    assert times == [pytest.approx(T0 + 30), pytest.approx(T0 + 20)]

def test_nearest_cluster_ranks_by_distance(repository):
    near = add_cluster(repository, 40.0003, -74.0)
    add_cluster(repository, 40.0006, -74.0)
    repository.commit()

    match = repository.nearest_cluster(40.0, -74.0, 100)
    assert match is not None
    cluster, dist = match
    assert cluster.id == near.id
    assert dist == pytest.approx(33.4, abs=0.5)

def test_nearest_cluster_respects_radius(repository):
    add_cluster(repository, 40.001, -74.0)
    repository.commit()
    assert repository.nearest_cluster(40.0, -74.0, 100) is None

def test_update_cluster_persists(repository, cluster):
    locked = repository.get_cluster(cluster.id, for_update=True)
    locked.observation_count = 5
    locked.center = GeoPoint(40.0001, -74.0001)
    repository.update_cluster(locked)
    repository.commit()

    reloaded = repository.get_cluster(cluster.id)
    assert reloaded.observation_count == 5
    assert reloaded.center == GeoPoint(40.0001, -74.0001)

def test_update_of_missing_cluster_is_concurrent_error(repository):
    ghost = IntersectionCluster(id=999, center=GeoPoint(0, 0), observation_count=1, created_at=T0, updated_at=T0)
    with pytest.raises(ConcurrentUpdateError):
        repository.update_cluster(ghost)

def test_segment_lifecycle(repository, cluster):
    opened = repository.add_segment(CycleSegment(cluster_id=cluster.id, phase=SignalPhase.RED, start_time=T0))
    assert repository.open_segment(cluster.id).id == opened.id
    assert repository.closed_segments(cluster.id) == []

    opened.end_time = T0 + 40
    opened.duration_seconds = 40.0
    repository.close_segment(opened)
    repository.commit()

    assert repository.open_segment(cluster.id) is None
    [closed] = repository.closed_segments(cluster.id)
    assert closed.duration_seconds == pytest.approx(40)
    assert closed.end_time == pytest.approx(T0 + 40)
    assert repository.latest_segment(cluster.id).id == opened.id

def test_closing_a_closed_segment_fails(repository, cluster):
    opened = repository.add_segment(CycleSegment(cluster_id=cluster.id, phase=SignalPhase.RED, start_time=T0))
    opened.end_time = T0 + 40
    opened.duration_seconds = 40.0
    repository.close_segment(opened)
    with pytest.raises(ConcurrentUpdateError):
        repository.close_segment(opened)

def test_clusters_in_bbox(repository):
    inside = add_cluster(repository, 40.0, -74.0)
    add_cluster(repository, 41.0, -74.0)
    repository.commit()
    found = repository.clusters_in_bbox(39.9, -74.1, 40.1, -73.9)
    assert [c.id for c in found] == [inside.id]

@pytest.mark.parametrize("step", range(12))
def test_points_within_radius_share_a_lock_cell(step):
    lat = 40.0 + step * 0.000137
    lon = -74.0 + step * 0.000211
    for dlat, dlon in [(0.0004, 0.0), (-0.0004, 0.0), (0.0, 0.0005), (0.00025, -0.0003)]:
        other = (lat + dlat, lon + dlon)
        assert distance(GeoPoint(lat, lon), GeoPoint(*other)) <= 50
        assert set(grid_cells(lat, lon, 50)) & set(grid_cells(*other, 50))

def test_distant_points_use_separate_lock_cells():
    assert not set(grid_cells(40.0, -74.0, 50)) & set(grid_cells(40.01, -74.0, 50))

def test_lock_area_takes_advisory_locks_on_postgres():
    session = MagicMock()
    session.get_bind.return_value.dialect.name = "postgresql"

    SqlSignalRepository(session).lock_area(40.0, -74.0, 50)

    calls = session.execute.call_args_list
    assert calls
    assert all("pg_advisory_xact_lock" in str(c.args[0]) for c in calls)
    assert [(c.args[1]["row"], c.args[1]["col"]) for c in calls] == grid_cells(40.0, -74.0, 50)

def test_lock_area_is_a_no_op_on_sqlite(repository):
    repository.lock_area(40.0, -74.0, 50)
    assert repository.nearest_cluster(40.0, -74.0, 50) is None

def test_models_avoid_deprecated_loader_strategies():
    for model in (ObservationDB, IntersectionClusterDB, CycleSegmentDB):
        assert all(rel.lazy != "noload" for rel in inspect(model).relationships)
