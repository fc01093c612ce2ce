import pytest
from sqlalchemy.pool import StaticPool

from trafficlites.common.database import Base, SessionLocal, configure_engine
from trafficlites.common.database import models  # noqa: F401
from trafficlites.signals.domain import (
    ClusterStatistics, ConfidenceTier, GeoPoint, IntersectionCluster, SignalPhase,
)
from trafficlites.signals.infrastructure import SqlSignalRepository

T0 = 1_700_000_000.0

@pytest.fixture
def engine():
    engine = configure_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def session(engine):
    db = SessionLocal()
    yield db
    db.close()

@pytest.fixture
def repository(session):
    return SqlSignalRepository(session)

@pytest.fixture
def cluster(repository):
    c = repository.add_cluster(IntersectionCluster(
        id=None, center=GeoPoint(40.0, -74.0), observation_count=1, created_at=T0, updated_at=T0
    ))
    repository.commit()
    return c

def make_stats(last_phase=SignalPhase.RED, last_seen=T0, green=50.0, yellow=4.0, red=40.0,
               confidence=ConfidenceTier.HIGH, cluster_id=1, center=GeoPoint(40.0, -74.0)):
    averages = {SignalPhase.GREEN: green, SignalPhase.YELLOW: yellow, SignalPhase.RED: red}
    return ClusterStatistics(
        cluster_id=cluster_id,
        center=center,
        observation_count=10,
        average_durations=averages,
        sample_counts={p: (0 if v is None else 3) for p, v in averages.items()},
        confidence=confidence,
        has_complete_averages=all(v is not None for v in averages.values()),
        last_seen_phase=last_phase,
        last_seen_timestamp=last_seen,
    )
