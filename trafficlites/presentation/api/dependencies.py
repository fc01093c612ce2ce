"""
Shared FastAPI dependencies.
"""
import time
from typing import Callable, Optional

from fastapi import Depends
from omegaconf import DictConfig
from sqlalchemy.orm import Session

from ...common.config import get_config
from ...common.database import SessionLocal, get_db, get_engine
from ...routing.application import DepartureOptimizer
from ...routing.domain import DirectionsProvider
from ...routing.infrastructure import GoogleDirectionsClient
from ...signals.application import (
    ConfidencePolicy, PredictorSettings, ReportIngestionService, SignalStatePredictor,
)
from ...signals.domain import SignalPhase
from ...signals.infrastructure import SqlSignalRepository

def get_settings() -> DictConfig:
    return get_config()

def get_clock() -> Callable[[], float]:
    return time.time

def get_repository(db: Session = Depends(get_db)) -> SqlSignalRepository:
    return SqlSignalRepository(db)

def build_policy(cfg: DictConfig) -> ConfidencePolicy:
    c = cfg.confidence
    return ConfidencePolicy(
        high_min_observations=c.high_min_observations,
        high_max_age_seconds=c.high_max_age_seconds,
        medium_min_observations=c.medium_min_observations,
        medium_max_age_seconds=c.medium_max_age_seconds,
        include_estimated_segments=c.include_estimated_segments,
    )

def build_predictor(cfg: DictConfig) -> SignalStatePredictor:
    p = cfg.prediction
    return SignalStatePredictor(PredictorSettings(
        max_cycles=p.max_cycles,
        past_tolerance_seconds=p.past_tolerance_seconds,
        require_complete_averages=p.require_complete_averages,
        default_durations={SignalPhase(k): float(v) for k, v in p.default_durations.items()},
    ))

def get_policy(cfg: DictConfig = Depends(get_settings)) -> ConfidencePolicy:
    return build_policy(cfg)

def get_predictor(cfg: DictConfig = Depends(get_settings)) -> SignalStatePredictor:
    return build_predictor(cfg)

def get_optimizer(cfg: DictConfig = Depends(get_settings),
                  predictor: SignalStatePredictor = Depends(get_predictor)) -> DepartureOptimizer:
    return DepartureOptimizer(
        predictor,
        offsets=list(cfg.routing.candidate_offsets),
        unknown_ratio_caveat=cfg.routing.unknown_ratio_caveat,
    )

def get_ingestion_service(cfg: DictConfig = Depends(get_settings)) -> ReportIngestionService:
    get_engine()
    return ReportIngestionService(
        repository_factory=lambda: SqlSignalRepository(SessionLocal()),
        radius_meters=cfg.clustering.radius_meters,
        max_phase_seconds=cfg.tracker.max_phase_seconds,
        max_retries=cfg.ingestion.max_retries,
        retry_backoff_seconds=cfg.ingestion.retry_backoff_seconds,
        out_of_order_tolerance_seconds=cfg.tracker.out_of_order_tolerance_seconds,
    )

# Singleton
_directions: Optional[DirectionsProvider] = None

def get_directions_provider(cfg: DictConfig = Depends(get_settings)) -> DirectionsProvider:
    global _directions
    if _directions is None:
        d = cfg.directions
        _directions = GoogleDirectionsClient(
            api_key=d.api_key,
            base_url=d.base_url,
            timeout_seconds=d.timeout_seconds,
            mode=d.mode,
        )
    return _directions
