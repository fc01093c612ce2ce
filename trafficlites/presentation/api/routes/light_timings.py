"""
Timing and prediction for the light nearest to a point.
"""
from fastapi import APIRouter, Depends, HTTPException, Path
from omegaconf import DictConfig

from ....common.exceptions import ClusterNotFoundError
from ....common.schemas import AverageDurations, Coordinates, LightPrediction, LightTimingResponse
from ....common.utils import from_epoch
from ....signals.application import ConfidencePolicy, LightTimingService, SignalStatePredictor
from ....signals.domain import SignalPhase
from ....signals.infrastructure import SqlSignalRepository
from ..dependencies import get_clock, get_policy, get_predictor, get_repository, get_settings

router = APIRouter()

@router.get("/light_timings/{lat}/{lon}", response_model=LightTimingResponse)
def light_timings(lat: float = Path(..., ge=-90, le=90),
                  lon: float = Path(..., ge=-180, le=180),
                  repository: SqlSignalRepository = Depends(get_repository),
                  predictor: SignalStatePredictor = Depends(get_predictor),
                  policy: ConfidencePolicy = Depends(get_policy),
                  cfg: DictConfig = Depends(get_settings),
                  clock=Depends(get_clock)):
    service = LightTimingService(repository, predictor, policy, cfg.clustering.lookup_radius_meters)
    try:
        timing = service.nearest(lat, lon, clock())
    except ClusterNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    stats = timing.statistics
    prediction = timing.prediction
    return LightTimingResponse(
        cluster_id=stats.cluster_id,
        cluster_center=Coordinates(lat=stats.center.lat, lon=stats.center.lon),
        distance_meters=round(timing.distance_meters, 1),
        observation_count=stats.observation_count,
        confidence_level=stats.confidence.value,
        has_complete_averages=stats.has_complete_averages,
        average_durations=AverageDurations(
            green=stats.average_durations.get(SignalPhase.GREEN),
            yellow=stats.average_durations.get(SignalPhase.YELLOW),
            red=stats.average_durations.get(SignalPhase.RED),
        ),
        prediction=LightPrediction(
            predicted_current_status=prediction.status,
            predicted_time_remaining_seconds=round(prediction.time_remaining_seconds),
            predicted_wait_seconds=round(prediction.wait_seconds),
            prediction_confidence=round(prediction.confidence, 2),
            used_default_average=prediction.used_default_average,
            last_seen_status=stats.last_seen_phase.value if stats.last_seen_phase else None,
            last_seen_timestamp=from_epoch(stats.last_seen_timestamp),
        ),
    )
