"""
Departure-time advice for an origin/destination pair.
"""
from fastapi import APIRouter, Depends, HTTPException
from omegaconf import DictConfig

from ....common.exceptions import DirectionsUnavailableError, NoRouteFoundError
from ....common.schemas import (
    CandidateResult, RouteAdviceRequest, RouteAdviceResponse, RouteLight, RouteSummary,
)
from ....routing.application import DepartureOptimizer, RouteAdviceService
from ....routing.domain import DirectionsProvider
from ....signals.application import ConfidencePolicy, DurationEstimator
from ....signals.domain import GeoPoint
from ....signals.infrastructure import SqlSignalRepository
from ..dependencies import (
    get_clock, get_directions_provider, get_optimizer, get_policy, get_repository, get_settings,
)

router = APIRouter()

@router.post("/route_departure_advice", response_model=RouteAdviceResponse)
def route_departure_advice(request: RouteAdviceRequest,
                           directions: DirectionsProvider = Depends(get_directions_provider),
                           repository: SqlSignalRepository = Depends(get_repository),
                           optimizer: DepartureOptimizer = Depends(get_optimizer),
                           policy: ConfidencePolicy = Depends(get_policy),
                           cfg: DictConfig = Depends(get_settings),
                           clock=Depends(get_clock)):
    service = RouteAdviceService(
        directions,
        repository,
        DurationEstimator(repository, policy),
        optimizer,
        tolerance_meters=cfg.routing.light_match_tolerance_meters,
    )
    try:
        result = service.advise(
            GeoPoint(request.origin.lat, request.origin.lon),
            GeoPoint(request.destination.lat, request.destination.lon),
            clock(),
        )
    except NoRouteFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DirectionsUnavailableError as e:
        raise HTTPException(status_code=502, detail=str(e))

    advice = result.advice
    route = result.route
    return RouteAdviceResponse(
        advice=advice.advice,
        optimal_departure_offset_seconds=advice.optimal_departure_offset_seconds,
        baseline_wait_time_seconds=round(advice.baseline_wait_time_seconds, 1),
        optimal_wait_time_seconds=round(advice.optimal_wait_time_seconds, 1),
        wait_time_savings_seconds=round(advice.wait_time_savings_seconds, 1),
        simulation_confidence_level=advice.simulation_confidence_level,
        lights_on_route=advice.lights_on_route,
        candidates=[
            CandidateResult(
                departure_offset_seconds=c.departure_offset_seconds,
                total_wait_seconds=round(c.total_wait_seconds, 1),
                total_lights_simulated=c.total_lights_simulated,
                low_confidence_light_count=c.low_confidence_light_count,
                effectively_unknown_light_count=c.effectively_unknown_light_count,
            )
            for c in advice.candidates
        ],
        route=RouteSummary(
            summary=route.summary,
            distance_meters=route.distance_meters,
            duration_seconds=route.duration_seconds,
            step_count=len(route.steps),
            overview_polyline=route.overview_polyline,
            lights=[
                RouteLight(
                    cluster_id=l.cluster_id,
                    lat=l.location.lat,
                    lon=l.location.lon,
                    path_distance_meters=round(l.path_distance, 1),
                )
                for l in result.lights
            ],
        ),
    )
