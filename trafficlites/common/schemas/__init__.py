from .report import ReportCreate, ReportOut
from .timing import Coordinates, AverageDurations, LightPrediction, LightTimingResponse
from .route import RouteAdviceRequest, RouteLight, RouteSummary, CandidateResult, RouteAdviceResponse

__all__ = [
    "ReportCreate",
    "ReportOut",
    "Coordinates",
    "AverageDurations",
    "LightPrediction",
    "LightTimingResponse",
    "RouteAdviceRequest",
    "RouteLight",
    "RouteSummary",
    "CandidateResult",
    "RouteAdviceResponse",
]
