"""
Domain module initialization.
"""
from .entities import (
    RouteStep,
    Route,
    MappedLight,
    TravelSegment,
    SimulationResult,
    DepartureAdvice,
)
from .protocols import DirectionsProvider
