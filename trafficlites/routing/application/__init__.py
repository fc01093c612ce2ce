"""
Application module initialization.
"""
from .light_mapper import concatenate_steps, map_lights, split_step, segment_route
from .optimizer import DepartureOptimizer, DEFAULT_OFFSETS
from .advice import RouteAdviceService, RouteAdvice

__all__ = [
    "concatenate_steps", "map_lights", "split_step", "segment_route",
    "DepartureOptimizer", "DEFAULT_OFFSETS",
    "RouteAdviceService", "RouteAdvice",
]
