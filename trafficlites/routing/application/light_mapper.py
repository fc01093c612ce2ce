"""
Associates known clusters with a route and splits each step at the lights on it.
"""
from typing import Iterable, List, Sequence, Tuple

from ...common.logging import setup_logger
from ...signals.domain import GeoPoint, IntersectionCluster
from ...signals.domain.geodesy import cumulative_distances, path_length, project_onto_path
from ..domain import MappedLight, Route, RouteStep, TravelSegment

logger = setup_logger(__name__)

# Steps shorter than this are treated as degenerate for apportionment
MIN_STEP_LENGTH_M = 1.0

def concatenate_steps(steps: Sequence[RouteStep]) -> Tuple[List[GeoPoint], List[Tuple[float, float]]]:
    """
    Full route polyline plus each step's [start, end] path-distance span on it.
    """
    points: List[GeoPoint] = []
    bounds = []
    for step in steps:
        first = len(points)
        points.extend(step.path)
        bounds.append((first, len(points) - 1))

    cum = cumulative_distances(points)
    spans = [(float(cum[a]), float(cum[b])) for a, b in bounds]
    return points, spans

def map_lights(route_points: Sequence[GeoPoint], clusters: Iterable[IntersectionCluster],
               tolerance_meters: float) -> List[MappedLight]:
    """
    Clusters whose center lies within tolerance of the route, ordered by
    distance travelled from the route start.
    """
    lights = []
    for cluster in clusters:
        proj = project_onto_path(cluster.center, route_points)
        if proj is None or proj.min_distance_to_path > tolerance_meters:
            continue
        lights.append(MappedLight(
            cluster_id=cluster.id,
            location=cluster.center,
            path_distance=proj.path_distance_to_closest,
            offset_from_path=proj.min_distance_to_path,
        ))
    lights.sort(key=lambda l: (l.path_distance, l.cluster_id))
    return lights

def split_step(step: RouteStep, lights: Sequence[MappedLight], step_index: int = 0) -> List[TravelSegment]:
    """
    One segment per light plus a trailing segment to the step end. Durations
    and distances are apportioned by path distance and always sum to the
    step totals; the trailing segment absorbs whatever is left.
    """
    if not lights:
        return [TravelSegment(step.start_point, step.end_point, step.duration_seconds,
                              step.distance_meters, None, step_index)]

    path = step.path
    step_length = path_length(path)
    degenerate = step_length < MIN_STEP_LENGTH_M

    segments = []
    start = step.start_point
    previous = 0.0
    used_duration = 0.0
    used_distance = 0.0
    for light in lights:
        if degenerate:
            share = 1.0 / len(lights)
        else:
            proj = project_onto_path(light.location, path)
            along = max(proj.path_distance_to_closest if proj else previous, previous)
            share = (along - previous) / step_length
            previous = along
        share = min(max(share, 0.0), 1.0)
        duration = min(step.duration_seconds * share, step.duration_seconds - used_duration)
        dist = min(step.distance_meters * share, step.distance_meters - used_distance)
        used_duration += duration
        used_distance += dist
        segments.append(TravelSegment(start, light.location, duration, dist, light.cluster_id, step_index))
        start = light.location

    segments.append(TravelSegment(
        start,
        step.end_point,
        step.duration_seconds - used_duration,
        step.distance_meters - used_distance,
        None,
        step_index,
    ))
    return segments

def segment_route(route: Route, clusters: Iterable[IntersectionCluster],
                  tolerance_meters: float = 100.0) -> Tuple[List[TravelSegment], List[MappedLight]]:
    """
    Orders every nearby light along the whole route, then walks the steps and
    hands each light to the step whose path span contains it.
    """
    if not route.steps:
        return [], []

    points, spans = concatenate_steps(route.steps)
    lights = map_lights(points, clusters, tolerance_meters)

    segments: List[TravelSegment] = []
    cursor = 0
    last = len(route.steps) - 1
    for index, (step, (_, span_end)) in enumerate(zip(route.steps, spans)):
        on_step = []
        while cursor < len(lights) and (index == last or lights[cursor].path_distance <= span_end):
            on_step.append(lights[cursor])
            cursor += 1
        segments.extend(split_step(step, on_step, index))

    logger.debug(f"Route with {len(route.steps)} steps mapped to {len(lights)} lights")
    return segments, lights
