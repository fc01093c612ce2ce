import math
import pytest
from trafficlites.routing.application import map_lights, segment_route, split_step, concatenate_steps
from trafficlites.routing.domain import MappedLight, Route, RouteStep
from trafficlites.signals.domain import GeoPoint, IntersectionCluster

ORIGIN = GeoPoint(40.0, -74.0)

def east(meters: float, north: float = 0.0) -> GeoPoint:
    dlat = north / 111_195.0
    dlon = meters / (111_195.0 * math.cos(math.radians(ORIGIN.lat)))
    return GeoPoint(ORIGIN.lat + dlat, ORIGIN.lon + dlon)

def step(start_m, end_m, duration, distance=None, vertices=()):
    marks = [start_m, *vertices, end_m]
    return RouteStep(
        start_point=east(start_m),
        end_point=east(end_m),
        points=[east(m) for m in marks],
        duration_seconds=duration,
        distance_meters=distance if distance is not None else end_m - start_m,
    )

def light(cid, meters, north=0.0):
    return IntersectionCluster(id=cid, center=east(meters, north), observation_count=5,
                               created_at=0.0, updated_at=0.0)

def test_example_two_lights_on_500m_step():
    # Lights at 40% of the step and then 35% of the remaining 300 m
    s = step(0, 500, 60, vertices=(200, 305))
    segments, lights = segment_route(Route(steps=[s]), [light(1, 200), light(2, 305)])

    assert [seg.ends_at_cluster_id for seg in segments] == [1, 2, None]
    assert segments[0].duration_seconds == pytest.approx(24, rel=1e-3)
    assert segments[1].duration_seconds == pytest.approx(12.6, rel=1e-3)
    assert segments[2].duration_seconds == pytest.approx(23.4, rel=1e-3)
    assert sum(seg.duration_seconds for seg in segments) == pytest.approx(60, abs=1e-9)
    assert sum(seg.distance_meters for seg in segments) == pytest.approx(500, abs=1e-9)
    assert segments[1].start == east(200)
    assert segments[2].end == east(500)

def test_step_without_lights_is_one_segment():
    s = step(0, 300, 30)
    segments, lights = segment_route(Route(steps=[s]), [])
    assert len(segments) == 1
    assert segments[0].ends_at_cluster_id is None
    assert segments[0].duration_seconds == 30
    assert lights == []

def test_lights_far_from_route_are_ignored():
    s = step(0, 300, 30, vertices=(150,))
    segments, lights = segment_route(Route(steps=[s]), [light(1, 150, north=500)], tolerance_meters=100)
    assert lights == []
    assert len(segments) == 1

def test_lights_are_globally_ordered_across_steps():
    steps = [step(0, 300, 30, vertices=(100,)), step(300, 700, 40, vertices=(450, 600))]
    clusters = [light(3, 600), light(1, 100), light(2, 450)]

    segments, lights = segment_route(Route(steps=steps), clusters)

    assert [l.cluster_id for l in lights] == [1, 2, 3]
    assert [(s.step_index, s.ends_at_cluster_id) for s in segments] == [
        (0, 1), (0, None), (1, 2), (1, 3), (1, None),
    ]

def test_light_at_step_boundary_is_counted_once():
    steps = [step(0, 300, 30, vertices=(150,)), step(300, 600, 30, vertices=(450,))]
    segments, lights = segment_route(Route(steps=steps), [light(1, 300)])
    assert [s.ends_at_cluster_id for s in segments].count(1) == 1
    assert segments[0].ends_at_cluster_id == 1
    assert segments[0].duration_seconds == pytest.approx(30)

@pytest.mark.parametrize("positions", [(50,), (120, 180), (10, 20, 290), (0, 150, 300)])
def test_apportionment_conserves_step_totals(positions):
    s = step(0, 300, 47, distance=311, vertices=(10, 20, 50, 120, 150, 180, 290))
    clusters = [light(i + 1, m) for i, m in enumerate(positions)]
    segments, _ = segment_route(Route(steps=[s]), clusters)

    assert sum(seg.duration_seconds for seg in segments) == pytest.approx(47, abs=1e-9)
    assert sum(seg.distance_meters for seg in segments) == pytest.approx(311, abs=1e-9)
    assert all(seg.duration_seconds >= 0 for seg in segments)
    assert len(segments) == len(positions) + 1

def test_degenerate_step_splits_evenly():
    point = east(0)
    s = RouteStep(start_point=point, end_point=point, points=[point, point],
                  duration_seconds=12, distance_meters=0)
    lights = [MappedLight(1, point, 0.0, 0.0), MappedLight(2, point, 0.0, 0.0)]

    segments = split_step(s, lights)

    assert [seg.duration_seconds for seg in segments] == [6, 6, 0]

def test_map_lights_reports_offset_from_path():
    points, _ = concatenate_steps([step(0, 400, 40, vertices=(100, 200, 300))])
    lights = map_lights(points, [light(7, 200, north=30)], tolerance_meters=100)
    assert len(lights) == 1
    assert lights[0].offset_from_path == pytest.approx(30, abs=0.5)
    assert lights[0].path_distance == pytest.approx(200, rel=1e-3)

def test_empty_route():
    assert segment_route(Route(steps=[]), [light(1, 0)]) == ([], [])
