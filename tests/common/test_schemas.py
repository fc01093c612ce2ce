import pytest
from datetime import datetime, timezone
from pydantic import ValidationError
from trafficlites.common.schemas import Coordinates, LightPrediction, ReportCreate, RouteAdviceRequest
from trafficlites.signals.domain import ReportStatus

def test_report_valid():
    report = ReportCreate(latitude=40.0, longitude=-74.0, status="Green")
    assert report.status == ReportStatus.GREEN
    assert report.observed_at is None

def test_report_accepts_integer_coordinates():
    report = ReportCreate(latitude=40, longitude=-74, status="red")
    assert report.latitude == 40.0

def test_report_with_timestamp():
    report = ReportCreate(latitude=0, longitude=0, status="yellow", observed_at="2023-11-14T22:13:20Z")
    assert report.observed_at == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)

@pytest.mark.parametrize("field,value", [
    ("latitude", 90.5),
    ("latitude", "40.0"),
    ("longitude", -180.1),
    ("longitude", float("nan")),
    ("latitude", float("inf")),
    ("status", "purple"),
    ("status", None),
])
def test_report_invalid(field, value):
    data = {"latitude": 40.0, "longitude": -74.0, "status": "red"}
    data[field] = value
    with pytest.raises(ValidationError):
        ReportCreate(**data)

def test_coordinates_bounds():
    with pytest.raises(ValidationError):
        Coordinates(lat=-91, lon=0)

def test_route_request_requires_both_ends():
    with pytest.raises(ValidationError):
        RouteAdviceRequest(origin={"lat": 1, "lon": 2})

def test_prediction_rejects_negative_wait():
    with pytest.raises(ValidationError):
        LightPrediction(
            predicted_current_status="red",
            predicted_time_remaining_seconds=1,
            predicted_wait_seconds=-1,
            prediction_confidence=0.5,
        )
