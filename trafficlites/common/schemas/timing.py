from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

class Coordinates(BaseModel):
    lat: float = Field(..., ge=-90, le=90, allow_inf_nan=False, description="Latitude")
    lon: float = Field(..., ge=-180, le=180, allow_inf_nan=False, description="Longitude")

class AverageDurations(BaseModel):
    green: Optional[float] = Field(None, description="Mean green duration in seconds")
    yellow: Optional[float] = Field(None, description="Mean yellow duration in seconds")
    red: Optional[float] = Field(None, description="Mean red duration in seconds")

class LightPrediction(BaseModel):
    predicted_current_status: str = Field(..., description="green, yellow, red or unknown")
    predicted_time_remaining_seconds: int = Field(..., ge=0, description="Seconds left in the predicted phase")
    predicted_wait_seconds: int = Field(..., ge=0, description="Seconds until the light turns green")
    prediction_confidence: float = Field(..., ge=0.0, le=1.0)
    used_default_average: bool = False
    last_seen_status: Optional[str] = None
    last_seen_timestamp: Optional[datetime] = None

class LightTimingResponse(BaseModel):
    """
    Timing statistics and current prediction for the nearest known light.
    """
    cluster_id: int
    cluster_center: Coordinates
    distance_meters: float
    observation_count: int = Field(..., ge=1)
    confidence_level: str
    has_complete_averages: bool
    average_durations: AverageDurations
    prediction: LightPrediction
