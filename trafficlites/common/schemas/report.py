from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...signals.domain import ReportStatus

class ReportCreate(BaseModel):
    """
    A user's report of a traffic light's colour at a location.
    """
    latitude: float = Field(..., ge=-90, le=90, strict=True, allow_inf_nan=False, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, strict=True, allow_inf_nan=False, description="Longitude in degrees")
    status: ReportStatus = Field(..., description="green, yellow, red or malfunctioning")
    observed_at: Optional[datetime] = Field(None, description="When the light was seen; defaults to server time")

    @field_validator('status', mode='before')
    def normalise_status(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

class ReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    latitude: float
    longitude: float
    status: str
    observed_at: datetime
    cluster_id: Optional[int] = None
