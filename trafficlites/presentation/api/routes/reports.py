"""
Report submission and listing.
"""
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from ....common.schemas import ReportCreate, ReportOut
from ....common.utils import from_epoch, to_epoch, to_naive_utc
from ....signals.application import ReportIngestionService
from ....signals.domain import Observation
from ....signals.infrastructure import SqlSignalRepository
from ..dependencies import get_clock, get_ingestion_service, get_repository

router = APIRouter()

def _out(observation: Observation) -> ReportOut:
    return ReportOut(
        id=observation.id,
        latitude=observation.latitude,
        longitude=observation.longitude,
        status=observation.status.value,
        observed_at=from_epoch(observation.observed_at),
        cluster_id=observation.cluster_id,
    )

@router.post("/report", status_code=201, response_model=ReportOut)
def submit_report(report: ReportCreate, background_tasks: BackgroundTasks,
                  service: ReportIngestionService = Depends(get_ingestion_service),
                  clock=Depends(get_clock)):
    """
    Stores the report, then clusters and tracks it after the response is sent.
    Failures in that second step are logged only.
    """
    observed_at = to_epoch(to_naive_utc(report.observed_at)) if report.observed_at else clock()
    stored = service.store(Observation(
        latitude=report.latitude,
        longitude=report.longitude,
        status=report.status,
        observed_at=observed_at,
    ))
    background_tasks.add_task(service.process_safely, stored)
    return _out(stored)

@router.get("/reports", response_model=List[ReportOut])
def list_reports(limit: int = Query(100, ge=1, le=1000),
                 repository: SqlSignalRepository = Depends(get_repository)):
    """Most recent reports first."""
    return [_out(o) for o in repository.list_observations(limit)]
