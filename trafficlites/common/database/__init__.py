from .database import SessionLocal, Base, configure_engine, get_engine, get_db, init_db
from .models import ObservationDB, IntersectionClusterDB, CycleSegmentDB

__all__ = [
    "SessionLocal", "Base", "configure_engine", "get_engine", "get_db", "init_db",
    "ObservationDB", "IntersectionClusterDB", "CycleSegmentDB"
]
