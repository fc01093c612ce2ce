"""
API package.
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ...common.exceptions import ValidationError
from ...common.logging import setup_logger
from .routes import light_timings, reports, route_advice

logger = setup_logger(__name__)

# Initialize main app
app = FastAPI(title="Trafficlites API")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Mobile clients call from arbitrary origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # Malformed coordinates or status are client errors, reported as 400
    logger.info(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "detail": jsonable_errors(exc)},
    )

@app.exception_handler(ValidationError)
async def domain_validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": "Invalid request", "detail": str(exc)})

def jsonable_errors(exc: RequestValidationError):
    return [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]

@app.get("/")
def index():
    return {"message": "Trafficlites API is running"}

# Include routers
app.include_router(reports.router, tags=["reports"])
app.include_router(light_timings.router, tags=["light_timings"])
app.include_router(route_advice.router, tags=["route_advice"])
