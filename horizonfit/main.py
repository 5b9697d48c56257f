import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from horizonfit.config import get_settings
from horizonfit.core.logging import setup_logging
from horizonfit.database import create_tables
from horizonfit.exceptions import ProgressionError, PreconditionError
from horizonfit.seed import run_startup_seed
from horizonfit.routers import auth, users, normal_plan, doctor, zone_content, logs, health

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug)

# Tables and seed data before the first request
@app.on_event("startup")
def on_startup():
    create_tables()
    run_startup_seed()
    logger.info(f"{settings.app_name} started ({settings.environment})")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["*"],
)

@app.exception_handler(ProgressionError)
async def progression_error_handler(request: Request, exc: ProgressionError):
    """Maps the service error taxonomy onto HTTP status codes."""
    content = {"detail": exc.message, "error": type(exc).__name__}
    if isinstance(exc, PreconditionError):
        content["reason"] = getattr(exc.reason, "value", exc.reason)
        content["days_remaining"] = exc.days_remaining
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(normal_plan.router, prefix="/api/v1")
app.include_router(doctor.router, prefix="/api/v1")
app.include_router(zone_content.router, prefix="/api/v1")
app.include_router(logs.router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")

@app.get("/", tags=["Root"])
def read_root():
    return {"name": settings.app_name, "version": settings.app_version}
