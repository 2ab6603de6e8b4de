# app/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app import config
from app.core import WEEKDAYS, TimeGrid
from app.db import init_db
from app.deps import get_grid
from app.errors import AppError
from app.schemas import TimeGridPublic
from app.routers import (
    auth_routes,
    bookings_routes,
    professors_routes,
    schedule_routes,
    users_routes,
)

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    init_db()
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Consultation Booking API", lifespan=lifespan)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    # mutations are not retried; reads already exhausted their retries
    logger.error(f"{request.method} {request.url.path} could not reach the data store: {exc}")
    return JSONResponse(
        status_code=503,
        content={"detail": "Data store is unavailable, please try again later"},
    )


# /professors/me/* must be registered before /professors/{professor_id}
app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(schedule_routes.router)
app.include_router(professors_routes.router)
app.include_router(bookings_routes.router)


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/grid", response_model=TimeGridPublic)
def time_grid(grid: TimeGrid = Depends(get_grid)):
    return {
        "weekdays": WEEKDAYS,
        "boundaries": list(grid.slot_boundaries()),
        "slots": [
            {"start": p.start, "end": p.end, "label": p.label}
            for p in grid.slot_pairs()
        ],
    }
