"""
Room Reservation Engine application entry point
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from reservation_engine.config import settings
from reservation_engine.database import init_db
from reservation_engine.exceptions import (
    ReservationEngineError, ValidationError, ConflictError, NotFoundError,
    StateError, PersistenceError
)
from reservation_engine.routers import (
    availability, reservations, booking_periods, prices, rooms, guests
)

logger = logging.getLogger(__name__)

# Error category -> HTTP status
STATUS_BY_CATEGORY = (
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConflictError, status.HTTP_409_CONFLICT),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (StateError, status.HTTP_409_CONFLICT),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def setup_logging(level: str = "INFO"):
    """Setup logging configuration"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def status_for(error: ReservationEngineError) -> int:
    for category, status_code in STATUS_BY_CATEGORY:
        if isinstance(error, category):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    setup_logging(settings.LOG_LEVEL)
    init_db()

    from reservation_engine.services.event_handlers import register_event_handlers
    register_event_handlers()

    logger.info(f"{settings.APP_NAME} started")
    yield


# Create the app
app = FastAPI(
    title=settings.APP_NAME,
    description="Room availability, reservation lifecycle and booking conflict resolution",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ReservationEngineError)
async def engine_error_handler(request: Request, exc: ReservationEngineError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


# Routers
app.include_router(availability.router)
app.include_router(reservations.router)
app.include_router(booking_periods.router)
app.include_router(prices.router)
app.include_router(rooms.hotel_router)
app.include_router(rooms.router)
app.include_router(guests.router)


@app.get("/")
def root():
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
    }


@app.get("/health")
def health_check():
    """Health check"""
    return {"status": "healthy"}
