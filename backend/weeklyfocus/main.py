import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weeklyfocus.api.clock import router as clock_router
from weeklyfocus.api.goals import router as goals_router
from weeklyfocus.api.records import router as records_router
from weeklyfocus.api.stats import router as stats_router
from weeklyfocus.core.config import Settings, settings as default_settings
from weeklyfocus.core.errors import (
    ClockStateError,
    GoalNotFoundError,
    InvalidInputError,
    PersistenceError,
    RecordNotFoundError,
    StorageUnavailableError,
)
from weeklyfocus.db import init_storage
from weeklyfocus.services.ticker import ClockTicker
from weeklyfocus.services.tracker import FocusTracker

logger = logging.getLogger(__name__)

# Order matters: subclasses before their bases
ERROR_STATUS = [
    (ClockStateError, 409),
    (InvalidInputError, 422),
    (RecordNotFoundError, 404),
    (GoalNotFoundError, 404),
    (PersistenceError, 503),
    (StorageUnavailableError, 503),
]


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _status_for(exc: Exception) -> int:
    for cls, status in ERROR_STATUS:
        if isinstance(exc, cls):
            return status
    return 500


async def tracker_error_handler(request: Request, exc: Exception):
    status = _status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


def create_app(settings: Settings | None = None, clock=None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.log_level)

    # Raises StorageUnavailableError if the store cannot be opened
    session_factory = init_storage(settings.database_url)
    tracker = FocusTracker.from_settings(settings, session_factory, clock=clock)
    tracker.start()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ticker = ClockTicker(tracker.tick, interval=settings.clock_tick_seconds)
        ticker.start()
        app.state.ticker = ticker
        try:
            yield
        finally:
            await ticker.stop()
            tracker.close()

    app = FastAPI(title="WeeklyFocus", lifespan=lifespan)
    app.state.tracker = tracker

    # Allow CORS for local frontend
    origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for cls, _ in ERROR_STATUS:
        app.add_exception_handler(cls, tracker_error_handler)

    app.include_router(goals_router)
    app.include_router(records_router)
    app.include_router(clock_router)
    app.include_router(stats_router)

    @app.get("/")
    def root():
        return {"message": "WeeklyFocus backend is running"}

    return app


app = create_app()
