"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from tripbook import __version__
from tripbook.api.routes.health import router as health_router
from tripbook.api.routes.metrics import router as metrics_router
from tripbook.api.routes.profile import router as profile_router
from tripbook.api.routes.remote import router as remote_router
from tripbook.api.routes.stops import router as stops_router
from tripbook.api.routes.trips import router as trips_router
from tripbook.config import get_settings
from tripbook.db.engine import (
    create_async_engine_from_settings,
    create_schema,
    create_session_factory,
)
from tripbook.db.kv import SqlKeyValueStore
from tripbook.errors import (
    ConfigurationError,
    ConfirmationRequired,
    EmployeeNotFoundError,
    NotesLockedError,
    NotImportedTripError,
    ReadOnlyTripError,
    RemoteServiceError,
    RemoteTripNotFoundError,
    SyncError,
    TripbookError,
    TripNotFoundError,
)

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before TripbookError
_STATUS_BY_ERROR: list[tuple[type[TripbookError], int]] = [
    (TripNotFoundError, status.HTTP_404_NOT_FOUND),
    (RemoteTripNotFoundError, status.HTTP_404_NOT_FOUND),
    (EmployeeNotFoundError, status.HTTP_404_NOT_FOUND),
    (ReadOnlyTripError, status.HTTP_409_CONFLICT),
    (NotesLockedError, status.HTTP_409_CONFLICT),
    (NotImportedTripError, status.HTTP_409_CONFLICT),
    (ConfirmationRequired, status.HTTP_409_CONFLICT),
    (ConfigurationError, status.HTTP_400_BAD_REQUEST),
    (SyncError, status.HTTP_502_BAD_GATEWAY),
    (RemoteServiceError, status.HTTP_502_BAD_GATEWAY),
    (TripbookError, status.HTTP_400_BAD_REQUEST),
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open durable storage for the lifetime of the app."""
    engine = create_async_engine_from_settings(get_settings())
    await create_schema(engine)
    app.state.kv_store = SqlKeyValueStore(create_session_factory(engine))
    yield
    await engine.dispose()


app = FastAPI(title="Tripbook API", version=__version__, lifespan=lifespan)

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(trips_router)
app.include_router(stops_router)
app.include_router(remote_router)
app.include_router(profile_router)


@app.exception_handler(TripbookError)
async def tripbook_error_handler(request: Request, exc: TripbookError) -> JSONResponse:
    """Map domain errors to HTTP responses."""
    status_code = next(code for kind, code in _STATUS_BY_ERROR if isinstance(exc, kind))
    body: dict[str, str] = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, SyncError):
        body["phase"] = exc.phase.value
        body["detail"] = exc.user_message
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(httpx.HTTPError)
async def http_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    """Outbound HTTP failures surface as 502."""
    logger.warning("Outbound request failed: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": f"Error de red: {exc}", "error": type(exc).__name__},
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Tripbook API", "version": __version__}
