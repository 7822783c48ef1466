"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tradelab.acquisition.service import BacktestService
from tradelab.api.deps import AppState, api_key_middleware
from tradelab.api.routes import router
from tradelab.api.schemas import ErrorResponse
from tradelab.core.config import TradelabConfig, load_config
from tradelab.core.exceptions import (
    ConfigError,
    ConfigurationError,
    EmptyRangeError,
    GenerationError,
    InvalidRequestError,
    NarrativeError,
    SourceError,
    TradelabError,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    config = app.state._pending_config or load_config()
    service = app.state._pending_service or BacktestService.from_config(config)

    app.state.app_state = AppState(config=config, service=service)

    yield


def _status_for(exc: TradelabError) -> int:
    # Order matters: subclasses before their parents
    status_map: list[tuple[type[TradelabError], int]] = [
        (InvalidRequestError, 400),
        (ConfigError, 400),
        (ConfigurationError, 503),
        (EmptyRangeError, 404),
        (SourceError, 502),
        (NarrativeError, 502),
        (GenerationError, 500),
    ]
    for exc_type, status in status_map:
        if isinstance(exc, exc_type):
            return status
    return 500


def create_app(
    config: TradelabConfig | None = None,
    service: BacktestService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    import tradelab

    app = FastAPI(
        title="tradelab API",
        description="Single-ticker price history, backtest metrics, and headline sentiment",
        version=tradelab.__version__,
        lifespan=lifespan,
    )

    # Stash config so lifespan can retrieve it
    app.state._pending_config = config
    app.state._pending_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if config and config.api.api_key:
        app.middleware("http")(api_key_middleware)

    app.include_router(router, prefix="/api")

    @app.exception_handler(TradelabError)
    async def tradelab_exception_handler(request: Request, exc: TradelabError):
        return JSONResponse(
            status_code=_status_for(exc),
            content=ErrorResponse(error=type(exc).__name__, detail=str(exc)).model_dump(),
        )

    return app
