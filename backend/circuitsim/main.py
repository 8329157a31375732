"""Circuit Simulation Engine — HTTP surface.

  1. Component library (registry of supported kinds)
  2. Stateless circuit analysis
  3. Simulation sessions (start / step / sensors / pause / resume / stop)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from circuitsim import __version__
from circuitsim.config import get_settings
from circuitsim.errors import (
    CircuitSimError,
    GraphValidationError,
    InvalidStateTransitionError,
    NotRunningError,
    SessionNotFoundError,
    StepTimeoutError,
    UnknownComponentError,
)
from circuitsim.logging_config import configure_logging
from circuitsim.routers import analysis, components, simulation
from circuitsim.services.session_manager import SessionManager

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
ERROR_STATUS: list[tuple[type[CircuitSimError], int]] = [
    (SessionNotFoundError, 404),
    (UnknownComponentError, 404),
    (NotRunningError, 409),
    (InvalidStateTransitionError, 409),
    (StepTimeoutError, 503),
    (GraphValidationError, 422),
]


def status_for(exc: CircuitSimError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: open the session arena. Shutdown: drop every live session."""
    app.state.sessions = SessionManager(get_settings())
    yield
    logger.info("Shutting down with %d live session(s)", len(app.state.sessions))


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)

    application = FastAPI(
        title=settings.app_name,
        version=__version__,
        description=(
            "Interactive simulation backend for breadboard-level circuits.\n\n"
            "Analyzes circuit graphs and steps simulation sessions through "
            "simulated time."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(CircuitSimError)
    async def circuit_sim_error_handler(request: Request, exc: CircuitSimError):
        status = status_for(exc)
        logger.warning(
            "%s %s failed (%d %s): %s",
            request.method,
            request.url.path,
            status,
            exc.code,
            exc.message,
        )
        return JSONResponse(
            status_code=status,
            content={"detail": exc.message, "code": exc.code},
        )

    # ─── Component library ───
    application.include_router(
        components.router, prefix="/api/components", tags=["Components"]
    )

    # ─── Analysis (stateless) ───
    application.include_router(
        analysis.router, prefix="/api/analysis", tags=["Analysis"]
    )

    # ─── Simulation sessions ───
    application.include_router(
        simulation.router, prefix="/api/simulations", tags=["Simulation"]
    )

    @application.get("/health")
    async def health_check():
        return {"status": "ok", "service": "circuit-sim-engine", "version": __version__}

    return application


app = create_app()
