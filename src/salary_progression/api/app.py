"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from salary_progression.api.routes import health_router, salary_router
from salary_progression.config import get_settings
from salary_progression.database import dispose_db, init_db
from salary_progression.errors import (
    ConcurrentModificationError,
    ImmutabilityViolationError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    SalaryProgressionError,
    ScheduleGapError,
)

logger = logging.getLogger(__name__)

# Checked in order; the first matching class decides the status code
ERROR_STATUS_CODES: list[tuple[type[SalaryProgressionError], int]] = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConcurrentModificationError, status.HTTP_409_CONFLICT),
    (ImmutabilityViolationError, status.HTTP_409_CONFLICT),
    (InvalidStateError, status.HTTP_409_CONFLICT),
    (ScheduleGapError, 422),
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
]


def status_code_for(exc: SalaryProgressionError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    init_db()
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title="Salary Progression API",
        description="Salary step eligibility, increments, mass raises and promotions",
        version=settings.engine_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(SalaryProgressionError)
    async def salary_progression_error_handler(
        request: Request, exc: SalaryProgressionError
    ) -> JSONResponse:
        """Map engine errors to their HTTP status."""
        return JSONResponse(
            status_code=status_code_for(exc),
            content={"detail": exc.message, "code": exc.code},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(salary_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
