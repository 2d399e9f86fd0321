"""
FastAPI Application Setup

Main entry point for the Catalog Matcher API application.

Responsibility:
    - FastAPI app initialization
    - Router registration (candidates, matches, decision-log)
    - CORS middleware configuration
    - Global exception handlers
    - Request logging middleware
    - Health check endpoint

Architecture Notes:
    - Part of API Layer (Presentation)
    - Entry point for HTTP server (uvicorn)
    - Centralizes cross-cutting concerns (logging, CORS, error handling)
    - No business logic - pure HTTP orchestration

Contains:
    - create_app() factory function
    - Global exception handlers
    - Request logging middleware
    - Health check endpoint: GET /health

Does NOT contain:
    - Business logic (delegated to Application Layer)
    - Collaborator wiring (src/api/dependencies.py)
    - Celery configuration (separate module)
"""

import logging
import time

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.api.routers import candidates, decision_log, matches
from src.api.schemas.common import ErrorResponse
from src.domain.shared.exceptions import (
    DomainException,
    MatchConflictError,
    MatchNotFoundError,
    SourceNotFoundError,
)

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


# ============================================================================
# RESPONSE MODELS
# ============================================================================


class HealthCheckResponse(BaseModel):
    """
    Health check response model.

    Attributes:
        status: Health status (always "ok" if endpoint responds)
        version: API version
        timestamp: Unix timestamp of health check
    """

    status: str = "ok"
    version: str = API_VERSION
    timestamp: float


# ============================================================================
# MIDDLEWARE
# ============================================================================


async def request_logging_middleware(request: Request, call_next):
    """
    Log every request with method, path, status code and duration.

    Logging Format:
        INFO: "Incoming request: POST /api/matches"
        INFO: "Request completed: POST /api/matches - 201 - 0.012s"
    """
    logger.info(f"Incoming request: {request.method} {request.url.path}")
    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url.path} - "
        f"{response.status_code} - {duration:.3f}s"
    )
    return response


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


async def domain_exception_handler(request: Request, exc: DomainException):
    """
    Global exception handler for domain layer exceptions.

    Mapping:
        - MatchConflictError -> 409 Conflict
        - MatchNotFoundError -> 404 Not Found
        - SourceNotFoundError -> 404 Not Found
        - Other DomainException -> 400 Bad Request

    Examples:
        >>> raise MatchConflictError("Match already exists between these products", pair)
        >>> # Returns: 409 {"code": "MATCH_CONFLICT", "message": "...", "details": {...}}
    """
    details = {"exception_type": exc.__class__.__name__}

    if isinstance(exc, MatchConflictError):
        status_code = status.HTTP_409_CONFLICT
        error_code = "MATCH_CONFLICT"
    elif isinstance(exc, MatchNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
        error_code = "MATCH_NOT_FOUND"
    elif isinstance(exc, SourceNotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
        error_code = "SOURCE_NOT_FOUND"
        details["source_code"] = exc.source_code
    else:
        status_code = status.HTTP_400_BAD_REQUEST
        error_code = exc.__class__.__name__.replace("Error", "").upper()

    pair = getattr(exc, "pair", None)
    if pair is not None:
        details["pair"] = pair.model_dump()

    error_response = ErrorResponse(code=error_code, message=exc.message, details=details)

    logger.warning(
        f"Domain exception: {exc.__class__.__name__} - {exc.message} - "
        f"Request: {request.method} {request.url.path}"
    )

    return JSONResponse(status_code=status_code, content=error_response.model_dump())


async def generic_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler: 500 Internal Server Error with full traceback in the log.
    """
    error_response = ErrorResponse(
        code="INTERNAL_SERVER_ERROR",
        message="An unexpected error occurred",
        details={"error": str(exc), "type": exc.__class__.__name__},
    )

    logger.error(
        f"Unexpected error: {exc.__class__.__name__} - {str(exc)} - "
        f"Request: {request.method} {request.url.path}",
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response.model_dump(),
    )


# ============================================================================
# APP FACTORY
# ============================================================================


def create_app() -> FastAPI:
    """
    FastAPI application factory.

    Configuration:
        - CORS: Allow all origins (development mode)
        - Routers: /api/candidates, /api/matches, /api/decision-log
        - Health: GET /health

    Usage:
        >>> app = create_app()
        >>> # uvicorn src.api.main:app --reload
    """
    app = FastAPI(
        title="Catalog Matcher API",
        version=API_VERSION,
        description=(
            "Product catalog matching API: rank external candidates for internal "
            "products and record reviewed match decisions."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Production: restrict to specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.middleware("http")(request_logging_middleware)

    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(candidates.router, prefix="/api")
    app.include_router(matches.router, prefix="/api")
    app.include_router(decision_log.router, prefix="/api")

    @app.get(
        "/health",
        response_model=HealthCheckResponse,
        status_code=status.HTTP_200_OK,
        summary="Health check endpoint",
        tags=["health"],
    )
    async def health_check() -> HealthCheckResponse:
        return HealthCheckResponse(status="ok", version=API_VERSION, timestamp=time.time())

    logger.info("FastAPI application created successfully")
    logger.info("Registered routers: /api/candidates, /api/matches, /api/decision-log")

    return app


# Usage: uvicorn src.api.main:app --reload
app = create_app()
