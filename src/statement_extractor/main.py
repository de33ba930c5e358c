from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from statement_extractor.api.middleware.error_handler import (
    handle_extraction_error,
    handle_generic_error,
    handle_validation_error,
)
from statement_extractor.api.middleware.logging import RequestLoggingMiddleware, setup_logging
from statement_extractor.api.v1 import router as v1_router
from statement_extractor.api.v1.health import router as health_router
from statement_extractor.config import settings
from statement_extractor.core.exceptions import ExtractionError


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    setup_logging(settings.log_level, json_logs=settings.json_logs)
    yield
    # Shutdown


def create_app() -> FastAPI:
    app = FastAPI(
        title="Statement Transaction Extractor API",
        description="Turn bank and credit card statement text into structured transactions",
        version="0.1.0",
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Add request logging middleware
    app.add_middleware(RequestLoggingMiddleware)

    # Register exception handlers (order matters - most specific first)
    app.add_exception_handler(ExtractionError, handle_extraction_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_generic_error)

    # Register routers
    app.include_router(health_router)
    app.include_router(v1_router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run(
        "statement_extractor.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
