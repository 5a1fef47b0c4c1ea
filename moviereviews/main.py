"""
FastAPI application for the movie reviews API.

`create_app` wires settings, the MongoDB handle, routers, error handlers and
request logging. uvicorn serves it through the factory form,
`moviereviews.main:create_app`.
"""

import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, get_settings
from .database import Database
from .exceptions import (
    APIError,
    api_error_handler,
    generic_exception_handler,
    request_validation_handler,
)
from .logging_config import generate_request_id, set_request_id, setup_api_logger
from .routers import auth, movies, reviews

SKIP_LOG_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}


def create_app(settings: Optional[Settings] = None, database=None) -> FastAPI:
    settings = settings or get_settings()
    logger = setup_api_logger(log_dir=settings.LOG_DIR, level=settings.LOG_LEVEL.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings)
        await db.connect()
        app.state.database = db
        yield
        await db.close()

    app = FastAPI(
        title="Movie Reviews API",
        description="Movies, user accounts and movie reviews",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log all HTTP requests with timing and response status."""
        request_id = generate_request_id()
        set_request_id(request_id)

        if request.url.path in SKIP_LOG_PATHS:
            return await call_next(request)

        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"
        logger.info(f"Request started: {request.method} {request.url.path} from {client_ip}")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path} "
                f"duration={duration_ms:.2f}ms error={str(e)}"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        log_msg = (
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration_ms:.2f}ms"
        )
        if response.status_code >= 500:
            logger.error(log_msg)
        elif response.status_code >= 400:
            logger.warning(log_msg)
        else:
            logger.info(log_msg)

        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(auth.router)
    app.include_router(movies.router)
    app.include_router(reviews.router)

    @app.get("/health", include_in_schema=False)
    async def health():
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
