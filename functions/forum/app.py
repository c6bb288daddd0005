"""
FastAPI application entry point for the questions service.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from forum.config import get_settings
from forum.dependencies import get_store_engine
from forum.errors import NotFoundError, StoreError, ValidationError
from forum.routes import router
from forum.schemas import ErrorResponse

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(by_alias=True),
    )


def _first_error_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "path", "query")]
    if loc:
        return f"{loc[-1]}: {first.get('msg', 'invalid value')}"
    return first.get("msg", "Invalid request")


@asynccontextmanager
async def lifespan(app: FastAPI):
    engine_factory = app.dependency_overrides.get(get_store_engine, get_store_engine)
    # initialize() does blocking storage I/O.
    collection = await run_in_threadpool(engine_factory().initialize)
    logger.info("Questions store ready with %d questions", len(collection.questions))
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Community Questions", version="0.1.0", lifespan=lifespan)
    app.include_router(router, prefix=settings.api_prefix)

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        return _error(400, _first_error_message(exc))

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError):
        return _error(400, str(exc))

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(StoreError)
    async def _store_error(request: Request, exc: StoreError):
        logger.error("Request %s %s failed: %s", request.method, request.url.path, exc)
        return _error(500, "Internal server error")

    return app


app = create_app()
