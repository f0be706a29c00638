# app/main.py

"""
FastAPI shell around the data-access layer.

Only the ambient pieces live here: the lifespan hook (logging setup and
engine disposal), translation of repository errors into HTTP responses
and a database health check.
"""

import logging
from typing import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlmodel.ext.asyncio.session import AsyncSession

from app import APP_NAME, APP_VERSION
from app.core.config import settings
from app.core.database import engine, get_session
from app.core.exceptions import RepositoryError
from app.core.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging(settings.LOG_LEVEL)
    logger.info("%s %s starting (%s)", APP_NAME, APP_VERSION, settings.APP_ENV)

    yield

    logger.info("%s shutting down", APP_NAME)
    await engine.dispose()


app = FastAPI(
    title=APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RepositoryError)
async def repository_error_handler(request: Request, exc: RepositoryError) -> JSONResponse:
    """Maps a typed repository error to its HTTP status."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc.cause)
    detail = {"op": exc.op, "message": exc.message}
    if settings.DEBUG_MODE and exc.cause is not None:
        detail["cause"] = str(exc.cause)
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


@app.get("/", summary="API Root")
async def read_root():
    return {"message": f"{APP_NAME} {APP_VERSION}. Visit /docs for the API documentation."}


@app.get("/health-check", summary="Health Check", response_description="Application and database status.")
async def health_check(session: AsyncSession = Depends(get_session)):
    """Runs `SELECT 1` against the configured database."""
    try:
        result = await session.execute(text("SELECT 1"))
    except (DBAPIError, OSError) as exc:
        logger.error("health check failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database connection error during health check",
        ) from exc
    if result.scalar() != 1:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database health check failed: unexpected result from test query",
        )
    return {"status": "ok", "database_connection": "successful"}
