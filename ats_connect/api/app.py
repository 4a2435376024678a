"""
FastAPI application exposing connection management, sync triggers and
webhook intake.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from ats_connect import __version__
from ats_connect.api.router import api_router
from ats_connect.data.database import get_database_manager
from ats_connect.utils.config import get_settings
from ats_connect.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    try:
        yield
    finally:
        get_database_manager().close_all()


app = FastAPI(title=settings.api.title, version=__version__, lifespan=lifespan)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    started_at = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started_at) * 1000.0
    logger.info(
        f"http request method={request.method} path={request.url.path} "
        f"status={response.status_code} duration_ms={elapsed_ms:.2f}"
    )
    return response


app.include_router(api_router)
