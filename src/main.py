"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.mo_common.database import check_database, engine
from src.mo_common.errors import AppError
from src.mo_common.redis_client import close_redis, ping_redis
from src.mo_common.response import error_response
from src.mo_gateway.middleware.request_log import RequestLogMiddleware
from src.mo_order.api.router import router as order_router
from src.mo_order.application.registry import OrderRefresher, get_order_store_registry

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: DB must answer, Redis may not; start polling. Shutdown: reverse."""
    await check_database()
    if settings.NOTIFICATIONS_ENABLED:
        await ping_redis()
    refresher = OrderRefresher(get_order_store_registry())
    refresher.start()
    logger.info("%s started", settings.APP_NAME)
    yield
    await refresher.stop()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.warning("AppError %d on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.http_status,
        content=error_response(exc, request).model_dump(),
    )


app.include_router(order_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
