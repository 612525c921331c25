# api/app/main.py
from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.app.config import get_settings
from api.app.middleware.request_logging import RequestLoggingMiddleware
from api.app.routes import damage_reports, dashboard, health, jobs, service_requests, users
from services.context import AppContext
from services.errors import MarketplaceError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    ctx = AppContext(get_settings())
    await ctx.init()
    app.state.ctx = ctx
    yield
    await ctx.close()


app = FastAPI(
    title="ServiceHub API",
    description="Service marketplace backend: jobs, service requests, damage reports",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: [%s] %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s rejected: [%s] %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(jobs.router, prefix="/v1")
app.include_router(service_requests.router, prefix="/v1")
app.include_router(damage_reports.router, prefix="/v1")
app.include_router(users.router, prefix="/v1")
app.include_router(dashboard.router, prefix="/v1")
