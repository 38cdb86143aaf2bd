from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import (
    activity,
    attendance,
    auto_assign,
    directory,
    health,
    notifications,
    overrides,
    pending_changes,
    routine,
    schedule_log,
    system,
)
from app.core.config import get_settings
from app.core.exceptions import AppError
from app.core.logging_config import configure_logging
from app.core.middleware import RequestLoggingMiddleware, RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from app.db.bootstrap import ensure_runtime_schema

settings = get_settings()
configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    ensure_runtime_schema()
    logger.info("%s started", settings.project_name)
    yield


async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)

app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(routine.router, prefix=settings.api_prefix, tags=["routine"])
app.include_router(overrides.router, prefix=settings.api_prefix, tags=["overrides"])
app.include_router(pending_changes.router, prefix=settings.api_prefix, tags=["pending-changes"])
app.include_router(schedule_log.router, prefix=settings.api_prefix, tags=["schedule-log"])
app.include_router(auto_assign.router, prefix=settings.api_prefix, tags=["auto-assign"])
app.include_router(attendance.router, prefix=settings.api_prefix, tags=["attendance"])
app.include_router(directory.router, prefix=f"{settings.api_prefix}/directory", tags=["directory"])
app.include_router(notifications.router, prefix=settings.api_prefix, tags=["notifications"])
app.include_router(activity.router, prefix=settings.api_prefix, tags=["activity"])
app.include_router(system.router, prefix=settings.api_prefix, tags=["system"])
