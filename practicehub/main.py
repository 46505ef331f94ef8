"""FastAPI Heartbeat. Lean."""

from __future__ import annotations

import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from practicehub.auth.routes import router as auth_router
from practicehub.common.deps import get_current_user
from practicehub.common.errors import PracticeHubError
from practicehub.common.schemas import ErrorResponse
from practicehub.core.config import get_settings
from practicehub.db.base import list_models
from practicehub.db.session import engine, init_db
from practicehub.features.companies.endpoints import router as companies_router
from practicehub.features.execution.endpoints import router as execution_router
from practicehub.features.leaderboard.endpoints import router as leaderboard_router
from practicehub.features.problems.endpoints import router as problems_router
from practicehub.features.progress.endpoints import router as progress_router
from practicehub.features.submissions.endpoints import router as submissions_router
from practicehub.features.users.endpoints import router as users_router

_settings = get_settings()
_START_TIME = datetime.now(timezone.utc)

logging.basicConfig(
    level=logging.DEBUG if _settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("practicehub")

app = FastAPI(title=_settings.app_name)


# ------------------------
# CORS Setup
# ------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ------------------------
# Custom Middlewares
# ------------------------
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    incoming = request.headers.get("X-Request-Id") or request.headers.get("X-Request-ID")
    req_id = incoming or str(uuid.uuid4())
    request.state.request_id = req_id
    req_logger = logging.getLogger("request")
    req_logger.info("request.start request_id=%s method=%s path=%s", req_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-Id"] = req_id
    req_logger.info("request.end request_id=%s path=%s status=%s", req_id, request.url.path, response.status_code)
    return response


@app.middleware("http")
async def timing_middleware(request: Request, call_next):
    t0 = time.perf_counter()
    resp = await call_next(request)
    dt = int((time.perf_counter() - t0) * 1000)
    logging.getLogger("request.timing").info("%s %s %dms %s", request.method, request.url.path, dt, resp.status_code)
    return resp


# ------------------------
# Error handlers
# ------------------------
def _error_body(code: str, message: str, details: Dict[str, Any] | None = None) -> Dict[str, Any]:
    body = ErrorResponse(error_code=code, message=message, details=details, timestamp=datetime.now(timezone.utc))
    return body.model_dump(mode="json")


@app.exception_handler(PracticeHubError)
async def _practicehub_error_handler(request: Request, exc: PracticeHubError):
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.error_code or exc.kind.value, exc.message, exc.details or None),
    )


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error path=%s request_id=%s", request.url.path, getattr(request.state, "request_id", None))
    return JSONResponse(status_code=500, content=_error_body("internal_error", "Internal server error"))


# ------------------------
# Routers
# ------------------------
protected_deps = [Depends(get_current_user)]

app.include_router(auth_router)
app.include_router(users_router, dependencies=protected_deps)
app.include_router(companies_router)
app.include_router(problems_router)
app.include_router(execution_router)
app.include_router(submissions_router, dependencies=protected_deps)
app.include_router(progress_router, dependencies=protected_deps)
app.include_router(leaderboard_router)


# ------------------------
# Meta endpoints
# ------------------------
@app.get("/", tags=["meta"], summary="API Root")
async def root():
    return {
        "name": _settings.app_name,
        "status": "ok",
        "docs": "/docs",
        "health": "/healthz",
    }


@app.get("/healthz", tags=["meta"], summary="Liveness / readiness probe")
async def healthz() -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    db_status = "unknown"
    db_latency_ms: float | None = None
    try:
        start = time.perf_counter()
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db_latency_ms = round((time.perf_counter() - start) * 1000, 2)
        db_status = "ok"
    except SQLAlchemyError as e:
        db_status = f"error:{type(e).__name__}"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "time_utc": now.isoformat(),
        "uptime_seconds": round((now - _START_TIME).total_seconds(), 2),
        "version": os.getenv("APP_VERSION", "dev"),
        "environment": "debug" if _settings.debug else "prod",
        "components": {
            "database": (
                {"status": db_status, "latency_ms": db_latency_ms}
                if db_status == "ok"
                else {"status": db_status}
            ),
            "execution_backend": _settings.execution_backend,
        },
    }


# ------------------------
# Startup
# ------------------------
@app.on_event("startup")
async def _create_tables():
    init_db()
    logger.info("database ready backend=%s models=%s", engine.dialect.name, ", ".join(list_models()))
