"""
Scout — ICP-driven prospect triage
Thin FastAPI shell: middleware, error mapping and routers. All business
logic lives in services/, cache/ and connectors/.

Schema is managed by Alembic (alembic upgrade head), never at startup.
"""

import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.middleware.sessions import SessionMiddleware

from .config import settings
from .http_client import close_clients
from .logging_config import setup_logging
from .rate_limit import limiter
from .routers import candidates, enrichment, icp, triage
from .schemas.errors import ErrorResponse
from .scoring import InvalidWeights
from .services.candidate_store import PersistenceFailure
from .services.triage_service import NothingToDecide, QuotaExceeded

log = logging.getLogger("scout.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    log.info("Scout starting (daily accept limit %d)", settings.daily_accept_limit)
    yield
    await close_clients()


app = FastAPI(title="Scout", lifespan=lifespan)
app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SessionMiddleware, secret_key=settings.secret_key, https_only=False)


# ── Error mapping ────────────────────────────────────────────────────


def _error(request: Request, status_code: int, message: str, detail: list | None = None, **extra):
    body = ErrorResponse(
        error=message,
        status_code=status_code,
        request_id=request.headers.get("x-request-id") or uuid.uuid4().hex[:12],
        detail=detail,
    ).model_dump()
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException):
    return _error(request, exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    detail = [
        {"loc": list(e.get("loc", [])), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return _error(request, 422, "Validation error", detail)


@app.exception_handler(InvalidWeights)
async def invalid_weights_handler(request: Request, exc: InvalidWeights):
    return _error(request, 422, str(exc))


@app.exception_handler(QuotaExceeded)
async def quota_exceeded_handler(request: Request, exc: QuotaExceeded):
    log.info("Quota exceeded on %s", request.url.path)
    return _error(
        request,
        429,
        str(exc),
        limit=exc.limit,
        accepted_today=exc.accepted_today,
        review_url="/api/candidates?status=accepted",
    )


@app.exception_handler(NothingToDecide)
async def nothing_to_decide_handler(request: Request, exc: NothingToDecide):
    return _error(request, 409, str(exc))


@app.exception_handler(PersistenceFailure)
async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
    log.warning("Persistence failure on %s: %s", request.url.path, exc)
    return _error(request, 503, f"{exc}. Please retry.", retryable=True)


app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


# ── Routers ──────────────────────────────────────────────────────────

app.include_router(icp.router)
app.include_router(triage.router)
app.include_router(candidates.router)
app.include_router(enrichment.router)


@app.get("/health")
def health():
    return {"status": "ok"}
