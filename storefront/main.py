import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import IntegrityError
from starlette.requests import Request

from storefront.api.v1.router import api_router
from storefront.core.config import settings
from storefront.core.errors import InvalidCredentials, LedgerBusy, Unauthorized
from storefront.core.logging import setup_logging
from storefront.db.bootstrap import run_migrations_and_seed

logger = logging.getLogger("storefront.main")

setup_logging()

api = FastAPI(
    title="Storefront Admin Auth",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

api.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# /metrics (Prometheus)
Instrumentator().instrument(api).expose(api, include_in_schema=False, should_gzip=True)

api.include_router(api_router, prefix="/api/v1")

@api.get("/healthz", tags=["health"])
def healthz():
    return {"status": "ok"}

@api.on_event("startup")
def startup():
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        run_migrations_and_seed()

def _envelope(status_code: int, code: str, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"code": code, "message": message}, headers=headers)

@api.exception_handler(InvalidCredentials)
def handle_invalid_credentials(request: Request, exc: InvalidCredentials):
    return _envelope(401, exc.code, exc.message, {"WWW-Authenticate": "Bearer"})

@api.exception_handler(Unauthorized)
def handle_unauthorized(request: Request, exc: Unauthorized):
    # identical for every internal cause
    return _envelope(401, Unauthorized.code, Unauthorized.message, {"WWW-Authenticate": "Bearer"})

@api.exception_handler(LedgerBusy)
def handle_ledger_busy(request: Request, exc: LedgerBusy):
    return _envelope(503, exc.code, exc.message, {"Retry-After": "1"})

@api.exception_handler(IntegrityError)
def handle_integrity_error(request: Request, exc: IntegrityError):
    return _envelope(409, "UNIQUE_VIOLATION", "Duplicate record.")

@api.exception_handler(Exception)
def handle_unexpected(request: Request, exc: Exception):
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return _envelope(500, "INTERNAL_ERROR", "Internal error.")

app = api
