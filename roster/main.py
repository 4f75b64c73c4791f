import logging as _logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .platform.config import settings
from .platform.database import SessionLocal
from .platform.logging import setup_logging
from .platform.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from .services.session_errors import (
    BalanceAlreadyExistsError,
    BalanceNotFoundError,
    ConcurrentAttendanceUpdateError,
    ConcurrentBalanceUpdateError,
    SessionLedgerError,
    SessionOverdraftError,
    SessionValidationError,
)

# Set up logging
logger = setup_logging()

# ---------------------------------------------------------------------------
# Disable interactive API docs in production (information disclosure)
# ---------------------------------------------------------------------------
_docs_url = None if settings.is_production else "/api/docs"
_openapi_url = None if settings.is_production else "/api/openapi.json"


@asynccontextmanager
async def _lifespan(_app: FastAPI):
    logger.info(
        "Roster sessions API started | env=%s overdraft_policy=%s",
        settings.DEPLOYMENT_ENV,
        settings.SESSION_OVERDRAFT_POLICY,
    )
    yield


app = FastAPI(
    title="Roster Sessions API",
    description="Prepaid session balances, attendance charges and payments for team rosters.",
    version="1.0.0",
    docs_url=_docs_url,
    openapi_url=_openapi_url,
    lifespan=_lifespan,
)

_val_logger = _logging.getLogger("roster.validation")
_err_logger = _logging.getLogger("roster.errors")


def _sanitize_errors(errors: list) -> list:
    """Ensure validation error details are JSON-serializable."""

    def _json_safe(value):
        if isinstance(value, (str, int, float, bool)) or value is None:
            return value
        if isinstance(value, bytes):
            return value.decode("utf-8", errors="replace")
        if isinstance(value, dict):
            return {str(k): _json_safe(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set)):
            return [_json_safe(v) for v in value]
        return str(value)

    return [_json_safe(err) for err in errors]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors with detail so we can diagnose 422s."""
    _val_logger.warning(
        "Validation error on %s %s: %s",
        request.method,
        request.url.path,
        exc.errors(),
    )
    return JSONResponse(
        status_code=422,
        content={"detail": _sanitize_errors(exc.errors())},
    )


# ---------------------------------------------------------------------------
# Ledger errors -> HTTP status
# ---------------------------------------------------------------------------
_LEDGER_ERROR_STATUS = (
    (SessionValidationError, 400),
    (BalanceNotFoundError, 404),
    (BalanceAlreadyExistsError, 409),
    (ConcurrentBalanceUpdateError, 409),
    (ConcurrentAttendanceUpdateError, 409),
    (SessionOverdraftError, 409),
)


def _ledger_error_status(exc: SessionLedgerError) -> int:
    for error_type, status_code in _LEDGER_ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400


@app.exception_handler(SessionLedgerError)
async def ledger_exception_handler(request: Request, exc: SessionLedgerError):
    status_code = _ledger_error_status(exc)
    _err_logger.warning(
        "%s on %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


app.add_middleware(SecurityHeadersMiddleware)

# CORS: frontend URL + localhost + any extra origins
_cors_origins = [
    settings.FRONTEND_URL,
    "http://localhost:5173",
    "http://localhost:3000",
]
if settings.CORS_EXTRA_ORIGINS:
    _cors_origins.extend(o.strip() for o in settings.CORS_EXTRA_ORIGINS.split(",") if o.strip())
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o for o in _cors_origins if o],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type", "X-User-Id", "X-Request-ID", "X-Requested-With"],
)

# Request logging
app.add_middleware(RequestLoggingMiddleware)

# Sentry (optional)
if settings.SENTRY_DSN and settings.SENTRY_DSN.startswith("https://"):
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.DEPLOYMENT_ENV,
        traces_sample_rate=0.1,
        integrations=[FastApiIntegration(), SqlalchemyIntegration()],
    )

# Include routers
from .domains.attendance.routes import router as attendance_router
from .domains.payments.routes import router as payments_router
from .domains.sessions.routes import router as sessions_router

app.include_router(sessions_router, prefix="/api/v1")
app.include_router(attendance_router, prefix="/api/v1")
app.include_router(payments_router, prefix="/api/v1")


@app.get("/health")
def health_check():
    db_ok = False
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError:
        logger.exception("Health check database query failed")
    finally:
        db.close()

    return {
        "status": "healthy" if db_ok else "degraded",
        "service": "roster-sessions-api",
        "database": db_ok,
    }
