"""SaaS Base - multi-tenant authentication and company management API."""

import logging
import time
import uuid
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.config import get_settings
from app.database import SessionLocal
from app.dependencies import get_bearer_token, user_from_token
from app.errors import (
    AlreadyInCompany,
    AppError,
    CompanyNotFound,
    CrossTenantAccessDenied,
    DuplicateEmail,
    DuplicateName,
    InvalidCredentials,
    InvalidOrExpiredOtp,
    InvalidOrExpiredToken,
    InvalidRole,
    MemberNotFound,
    PermissionDenied,
    UserNotFound,
)
from app.rate_limit import limiter
from app.routers import auth_router, companies_router
from app.services.audit import RequestFacts, get_audit_service
from app.services.mail import get_mail_service
from app.services.seed import run_seeders
from app.tenant import resolve_tenant

# Logging
logger = logging.getLogger("saas_base")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

APP_NAME = "saas-base"
APP_VERSION = "0.1.0"

# Session factory for out-of-request writes (error log). Overridden in tests.
_session_factory: Callable[[], Session] | None = None


def session_factory() -> Session:
    return (_session_factory or SessionLocal)()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    for warning in settings.validate():
        logger.warning("Config: %s", warning)

    if settings.SEED_ENABLED:
        db = session_factory()
        try:
            run_seeders(db)
        finally:
            db.close()

    yield

    get_mail_service().shutdown()


app = FastAPI(title="SaaS Base", version=APP_VERSION, lifespan=lifespan)
app.state.limiter = limiter


# --- Security headers middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        return response


# --- Audit logging middleware ---
class AuditLogMiddleware(BaseHTTPMiddleware):
    AUDIT_PATHS = ("/api/v1/auth/", "/api/v1/companies")

    async def dispatch(self, request: Request, call_next) -> Response:
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000

        # Log sensitive operations
        path = request.url.path
        method = request.method
        if method in ("POST", "PUT", "DELETE") and path.startswith(self.AUDIT_PATHS):
            logger.info(
                "AUDIT %s %s -> %d (%.0fms) from %s",
                method,
                path,
                response.status_code,
                duration_ms,
                request.client.host if request.client else "unknown",
            )

        return response


# --- Unhandled exception logging middleware ---
class ExceptionLoggingMiddleware(BaseHTTPMiddleware):
    """Persist unhandled exceptions as AppLog rows, then let them propagate."""

    async def dispatch(self, request: Request, call_next) -> Response:
        trace_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception("Unhandled exception on %s %s (trace %s)", request.method, request.url.path, trace_id)
            facts = RequestFacts(path=request.url.path, method=request.method, trace_id=trace_id)
            await run_in_threadpool(self._attach_caller, request, facts)
            await run_in_threadpool(get_audit_service().record_exception, session_factory, facts, exc)
            raise

    @staticmethod
    def _attach_caller(request: Request, facts: RequestFacts) -> None:
        user = user_from_token(get_bearer_token(request))
        if user is None:
            return
        facts.user_id = user.user_id
        db = session_factory()
        try:
            facts.company_id = resolve_tenant(db, user.user_id).company_id or None
        except Exception:
            logger.warning("Could not resolve company for user %s while logging an error", user.user_id)
        finally:
            db.close()


app.add_middleware(ExceptionLoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(AuditLogMiddleware)

# API routers
app.include_router(auth_router)
app.include_router(companies_router)


# --- Error handlers ---
ERROR_STATUS: dict[type[AppError], int] = {
    DuplicateEmail: 400,
    InvalidOrExpiredOtp: 400,
    DuplicateName: 400,
    AlreadyInCompany: 400,
    InvalidRole: 400,
    InvalidCredentials: 401,
    InvalidOrExpiredToken: 401,
    CrossTenantAccessDenied: 403,
    PermissionDenied: 403,
    UserNotFound: 404,
    CompanyNotFound: 404,
    MemberNotFound: 404,
}


def status_for(exc: AppError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS:
            return ERROR_STATUS[error_type]
    return 400


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Translate service-layer failures into ``{"detail", "code"}`` responses."""
    return JSONResponse(status_code=status_for(exc), content={"detail": exc.detail, "code": exc.code})


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    codes = {401: "UNAUTHORIZED", 403: "FORBIDDEN", 404: "NOT_FOUND"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": codes.get(exc.status_code, "HTTP_ERROR")},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "; ".join(f"{'.'.join(str(p) for p in e['loc'][1:])}: {e['msg']}" for e in errors) or "Invalid request"
    return JSONResponse(status_code=422, content={"detail": message, "code": "VALIDATION_ERROR"})


# --- Rate limit error handler ---
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Handle rate limit exceeded."""
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded. Try again later.", "code": "RATE_LIMITED"})


# --- Health check ---
@app.get("/api/health")
def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok", "app": APP_NAME, "version": APP_VERSION}


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.APP_ENV == "development")
