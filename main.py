"""
FastAPI application entry point with async lifespan.
"""
import logging

import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import get_settings
from app.core.database import AsyncSessionLocal, init_db, close_db
from app.core.errors import AuthenticationRequired, ConsoleError, StoreUnavailable
from app.core.logging import configure_logging
from app.handlers.sessions import purge_expired
from app.routes import analytics, auth, health, monitoring, security

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Async lifespan manager for startup and shutdown."""
    # Startup
    configure_logging(settings.log_level)
    await init_db()
    async with AsyncSessionLocal() as session:
        sessions, codes = await purge_expired(session)
    logger.info(
        "%s %s started (purged %d expired sessions, %d expired codes)",
        settings.app_name, settings.app_version, sessions, codes
    )
    yield
    # Shutdown
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Admin console for tenant monitoring, log triage and analytics",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": code, "message": message}
    )


@app.exception_handler(ConsoleError)
async def console_error_handler(request: Request, exc: ConsoleError):
    if isinstance(exc, AuthenticationRequired):
        # Denial causes are logged, not disclosed
        return error_response(
            exc.status_code,
            AuthenticationRequired.code,
            AuthenticationRequired.default_message
        )
    return error_response(exc.status_code, exc.code, exc.message)


HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, "http_error"),
        str(exc.detail)
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    )
    return error_response(status.HTTP_400_BAD_REQUEST, "validation_error", problems or "Invalid request")


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return error_response(
        StoreUnavailable.status_code,
        StoreUnavailable.code,
        StoreUnavailable.default_message
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    message = str(exc) if settings.debug else "Internal server error"
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", message)


# Register routes
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(monitoring.router)
app.include_router(analytics.router)
app.include_router(security.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    uvicorn.run(
        app,
        host='0.0.0.0',
        port=settings.port
    )
