"""
Main FastAPI Application
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bridge import __version__
from bridge.core.config import check_settings, settings
from bridge.core.database import SessionLocal, init_db, ping_db
from bridge.core.errors import AppError, InternalError, ServiceUnavailable
from bridge.core.logging_config import setup_logging
from bridge.middleware.request_logging import RequestLoggingMiddleware
from bridge.routers import admin, auth, careers, oauth, otp, profiles, upgrades
from bridge.services.identity import ensure_admin_user
from bridge.utils.sms import is_sms_configured

logger = logging.getLogger("bridge.main")

app = FastAPI(title=settings.APP_NAME, version=__version__)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins + [settings.FRONTEND_URL],
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Middleware
app.add_middleware(RequestLoggingMiddleware)

# Routers
app.include_router(auth.router)
app.include_router(oauth.router)
app.include_router(otp.router)
app.include_router(admin.router)
app.include_router(upgrades.router)
app.include_router(profiles.router)
app.include_router(careers.router)


# ==================== Error handlers ====================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{field}: {error.get('msg')}" if field else str(error.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Validation failed", "messages": messages},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def store_unavailable_handler(request: Request, exc: Exception):
    logger.error("Database unavailable on %s %s: %s", request.method, request.url.path, exc)
    error = ServiceUnavailable()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    error = InternalError()
    content = error.to_dict()
    if settings.is_development:
        content["details"] = str(exc)
    return JSONResponse(status_code=error.status_code, content=content)


# ==================== Startup ====================

@app.on_event("startup")
def startup():
    """Check configuration, create tables, bootstrap the admin account"""
    setup_logging()

    problems = check_settings(settings)
    for problem in problems:
        logger.warning("[STARTUP] config: %s", problem)
    if problems and settings.is_production:
        raise RuntimeError("Invalid configuration: " + "; ".join(problems))

    init_db()
    logger.info("[STARTUP] Database tables created/verified")

    if settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD:
        db = SessionLocal()
        try:
            ensure_admin_user(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD, settings.ADMIN_NAME)
        except AppError as e:
            logger.warning("[STARTUP] Admin bootstrap skipped: %s", e.message)
        finally:
            db.close()

    logger.info("[STARTUP] %s %s ready (%s)", settings.APP_NAME, __version__, settings.ENVIRONMENT)


# ==================== Misc ====================

@app.get("/")
async def root():
    """Root endpoint"""
    return {"message": f"{settings.APP_NAME} API", "version": __version__, "status": "running"}


@app.get("/api/health")
def health():
    """Health check"""
    database_ok = ping_db()
    return {
        "success": True,
        "status": "healthy" if database_ok else "degraded",
        "environment": settings.ENVIRONMENT,
        "database": "connected" if database_ok else "disconnected",
        "otpProvider": settings.SMS_GATEWAY_DEFAULT if is_sms_configured() else "mock",
    }
