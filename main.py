"""
VibeCart - Application Entry Point
====================================
FastAPI app initialization, middleware, exception handlers and router registration.
"""

import logging
import os
import time as _time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from config.database import get_db, Base, engine
from common.exceptions import StoreError, store_error_handler, error_body
from common.helpers import now_utc, get_real_ip

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("vibecart.request")


# ==========================================
# Import ALL models so Alembic/Base can see them
# ==========================================
from modules.user.models import User  # noqa: F401
from modules.catalog.models import Product  # noqa: F401
from modules.cart.models import Cart, CartItem  # noqa: F401

# ==========================================
# Import routers
# ==========================================
from modules.auth.routes import router as auth_router
from modules.catalog.routes import router as product_router
from modules.cart.routes import router as cart_router
from modules.upload.routes import router as upload_router


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)
    logger.info("%s v%s started", settings.APP_NAME, settings.APP_VERSION)
    yield


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title=settings.APP_NAME,
    description="Storefront backend: auth, products, cart and image uploads",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==========================================
# Static Files (uploaded images)
# ==========================================
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


# ==========================================
# Exception handlers
# ==========================================

async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(
            error_body("Route not found", "not_found", path=request.url.path),
            status_code=404,
        )
    return JSONResponse(error_body(str(exc.detail)), status_code=exc.status_code)


def _validation_message(err: dict) -> str:
    msg = err.get("msg", "Invalid value")
    return msg[len("Value error, "):] if msg.startswith("Value error, ") else msg


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Render request body/query validation failures as a 400 envelope."""
    errors = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form")),
            "message": _validation_message(err),
        }
        for err in exc.errors()
    ]
    message = errors[0]["message"] if errors else "Invalid request"
    return JSONResponse(error_body(message, "validation_error", errors=errors), status_code=400)


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Anything not mapped above becomes a 500 envelope."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(error_body("Something went wrong", "server_error"), status_code=500)


app.add_exception_handler(StoreError, store_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


# ==========================================
# Middleware: Request Log
# ==========================================
_SKIP_PATHS = ("/uploads/", "/api/health", "/favicon.ico")


def _identify_user(request: Request):
    """User id from the bearer token, without a DB query."""
    from common.security import decode_token, extract_bearer_token

    token = extract_bearer_token(request)
    if token:
        payload = decode_token(token)
        if payload:
            return payload.get("sub")
    return None


@app.middleware("http")
async def request_logger(request: Request, call_next):
    """Log method, path, status and response time of every request."""
    path = request.url.path

    # Skip noisy paths
    if any(path.startswith(p) for p in _SKIP_PATHS):
        return await call_next(request)

    start = _time.time()
    response = await call_next(request)
    elapsed_ms = int((_time.time() - start) * 1000)

    logger.info(
        "%s %s -> %s (%dms) ip=%s user=%s",
        request.method, path, response.status_code, elapsed_ms,
        get_real_ip(request), _identify_user(request) or "-",
    )
    return response


# ==========================================
# Register Routers
# ==========================================
app.include_router(auth_router)
app.include_router(product_router)
app.include_router(cart_router)
app.include_router(upload_router)


# ==========================================
# Welcome & Health check
# ==========================================
@app.get("/api")
async def welcome():
    return {
        "success": True,
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
    }


@app.get("/api/health")
async def health(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except SQLAlchemyError as e:
        logger.error("Health check DB error: %s", e)
        db_status = "disconnected"
    return {
        "success": True,
        "status": "ok",
        "version": settings.APP_VERSION,
        "database": {"status": db_status},
        "timestamp": now_utc().isoformat(),
    }
