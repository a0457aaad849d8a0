"""Main FastAPI application."""
import logging
import re
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api import dashboard, delivery_areas, health, ingredients, menu, orders
from app.core.config import settings
from app.core.errors import AppError
from app.core.logging import setup_logging
from app.db.database import engine, init_db

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    logger.info(f"Starting {settings.business_name} order manager")
    await init_db()
    yield
    # Shutdown
    await engine.dispose()


def origin_regex(origins: List[str]) -> Optional[str]:
    """Regex for allow-list entries with a ``*`` wildcard, e.g. ``https://*.netlify.app``."""
    patterns = [
        ".*".join(re.escape(part) for part in origin.split("*"))
        for origin in origins
        if "*" in origin
    ]
    return "|".join(f"(?:{pattern})" for pattern in patterns) or None


app = FastAPI(
    title="Acarajé Order Manager",
    description="Order management backend: menu, ingredients, delivery areas, orders and dashboard",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin for origin in settings.cors_origins if "*" not in origin],
    allow_origin_regex=origin_regex(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(
            f"[ERROR] {request.method} {request.url.path} - {type(exc).__name__}: {exc.message}",
            exc_info=exc,
        )
    else:
        logger.info(f"[ERROR] {request.method} {request.url.path} - {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message, "code": exc.code})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    logger.info(f"[ERROR] {request.method} {request.url.path} - invalid request: {details}")
    return JSONResponse(status_code=400, content={"message": details, "code": "validation_error"})


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"[ERROR] {request.method} {request.url.path} - database error", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Database operation failed", "code": "store_error"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"[ERROR] {request.method} {request.url.path} - unexpected error", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Internal server error", "code": "internal_error"})


# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(menu.router, tags=["menu"])
app.include_router(ingredients.router, tags=["ingredients"])
app.include_router(delivery_areas.router, tags=["delivery-areas"])
app.include_router(orders.router, tags=["orders"])
app.include_router(dashboard.router, tags=["dashboard"])


@app.get("/")
async def root():
    return {
        "message": f"{settings.business_name} API",
        "version": "1.0.0",
        "website": settings.website_url,
    }


if __name__ == "__main__":
    import uvicorn

    logger.info(f"Starting development server on {settings.host}:{settings.port}")
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
