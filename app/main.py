from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse
from sqlalchemy import text

import uvicorn

from app.core.config import settings
from app.core.exceptions import InventoryError
from app.db import init_db
from app.db.session import engine
from app.routers import product_router
from app.schemas.base import APIInfoResponse, HealthCheckResponse, field_errors

# Logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting application...")

    # Database connection check
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        logger.info("Database connection successful")
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        raise

    if settings.AUTO_CREATE_TABLES:
        init_db()

    # Redis is only required by the distributed stock lock
    if settings.STOCK_LOCK_BACKEND == "redis":
        from app.core.redis import async_redis

        try:
            await async_redis.ping()
            logger.info("Redis connected successfully")
        except Exception as e:
            logger.warning(f"Redis connection failed: {e}")
            logger.warning("Stock operations will fail until Redis is reachable")

    yield

    logger.info("Shutting down application...")


app = FastAPI(
    title="Inventory Service API",
    description="Product inventory with concurrency-safe stock operations",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(product_router.router, prefix="/api/v1")


# Global exception handlers
@app.exception_handler(InventoryError)
async def inventory_exception_handler(request: Request, exc: InventoryError):
    if exc.status_code >= 500:
        logger.error(f"Inventory error: {exc.code} - {exc.message}", exc_info=exc)
        message = "Internal server error"
    else:
        logger.error(f"Inventory error: {exc.code} - {exc.message}")
        message = exc.message
    content = {
        "success": False,
        "code": exc.code,
        "message": message,
    }
    if exc.status_code < 500:
        content.update(exc.to_dict())
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = field_errors(exc.errors())
    logger.error(f"Validation error: {errors}")
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "code": "validation_failed",
            "message": "Invalid input parameters",
            "validation_errors": errors
        }
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    logger.error(f"HTTP error: {exc.status_code} - {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "message": exc.detail
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "code": "internal_error",
            "message": "An unexpected error occurred. Please try again later."
        }
    )


@app.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """Health check"""
    return HealthCheckResponse()


@app.get("/", response_model=APIInfoResponse)
async def read_root():
    """API root"""
    return APIInfoResponse()


if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
