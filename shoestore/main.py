"""
Shoe Store API

REST backend for a shoe store: catalog, wishlist and reviews, cart,
checkout, order history and the admin surface, backed by MongoDB.
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Load environment variables before settings are read
load_dotenv()

from .core.config import get_settings
from .database.connection import close_database, ensure_indexes, get_database
from .errors import StoreError, status_code_for
from .models.common import ErrorResponse
from .routes import (
    admin_router,
    cart_router,
    checkout_router,
    products_router,
    users_router,
    wishlist_router,
)

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"{settings.app_name} starting up...")
    ensure_indexes(get_database())
    logger.info(f"Asset host: {'configured' if settings.assets_configured else 'not configured'}")
    logger.info(f"Mail transport: {'configured' if settings.mail_configured else 'not configured'}")
    yield
    close_database()
    logger.info(f"{settings.app_name} shutting down...")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(status=status_code, message=message).model_dump())


def validation_message(errors: list) -> str:
    """First validation problem as ``field: reason``"""
    if not errors:
        return "Invalid request"
    error = errors[0]
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location)
    return f"{field}: {error.get('msg')}" if field else error.get("msg", "Invalid request")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Shoe store REST API",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return error_response(status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return error_response(400, validation_message(exc.errors()))

    @app.exception_handler(ValidationError)
    async def model_validation_handler(request: Request, exc: ValidationError):
        return error_response(400, validation_message(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return error_response(500, "Internal server error")

    # Include API routers
    for router in (
        users_router,
        products_router,
        wishlist_router,
        cart_router,
        checkout_router,
        admin_router,
    ):
        app.include_router(router, prefix=settings.api_prefix)

    @app.get("/")
    async def home():
        return {
            "message": settings.app_name,
            "docs": "/docs",
            "api": settings.api_prefix,
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "shoestore"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "shoestore.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
