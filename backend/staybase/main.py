"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from staybase.config import settings
from staybase.errors import ConfigurationError, NotFoundError, RemoteError, ValidationError
from staybase.routes import properties, tools
from staybase.services.airtable import AirtableClient
from staybase.services.queries import PropertyQueryService
from staybase.services.registry import load_registry

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events for startup/shutdown."""
    # Startup: load the property configuration once and open the Airtable client
    registry = load_registry(settings)
    async with AirtableClient() as client:
        app.state.query_service = PropertyQueryService(registry, client)
        logger.info("Serving %d properties from %s", len(registry), settings.airtable_base_url)
        yield  # Application runs here


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Guest contact data must not be cached by intermediaries
        response.headers["Cache-Control"] = "no-store"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


app = FastAPI(
    title="Staybase",
    description="Read-only query gateway for property bookings, guests and contacts",
    version="0.1.0",
    lifespan=lifespan,
)

# Security headers middleware (applied to all responses)
app.add_middleware(SecurityHeadersMiddleware)

# Parse comma-separated origins from config
_cors_origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)


# =============================================================================
# Error mapping (core errors -> HTTP)
# =============================================================================


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RemoteError)
async def remote_error_handler(request: Request, exc: RemoteError) -> JSONResponse:
    logger.warning("Remote store error on %s: status=%s %s", request.url.path, exc.status, exc.message)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error("Configuration error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


# Include API routers
app.include_router(properties.router, prefix="/api")
app.include_router(tools.router, prefix="/api")


@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API info."""
    return {
        "name": "Staybase API",
        "version": "0.1.0",
        "docs": "/docs",
    }
