"""
FastAPI application factory.

* Registers routes for route planning, fees and admin.
* Opens / closes the shared HTTP pool (OSRM) and Redis pool via lifespan.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

import httpx
from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from delivery_routing.api.middleware import limiter
from delivery_routing.api.routes import admin, fees, routing
from delivery_routing.config import settings
from delivery_routing.infrastructure.redis_client import close_redis

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the routing HTTP pool on startup; close pools on shutdown."""
    app.state.http_client = httpx.AsyncClient(timeout=settings.osrm_timeout_seconds)
    yield
    await app.state.http_client.aclose()
    await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Delivery Route Engine API",
        description=(
            "Sequences multi-stop delivery routes, estimates distances, "
            "delivery fees and ETAs, and resolves road-following geometry "
            "through OSRM."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(routing.router, prefix="/api/v1")
    app.include_router(fees.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
