"""FastAPI dependency injection helpers."""

from fastapi import Request

from delivery_routing.config import settings
from delivery_routing.infrastructure.osrm_client import OSRMClient
from delivery_routing.infrastructure.redis_client import get_redis
from delivery_routing.infrastructure.route_cache import RouteCache


async def get_osrm_client(request: Request) -> OSRMClient:
    """OSRM client on the app-wide HTTP pool, cached when enabled."""
    cache = None
    if settings.route_cache_enabled:
        cache = RouteCache(await get_redis(), ttl_seconds=settings.route_cache_ttl_seconds)
    return OSRMClient(request.app.state.http_client, cache=cache)
