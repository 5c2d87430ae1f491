"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health      -- simple health check
GET /api/v1/admin/tile-config -- raster tile settings for map clients
"""

from fastapi import APIRouter, Request

from delivery_routing.api.middleware import limiter
from delivery_routing.api.schemas import HealthResponse, TileConfigResponse
from delivery_routing.config import settings

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()


@router.get(
    "/tile-config",
    response_model=TileConfigResponse,
    summary="Map tile template used to render routes",
)
@limiter.limit("100/minute")
async def tile_config(request: Request):
    return TileConfigResponse(
        url_template=settings.tile_url_template,
        maximum_z=settings.tile_max_zoom,
        tile_size=settings.tile_size,
    )
