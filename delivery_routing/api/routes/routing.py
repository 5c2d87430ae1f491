"""
Routing endpoints
=================

POST /api/v1/routes/optimize        -- nearest-neighbour stop order
POST /api/v1/routes/plan            -- pickups-then-dropoffs plan with ETA
POST /api/v1/routes/clusters        -- group stacked deliveries by radius
POST /api/v1/routes/resolve         -- road-following route via OSRM
POST /api/v1/routes/decode-polyline -- encoded polyline -> coordinates
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from delivery_routing.api.dependencies import get_osrm_client
from delivery_routing.api.middleware import limiter
from delivery_routing.api.schemas import (
    ClusterRequest,
    ClusterResponse,
    CoordinateOut,
    ErrorResponse,
    OptimizeRequest,
    OptimizeResponse,
    PlanRequest,
    PlanResponse,
    PolylineRequest,
    PolylineResponse,
    ResolvedRouteResponse,
    ResolveRequest,
    StopSchema,
)
from delivery_routing.config import settings
from delivery_routing.domain.distance import total_route_distance
from delivery_routing.domain.polyline_codec import PolylineDecodeError, decode_polyline
from delivery_routing.domain.sequencing import (
    calculate_optimal_route,
    cluster_deliveries,
    optimize_route_order,
)
from delivery_routing.infrastructure.osrm_client import OSRMClient

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post(
    "/optimize",
    response_model=OptimizeResponse,
    summary="Order stops nearest-first from an origin",
)
@limiter.limit("100/minute")
async def optimize(request: Request, body: OptimizeRequest):
    origin = body.origin.to_domain()
    ordered = optimize_route_order(origin, [s.to_domain() for s in body.stops])
    return OptimizeResponse(
        stops=[StopSchema.model_validate(s) for s in ordered],
        total_distance_km=round(total_route_distance([origin, *ordered]), 2),
    )


@router.post(
    "/plan",
    response_model=PlanResponse,
    summary="Plan pickups then drop-offs with a distance / time estimate",
)
@limiter.limit("100/minute")
async def plan(request: Request, body: PlanRequest):
    route_plan = calculate_optimal_route(
        body.origin.to_domain(),
        [p.to_domain() for p in body.pickups],
        [d.to_domain() for d in body.dropoffs],
        average_speed_kmh=settings.average_speed_kmh,
        stop_minutes=settings.stop_dwell_minutes,
    )
    return PlanResponse.model_validate(route_plan)


@router.post(
    "/clusters",
    response_model=ClusterResponse,
    summary="Group deliveries within a radius of each other",
)
@limiter.limit("100/minute")
async def clusters(request: Request, body: ClusterRequest):
    groups = cluster_deliveries([d.to_domain() for d in body.deliveries], body.radius_km)
    return ClusterResponse(
        clusters=[[StopSchema.model_validate(s) for s in group] for group in groups]
    )


@router.post(
    "/resolve",
    response_model=ResolvedRouteResponse,
    summary="Resolve a road-following route through ordered waypoints",
    responses={
        502: {
            "model": ErrorResponse,
            "description": "Routing service could not produce a route.",
        }
    },
)
@limiter.limit("100/minute")
async def resolve(
    request: Request,
    body: ResolveRequest,
    client: OSRMClient = Depends(get_osrm_client),
):
    result = await client.resolve_route(
        [wp.to_domain() for wp in body.waypoints],
        body.profile.value,
        legs=body.legs,
        steps=body.steps,
    )
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error)
    return ResolvedRouteResponse.model_validate(result)


@router.post(
    "/decode-polyline",
    response_model=PolylineResponse,
    summary="Decode an encoded polyline into coordinates",
    responses={422: {"model": ErrorResponse, "description": "Corrupt or truncated polyline."}},
)
@limiter.limit("100/minute")
async def decode(request: Request, body: PolylineRequest):
    try:
        points = decode_polyline(body.encoded, body.precision)
    except PolylineDecodeError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return PolylineResponse(
        coordinates=[CoordinateOut.model_validate(p) for p in points]
    )
