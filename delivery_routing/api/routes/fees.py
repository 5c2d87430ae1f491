"""
Fee endpoints
=============

GET /api/v1/fees/delivery?distance_km=3.5 -- tiered delivery fee
"""

from typing import Optional

from fastapi import APIRouter, Query, Request

from delivery_routing.api.middleware import limiter
from delivery_routing.api.schemas import DeliveryFeeResponse
from delivery_routing.domain.pricing import calculate_delivery_fee, format_price

router = APIRouter(prefix="/fees", tags=["fees"])


@router.get(
    "/delivery",
    response_model=DeliveryFeeResponse,
    summary="Delivery fee for a distance",
    description="Omitting ``distance_km`` means the distance is unknown; no fee is quoted.",
)
@limiter.limit("100/minute")
async def delivery_fee(
    request: Request,
    distance_km: Optional[float] = Query(None, ge=0, allow_inf_nan=False),
):
    fee = calculate_delivery_fee(distance_km)
    return DeliveryFeeResponse(
        distance_km=distance_km,
        fee=fee,
        formatted=format_price(fee) if fee is not None else None,
    )
