"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from delivery_routing.domain.entities import Coordinate, Stop
from delivery_routing.domain.enums import RoutingProfile, StopType


# ── Shared ────────────────────────────────────────────────────────────


class CoordinateSchema(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    model_config = {"from_attributes": True}

    def to_domain(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


class StopSchema(CoordinateSchema):
    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[StopType] = None
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_domain(self) -> Stop:
        return Stop(
            latitude=self.latitude,
            longitude=self.longitude,
            id=self.id,
            name=self.name,
            type=self.type,
            payload=self.payload,
        )


class CoordinateOut(BaseModel):
    latitude: float
    longitude: float

    model_config = {"from_attributes": True}


# ── Requests ──────────────────────────────────────────────────────────


class OptimizeRequest(BaseModel):
    origin: CoordinateSchema
    stops: list[StopSchema] = []


class PlanRequest(BaseModel):
    origin: CoordinateSchema
    pickups: list[StopSchema] = []
    dropoffs: list[StopSchema] = []


class ClusterRequest(BaseModel):
    deliveries: list[StopSchema] = []
    radius_km: float = Field(3.0, gt=0)


class ResolveRequest(BaseModel):
    waypoints: list[CoordinateSchema] = Field(..., min_length=2)
    profile: RoutingProfile = RoutingProfile.DRIVING
    legs: bool = True
    steps: bool = False


class PolylineRequest(BaseModel):
    encoded: str
    precision: int = Field(5, ge=1, le=10)


# ── Responses ─────────────────────────────────────────────────────────


class OptimizeResponse(BaseModel):
    stops: list[StopSchema]
    total_distance_km: float


class PlanResponse(BaseModel):
    pickup_order: list[StopSchema]
    dropoff_order: list[StopSchema]
    total_distance_km: float
    estimated_time_min: int

    model_config = {"from_attributes": True}


class ClusterResponse(BaseModel):
    clusters: list[list[StopSchema]]


class RouteStepResponse(BaseModel):
    instruction: str = ""
    name: str = ""
    distance_m: float = 0.0
    duration_s: float = 0.0
    maneuver_type: Optional[str] = None

    model_config = {"from_attributes": True}


class RouteLegResponse(BaseModel):
    index: int
    distance_km: float
    duration_min: int
    steps: list[RouteStepResponse] = []

    model_config = {"from_attributes": True}


class ResolvedRouteResponse(BaseModel):
    coordinates: list[CoordinateOut]
    distance_km: float
    duration_min: int
    legs: list[RouteLegResponse] = []

    model_config = {"from_attributes": True}


class PolylineResponse(BaseModel):
    coordinates: list[CoordinateOut]


class DeliveryFeeResponse(BaseModel):
    distance_km: Optional[float] = None
    fee: Optional[float] = None
    formatted: Optional[str] = None


class TileConfigResponse(BaseModel):
    url_template: str
    maximum_z: int
    tile_size: int
    flip_y: bool = False


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
