"""
Domain value objects for route planning.

Patterns used
-------------
- **Value Objects**: ``Coordinate``, ``Stop``, ``ResolvedRoute`` and friends
  are frozen; a new instance is built on every resolution, never mutated.
- **Tagged result**: the resolver returns either ``ResolvedRoute`` or
  ``RouteFailure``; both expose ``success`` so callers branch without
  ``isinstance`` checks.
- **State Pattern** on ``RouteState``: watchers move between statuses via
  ``transition_to`` which enforces ``WATCHER_TRANSITIONS``.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from typing import Any, ClassVar, Optional, Union

from .enums import StopType, WatcherStatus, WATCHER_TRANSITIONS


class InvalidStateTransition(Exception):
    """Raised when a watcher status change violates the state machine."""


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Stop:
    """A coordinate plus an opaque caller payload."""

    latitude: float
    longitude: float
    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[StopType] = None
    payload: dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


@dataclass(frozen=True)
class Region:
    latitude: float
    longitude: float
    latitude_delta: float
    longitude_delta: float


@dataclass(frozen=True)
class RoutePlan:
    pickup_order: list
    dropoff_order: list
    total_distance_km: float
    estimated_time_min: int


# ── Routing results ───────────────────────────────────────────────────


@dataclass(frozen=True)
class RouteStep:
    instruction: str = ""
    name: str = ""
    distance_m: float = 0.0
    duration_s: float = 0.0
    maneuver_type: Optional[str] = None


@dataclass(frozen=True)
class RouteLeg:
    index: int
    distance_km: float
    duration_min: int
    steps: tuple[RouteStep, ...] = ()
    origin_label: Optional[str] = None
    destination_label: Optional[str] = None


@dataclass(frozen=True)
class ResolvedRoute:
    success: ClassVar[bool] = True

    coordinates: tuple[Coordinate, ...]
    distance_km: float
    duration_min: int
    legs: tuple[RouteLeg, ...] = ()
    duration_s: Optional[float] = None  # raw seconds, when known

    def to_dict(self) -> dict[str, Any]:
        return {
            "coordinates": [[c.latitude, c.longitude] for c in self.coordinates],
            "distance_km": self.distance_km,
            "duration_min": self.duration_min,
            "duration_s": self.duration_s,
            "legs": [
                {
                    "index": leg.index,
                    "distance_km": leg.distance_km,
                    "duration_min": leg.duration_min,
                    "steps": [asdict(step) for step in leg.steps],
                }
                for leg in self.legs
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResolvedRoute":
        return cls(
            coordinates=tuple(Coordinate(lat, lng) for lat, lng in data["coordinates"]),
            distance_km=data["distance_km"],
            duration_min=data["duration_min"],
            legs=tuple(
                RouteLeg(
                    index=leg["index"],
                    distance_km=leg["distance_km"],
                    duration_min=leg["duration_min"],
                    steps=tuple(RouteStep(**step) for step in leg.get("steps", [])),
                )
                for leg in data.get("legs", [])
            ),
            duration_s=data.get("duration_s"),
        )


@dataclass(frozen=True)
class RouteFailure:
    success: ClassVar[bool] = False

    error: str


RouteResult = Union[ResolvedRoute, RouteFailure]


@dataclass(frozen=True)
class DistanceMatrix:
    durations: list[list[Optional[float]]]  # seconds
    distances: list[list[Optional[float]]]  # metres


@dataclass(frozen=True)
class SnappedPoint:
    coordinate: Coordinate
    name: str
    distance_m: float


# ── Watcher state ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class RouteInfo:
    distance_km: float
    duration_min: int
    duration_s: Optional[float] = None


@dataclass(frozen=True)
class RouteState:
    status: WatcherStatus = WatcherStatus.IDLE
    route_coords: tuple[Coordinate, ...] = ()
    route_info: Optional[RouteInfo] = None
    legs: tuple[RouteLeg, ...] = ()
    loading: bool = False
    error: Optional[str] = None
    optimized_stops: tuple = ()

    def transition_to(self, new_status: WatcherStatus, **changes: Any) -> "RouteState":
        """Return a copy in *new_status* if the transition is legal, else raise."""
        allowed = WATCHER_TRANSITIONS.get(self.status, set())
        if new_status not in allowed:
            raise InvalidStateTransition(
                f"Cannot transition from {self.status} to {new_status}"
            )
        return replace(self, status=new_status, **changes)
