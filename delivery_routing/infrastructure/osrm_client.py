"""
OSRM road-routing client.

Talks to an OSRM server over HTTP and converts its responses into the
domain model.  OSRM speaks ``lon,lat``; the domain speaks ``(latitude,
longitude)``.  Every conversion between the two happens in this module.

Failure policy
--------------
``resolve_route`` (and its two-point / multi-stop wrappers) never raise:
transport errors, timeouts, ``code != "Ok"``, empty route lists and
malformed payloads all come back as ``RouteFailure``.  Cancellation
(``asyncio.CancelledError``) still propagates, it is not a failure.

The table / nearest helpers raise ``RoutingServiceError`` instead.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Any, Optional

import httpx

from delivery_routing.config import settings
from delivery_routing.domain.distance import as_coordinate
from delivery_routing.domain.entities import (
    Coordinate,
    DistanceMatrix,
    ResolvedRoute,
    RouteFailure,
    RouteLeg,
    RouteResult,
    RouteStep,
    SnappedPoint,
)
from delivery_routing.infrastructure.route_cache import RouteCache

logger = logging.getLogger(__name__)


class RoutingServiceError(Exception):
    """Raised by the table / nearest helpers when OSRM cannot answer."""


def format_waypoints(waypoints: Sequence[Coordinate]) -> str:
    """``[(lat, lon), ...]`` -> OSRM path ``'lon,lat;lon,lat;...'``."""
    return ";".join(f"{wp.longitude},{wp.latitude}" for wp in waypoints)


class OSRMClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str = settings.osrm_base_url,
        timeout: float = settings.osrm_timeout_seconds,
        cache: Optional[RouteCache] = None,
    ):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache = cache

    # ── Route service ────────────────────────────────────────────────

    async def resolve_route(
        self,
        waypoints: Sequence[Any],
        profile: str = settings.default_profile,
        *,
        legs: bool = True,
        steps: bool = False,
    ) -> RouteResult:
        """
        Resolve a road-following route through *waypoints* in order.

        Returns ``ResolvedRoute`` with the full geometry, ``distance_km``
        (metres / 1000, unrounded) and ``duration_min`` (ceil of seconds /
        60).  With *legs*, one ``RouteLeg`` per consecutive waypoint pair.
        """
        if len(waypoints) < 2:
            return RouteFailure("At least 2 waypoints required")

        points = [as_coordinate(wp) for wp in waypoints]
        if any(p is None for p in points):
            return RouteFailure("Waypoints must have numeric latitude and longitude")

        if self.cache is not None:
            cached = await self.cache.get(points, profile, legs=legs, steps=steps)
            if cached is not None:
                return cached

        url = f"{self.base_url}/route/v1/{profile}/{format_waypoints(points)}"
        params = {
            "overview": "full",
            "geometries": "geojson",
            "steps": "true" if steps else "false",
        }

        try:
            data = await self._get_json(url, params)
        except httpx.TimeoutException:
            logger.warning("OSRM route request timed out after %ss", self.timeout)
            return RouteFailure("Routing request timed out")
        except httpx.HTTPError as exc:
            logger.warning("OSRM route request failed: %s", exc)
            return RouteFailure(f"Routing request failed: {exc}")
        except ValueError:
            logger.warning("OSRM returned a non-JSON response")
            return RouteFailure("Malformed routing response")

        if not isinstance(data, dict):
            return RouteFailure("Malformed routing response")
        if data.get("code") != "Ok" or not data.get("routes"):
            message = data.get("message") or "No route found"
            logger.warning("OSRM routing failed (%s): %s", data.get("code"), message)
            return RouteFailure(message)

        try:
            route = _parse_route(data["routes"][0], legs=legs)
        except (KeyError, TypeError, ValueError, IndexError, OverflowError) as exc:
            logger.warning("OSRM route payload malformed: %r", exc)
            return RouteFailure("Malformed routing response")

        if legs and len(route.legs) != len(points) - 1:
            return RouteFailure(
                f"Malformed routing response: expected {len(points) - 1} legs, "
                f"got {len(route.legs)}"
            )

        if self.cache is not None:
            await self.cache.set(points, profile, route, legs=legs, steps=steps)
        return route

    async def get_route(
        self, origin: Any, destination: Any, profile: str = settings.default_profile
    ) -> RouteResult:
        """Point-to-point route, geometry and totals only."""
        return await self.resolve_route([origin, destination], profile, legs=False)

    async def get_multi_stop_route(
        self, waypoints: Sequence[Any], profile: str = settings.default_profile
    ) -> RouteResult:
        """Route through every waypoint with per-leg turn-by-turn steps."""
        return await self.resolve_route(waypoints, profile, legs=True, steps=True)

    # ── Table / nearest services ─────────────────────────────────────

    async def get_distance_matrix(
        self,
        sources: Sequence[Any],
        destinations: Sequence[Any],
        profile: str = settings.default_profile,
    ) -> DistanceMatrix:
        """
        Calls the OSRM ``/table`` endpoint.

        Returns ``len(sources) x len(destinations)`` matrices of seconds and
        metres; unreachable pairs are ``None``.
        """
        if not sources or not destinations:
            return DistanceMatrix(durations=[], distances=[])

        points = [as_coordinate(p) for p in [*sources, *destinations]]
        if any(p is None for p in points):
            raise RoutingServiceError("Matrix points must have numeric coordinates")

        url = f"{self.base_url}/table/v1/{profile}/{format_waypoints(points)}"
        params = {
            "sources": ";".join(str(i) for i in range(len(sources))),
            "destinations": ";".join(
                str(i) for i in range(len(sources), len(points))
            ),
            "annotations": "duration,distance",
        }
        data = await self._request_or_raise(url, params)
        durations = data.get("durations", [])
        distances = data.get("distances", [])
        if not (_is_matrix(durations) and _is_matrix(distances)):
            raise RoutingServiceError("Malformed routing response")
        return DistanceMatrix(durations=durations, distances=distances)

    async def get_nearest_road(self, point: Any, profile: str = settings.default_profile) -> SnappedPoint:
        """Snap *point* to the closest routable road."""
        coord = as_coordinate(point)
        if coord is None:
            raise RoutingServiceError("Point must have numeric coordinates")

        url = f"{self.base_url}/nearest/v1/{profile}/{format_waypoints([coord])}"
        data = await self._request_or_raise(url, {"number": 1})
        if not data.get("waypoints"):
            raise RoutingServiceError("No nearby road found")

        try:
            waypoint = data["waypoints"][0]
            lng, lat = waypoint["location"][:2]
            return SnappedPoint(
                coordinate=Coordinate(latitude=float(lat), longitude=float(lng)),
                name=waypoint.get("name", ""),
                distance_m=float(waypoint.get("distance", 0.0)),
            )
        except (KeyError, TypeError, ValueError, IndexError) as exc:
            raise RoutingServiceError("Malformed routing response") from exc

    # ── Internals ────────────────────────────────────────────────────

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        response = await self.http.get(url, params=params, timeout=self.timeout)
        return response.json()

    async def _request_or_raise(self, url: str, params: dict[str, Any]) -> dict:
        try:
            data = await self._get_json(url, params)
        except httpx.HTTPError as exc:
            raise RoutingServiceError(f"Routing request failed: {exc}") from exc
        except ValueError as exc:
            raise RoutingServiceError("Malformed routing response") from exc

        if not isinstance(data, dict) or data.get("code") != "Ok":
            message = data.get("message") if isinstance(data, dict) else None
            raise RoutingServiceError(f"OSRM error: {message or 'Unknown error'}")
        return data


def _parse_route(route: dict[str, Any], *, legs: bool) -> ResolvedRoute:
    coordinates = tuple(
        Coordinate(latitude=float(pair[1]), longitude=float(pair[0]))
        for pair in route["geometry"]["coordinates"]
    )
    duration_s = _finite(route["duration"])
    parsed_legs: tuple[RouteLeg, ...] = ()
    if legs:
        parsed_legs = tuple(
            RouteLeg(
                index=index,
                distance_km=_finite(leg["distance"]) / 1000,
                duration_min=math.ceil(_finite(leg["duration"]) / 60),
                steps=tuple(_parse_step(step) for step in leg.get("steps") or ()),
            )
            for index, leg in enumerate(route.get("legs") or ())
        )

    return ResolvedRoute(
        coordinates=coordinates,
        distance_km=_finite(route["distance"]) / 1000,
        duration_min=math.ceil(duration_s / 60),
        legs=parsed_legs,
        duration_s=duration_s,
    )


def _is_matrix(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(row, list) for row in value)


def _finite(value: Any) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"non-finite value {value!r}")
    return number


def _parse_step(step: dict[str, Any]) -> RouteStep:
    maneuver = step.get("maneuver") or {}
    return RouteStep(
        instruction=maneuver.get("instruction", ""),
        name=step.get("name", ""),
        distance_m=float(step.get("distance", 0.0)),
        duration_s=float(step.get("duration", 0.0)),
        maneuver_type=maneuver.get("type"),
    )
