"""
Shared test fixtures.

The OSRM server is replaced by ``httpx.MockTransport`` and Redis by
``AsyncMock`` so tests run without network access, a local OSRM or
Docker.  Watcher tests use ``FakeRoutingClient`` whose calls can be held
open with ``asyncio.Event`` gates to simulate slow responses.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

import httpx
import pytest

from delivery_routing.domain.entities import (
    Coordinate,
    ResolvedRoute,
    RouteLeg,
    RouteResult,
)
from delivery_routing.infrastructure.osrm_client import OSRMClient

# Mumbai: airport -> Andheri -> Bandra (approx)
AIRPORT = Coordinate(19.0896, 72.8656)
ANDHERI = Coordinate(19.1176, 72.8490)
BANDRA = Coordinate(19.0596, 72.8295)


# ── OSRM payloads ─────────────────────────────────────────────────────


def osrm_route_payload(
    waypoints: list[Coordinate],
    *,
    leg_distances: Optional[list[float]] = None,
    leg_durations: Optional[list[float]] = None,
    steps: bool = False,
) -> dict:
    """A ``/route`` response whose geometry passes through *waypoints*."""
    n_legs = len(waypoints) - 1
    distances = leg_distances or [1000.0] * n_legs
    durations = leg_durations or [120.0] * n_legs
    legs = []
    for distance, duration in zip(distances, durations):
        leg = {"distance": distance, "duration": duration, "steps": []}
        if steps:
            leg["steps"] = [
                {
                    "name": "Western Express Hwy",
                    "distance": distance,
                    "duration": duration,
                    "maneuver": {"type": "depart", "instruction": "Head north"},
                }
            ]
        legs.append(leg)

    return {
        "code": "Ok",
        "routes": [
            {
                "distance": sum(distances),
                "duration": sum(durations),
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[wp.longitude, wp.latitude] for wp in waypoints],
                },
                "legs": legs,
            }
        ],
        "waypoints": [],
    }


def mock_http_client(
    handler: Callable[[httpx.Request], httpx.Response],
) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def requests_seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def make_osrm(requests_seen):
    """Build an ``OSRMClient`` whose HTTP calls go to *handler*."""

    def _make(handler, cache=None) -> OSRMClient:
        def _recording(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return handler(request)

        return OSRMClient(
            mock_http_client(_recording),
            base_url="http://osrm.test",
            timeout=2.0,
            cache=cache,
        )

    return _make


# ── Watcher fakes ─────────────────────────────────────────────────────


def straight_route(waypoints: list[Coordinate], legs: bool = True) -> ResolvedRoute:
    n_legs = len(waypoints) - 1
    return ResolvedRoute(
        coordinates=tuple(waypoints),
        distance_km=float(n_legs),
        duration_min=2 * n_legs,
        legs=tuple(RouteLeg(i, 1.0, 2) for i in range(n_legs)) if legs else (),
    )


class FakeRoutingClient:
    """
    Stands in for ``OSRMClient`` in watcher tests.

    ``gates[key]`` holds a call open until the event is set; ``results[key]``
    overrides the answer.  ``key`` is the tuple of waypoints.  With
    ``ignore_cancel`` a gated call keeps waiting through cancellation, like a
    transport that cannot be aborted.
    """

    def __init__(self, ignore_cancel: bool = False):
        self.calls: list[dict] = []
        self.gates: dict[tuple, asyncio.Event] = {}
        self.results: dict[tuple, RouteResult] = {}
        self.errors: dict[tuple, Exception] = {}
        self.ignore_cancel = ignore_cancel

    async def resolve_route(self, waypoints, profile="driving", *, legs=True, steps=False):
        key = tuple(waypoints)
        self.calls.append(
            {"waypoints": list(waypoints), "profile": profile, "legs": legs, "steps": steps}
        )

        gate = self.gates.get(key)
        if gate is not None:
            while not gate.is_set():
                try:
                    await gate.wait()
                except asyncio.CancelledError:
                    if not self.ignore_cancel:
                        raise

        if key in self.errors:
            raise self.errors[key]
        return self.results.get(key) or straight_route(list(waypoints), legs)


@pytest.fixture
def fake_client() -> FakeRoutingClient:
    return FakeRoutingClient()
