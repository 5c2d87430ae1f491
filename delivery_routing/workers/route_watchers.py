"""
Route Watchers
==============

Stateful wrappers that keep a ``RouteState`` in sync with changing inputs
(driver location, destination, stop list).  A UI layer mounts a watcher,
feeds it inputs with ``update``, reads ``state`` (or subscribes), and
closes it on unmount.

Lifecycle
---------
* **IDLE**      -- no inputs, or fewer than 2 valid waypoints.
* **RESOLVING** -- a resolution task is in flight (``loading=True``).
* **RESOLVED**  -- geometry, totals and legs of the current inputs.
* **FAILED**    -- resolver failure; geometry cleared, ``error`` set.

Stale results
-------------
Every fresh resolution bumps a per-watcher generation counter and cancels
the previous task.  A result is only written if its generation is still
current and the watcher is open, so a late answer for superseded inputs
is dropped even if cancellation did not reach it in time.

Watchers share nothing; each one is driven from a single event loop.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import replace
from typing import Any, Optional

from delivery_routing.config import settings
from delivery_routing.domain.distance import as_coordinate
from delivery_routing.domain.entities import (
    Coordinate,
    RouteFailure,
    RouteInfo,
    RouteLeg,
    RouteResult,
    RouteState,
    Stop,
)
from delivery_routing.domain.enums import StopType, WatcherStatus
from delivery_routing.domain.eta import format_eta
from delivery_routing.domain.sequencing import optimize_route_order
from delivery_routing.infrastructure.osrm_client import OSRMClient

logger = logging.getLogger(__name__)

Listener = Callable[[RouteState], None]
Plan = tuple[list[Coordinate], dict[str, Any]]

_UNSET = object()


class RouteWatcher:
    """Base watcher.  Subclasses provide ``update`` and ``_plan``."""

    include_legs = True
    include_steps = False

    def __init__(self, client: OSRMClient, *, profile: str = settings.default_profile):
        self.client = client
        self.profile = profile
        self._state = RouteState()
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._inputs: Any = _UNSET
        self._closed = False
        self._listeners: list[Listener] = []

    # ── Public API ────────────────────────────────────────────────────

    @property
    def state(self) -> RouteState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call *listener* with every new state.  Returns an unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def refetch(self) -> Optional[asyncio.Task]:
        """Resolve the current inputs again."""
        if self._closed or self._inputs is _UNSET:
            return None
        return self._start()

    async def wait(self) -> RouteState:
        """Wait until no resolution is in flight; return the final state."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        return self._state

    def close(self) -> None:
        """Abandon in-flight work and suppress all further state writes."""
        self._closed = True
        self._generation += 1
        self._cancel_in_flight()
        self._listeners.clear()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        task = self._task
        self.close()
        if task is not None:
            await asyncio.wait({task})

    # ── Subclass hooks ────────────────────────────────────────────────

    def _plan(self) -> Optional[Plan]:
        """Waypoints for the current inputs plus extra RESOLVING changes."""
        raise NotImplementedError

    def _legs(self, route: RouteResult) -> tuple[RouteLeg, ...]:
        return route.legs

    async def _resolve(self, waypoints: list[Coordinate]) -> RouteResult:
        return await self.client.resolve_route(
            waypoints,
            self.profile,
            legs=self.include_legs,
            steps=self.include_steps,
        )

    # ── Internals ─────────────────────────────────────────────────────

    def _set_inputs(self, inputs: Any) -> Optional[asyncio.Task]:
        if self._closed:
            logger.debug("Ignoring update on closed %s", type(self).__name__)
            return None
        if inputs == self._inputs:
            return self._task
        task = self._start()
        self._inputs = inputs
        return task

    def _start(self) -> Optional[asyncio.Task]:
        plan = self._plan()
        resolvable = plan is not None and len(plan[0]) >= 2
        # Raises outside an event loop, before any state is touched.
        loop = asyncio.get_running_loop() if resolvable else None

        self._generation += 1
        generation = self._generation
        self._cancel_in_flight()

        if not resolvable:
            self._write(
                self._state.transition_to(
                    WatcherStatus.IDLE,
                    route_coords=(),
                    route_info=None,
                    legs=(),
                    loading=False,
                    error=None,
                    optimized_stops=(),
                )
            )
            return None

        waypoints, changes = plan
        self._write(
            self._state.transition_to(
                WatcherStatus.RESOLVING, loading=True, error=None, **changes
            )
        )
        self._task = loop.create_task(self._run(generation, waypoints))
        return self._task

    async def _run(self, generation: int, waypoints: list[Coordinate]) -> None:
        try:
            result = await self._resolve(waypoints)
        except Exception as exc:
            logger.exception("Route resolution crashed")
            result = RouteFailure(str(exc) or type(exc).__name__)

        if self._closed or generation != self._generation:
            logger.debug("Discarding stale route result (generation %d)", generation)
            return
        self._apply(result)

    def _apply(self, result: RouteResult) -> None:
        if result.success:
            self._write(
                self._state.transition_to(
                    WatcherStatus.RESOLVED,
                    route_coords=result.coordinates,
                    route_info=RouteInfo(
                        result.distance_km, result.duration_min, result.duration_s
                    ),
                    legs=self._legs(result),
                    loading=False,
                    error=None,
                )
            )
        else:
            self._write(
                self._state.transition_to(
                    WatcherStatus.FAILED,
                    route_coords=(),
                    route_info=None,
                    legs=(),
                    loading=False,
                    error=result.error,
                )
            )

    def _write(self, state: RouteState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Route state listener failed")

    def _cancel_in_flight(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()


# ── Concrete watchers ─────────────────────────────────────────────────


class SingleRouteWatcher(RouteWatcher):
    """Point-to-point route (origin -> destination)."""

    include_legs = False

    def __init__(self, client: OSRMClient, *, profile: str = settings.default_profile):
        super().__init__(client, profile=profile)
        self._origin: Optional[Coordinate] = None
        self._destination: Optional[Coordinate] = None

    def update(self, origin: Any, destination: Any) -> Optional[asyncio.Task]:
        self._origin = as_coordinate(origin)
        self._destination = as_coordinate(destination)
        return self._set_inputs((self._origin, self._destination))

    def _plan(self) -> Optional[Plan]:
        if self._origin is None or self._destination is None:
            return None
        return [self._origin, self._destination], {}


class MultiStopRouteWatcher(RouteWatcher):
    """Route through waypoints in the given order.  Invalid ones are skipped."""

    def __init__(self, client: OSRMClient, *, profile: str = settings.default_profile):
        super().__init__(client, profile=profile)
        self._waypoints: tuple[Coordinate, ...] = ()

    def update(self, waypoints: Optional[Sequence[Any]]) -> Optional[asyncio.Task]:
        coords = (as_coordinate(wp) for wp in waypoints or ())
        self._waypoints = tuple(c for c in coords if c is not None)
        return self._set_inputs(self._waypoints)

    def _plan(self) -> Optional[Plan]:
        return list(self._waypoints), {}


class MultiDeliveryRouteWatcher(RouteWatcher):
    """
    Stacked-delivery route: stops are ordered nearest-neighbour from the
    driver, then resolved as one multi-stop route.  Legs are labelled
    ``Driver Location`` / stop name.
    """

    include_steps = True

    def __init__(self, client: OSRMClient, *, profile: str = settings.default_profile):
        super().__init__(client, profile=profile)
        self._driver: Optional[Coordinate] = None
        self._stops: tuple = ()

    def update(self, driver_location: Any, stops: Optional[Sequence[Any]]) -> Optional[asyncio.Task]:
        self._driver = as_coordinate(driver_location)
        self._stops = tuple(s for s in stops or () if as_coordinate(s) is not None)
        return self._set_inputs((self._driver, self._stops, self.profile))

    def update_deliveries(
        self,
        driver_location: Any,
        pickups: Sequence[Any] = (),
        dropoffs: Sequence[Any] = (),
    ) -> Optional[asyncio.Task]:
        """Tag pickups / drop-offs with their stop type, then ``update``."""
        tagged = [_with_type(p, StopType.PICKUP) for p in pickups]
        tagged += [_with_type(d, StopType.DROPOFF) for d in dropoffs]
        return self.update(driver_location, tagged)

    def _plan(self) -> Optional[Plan]:
        if self._driver is None or not self._stops:
            return None
        ordered = optimize_route_order(self._driver, self._stops)
        waypoints = [self._driver, *(as_coordinate(s) for s in ordered)]
        return waypoints, {"optimized_stops": tuple(ordered)}

    def _legs(self, route: RouteResult) -> tuple[RouteLeg, ...]:
        ordered = self._state.optimized_stops
        labelled = []
        for leg in route.legs:
            i = leg.index
            origin = "Driver Location" if i == 0 else _stop_name(ordered, i - 1) or f"Stop {i}"
            destination = _stop_name(ordered, i) or f"Stop {i + 1}"
            labelled.append(
                replace(leg, origin_label=origin, destination_label=destination)
            )
        return tuple(labelled)


class EtaWatcher(SingleRouteWatcher):
    """
    Point-to-point watcher that re-resolves every ``refresh_interval``
    seconds while started, for live "arrives in N mins" displays.
    """

    def __init__(
        self,
        client: OSRMClient,
        *,
        profile: str = settings.default_profile,
        refresh_interval: float = settings.eta_refresh_interval_seconds,
    ):
        super().__init__(client, profile=profile)
        self.refresh_interval = refresh_interval
        self._loop_task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def eta_min(self) -> Optional[int]:
        info = self._state.route_info
        return info.duration_min if info else None

    @property
    def eta_text(self) -> str:
        info = self._state.route_info
        if info is None:
            return "Calculating..."
        if info.duration_s is not None:
            return format_eta(info.duration_s / 60)
        return format_eta(info.duration_min)

    @property
    def distance_km(self) -> Optional[float]:
        info = self._state.route_info
        return round(info.distance_km, 1) if info else None

    def start(self) -> None:
        if self._closed or self.refresh_interval <= 0:
            return
        if self._loop_task is not None and not self._loop_task.done():
            return
        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.get_running_loop().create_task(self._refresh_loop())
        logger.info("ETA refresh started (interval=%ss)", self.refresh_interval)

    async def stop(self) -> None:
        if self._stop_event:
            self._stop_event.set()
        if self._loop_task:
            self._loop_task.cancel()
            try:
                await self._loop_task
            except asyncio.CancelledError:
                pass
            self._loop_task = None

    def close(self) -> None:
        if self._stop_event:
            self._stop_event.set()
        if self._loop_task and not self._loop_task.done():
            self._loop_task.cancel()
        super().close()

    async def _refresh_loop(self) -> None:
        """Periodic loop: wait for the interval then refetch."""
        assert self._stop_event is not None
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.refresh_interval
                )
                break
            except asyncio.TimeoutError:
                self.refetch()


def _with_type(stop: Any, stop_type: StopType) -> Any:
    if isinstance(stop, Stop):
        return replace(stop, type=stop_type)
    if isinstance(stop, Mapping):
        return {**stop, "type": stop_type.value}
    return stop


def _stop_name(stops: Sequence[Any], index: int) -> Optional[str]:
    if index >= len(stops):
        return None
    stop = stops[index]
    if isinstance(stop, Mapping):
        return stop.get("name")
    return getattr(stop, "name", None)
