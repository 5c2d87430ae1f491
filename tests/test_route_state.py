"""Unit tests for route state transitions (State Pattern)."""

import pytest

from delivery_routing.domain.entities import (
    Coordinate,
    InvalidStateTransition,
    ResolvedRoute,
    RouteFailure,
    RouteState,
)
from delivery_routing.domain.enums import WatcherStatus


class TestRouteStateMachine:
    def test_initial_status_is_idle(self):
        state = RouteState()
        assert state.status == WatcherStatus.IDLE
        assert not state.loading

    # ── Valid transitions ─────────────────────────────────────────

    def test_idle_to_resolving(self):
        state = RouteState().transition_to(WatcherStatus.RESOLVING, loading=True)
        assert state.status == WatcherStatus.RESOLVING
        assert state.loading

    def test_resolving_to_resolved(self):
        state = RouteState(status=WatcherStatus.RESOLVING)
        assert state.transition_to(WatcherStatus.RESOLVED).status == WatcherStatus.RESOLVED

    def test_resolving_to_failed(self):
        state = RouteState(status=WatcherStatus.RESOLVING)
        failed = state.transition_to(WatcherStatus.FAILED, error="No route found")
        assert failed.error == "No route found"

    def test_resolving_restarts(self):
        state = RouteState(status=WatcherStatus.RESOLVING)
        assert state.transition_to(WatcherStatus.RESOLVING).status == WatcherStatus.RESOLVING

    def test_resolved_back_to_resolving(self):
        state = RouteState(status=WatcherStatus.RESOLVED)
        assert state.transition_to(WatcherStatus.RESOLVING).status == WatcherStatus.RESOLVING

    def test_failed_to_idle(self):
        state = RouteState(status=WatcherStatus.FAILED, error="boom")
        idle = state.transition_to(WatcherStatus.IDLE, error=None)
        assert idle.status == WatcherStatus.IDLE
        assert idle.error is None

    def test_transition_returns_copy(self):
        state = RouteState()
        state.transition_to(WatcherStatus.RESOLVING)
        assert state.status == WatcherStatus.IDLE

    # ── Invalid transitions ───────────────────────────────────────

    def test_idle_to_resolved_fails(self):
        with pytest.raises(InvalidStateTransition):
            RouteState().transition_to(WatcherStatus.RESOLVED)

    def test_idle_to_failed_fails(self):
        with pytest.raises(InvalidStateTransition):
            RouteState().transition_to(WatcherStatus.FAILED)

    def test_resolved_to_failed_fails(self):
        """A result is only replaced through a new resolution."""
        state = RouteState(status=WatcherStatus.RESOLVED)
        with pytest.raises(InvalidStateTransition):
            state.transition_to(WatcherStatus.FAILED)


class TestRouteResults:
    def test_success_flags(self):
        route = ResolvedRoute(coordinates=(Coordinate(0, 0),), distance_km=0.0, duration_min=0)
        assert route.success is True
        assert RouteFailure("nope").success is False

    def test_to_dict_round_trip(self):
        route = ResolvedRoute(
            coordinates=(Coordinate(19.0, 72.0), Coordinate(19.1, 72.1)),
            distance_km=12.5,
            duration_min=20,
        )
        assert ResolvedRoute.from_dict(route.to_dict()) == route
