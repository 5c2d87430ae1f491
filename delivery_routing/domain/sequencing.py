"""
Multi-Stop Route Sequencing
===========================

1. **Nearest Neighbour** -- from the current position, visit the closest
   remaining stop, move there, repeat until no stops remain.
2. **Pickups before drop-offs** -- ``calculate_optimal_route`` sequences
   restaurant pickups from the driver, then customer drop-offs from the
   last pickup.
3. **Clustering** -- stacked deliveries are grouped by a seed radius.

Estimate
--------
  minutes = total_distance_km / average_speed_kmh x 60
            + stop_minutes x (pickups + dropoffs)

Complexity
----------
Let N = number of stops.

* Sequencing:    O(N^2)  -- one scan of the remaining pool per step
* Clustering:    O(N^2)  -- each seed scans every unassigned delivery

**Note:** The greedy heuristic does NOT guarantee the shortest tour.
An exact solver can replace it behind the same
``(origin, stops) -> ordered stops`` contract.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence
from typing import Any, Optional, TypeVar

from .distance import as_coordinate, distance_km, haversine_km, position
from .entities import RoutePlan

T = TypeVar("T")


def optimize_route_order(origin: Any, stops: Sequence[T]) -> list[T]:
    """
    Order *stops* by repeatedly choosing the nearest remaining one.

    The result is a permutation of *stops*; *origin* is never included.
    On an exact distance tie the stop that comes first in *stops* wins.
    """
    remaining = list(stops)
    if len(remaining) <= 1:
        return remaining

    ordered: list[T] = []
    current = position(origin)

    while remaining:
        nearest_idx = 0
        nearest_dist = math.inf
        for idx, stop in enumerate(remaining):
            lat, lng = position(stop)
            dist = haversine_km(current[0], current[1], lat, lng)
            if dist < nearest_dist:
                nearest_dist = dist
                nearest_idx = idx

        nearest = remaining.pop(nearest_idx)
        ordered.append(nearest)
        current = position(nearest)

    return ordered


def calculate_optimal_route(
    origin: Any,
    pickups: Sequence[Any],
    dropoffs: Sequence[Any],
    *,
    average_speed_kmh: float = 30.0,
    stop_minutes: float = 5.0,
) -> RoutePlan:
    """
    Sequence pickups from *origin*, then drop-offs from the last pickup.

    Distance is summed over ``[origin, *pickups, *dropoffs]``; time assumes
    *average_speed_kmh* plus a fixed *stop_minutes* dwell per stop.
    """
    pickup_order = optimize_route_order(origin, pickups)
    last_pickup = pickup_order[-1] if pickup_order else origin
    dropoff_order = optimize_route_order(last_pickup, dropoffs)

    chain = [origin, *pickup_order, *dropoff_order]
    total = sum(
        distance_km(chain[i], chain[i + 1]) for i in range(len(chain) - 1)
    )

    travel_minutes = (total / average_speed_kmh) * 60
    dwell_minutes = (len(pickup_order) + len(dropoff_order)) * stop_minutes

    return RoutePlan(
        pickup_order=pickup_order,
        dropoff_order=dropoff_order,
        total_distance_km=round(total, 2),
        estimated_time_min=math.ceil(travel_minutes + dwell_minutes),
    )


def cluster_deliveries(
    deliveries: Sequence[T], radius_km: float = 3.0
) -> list[list[T]]:
    """
    Group deliveries around seeds.

    Each unassigned delivery (in input order) seeds a cluster and absorbs
    every other unassigned delivery within *radius_km* of the seed.
    """
    clusters: list[list[T]] = []
    assigned: set[int] = set()

    for i, seed in enumerate(deliveries):
        if i in assigned:
            continue
        cluster = [seed]
        assigned.add(i)

        for j, other in enumerate(deliveries):
            if j in assigned:
                continue
            if distance_km(seed, other) <= radius_km:
                cluster.append(other)
                assigned.add(j)

        clusters.append(cluster)

    return clusters


def sort_by_nearest(
    current: Any,
    locations: Sequence[T],
    key: Optional[Callable[[T], Any]] = None,
) -> list[T]:
    """
    Stable sort of *locations* by straight-line distance from *current*.

    *key* extracts the coordinate from each item (identity by default).
    Items whose coordinates cannot be read go last, in input order.
    """
    origin = as_coordinate(current)
    if origin is None or not locations:
        return list(locations)

    def _distance(item: T) -> float:
        coord = as_coordinate(key(item) if key else item)
        if coord is None:
            return math.inf
        return distance_km(origin, coord)

    return sorted(locations, key=_distance)
