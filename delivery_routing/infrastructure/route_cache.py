"""
Redis-backed cache of resolved routes.

Keys encode the profile, the leg/step flags and every waypoint rounded to
5 decimals (~1 m), so a driver jittering in place reuses the same entry.
Entries expire after ``ttl_seconds`` (SET EX).

Redis errors are logged and reported as a miss: the cache only ever saves
a request, it never fails one.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from delivery_routing.domain.distance import position
from delivery_routing.domain.entities import ResolvedRoute

logger = logging.getLogger(__name__)

KEY_PREFIX = "route"


class RouteCache:
    def __init__(self, client: aioredis.Redis, ttl_seconds: int = 300):
        self.redis = client
        self.ttl = ttl_seconds

    @staticmethod
    def make_key(
        waypoints: Sequence[Any],
        profile: str,
        *,
        legs: bool = True,
        steps: bool = False,
    ) -> str:
        points = ";".join(
            f"{lat:.5f},{lng:.5f}" for lat, lng in (position(wp) for wp in waypoints)
        )
        return f"{KEY_PREFIX}:{profile}:{int(legs)}{int(steps)}:{points}"

    async def get(
        self,
        waypoints: Sequence[Any],
        profile: str,
        *,
        legs: bool = True,
        steps: bool = False,
    ) -> Optional[ResolvedRoute]:
        key = self.make_key(waypoints, profile, legs=legs, steps=steps)
        try:
            raw = await self.redis.get(key)
        except RedisError as exc:
            logger.warning("Route cache read failed for %s: %s", key, exc)
            return None
        if raw is None:
            return None

        try:
            return ResolvedRoute.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding corrupt route cache entry %s", key)
            return None

    async def set(
        self,
        waypoints: Sequence[Any],
        profile: str,
        route: ResolvedRoute,
        *,
        legs: bool = True,
        steps: bool = False,
    ) -> None:
        key = self.make_key(waypoints, profile, legs=legs, steps=steps)
        try:
            await self.redis.set(key, json.dumps(route.to_dict()), ex=self.ttl)
        except RedisError as exc:
            logger.warning("Route cache write failed for %s: %s", key, exc)

    async def clear(self) -> int:
        """Delete every cached route.  Returns the number of keys removed."""
        removed = 0
        try:
            async for key in self.redis.scan_iter(match=f"{KEY_PREFIX}:*"):
                removed += await self.redis.delete(key)
        except RedisError as exc:
            logger.warning("Route cache clear failed: %s", exc)
        return removed

    async def size(self) -> int:
        count = 0
        try:
            async for _ in self.redis.scan_iter(match=f"{KEY_PREFIX}:*"):
                count += 1
        except RedisError as exc:
            logger.warning("Route cache size lookup failed: %s", exc)
        return count
