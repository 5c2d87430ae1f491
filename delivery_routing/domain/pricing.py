"""
Delivery Fee Engine  (Strategy Pattern)
=======================================

Tiered tariff (marketplace default)
-----------------------------------
* distance <= 1 km    -> 50
* distance <= 2 km    -> 80
* distance <= 2.5 km  -> 87
* beyond 2.5 km       -> 87 + 2.30 per *started* 100 m block past 2.5 km

An unknown or non-finite distance has no fee (``None``).

Complexity: O(1) per fee calculation.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Any, Optional


# ── Strategy hierarchy ────────────────────────────────────────────────


class DeliveryFeeStrategy(ABC):
    @abstractmethod
    def calculate(self, distance_km: Optional[float]) -> Optional[float]: ...


class TieredDeliveryFee(DeliveryFeeStrategy):
    """Flat tiers up to ``base_distance_km``, then a per-block surcharge."""

    TIERS: tuple[tuple[float, float], ...] = ((1.0, 50.0), (2.0, 80.0), (2.5, 87.0))

    def __init__(
        self,
        tiers: tuple[tuple[float, float], ...] = TIERS,
        block_m: float = 100.0,
        rate_per_block: float = 2.3,
    ):
        self.tiers = tiers
        self.block_m = block_m
        self.rate_per_block = rate_per_block

    def calculate(self, distance_km: Optional[float]) -> Optional[float]:
        if distance_km is None or not math.isfinite(distance_km):
            return None

        for limit_km, fee in self.tiers:
            if distance_km <= limit_km:
                return fee

        base_distance_km, base_fee = self.tiers[-1]
        # Round to micrometres so 2.6 - 2.5 does not bill a second block.
        extra_m = round((distance_km - base_distance_km) * 1000, 6)
        blocks = math.ceil(extra_m / self.block_m)
        return round(base_fee + blocks * self.rate_per_block, 2)


class LinearDeliveryFee(DeliveryFeeStrategy):
    """Base fee plus a per-km rate; free at or below ``free_threshold_km``."""

    def __init__(
        self,
        base_fee: float = 30.0,
        per_km_fee: float = 10.0,
        free_threshold_km: float = 0.0,
    ):
        self.base_fee = base_fee
        self.per_km_fee = per_km_fee
        self.free_threshold_km = free_threshold_km

    def calculate(self, distance_km: Optional[float]) -> Optional[float]:
        if distance_km is None or not math.isfinite(distance_km):
            return None
        if distance_km <= self.free_threshold_km:
            return 0.0
        return round(self.base_fee + distance_km * self.per_km_fee, 2)


# ── Facade ────────────────────────────────────────────────────────────


_default_tariff = TieredDeliveryFee()


def calculate_delivery_fee(distance_km: Optional[float]) -> Optional[float]:
    """Fee for *distance_km* under the marketplace tariff."""
    return _default_tariff.calculate(distance_km)


def calculate_delivery_time(
    distance_km: float,
    avg_speed_kmh: float = 30.0,
    pickup_minutes: float = 10.0,
    buffer_minutes: float = 5.0,
) -> int:
    """Whole minutes: travel at *avg_speed_kmh* plus pickup and buffer."""
    travel = (distance_km / avg_speed_kmh) * 60
    return math.ceil(travel + pickup_minutes + buffer_minutes)


def format_price(price: Any) -> str:
    try:
        value = float(price)
    except (TypeError, ValueError):
        return "Rs. 0.00"
    if math.isnan(value):
        return "Rs. 0.00"
    return f"Rs. {value:.2f}"
