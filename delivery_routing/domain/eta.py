"""Human-readable ETA strings and distance-based ETA estimates."""

from __future__ import annotations

import math
from typing import Optional


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'' if value == 1 else 's'}"


def format_eta(minutes: Optional[float]) -> str:
    if not minutes or minutes <= 0:
        return "Arriving soon"
    if minutes < 1:
        return "Less than a minute"
    if minutes < 60:
        return _plural(_round_half_up(minutes), "min")

    hours, remaining = divmod(_round_half_up(minutes), 60)
    if remaining == 0:
        return _plural(hours, "hr")
    return f"{_plural(hours, 'hr')} {_plural(remaining, 'min')}"


def eta_from_distance(distance_km: Optional[float], avg_speed_kmh: float = 30.0) -> float:
    """Minutes to cover *distance_km* at *avg_speed_kmh*."""
    if not distance_km or distance_km <= 0:
        return 0.0
    return (distance_km / avg_speed_kmh) * 60


def format_eta_range(min_minutes: float, max_minutes: float) -> str:
    return f"{_round_half_up(min_minutes)}-{_round_half_up(max_minutes)} mins"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
