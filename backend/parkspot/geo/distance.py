"""
Travel estimates derived from straight-line distance.

Routed driving distance is never computed; a fixed road factor and an
average city speed stand in for it.
"""

from typing import Optional

DRIVING_FACTOR = 1.4
AVERAGE_SPEED_KMH = 30.0
MINIMUM_TRAVEL_MINUTES = 1


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


def driving_distance(straight_line_km: float, factor: float = DRIVING_FACTOR) -> float:
    """Approximate driving distance in km."""
    return round(straight_line_km * factor, 3)


def estimated_travel_time_minutes(
    driving_km: float, avg_speed_kmh: float = AVERAGE_SPEED_KMH
) -> int:
    """Travel time in whole minutes, never less than one."""
    if avg_speed_kmh <= 0:
        raise ValueError(f"average speed must be positive, got {avg_speed_kmh}")
    minutes = _round_half_up(driving_km / avg_speed_kmh * 60)
    return max(minutes, MINIMUM_TRAVEL_MINUTES)


def format_distance(distance_km: Optional[float]) -> str:
    if distance_km is None:
        return "Unknown"
    if distance_km < 1:
        return f"{_round_half_up(distance_km * 1000)} m"
    return f"{distance_km:.1f} km"


def format_duration(minutes: Optional[int]) -> str:
    if minutes is None:
        return "Unknown"
    if minutes < 60:
        return f"{minutes} min"
    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return f"{hours} h"
    return f"{hours} h {remaining} min"
