"""Domain-level validation rules for workload assignment."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from backend.utils.config import Settings, get_settings


CHECKOUT_MINUTES = 45
DAILY_MINUTES = 15
BREAK_TIME_MINUTES = 30
SHIFT_MINUTES = 480
AVAILABLE_WORK_MINUTES = SHIFT_MINUTES - BREAK_TIME_MINUTES
TOWEL_CHANGE_MINUTES = 5
LINEN_CHANGE_MINUTES = 10

# (minimum m2, extra minutes), largest threshold first
DEFAULT_SIZE_SURCHARGE_TIERS: tuple[tuple[float, int], ...] = (
    (40.0, 15),
    (28.0, 10),
    (22.0, 5),
)
DEFAULT_ROOM_SIZE_SQM = 20.0


@dataclass(frozen=True)
class AssignmentConfig:
    checkout_minutes: int = CHECKOUT_MINUTES
    daily_minutes: int = DAILY_MINUTES
    break_time_minutes: int = BREAK_TIME_MINUTES
    shift_minutes: int = SHIFT_MINUTES
    towel_change_minutes: int = TOWEL_CHANGE_MINUTES
    linen_change_minutes: int = LINEN_CHANGE_MINUTES
    size_surcharge_tiers: tuple[tuple[float, int], ...] = DEFAULT_SIZE_SURCHARGE_TIERS
    default_room_size_sqm: float = DEFAULT_ROOM_SIZE_SQM
    balance_tolerance_minutes: int = 15
    locality_weight: float = 1.0
    affinity_weight: float = 1.0
    affinity_half_saturation: float = 3.0
    rebalance_enabled: bool = True
    rebalance_threshold_ratio: float = 0.2
    rebalance_max_iterations: int = 30
    count_rebalance_max_gap: int = 2
    count_rebalance_weight_ratio: float = 0.25
    count_rebalance_max_iterations: int = 20

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "AssignmentConfig":
        resolved = settings or get_settings()
        return cls(
            checkout_minutes=resolved.checkout_minutes,
            daily_minutes=resolved.daily_minutes,
            break_time_minutes=resolved.break_time_minutes,
            shift_minutes=resolved.shift_minutes,
            towel_change_minutes=resolved.towel_change_minutes,
            linen_change_minutes=resolved.linen_change_minutes,
            balance_tolerance_minutes=resolved.assignment_balance_tolerance_minutes,
            locality_weight=resolved.assignment_locality_weight,
            affinity_weight=resolved.assignment_affinity_weight,
            affinity_half_saturation=resolved.assignment_affinity_half_saturation,
            rebalance_enabled=resolved.assignment_rebalance_enabled,
            rebalance_threshold_ratio=resolved.assignment_rebalance_threshold_ratio,
            rebalance_max_iterations=resolved.assignment_rebalance_max_iterations,
            count_rebalance_max_gap=resolved.assignment_count_rebalance_max_gap,
            count_rebalance_weight_ratio=resolved.assignment_count_rebalance_weight_ratio,
            count_rebalance_max_iterations=resolved.assignment_count_rebalance_max_iterations,
        )


def validate_assignment_config(config: AssignmentConfig) -> None:
    minute_fields = {
        "checkout_minutes": config.checkout_minutes,
        "daily_minutes": config.daily_minutes,
        "break_time_minutes": config.break_time_minutes,
        "towel_change_minutes": config.towel_change_minutes,
        "linen_change_minutes": config.linen_change_minutes,
    }
    for name, value in minute_fields.items():
        if value < 0:
            raise ValueError(f"{name} must be >= 0")
    if config.shift_minutes <= 0:
        raise ValueError("shift_minutes must be > 0")
    if config.break_time_minutes >= config.shift_minutes:
        raise ValueError("break_time_minutes must be shorter than shift_minutes")
    if config.default_room_size_sqm < 0:
        raise ValueError("default_room_size_sqm must be >= 0")
    thresholds = [threshold for threshold, _ in config.size_surcharge_tiers]
    if thresholds != sorted(thresholds, reverse=True):
        raise ValueError("size_surcharge_tiers must be ordered from largest threshold down")
    if any(extra < 0 for _, extra in config.size_surcharge_tiers):
        raise ValueError("size_surcharge_tiers minutes must be >= 0")
    if config.balance_tolerance_minutes < 0:
        raise ValueError("balance_tolerance_minutes must be >= 0")
    if config.locality_weight < 0 or config.affinity_weight < 0:
        raise ValueError("locality_weight and affinity_weight must be >= 0")
    if config.affinity_half_saturation <= 0:
        raise ValueError("affinity_half_saturation must be > 0")
    if not 0.0 <= config.rebalance_threshold_ratio <= 1.0:
        raise ValueError("rebalance_threshold_ratio must be between 0 and 1")
    if config.rebalance_max_iterations < 0:
        raise ValueError("rebalance_max_iterations must be >= 0")
    if config.count_rebalance_max_gap < 1:
        raise ValueError("count_rebalance_max_gap must be >= 1")
    if config.count_rebalance_weight_ratio < 0:
        raise ValueError("count_rebalance_weight_ratio must be >= 0")
    if config.count_rebalance_max_iterations < 0:
        raise ValueError("count_rebalance_max_iterations must be >= 0")
