"""Application settings resolved once from defaults and environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


_ENV_PREFIX = "HOUSEKEEPING_"
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _env_str(name: str, default: str) -> str:
    return os.getenv(f"{_ENV_PREFIX}{name}", default)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(f"{_ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{_ENV_PREFIX}{name} must be an integer, got {raw!r}") from exc


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(f"{_ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{_ENV_PREFIX}{name} must be a number, got {raw!r}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(f"{_ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    hotel_name: str
    api_host: str
    api_port: int
    api_reload: bool

    # Weight model (minutes)
    checkout_minutes: int
    daily_minutes: int
    break_time_minutes: int
    shift_minutes: int
    towel_change_minutes: int
    linen_change_minutes: int

    # Solver heuristics
    assignment_balance_tolerance_minutes: int
    assignment_locality_weight: float
    assignment_affinity_weight: float
    assignment_affinity_half_saturation: float
    assignment_rebalance_enabled: bool
    assignment_rebalance_threshold_ratio: float
    assignment_rebalance_max_iterations: int
    assignment_count_rebalance_max_gap: int
    assignment_count_rebalance_weight_ratio: float
    assignment_count_rebalance_max_iterations: int

    # Synthetic seed
    synthetic_random_seed: int
    synthetic_floors: int
    synthetic_rooms_per_floor: int
    synthetic_checkout_probability: float
    synthetic_staff_names: tuple[str, ...]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        app_name=_env_str("APP_NAME", "Housekeeping Workload Assignment"),
        app_version=_env_str("APP_VERSION", "1.0.0"),
        log_level=_env_str("LOG_LEVEL", "INFO"),
        database_path=Path(
            _env_str("DATABASE_PATH", str(PROJECT_ROOT / "data" / "housekeeping.db"))
        ),
        hotel_name=_env_str("HOTEL_NAME", "Demo Hotel"),
        api_host=_env_str("API_HOST", "127.0.0.1"),
        api_port=_env_int("API_PORT", 8000),
        api_reload=_env_bool("API_RELOAD", True),
        checkout_minutes=_env_int("CHECKOUT_MINUTES", 45),
        daily_minutes=_env_int("DAILY_MINUTES", 15),
        break_time_minutes=_env_int("BREAK_TIME_MINUTES", 30),
        shift_minutes=_env_int("SHIFT_MINUTES", 480),
        towel_change_minutes=_env_int("TOWEL_CHANGE_MINUTES", 5),
        linen_change_minutes=_env_int("LINEN_CHANGE_MINUTES", 10),
        assignment_balance_tolerance_minutes=_env_int("BALANCE_TOLERANCE_MINUTES", 15),
        assignment_locality_weight=_env_float("LOCALITY_WEIGHT", 1.0),
        assignment_affinity_weight=_env_float("AFFINITY_WEIGHT", 1.0),
        assignment_affinity_half_saturation=_env_float("AFFINITY_HALF_SATURATION", 3.0),
        assignment_rebalance_enabled=_env_bool("REBALANCE_ENABLED", True),
        assignment_rebalance_threshold_ratio=_env_float("REBALANCE_THRESHOLD_RATIO", 0.2),
        assignment_rebalance_max_iterations=_env_int("REBALANCE_MAX_ITERATIONS", 30),
        assignment_count_rebalance_max_gap=_env_int("COUNT_REBALANCE_MAX_GAP", 2),
        assignment_count_rebalance_weight_ratio=_env_float("COUNT_REBALANCE_WEIGHT_RATIO", 0.25),
        assignment_count_rebalance_max_iterations=_env_int("COUNT_REBALANCE_MAX_ITERATIONS", 20),
        synthetic_random_seed=_env_int("SYNTHETIC_RANDOM_SEED", 42),
        synthetic_floors=_env_int("SYNTHETIC_FLOORS", 4),
        synthetic_rooms_per_floor=_env_int("SYNTHETIC_ROOMS_PER_FLOOR", 12),
        synthetic_checkout_probability=_env_float("SYNTHETIC_CHECKOUT_PROBABILITY", 0.35),
        synthetic_staff_names=(
            "Ana Costa",
            "Bela Horvat",
            "Carmen Diaz",
            "Dara Novak",
            "Eli Moreau",
        ),
    )
