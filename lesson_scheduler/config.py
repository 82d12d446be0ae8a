"""
Centralized configuration with environment variable overrides.

Only ambient settings live here: the scheduling timezone, slot generation
behaviour and logging. Booking limits are carried by an explicit
SchedulingConstraints record passed to each call.
"""

import logging
import os
from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from lesson_scheduler.logging_context import run_id_handler

load_dotenv()

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class SchedulingConfig:
    """Timezone and slot generation settings."""

    timezone: str = os.getenv("SCHEDULING_TIMEZONE", "Australia/Brisbane")
    pack_slots_per_gap: bool = _safe_bool("PACK_SLOTS_PER_GAP", "false")
    next_slot_horizon_days: int = _safe_int("NEXT_SLOT_HORIZON_DAYS", "30")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "lesson-scheduler")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    try:
        ZoneInfo(config.scheduling.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(
            f"SCHEDULING_TIMEZONE must be an IANA zone name, got {config.scheduling.timezone!r}"
        ) from None
    if config.scheduling.next_slot_horizon_days < 1:
        raise ValueError(
            "NEXT_SLOT_HORIZON_DAYS must be >= 1, "
            f"got {config.scheduling.next_slot_horizon_days}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        handlers=[run_id_handler()],
    )
    logger.info(
        "Configuration loaded for '%s' (timezone %s)",
        config.service_name, config.scheduling.timezone,
    )
    return config


# Singleton instance
settings = load_config()
