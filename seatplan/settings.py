from __future__ import annotations

import os
import sys
from dataclasses import dataclass

from loguru import logger


DEFAULT_REQUEST_DELAY_S = 0.1
DEFAULT_RETRY_BASE_DELAY_S = 0.5
DEFAULT_MAX_ATTEMPTS = 5


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return max(0.0, float(raw))
    except ValueError:
        logger.warning("ignoring {}={!r}: not a number", name, raw)
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return max(1, int(raw))
    except ValueError:
        logger.warning("ignoring {}={!r}: not an integer", name, raw)
        return default


@dataclass(frozen=True)
class SyncSettings:
    request_delay_s: float = DEFAULT_REQUEST_DELAY_S
    retry_base_delay_s: float = DEFAULT_RETRY_BASE_DELAY_S
    max_attempts: int = DEFAULT_MAX_ATTEMPTS


def load_sync_settings() -> SyncSettings:
    return SyncSettings(
        request_delay_s=_env_float("SEATPLAN_SYNC_REQUEST_DELAY", DEFAULT_REQUEST_DELAY_S),
        retry_base_delay_s=_env_float("SEATPLAN_SYNC_RETRY_BASE_DELAY", DEFAULT_RETRY_BASE_DELAY_S),
        max_attempts=_env_int("SEATPLAN_SYNC_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS),
    )


def configure_logging(level: str | None = None) -> None:
    logger.remove()
    logger.add(sys.stderr, level=(level or os.environ.get("SEATPLAN_LOG_LEVEL", "INFO")).upper())
