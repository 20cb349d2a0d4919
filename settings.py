from __future__ import annotations

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


def _env_optional_int(name: str, default: int | None) -> int | None:
    """Non-positive values mean "no limit"."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = int(raw)
    return value if value > 0 else None


@dataclass(frozen=True)
class Settings:
    # Storage roots
    storage_root: str
    nedb_root: str

    # Datastore loading
    load_retry_delay: float
    load_max_attempts: int | None
    corrupt_alert_threshold: float

    # Logging
    log_level: str


def get_settings() -> Settings:
    storage_root = os.getenv("WHALER_STORAGE_ROOT", "/var/lib/whaler/storage").rstrip("/") or "/"
    nedb_root = os.getenv("WHALER_NEDB_ROOT", os.path.join(storage_root, "nedb")).rstrip("/") or "/"

    load_retry_delay = _env_float("NEDB_LOAD_RETRY_DELAY", 0.1)
    # NOTE: 0 means retry forever
    load_max_attempts = _env_optional_int("NEDB_LOAD_MAX_ATTEMPTS", 50)
    corrupt_alert_threshold = _env_float("NEDB_CORRUPT_ALERT_THRESHOLD", 0.1)

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO"

    return Settings(
        storage_root=storage_root,
        nedb_root=nedb_root,
        load_retry_delay=load_retry_delay,
        load_max_attempts=load_max_attempts,
        corrupt_alert_threshold=corrupt_alert_threshold,
        log_level=log_level,
    )
