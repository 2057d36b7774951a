from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Persistence
    persist_to_disk: bool
    data_dir: Path | None
    key_prefix: str

    # Logging / debug
    log_level: str
    debug_log_requests: bool

    # HTTP
    cors_allow_origins: list[str]

    # POS defaults (percent)
    default_tax_rate: float
    default_service_charge_rate: float


def get_settings() -> Settings:
    # Unset means "<project root>/data"; resolved lazily by persistence.paths.
    raw_dir = os.getenv("STORE_DATA_DIR", "").strip()
    data_dir = Path(raw_dir).expanduser() if raw_dir else None

    origins = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]

    return Settings(
        persist_to_disk=_env_bool("PERSIST_TO_DISK", True),
        data_dir=data_dir,
        key_prefix=os.getenv("STORE_KEY_PREFIX", "table_"),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        debug_log_requests=_env_bool("DEBUG_LOG_REQUESTS", False),
        cors_allow_origins=origins or ["*"],
        default_tax_rate=_env_float("DEFAULT_TAX_RATE", 8.5),
        default_service_charge_rate=_env_float("DEFAULT_SERVICE_CHARGE_RATE", 0.0),
    )
