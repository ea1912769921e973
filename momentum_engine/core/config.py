import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None
    LEDGER_BACKEND: str = "auto"  # auto | memory | sql

    # Award gate
    DAILY_PLAYS_PER_ARTIFACT: int = 3
    DAILY_MOMENTUM_CAP: int = 25
    DAILY_CAP_GRACE_DAYS: int = 3  # days after signup before the cap applies
    GATE_MAX_RETRIES: int = 3

    # Artifact power
    DRILL_PRACTICE_POWER_DELTA: int = 10

    # Milestones
    MILESTONE_POLICY: str = "lowest"  # lowest | highest

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "auto"  # auto | json | pretty

    # App URLs
    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing or invalid keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("momentum")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    problems = []

    backend = getattr(cfg, "LEDGER_BACKEND", "auto")
    if backend not in ("auto", "memory", "sql"):
        problems.append(f"LEDGER_BACKEND must be auto, memory or sql (got {backend!r})")
    if backend == "sql" and not getattr(cfg, "DATABASE_URL", None):
        problems.append("Missing required configuration: DATABASE_URL")

    if getattr(cfg, "LOG_FORMAT", "auto") not in ("auto", "json", "pretty"):
        problems.append("LOG_FORMAT must be auto, json or pretty")

    if getattr(cfg, "MILESTONE_POLICY", "lowest") not in ("lowest", "highest"):
        problems.append("MILESTONE_POLICY must be lowest or highest")

    for key in ("DAILY_PLAYS_PER_ARTIFACT", "DAILY_MOMENTUM_CAP", "GATE_MAX_RETRIES"):
        if getattr(cfg, key, 0) < 1:
            problems.append(f"{key} must be a positive integer")

    if getattr(cfg, "DAILY_CAP_GRACE_DAYS", 0) < 0:
        problems.append("DAILY_CAP_GRACE_DAYS must not be negative")

    if getattr(cfg, "DRILL_PRACTICE_POWER_DELTA", 0) < 0:
        problems.append("DRILL_PRACTICE_POWER_DELTA must not be negative")

    if problems:
        message = "; ".join(problems)
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
