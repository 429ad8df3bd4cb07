# --- Env / Config ---
from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .logging_config import get_logger

log = get_logger(__name__)

TRUTHY = ("1", "true", "yes")


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in TRUTHY


@dataclass
class Settings:
    database_path: str = "./group_rank.sqlite"
    log_level: str = "INFO"
    audit_log: bool = True
    match_write_attempts: int = 3
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = 8000


def load_settings(env_file: str | None = None) -> Settings:
    """Build Settings from the environment (and a .env file when present)."""
    load_dotenv(env_file)

    test_mode = _flag("TEST_MODE")
    database_path = os.getenv(
        "DATABASE_PATH",
        "./test_group_rank.sqlite" if test_mode else "./group_rank.sqlite",
    )
    if _flag("EPHEMERAL_DB"):
        database_path = "file::memory:?cache=shared"

    # Attempts at the versioned table write before giving up
    try:
        attempts = int(os.getenv("MATCH_WRITE_ATTEMPTS", "3"))
        if attempts < 1:
            log.warning("MATCH_WRITE_ATTEMPTS must be at least 1, using default 3")
            attempts = 3
    except ValueError:
        log.warning("Invalid MATCH_WRITE_ATTEMPTS value, using default 3")
        attempts = 3

    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    return Settings(
        database_path=database_path,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        audit_log=_flag("AUDIT_LOG", "1"),
        match_write_attempts=attempts,
        cors_origins=origins or ["*"],
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
