"""Environment-driven settings."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=True)

DEFAULT_DB_PATH = Path(__file__).parent / "careledger.db"


@dataclass(frozen=True)
class Settings:
    db_path: Path
    db_timeout: float
    jwt_secret: str
    jwt_algorithm: str
    token_expiry_minutes: int
    upcoming_limit: int
    log_level: str
    log_json: bool


def _as_bool(value: str | None) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    """Read settings from the environment.

    Values are read on every call so tests and scripts can point the
    package at a different database by changing the environment.
    """
    return Settings(
        db_path=Path(os.getenv("CARELEDGER_DB_PATH", str(DEFAULT_DB_PATH))),
        db_timeout=float(os.getenv("CARELEDGER_DB_TIMEOUT", "5.0")),
        jwt_secret=os.getenv("CARELEDGER_JWT_SECRET", "change-me-in-production"),
        jwt_algorithm=os.getenv("CARELEDGER_JWT_ALGORITHM", "HS256"),
        token_expiry_minutes=int(os.getenv("CARELEDGER_TOKEN_EXPIRY_MINUTES", "1440")),
        upcoming_limit=int(os.getenv("CARELEDGER_UPCOMING_LIMIT", "10")),
        log_level=os.getenv("CARELEDGER_LOG_LEVEL", "INFO").upper(),
        log_json=_as_bool(os.getenv("CARELEDGER_LOG_JSON", "false")),
    )
