# whalemall/config.py
"""Runtime configuration.

Values come from the process environment (optionally a ``.env`` file) and are
collected into one immutable ``Settings`` object that is handed to the app
factory. Nothing in the core reads secrets from module globals.
"""
import os
from dataclasses import dataclass
from dotenv import load_dotenv

DEFAULT_ENCRYPTION_KEY = "bluewhalemall-secret-key-32-chars!!"
DEFAULT_JWT_SECRET = "dev-secret-change-in-production"


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def normalize_database_url(url: str) -> str:
    # SQLAlchemy 2.x doesn't accept 'postgres://'
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg2://", 1)
    return url


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./whalemall.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    encryption_key: str = DEFAULT_ENCRYPTION_KEY
    jwt_secret_key: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    seed_sample_data: bool = True
    seed_admin_id: str = "admin-001"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            database_url=normalize_database_url(
                os.getenv("DATABASE_URL") or os.getenv("POSTGRES_URL") or cls.database_url
            ),
            db_pool_size=int(os.getenv("DB_POOL_SIZE", 5)),
            db_max_overflow=int(os.getenv("DB_MAX_OVERFLOW", 10)),
            encryption_key=os.getenv("ENCRYPTION_KEY", DEFAULT_ENCRYPTION_KEY),
            jwt_secret_key=os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            seed_sample_data=_as_bool(os.getenv("SEED_SAMPLE_DATA"), True),
            seed_admin_id=os.getenv("SEED_ADMIN_ID", "admin-001"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
