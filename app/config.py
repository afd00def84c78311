# app/config.py
"""Environment driven settings.

Values come from the process environment (a `.env` file is honoured through
python-dotenv). Nothing here opens connections.
"""
import os
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote_plus
from dotenv import load_dotenv

load_dotenv()

MAPPING_POLICIES = ("abort", "skip")


@dataclass(frozen=True)
class Settings:
    database_url: str
    pool_size: int = 5
    max_overflow: int = 10
    upload_dir: str = "uploads"
    max_upload_bytes: int = 50 * 1024 * 1024
    import_timeout: Optional[float] = 30.0
    mapping_error_policy: str = "abort"
    port: int = 3000


def _database_url() -> str:
    url = os.getenv("POSTGRES_URL")
    if url:
        # SQLAlchemy 2.x doesn't accept 'postgres://'
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+psycopg2://", 1)
        return url
    user = quote_plus(os.getenv("DB_USER", "postgres"))
    password = quote_plus(os.getenv("DB_PASSWORD", ""))
    host = os.getenv("DB_HOST", "localhost")
    port = os.getenv("DB_PORT", "5432")
    name = os.getenv("DB_NAME", "imoveis")
    auth = f"{user}:{password}" if password else user
    return f"postgresql+psycopg2://{auth}@{host}:{port}/{name}"


def get_settings() -> Settings:
    timeout = float(os.getenv("IMPORT_TIMEOUT_SECONDS", "30"))
    policy = os.getenv("MAPPING_ERROR_POLICY", "abort").strip().lower()
    if policy not in MAPPING_POLICIES:
        raise RuntimeError(f"MAPPING_ERROR_POLICY must be one of {MAPPING_POLICIES}, got {policy!r}")
    return Settings(
        database_url=_database_url(),
        pool_size=int(os.getenv("DB_POOL_SIZE", 5)),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", 10)),
        upload_dir=os.getenv("UPLOAD_DIR", "uploads"),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", 50 * 1024 * 1024)),
        import_timeout=timeout if timeout > 0 else None,
        mapping_error_policy=policy,
        port=int(os.getenv("PORT", 3000)),
    )
