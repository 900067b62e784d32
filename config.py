"""Application settings — single file, Pydantic-based.

DB selection:
  - DATABASE_URL set and non-empty -> PostgreSQL
  - DATABASE_URL absent/empty -> SQLite (DB_SQLITE_PATH, default data/bakerpay.db)

Indexer selection:
  - TZKT_API_URL set -> that URL
  - otherwise the TzKT endpoint of TZKT_NETWORK (default ghostnet)
"""

import re
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from db.enums import TezosNetwork

TZKT_API_URLS: dict[TezosNetwork, str] = {
    TezosNetwork.MAINNET: "https://api.tzkt.io",
    TezosNetwork.GHOSTNET: "https://api.ghostnet.tzkt.io",
}


def _project_root() -> Path:
    """Repository root. config.py lives at the root."""
    return Path(__file__).resolve().parent


def _ensure_env_loaded() -> None:
    """Load .env from the project root (then its parent). Idempotent."""
    root: Path = _project_root()
    for candidate in (root / ".env", root.parent / ".env"):
        if candidate.exists():
            load_dotenv(candidate, override=False)


_ensure_env_loaded()


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=(str(_project_root() / ".env"), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str | None = Field(
        default=None,
        description="PostgreSQL DSN; when set, uses Postgres.",
        validation_alias="DATABASE_URL",
    )
    sqlite_path: str | None = Field(default="data/bakerpay.db")
    pool_size: int = Field(default=5)
    pool_timeout: int = Field(default=30)
    pool_recycle: int = Field(default=1800)

    def _use_postgres(self) -> bool:
        return bool((self.database_url or "").strip())

    def _resolved_sqlite_path(self) -> Path:
        raw: str = (self.sqlite_path or "data/bakerpay.db").strip()
        path: Path = Path(raw)
        if not path.is_absolute():
            path = (_project_root() / path).resolve()
        return path

    def _redacted_postgres_dsn(self) -> str:
        url: str = (self.database_url or "").strip()
        return re.sub(r":([^:@]+)@", r":***@", url) if url else ""

    @property
    def url(self) -> str:
        if self._use_postgres():
            return (self.database_url or "").strip()
        path = self._resolved_sqlite_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path.as_posix()}"

    def db_info_for_logging(self) -> str:
        if self._use_postgres():
            return f"PostgreSQL @ {self._redacted_postgres_dsn()}"
        return f"SQLite @ {self._resolved_sqlite_path().as_posix()}"


class TzKTSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TZKT_",
        env_file=(str(_project_root() / ".env"), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    network: TezosNetwork = Field(default=TezosNetwork.GHOSTNET)
    api_url: str | None = Field(default=None, description="Overrides the network default")
    timeout: float = Field(default=30.0, gt=0)
    cache_ttl: float = Field(default=60.0, ge=0, description="Seconds a response stays fresh")
    cache_max_entries: int | None = Field(default=None, ge=1)
    retry_attempts: int = Field(default=1, ge=1)
    retry_delay: float = Field(default=1.0, ge=0)

    @property
    def base_url(self) -> str:
        if self.api_url and self.api_url.strip():
            return self.api_url.strip().rstrip("/")
        return TZKT_API_URLS[self.network]


class PayoutSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PAYOUT_",
        env_file=(str(_project_root() / ".env"), ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_fee: Decimal = Field(default=Decimal("5"), ge=0, le=100)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BAKERPAY_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    tzkt: TzKTSettings = Field(default_factory=TzKTSettings)
    payout: PayoutSettings = Field(default_factory=PayoutSettings)


@lru_cache
def get_settings() -> Settings:
    return Settings()
