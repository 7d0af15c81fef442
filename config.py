# config.py - environment-driven settings
import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

load_dotenv()


def _split_origins(raw: str) -> List[str]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


@dataclass(frozen=True)
class Settings:
    database_url: Optional[str] = None
    allowed_origins: List[str] = field(default_factory=lambda: ["*"])
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 5000
    submit_timeout: float = 15.0
    retry_interval: float = 5.0
    pool_size: int = 10
    connect_timeout: int = 5
    max_body_bytes: int = 10 * 1024 * 1024
    environment: str = "production"
    log_level: str = "INFO"

    @property
    def debug(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        prefix = os.getenv("API_PREFIX", "/api").rstrip("/")
        if prefix and not prefix.startswith("/"):
            prefix = "/" + prefix
        return cls(
            database_url=os.getenv("DATABASE_URL"),
            allowed_origins=_split_origins(os.getenv("ALLOWED_ORIGINS", "*")),
            api_prefix=prefix,
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "5000")),
            submit_timeout=float(os.getenv("SUBMIT_TIMEOUT_SECONDS", "15")),
            retry_interval=float(os.getenv("DB_RETRY_INTERVAL_SECONDS", "5")),
            pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            connect_timeout=int(os.getenv("DB_CONNECT_TIMEOUT_SECONDS", "5")),
            max_body_bytes=int(os.getenv("MAX_BODY_BYTES", str(10 * 1024 * 1024))),
            environment=os.getenv("APP_ENV", "production"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
