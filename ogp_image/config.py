"""Environment driven settings."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

DEFAULT_S3_BUCKET = "github-io-ogp"
DEFAULT_S3_REGION = "us-east-2"
DEFAULT_DATABASE_URL = "sqlite:///./data/ogp_images.db"
USER_AGENT = "OgpImageBot/1.0"


def _optional_path(name: str) -> Path | None:
    value = (os.getenv(name) or "").strip()
    return Path(value).expanduser() if value else None


def _float(name: str, default: float) -> float:
    value = (os.getenv(name) or "").strip()
    try:
        return float(value) if value else default
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    font_path: Path | None = None
    base_image_path: Path | None = None
    icon_image_path: Path | None = None
    allowed_url_prefixes: tuple[str, ...] = ()
    store_backend: str = "sql"
    database_url: str = DEFAULT_DATABASE_URL
    s3_bucket: str = DEFAULT_S3_BUCKET
    s3_region: str = DEFAULT_S3_REGION
    s3_endpoint_url: str | None = None
    http_timeout: float = 5.0
    store_timeout: float = 3.0
    user_agent: str = USER_AGENT
    log_level: str | None = None


def load_settings_from_env() -> Settings:
    prefixes = os.getenv("OGP_ALLOWED_URL_PREFIXES", "")
    return Settings(
        font_path=_optional_path("OGP_FONT_PATH"),
        base_image_path=_optional_path("OGP_BASE_IMAGE_PATH"),
        icon_image_path=_optional_path("OGP_ICON_IMAGE_PATH"),
        allowed_url_prefixes=tuple(p.strip() for p in prefixes.split(",") if p.strip()),
        store_backend=(os.getenv("OGP_STORE_BACKEND", "sql").strip().lower() or "sql"),
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        s3_bucket=os.getenv("OGP_S3_BUCKET", DEFAULT_S3_BUCKET),
        s3_region=os.getenv("AWS_REGION", DEFAULT_S3_REGION),
        s3_endpoint_url=(os.getenv("S3_ENDPOINT") or None),
        http_timeout=_float("OGP_HTTP_TIMEOUT", 5.0),
        store_timeout=_float("OGP_STORE_TIMEOUT", 3.0),
        user_agent=os.getenv("OGP_USER_AGENT", USER_AGENT),
        log_level=os.getenv("LOG_LEVEL"),
    )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    return load_settings_from_env()
