"""Blob store backends for rendered previews."""
from __future__ import annotations

import hashlib
import logging
from typing import Any, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.engine import Engine

from .config import Settings
from .db import create_db_engine, init_db, make_session_factory, session_scope
from .models import RenderedImage

logger = logging.getLogger(__name__)


class BlobStore(Protocol):
    def get(self, key: str) -> Optional[bytes]:
        """Return the stored bytes, ``None`` when absent; raise on store errors."""

    def put(self, key: str, data: bytes) -> None: ...


class SqlBlobStore:
    """Stores rendered images in a SQL table keyed by request key."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._sessions = make_session_factory(engine)

    @classmethod
    def from_url(cls, database_url: str, timeout: float | None = None) -> "SqlBlobStore":
        engine = create_db_engine(database_url, timeout=timeout)
        init_db(engine)
        return cls(engine)

    def get(self, key: str) -> Optional[bytes]:
        with session_scope(self._sessions) as session:
            record = session.execute(
                select(RenderedImage).where(RenderedImage.key == key)
            ).scalar_one_or_none()
            return bytes(record.content) if record else None

    def put(self, key: str, data: bytes) -> None:
        with session_scope(self._sessions) as session:
            record = session.execute(
                select(RenderedImage).where(RenderedImage.key == key)
            ).scalar_one_or_none()
            if record is None:
                record = RenderedImage(key=key, content=data, size_bytes=len(data))
            record.content = data
            record.size_bytes = len(data)
            record.content_hash = hashlib.sha256(data).hexdigest()
            session.add(record)


class S3BlobStore:
    """Stores rendered images as PNG objects in an S3 bucket."""

    def __init__(self, client: Any, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_settings(cls, settings: Settings) -> "S3BlobStore":
        import boto3
        from botocore.config import Config

        config = Config(
            connect_timeout=settings.store_timeout,
            read_timeout=settings.store_timeout,
            retries={"max_attempts": 1},
        )
        client = boto3.client(
            "s3",
            region_name=settings.s3_region,
            endpoint_url=settings.s3_endpoint_url,
            config=config,
        )
        return cls(client, settings.s3_bucket)

    def get(self, key: str) -> Optional[bytes]:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except self.client.exceptions.NoSuchKey:
            return None
        return response["Body"].read()

    def put(self, key: str, data: bytes) -> None:
        self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType="image/png")


def build_blob_store(settings: Settings) -> Optional[BlobStore]:
    """Create the configured store, or ``None`` when caching must be bypassed."""

    backend = settings.store_backend
    if backend == "none":
        logger.info("Blob store disabled; previews are regenerated on every request")
        return None
    try:
        if backend == "s3":
            store: BlobStore = S3BlobStore.from_settings(settings)
        elif backend == "sql":
            store = SqlBlobStore.from_url(settings.database_url, timeout=settings.store_timeout)
        else:
            logger.error("Unknown blob store backend %r; caching disabled", backend)
            return None
    except Exception as exc:
        logger.exception("Failed to initialise %s blob store; caching disabled: %s", backend, exc)
        return None
    logger.info("Using %s blob store", backend)
    return store
