"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from forum.config import Settings, get_settings
from forum.storage import (
    FallbackDirStorageBackend,
    InMemoryStorageBackend,
    LocalFileStorageBackend,
    S3VersionedStorageBackend,
    StorageBackend,
)
from forum.store import StoreEngine

logger = logging.getLogger(__name__)

_store_engine: StoreEngine | None = None


def build_backend(name: str, settings: Settings) -> StorageBackend | None:
    if name == "local":
        return LocalFileStorageBackend(settings.questions_file)
    if name == "fallback":
        return FallbackDirStorageBackend(settings.fallback_dir)
    if name == "s3":
        if not settings.s3_bucket:
            logger.warning("S3 backend requested without S3_BUCKET; skipping it")
            return None
        return S3VersionedStorageBackend(
            bucket=settings.s3_bucket,
            key=settings.s3_key,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            addressing_style=settings.s3_addressing_style,
            timeout_seconds=settings.storage_timeout_seconds,
            mirror=(
                LocalFileStorageBackend(settings.questions_file)
                if settings.s3_mirror_to_local
                else None
            ),
        )
    raise ValueError(f"Unknown storage backend: {name}")


def build_backends(settings: Settings) -> list[StorageBackend]:
    if settings.use_in_memory_backends:
        return [InMemoryStorageBackend()]
    backends = [
        backend
        for backend in (build_backend(name, settings) for name in settings.backend_order)
        if backend is not None
    ]
    if not backends:
        # Nothing usable was configured.
        backends = [LocalFileStorageBackend(settings.questions_file)]
    return backends


def get_store_engine() -> StoreEngine:
    """
    Return a singleton engine. It holds only the backend chain, never the
    collection itself.
    """
    global _store_engine
    if _store_engine:
        return _store_engine

    settings = get_settings()
    backends = build_backends(settings)
    logger.info("Storage backends: %s", ", ".join(b.name for b in backends))
    _store_engine = StoreEngine(backends, max_reply_depth=settings.max_reply_depth)
    return _store_engine
