"""
Storage backends for the questions document.

Each backend persists the whole collection as one opaque blob. Implementations
cover local disk, a fallback directory, S3-compatible object storage with
ETag versioning, and in-memory testing.
"""

from __future__ import annotations

import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "questions.json"
DEFAULT_FILE_MODE = 0o644

_MISSING_OBJECT_CODES = {"NoSuchKey", "NotFound", "404"}
_CONFLICT_CODES = {"PreconditionFailed", "ConditionalRequestConflict"}


class BackendError(Exception):
    """A backend could not complete a fetch or store."""


class ConflictError(BackendError):
    """The stored version no longer matches the token sent with a write."""


@dataclass
class Blob:
    data: bytes
    version: Optional[str] = None


class StorageBackend(Protocol):
    """Defines the operations the store engine needs from a backend."""

    name: str

    def fetch(self) -> Optional[Blob]:
        """Return the stored blob, or None when nothing has been stored yet."""
        ...

    def store(self, data: bytes, version: Optional[str] = None) -> Optional[str]:
        """Replace the stored blob and return its new version token."""
        ...


@dataclass
class InMemoryStorageBackend:
    """
    Test double for storage interactions.

    With `versioned=True` writes must carry the token from the latest fetch,
    mirroring the S3 backend's conditional puts.
    """

    name: str = "memory"
    data: Optional[bytes] = None
    versioned: bool = False
    fail_fetch: bool = False
    fail_store: bool = False
    revision: int = 0
    store_calls: int = 0

    def _token(self) -> Optional[str]:
        return f"rev-{self.revision}" if self.versioned else None

    def fetch(self) -> Optional[Blob]:
        if self.fail_fetch:
            raise BackendError(f"{self.name}: fetch unavailable")
        if self.data is None:
            return None
        return Blob(data=self.data, version=self._token())

    def store(self, data: bytes, version: Optional[str] = None) -> Optional[str]:
        self.store_calls += 1
        if self.fail_store:
            raise BackendError(f"{self.name}: store unavailable")
        if self.versioned:
            current = self._token() if self.data is not None else None
            if version != current:
                raise ConflictError(
                    f"{self.name}: expected version {current}, got {version}"
                )
        self.data = bytes(data)
        self.revision += 1
        return self._token()

    def reset(self) -> None:
        """Clear stored data (useful in tests)."""
        self.data = None
        self.revision = 0
        self.store_calls = 0


def _existing_mode(target: Path) -> int:
    try:
        return stat.S_IMODE(target.stat().st_mode)
    except FileNotFoundError:
        return DEFAULT_FILE_MODE


@dataclass
class LocalFileStorageBackend:
    """Stores the blob in a single file on local disk."""

    path: str
    name: str = "local"

    def fetch(self) -> Optional[Blob]:
        try:
            with open(self.path, "rb") as f:
                return Blob(data=f.read())
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise BackendError(f"{self.name}: read failed ({exc.strerror})") from exc

    def store(self, data: bytes, version: Optional[str] = None) -> Optional[str]:
        target = Path(self.path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # Write to a sibling temp file first so readers never see a
            # partially written document.
            fd, tmp_path = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                # mkstemp creates the file as 0600; keep the mode the document had.
                os.chmod(tmp_path, _existing_mode(target))
                os.replace(tmp_path, target)
            except OSError:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise BackendError(f"{self.name}: write failed ({exc.strerror})") from exc
        return None


class FallbackDirStorageBackend(LocalFileStorageBackend):
    """Local file backend rooted at a secondary directory (temp dir by default)."""

    def __init__(
        self,
        directory: Optional[str] = None,
        filename: str = DEFAULT_FILENAME,
        name: str = "fallback",
    ):
        self.directory = directory or tempfile.gettempdir()
        super().__init__(path=os.path.join(self.directory, filename), name=name)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


def _status_code(exc: ClientError) -> Optional[int]:
    return exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")


@dataclass
class S3VersionedStorageBackend:
    """
    S3-compatible storage using the object's ETag as the version token.

    Updates are conditional: a write with a token sends IfMatch, a write
    without one sends IfNoneMatch="*" and only succeeds when the object does
    not exist yet. Either precondition failing raises ConflictError.
    """

    bucket: str
    key: str = DEFAULT_FILENAME
    region: str = ""
    endpoint: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    addressing_style: str = "virtual"
    timeout_seconds: float = 10.0
    mirror: Optional[LocalFileStorageBackend] = None
    client: Any = None
    name: str = "s3"

    def __post_init__(self):
        if self.client is not None:
            return
        # The store engine's fallback chain is the only retry layer.
        config = Config(
            s3={"addressing_style": self.addressing_style},
            signature_version="s3v4",
            connect_timeout=self.timeout_seconds,
            read_timeout=self.timeout_seconds,
            retries={"mode": "standard", "total_max_attempts": 1},
        )
        self.client = boto3.client(
            "s3",
            endpoint_url=self.endpoint or None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
            config=config,
        )

    def fetch(self) -> Optional[Blob]:
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=self.key)
            data = response["Body"].read()
        except ClientError as exc:
            if _error_code(exc) in _MISSING_OBJECT_CODES or _status_code(exc) == 404:
                return None
            raise BackendError(
                f"{self.name}: get_object failed ({_error_code(exc)})"
            ) from exc
        except BotoCoreError as exc:
            raise BackendError(f"{self.name}: get_object failed") from exc
        return Blob(data=data, version=response.get("ETag"))

    def store(self, data: bytes, version: Optional[str] = None) -> Optional[str]:
        params = {
            "Bucket": self.bucket,
            "Key": self.key,
            "Body": data,
            "ContentType": "application/json",
        }
        if version:
            params["IfMatch"] = version
        else:
            params["IfNoneMatch"] = "*"

        try:
            response = self.client.put_object(**params)
        except ClientError as exc:
            code = _error_code(exc)
            if code in _CONFLICT_CODES or _status_code(exc) in (409, 412):
                raise ConflictError(
                    f"{self.name}: version precondition failed ({code})"
                ) from exc
            raise BackendError(f"{self.name}: put_object failed ({code})") from exc
        except BotoCoreError as exc:
            raise BackendError(f"{self.name}: put_object failed") from exc

        self._mirror_write(data)
        return response.get("ETag")

    def _mirror_write(self, data: bytes) -> None:
        if self.mirror is None:
            return
        try:
            self.mirror.store(data)
        except BackendError as exc:
            logger.warning("Mirror write after %s store failed: %s", self.name, exc)
