"""
Blob storage for generated artifacts.

Artifacts are stored under organization-scoped keys
("{organization_id}/{file name}") and handed out through time-limited
signed references (HS256 JWTs carrying the key and an expiry).
"""

import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath
from typing import Optional

import jwt

from .db import StorageError

logger = logging.getLogger(__name__)

SIGNING_SECRET_ENV = "LEGAL_DOC_AUTO_SIGNING_SECRET"
TOKEN_TYPE = "blob_access"
DEFAULT_TTL_SECONDS = 3600


class InvalidReferenceError(StorageError):
    """Signed reference is malformed, tampered with or expired."""


def validate_key(key: str) -> str:
    """Reject keys that could escape the store root.

    Raises:
        StorageError: If the key is empty, absolute or contains '..'
    """
    if not key or not key.strip():
        raise StorageError("Blob key cannot be empty")
    path = PurePosixPath(key)
    if path.is_absolute() or ".." in path.parts or "\\" in key:
        raise StorageError(f"Invalid blob key: {key}")
    return key


class BlobStore(ABC):
    """Binary artifact store with signed read references."""

    def __init__(self, signing_secret: str):
        if not signing_secret:
            raise ValueError("signing_secret is required and cannot be empty")
        self._signing_secret = signing_secret

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> None:
        """Store data under key, overwriting nothing.

        Raises:
            StorageError: If the write fails or the key exists
        """

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Raises StorageError if the key does not exist."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key; missing keys are ignored."""

    def create_signed_reference(self, key: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> str:
        """Issue a token granting read access to key until it expires."""
        validate_key(key)
        now = datetime.now(timezone.utc)
        payload = {
            "type": TOKEN_TYPE,
            "key": key,
            "iat": now,
            "exp": now + timedelta(seconds=ttl_seconds),
        }
        return jwt.encode(payload, self._signing_secret, algorithm="HS256")

    def resolve_signed_reference(self, token: str) -> str:
        """Return the blob key behind a valid token.

        Raises:
            InvalidReferenceError: If the token is expired or invalid
        """
        try:
            payload = jwt.decode(token, self._signing_secret, algorithms=["HS256"])
        except jwt.ExpiredSignatureError as e:
            raise InvalidReferenceError("Download link has expired") from e
        except jwt.InvalidTokenError as e:
            raise InvalidReferenceError("Invalid download link") from e

        if payload.get("type") != TOKEN_TYPE or not payload.get("key"):
            raise InvalidReferenceError("Invalid download link")
        try:
            return validate_key(payload["key"])
        except StorageError as e:
            raise InvalidReferenceError("Invalid download link") from e


class LocalBlobStore(BlobStore):
    """Filesystem-backed blob store rooted at a single directory."""

    def __init__(self, root: str, signing_secret: str):
        super().__init__(signing_secret)
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root.joinpath(*PurePosixPath(validate_key(key)).parts)

    def put(self, key: str, data: bytes, content_type: str) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "xb") as f:
                f.write(data)
        except OSError as e:
            raise StorageError(f"Failed to store {key}: {e}") from e
        logger.debug("Stored %s (%s, %d bytes)", key, content_type, len(data))

    def get(self, key: str) -> bytes:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise StorageError(f"Blob not found: {key}") from e
        except OSError as e:
            raise StorageError(f"Failed to read {key}: {e}") from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageError(f"Failed to delete {key}: {e}") from e


def signing_secret_from_env(env: Optional[dict] = None) -> str:
    """Signing secret from LEGAL_DOC_AUTO_SIGNING_SECRET.

    Raises:
        ValueError: If the variable is unset
    """
    env = os.environ if env is None else env
    secret = env.get(SIGNING_SECRET_ENV, "").strip()
    if not secret:
        raise ValueError(f"{SIGNING_SECRET_ENV} must be set to sign download links")
    return secret
