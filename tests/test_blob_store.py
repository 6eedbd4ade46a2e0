"""
Unit tests for blob storage and signed download references.
"""

import os
import shutil
import tempfile

import jwt
import pytest

from legal_doc_auto.storage.blob_store import (
    SIGNING_SECRET_ENV,
    InvalidReferenceError,
    LocalBlobStore,
    signing_secret_from_env,
    validate_key,
)
from legal_doc_auto.storage.db import StorageError

SECRET = "test-signing-secret-0123456789abcdef"


class TestLocalBlobStore:
    """Test filesystem blob storage."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.store = LocalBlobStore(os.path.join(self.temp_dir, "blobs"), SECRET)

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_put_get_delete(self):
        self.store.put("org-1/petition.docx", b"docx bytes", "application/octet-stream")

        assert self.store.get("org-1/petition.docx") == b"docx bytes"

        self.store.delete("org-1/petition.docx")
        with pytest.raises(StorageError, match="Blob not found"):
            self.store.get("org-1/petition.docx")

    def test_put_never_overwrites(self):
        self.store.put("org-1/a.pdf", b"first", "application/pdf")

        with pytest.raises(StorageError):
            self.store.put("org-1/a.pdf", b"second", "application/pdf")
        assert self.store.get("org-1/a.pdf") == b"first"

    def test_delete_missing_key_is_ignored(self):
        self.store.delete("org-1/missing.pdf")

    @pytest.mark.parametrize("key", ["", "  ", "/etc/passwd", "org-1/../../escape", "org-1\\x.pdf"])
    def test_invalid_keys_rejected(self, key):
        with pytest.raises(StorageError):
            validate_key(key)
        with pytest.raises(StorageError):
            self.store.put(key, b"data", "application/pdf")

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError, match="signing_secret is required"):
            LocalBlobStore(self.temp_dir, "")


class TestSignedReferences:
    """Test time-limited download tokens."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.store = LocalBlobStore(self.temp_dir, SECRET)

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_round_trip(self):
        token = self.store.create_signed_reference("org-1/petition.docx", ttl_seconds=60)

        assert self.store.resolve_signed_reference(token) == "org-1/petition.docx"

    def test_expired(self):
        token = self.store.create_signed_reference("org-1/petition.docx", ttl_seconds=-1)

        with pytest.raises(InvalidReferenceError, match="expired"):
            self.store.resolve_signed_reference(token)

    def test_wrong_secret(self):
        other = LocalBlobStore(self.temp_dir, "another-signing-secret-0123456789abcd")
        token = other.create_signed_reference("org-1/petition.docx")

        with pytest.raises(InvalidReferenceError, match="Invalid download link"):
            self.store.resolve_signed_reference(token)

    def test_garbage_token(self):
        with pytest.raises(InvalidReferenceError):
            self.store.resolve_signed_reference("not-a-token")

    def test_wrong_token_type(self):
        token = jwt.encode({"type": "email_verify", "key": "org-1/a.pdf"}, SECRET, algorithm="HS256")

        with pytest.raises(InvalidReferenceError):
            self.store.resolve_signed_reference(token)

    def test_token_with_traversal_key(self):
        token = jwt.encode({"type": "blob_access", "key": "../secrets"}, SECRET, algorithm="HS256")

        with pytest.raises(InvalidReferenceError):
            self.store.resolve_signed_reference(token)


class TestSigningSecretFromEnv:
    """Test reading the signing secret."""

    def test_present(self):
        assert signing_secret_from_env({SIGNING_SECRET_ENV: " s3cret "}) == "s3cret"

    def test_missing(self):
        with pytest.raises(ValueError, match=SIGNING_SECRET_ENV):
            signing_secret_from_env({})
