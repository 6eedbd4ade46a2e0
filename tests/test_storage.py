"""
Unit tests for storage layer.

Tests schema creation, repositories and the atomic usage increment.
"""

import os
import shutil
import sqlite3
import tempfile
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

import pytest

from legal_doc_auto.storage.db import StorageError, get_connection
from legal_doc_auto.storage.models import DocumentRecord, DocumentStatus
from legal_doc_auto.storage.repository import (
    DEFAULT_TEMPLATES,
    DocumentRepository,
    OrganizationRepository,
    TemplateRepository,
    UserProfileRepository,
    initialize_schema,
)


def _record(document_id, organization_id="org-1", user_id="user-1", **overrides):
    values = dict(
        id=document_id,
        organization_id=organization_id,
        user_id=user_id,
        template_id="divorce-petition-ca",
        title="Petition for Dissolution of Marriage - Jane Doe",
        form_data={"petitioner_name": "Jane Doe", "children": False},
        file_url=f"{organization_id}/{document_id}.docx",
        pdf_url=f"{organization_id}/{document_id}.pdf",
        file_size=2048,
        status=DocumentStatus.GENERATED,
        created_at=datetime(2026, 10, 19, 9, 30),
    )
    values.update(overrides)
    return DocumentRecord(**values)


class TestDatabaseSchema:
    """Test database schema creation."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.temp_dir, "test.db")

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_initialize_schema_creates_tables(self):
        initialize_schema(self.db_path)

        conn = get_connection(self.db_path)
        try:
            tables = {
                row[0] for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table'"
                ).fetchall()
            }
        finally:
            conn.close()

        assert {"organizations", "user_profiles", "document_templates", "generated_documents"} <= tables

    def test_initialize_schema_is_idempotent(self):
        initialize_schema(self.db_path)
        initialize_schema(self.db_path)

    def test_foreign_keys_enabled(self):
        conn = get_connection(self.db_path)
        try:
            assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        finally:
            conn.close()


class TestRepositories:
    """Test organization, profile and template repositories."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.temp_dir, "test.db")
        initialize_schema(self.db_path)
        self.organizations = OrganizationRepository(self.db_path)

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_create_and_get_organization(self):
        created = self.organizations.create("Doe Family Law", subscription_tier="basic")

        fetched = self.organizations.get(created.id)
        assert fetched == created
        assert fetched.documents_used == 0
        assert fetched.subscription_status == "active"

    def test_get_missing_organization(self):
        assert self.organizations.get("nope") is None
        with pytest.raises(StorageError):
            self.organizations.get_usage("nope")

    def test_update_subscription(self):
        org = self.organizations.create("Doe", organization_id="org-1")

        updated = self.organizations.update_subscription("org-1", subscription_status="past_due")
        assert updated.subscription_tier == "trial"
        assert updated.subscription_status == "past_due"

        updated = self.organizations.update_subscription(org.id, subscription_tier="pro")
        assert updated.subscription_tier == "pro"
        assert updated.subscription_status == "past_due"

    def test_update_missing_organization(self):
        with pytest.raises(StorageError, match="Organization not found"):
            self.organizations.update_subscription("nope", subscription_tier="pro")

    def test_user_profile_requires_organization(self):
        profiles = UserProfileRepository(self.db_path)
        with pytest.raises(StorageError):
            profiles.create("user-1", "missing-org")

    def test_user_profile_round_trip(self):
        self.organizations.create("Doe", organization_id="org-1")
        profiles = UserProfileRepository(self.db_path)

        profiles.create("user-1", "org-1")

        assert profiles.get("user-1").organization_id == "org-1"
        assert profiles.get("user-2") is None

    def test_seed_default_templates(self):
        templates = TemplateRepository(self.db_path)

        assert templates.seed_default_templates() == len(DEFAULT_TEMPLATES)
        # Seeding twice refreshes rather than duplicating
        templates.seed_default_templates()

        listed = templates.list()
        assert len(listed) == len(DEFAULT_TEMPLATES)
        assert [t.category for t in listed] == sorted(t.category for t in listed)
        assert templates.get("child-support-ca").name == "Child Support Order"
        assert templates.get("name-change-ca") is None


class TestDocumentStatus:
    """Test the document lifecycle."""

    def test_forward_transitions(self):
        record = _record("doc-1", status=DocumentStatus.DRAFT)

        generating = record.transition(DocumentStatus.GENERATING)
        assert generating.status == DocumentStatus.GENERATING
        assert generating.transition(DocumentStatus.GENERATED).status == DocumentStatus.GENERATED
        assert generating.transition(DocumentStatus.ERROR).status == DocumentStatus.ERROR

    @pytest.mark.parametrize("start,target", [
        (DocumentStatus.DRAFT, DocumentStatus.GENERATED),
        (DocumentStatus.GENERATED, DocumentStatus.GENERATING),
        (DocumentStatus.ERROR, DocumentStatus.GENERATED),
        (DocumentStatus.GENERATED, DocumentStatus.DRAFT),
    ])
    def test_invalid_transitions(self, start, target):
        with pytest.raises(ValueError, match="Invalid document status transition"):
            _record("doc-1", status=start).transition(target)

    def test_to_dict(self):
        data = _record("doc-1").to_dict()
        assert data["status"] == "generated"
        assert data["created_at"] == "2026-10-19T09:30:00"


class TestDocumentRepository:
    """Test document persistence and the conditional usage increment."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.temp_dir, "test.db")
        initialize_schema(self.db_path)
        TemplateRepository(self.db_path).seed_default_templates()
        self.organizations = OrganizationRepository(self.db_path)
        self.organizations.create("Doe", organization_id="org-1")
        UserProfileRepository(self.db_path).create("user-1", "org-1")
        self.documents = DocumentRepository(self.db_path)

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_insert_and_increment(self):
        assert self.documents.insert_document_and_increment_usage(_record("doc-1"), limit=3)

        stored = self.documents.get("doc-1")
        assert stored == _record("doc-1")
        assert self.organizations.get_usage("org-1") == 1

    def test_limit_reached_writes_nothing(self):
        for index in range(3):
            assert self.documents.insert_document_and_increment_usage(_record(f"doc-{index}"), limit=3)

        assert not self.documents.insert_document_and_increment_usage(_record("doc-4"), limit=3)
        assert self.documents.get("doc-4") is None
        assert self.organizations.get_usage("org-1") == 3

    def test_unlimited(self):
        for index in range(12):
            assert self.documents.insert_document_and_increment_usage(_record(f"doc-{index}"), limit=-1)
        assert self.organizations.get_usage("org-1") == 12

    def test_duplicate_id_raises_storage_error(self):
        self.documents.insert_document_and_increment_usage(_record("doc-1"), limit=-1)

        with pytest.raises(StorageError, match="Failed to save document record"):
            self.documents.insert_document_and_increment_usage(_record("doc-1"), limit=-1)
        assert self.organizations.get_usage("org-1") == 1

    @pytest.mark.parametrize("limit", [3, -1])
    def test_missing_organization_raises_storage_error(self, limit):
        with pytest.raises(StorageError):
            self.documents.insert_document_and_increment_usage(
                _record("doc-1", organization_id="org-missing"), limit=limit
            )
        assert self.documents.get("doc-1") is None

    def test_concurrent_inserts_never_exceed_limit(self):
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(
                lambda index: self.documents.insert_document_and_increment_usage(
                    _record(f"doc-{index}"), limit=3
                ),
                range(10),
            ))

        assert results.count(True) == 3
        assert self.organizations.get_usage("org-1") == 3
        assert len(self.documents.list_for_organization("org-1")) == 3

    def test_list_for_organization_newest_first(self):
        self.documents.insert_document_and_increment_usage(
            _record("old", created_at=datetime(2026, 1, 1)), limit=-1
        )
        self.documents.insert_document_and_increment_usage(
            _record("new", created_at=datetime(2026, 6, 1)), limit=-1
        )

        assert [r.id for r in self.documents.list_for_organization("org-1")] == ["new", "old"]

    def test_form_data_stored_as_json(self):
        self.documents.insert_document_and_increment_usage(_record("doc-1"), limit=-1)

        conn = sqlite3.connect(self.db_path)
        try:
            raw = conn.execute("SELECT form_data FROM generated_documents").fetchone()[0]
        finally:
            conn.close()
        assert raw == '{"petitioner_name": "Jane Doe", "children": false}'
