"""
Unit tests for artifact persistence.

Tests the primary/secondary failure policy and cleanup on a lost usage race.
"""

import io
import os
import shutil
import tempfile
from dataclasses import replace
from datetime import datetime
from unittest.mock import Mock

import pytest
from docx import Document

from legal_doc_auto.core.errors import GENERIC_FAILURE_MESSAGE, EntitlementError, PersistenceError
from legal_doc_auto.core.persistence import ArtifactPersistenceCoordinator, document_title
from legal_doc_auto.core.sanitizer import SanitizedDocument
from legal_doc_auto.rendering import TRIAL_WATERMARK, DocxRenderer, PdfRenderer
from legal_doc_auto.storage.blob_store import LocalBlobStore
from legal_doc_auto.storage.db import StorageError
from legal_doc_auto.storage.models import DocumentStatus, DocumentTemplate
from legal_doc_auto.storage.repository import (
    DocumentRepository,
    OrganizationRepository,
    TemplateRepository,
    UserProfileRepository,
    initialize_schema,
)

SECRET = "test-signing-secret-0123456789abcdef"
NOW = datetime(2026, 10, 19, 9, 30)
TEMPLATE = DocumentTemplate(
    id="divorce-petition-ca",
    name="Petition for Dissolution of Marriage",
    category="divorce",
)
FIELDS = {"petitioner_name": "Jane Doe", "respondent_name": "John Doe"}
DOCUMENT = SanitizedDocument(
    text="PETITION\n\n1. Jurisdiction is proper.\n\nRespectfully submitted,",
    has_signature_block=True,
)


class TestDocumentTitle:

    def test_uses_primary_party(self):
        assert document_title(TEMPLATE, FIELDS) == "Petition for Dissolution of Marriage - Jane Doe"

    def test_untitled(self):
        assert document_title(TEMPLATE, {}) == "Petition for Dissolution of Marriage - Untitled"


class TestArtifactPersistence:
    """Test render, upload and record."""

    def setup_method(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = os.path.join(self.temp_dir, "test.db")
        self.blob_root = os.path.join(self.temp_dir, "blobs")
        initialize_schema(self.db_path)
        TemplateRepository(self.db_path).seed_default_templates()
        self.organizations = OrganizationRepository(self.db_path)
        self.organization = self.organizations.create("Doe", organization_id="org-1")
        UserProfileRepository(self.db_path).create("user-1", "org-1")
        self.documents = DocumentRepository(self.db_path)
        self.blob_store = LocalBlobStore(self.blob_root, SECRET)

    def teardown_method(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _coordinator(self, docx_renderer=None, pdf_renderer=None, blob_store=None):
        return ArtifactPersistenceCoordinator(
            docx_renderer=docx_renderer or DocxRenderer(),
            pdf_renderer=pdf_renderer or PdfRenderer(),
            blob_store=blob_store or self.blob_store,
            documents=self.documents,
            download_ttl_seconds=600,
            clock=lambda: NOW,
        )

    def _stored_files(self):
        found = []
        for root, _dirs, files in os.walk(self.blob_root):
            found.extend(os.path.join(root, name) for name in files)
        return found

    def test_persist_success(self):
        persisted = self._coordinator().persist(self.organization, "user-1", TEMPLATE, DOCUMENT, FIELDS)

        record = persisted.record
        timestamp_ms = int(NOW.timestamp() * 1000)
        assert record.status == DocumentStatus.GENERATED
        assert record.title == "Petition for Dissolution of Marriage - Jane Doe"
        assert record.file_url == f"org-1/{timestamp_ms}_divorce-petition-ca.docx"
        assert record.pdf_url == f"org-1/{timestamp_ms}_divorce-petition-ca.pdf"
        assert record.file_size == len(self.blob_store.get(record.file_url))
        assert self.documents.get(record.id) == record
        assert self.organizations.get_usage("org-1") == 1

        # Callers get signed references, never raw keys
        assert persisted.download_url.startswith("/api/files/")
        token = persisted.download_url.rsplit("/", 1)[1]
        assert self.blob_store.resolve_signed_reference(token) == record.file_url
        assert persisted.pdf_url.startswith("/api/files/")

        doc = Document(io.BytesIO(self.blob_store.get(record.file_url)))
        assert doc.paragraphs[0].text == "PETITION FOR DISSOLUTION OF MARRIAGE"

    def test_response_payload(self):
        persisted = self._coordinator().persist(self.organization, "user-1", TEMPLATE, DOCUMENT, FIELDS)

        response = persisted.to_response()
        assert response["success"] is True
        assert response["document_id"] == persisted.record.id
        assert response["document"]["status"] == "generated"

    def test_pdf_failure_still_succeeds(self):
        pdf_renderer = Mock()
        pdf_renderer.render.side_effect = RuntimeError("font missing")

        persisted = self._coordinator(pdf_renderer=pdf_renderer).persist(
            self.organization, "user-1", TEMPLATE, DOCUMENT, FIELDS
        )

        assert persisted.pdf_url is None
        assert persisted.record.pdf_url is None
        assert persisted.download_url.startswith("/api/files/")
        assert self.documents.get(persisted.record.id).pdf_url is None
        assert self.organizations.get_usage("org-1") == 1

    def test_trial_pdf_gets_watermark(self):
        pdf_renderer = Mock()
        pdf_renderer.render.return_value = b"%PDF-1.4"
        pdf_renderer.content_type = "application/pdf"

        self._coordinator(pdf_renderer=pdf_renderer).persist(
            self.organization, "user-1", TEMPLATE, DOCUMENT, FIELDS
        )

        assert pdf_renderer.render.call_args[0][3] == TRIAL_WATERMARK

    def test_paid_pdf_has_no_watermark(self):
        organization = self.organizations.update_subscription("org-1", subscription_tier="basic")
        pdf_renderer = Mock()
        pdf_renderer.render.return_value = b"%PDF-1.4"
        pdf_renderer.content_type = "application/pdf"

        self._coordinator(pdf_renderer=pdf_renderer).persist(
            organization, "user-1", TEMPLATE, DOCUMENT, FIELDS
        )

        assert pdf_renderer.render.call_args[0][3] is None

    def test_docx_failure_raises_and_records_nothing(self):
        docx_renderer = Mock()
        docx_renderer.render.side_effect = RuntimeError("disk full")

        with pytest.raises(PersistenceError) as exc_info:
            self._coordinator(docx_renderer=docx_renderer).persist(
                self.organization, "user-1", TEMPLATE, DOCUMENT, FIELDS
            )

        assert exc_info.value.message == GENERIC_FAILURE_MESSAGE
        assert self.documents.list_for_organization("org-1") == []
        assert self.organizations.get_usage("org-1") == 0

    def test_limit_reached_at_commit_discards_blobs(self):
        # Another request used up the trial while this one was generating
        documents = Mock()
        documents.insert_document_and_increment_usage.return_value = False
        coordinator = self._coordinator()
        coordinator.documents = documents

        with pytest.raises(EntitlementError) as exc_info:
            coordinator.persist(self.organization, "user-1", TEMPLATE, DOCUMENT, FIELDS)

        assert exc_info.value.code == "LIMIT_REACHED"
        assert exc_info.value.limit == 3
        assert self._stored_files() == []

    def test_record_failure_discards_blobs(self):
        documents = Mock()
        documents.insert_document_and_increment_usage.side_effect = StorageError("locked")
        coordinator = self._coordinator()
        coordinator.documents = documents

        with pytest.raises(PersistenceError):
            coordinator.persist(self.organization, "user-1", TEMPLATE, DOCUMENT, FIELDS)

        assert self._stored_files() == []

    def test_missing_organization_is_not_a_quota_denial(self):
        vanished = replace(self.organization, id="org-missing")

        with pytest.raises(PersistenceError) as exc_info:
            self._coordinator().persist(vanished, "user-1", TEMPLATE, DOCUMENT, FIELDS)

        assert exc_info.value.code == "STORAGE_FAILED"
        assert self._stored_files() == []
        assert self.organizations.get_usage("org-1") == 0
