"""
Artifact persistence.

After a document is sanitized: render the primary (DOCX) and secondary (PDF)
artifacts, upload both under organization-scoped keys, then record the
document and bump the organization's usage counter in one transaction.

Failure Policy:
1. Primary render or upload fails - PersistenceError, nothing recorded
2. Secondary render or upload fails - logged, record has no pdf_url
3. Record write fails or usage limit is hit at commit time - uploaded blobs
   are deleted so no orphaned artifacts remain
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional

from legal_doc_auto.prompts.registry import PRIMARY_NAME_KEYS, first_present
from legal_doc_auto.rendering import watermark_for_tier
from legal_doc_auto.storage.blob_store import BlobStore
from legal_doc_auto.storage.db import StorageError
from legal_doc_auto.storage.models import (
    DocumentRecord,
    DocumentStatus,
    DocumentTemplate,
    Organization,
)
from legal_doc_auto.storage.repository import DocumentRepository

from .entitlements import (
    DenyReason,
    EntitlementDecision,
    SubscriptionTier,
    entitlement_error,
    get_document_limit,
)
from .errors import GENERIC_FAILURE_MESSAGE, PersistenceError, UploadError
from .sanitizer import SanitizedDocument

logger = logging.getLogger(__name__)

DOWNLOAD_PATH = "/api/files"


@dataclass(frozen=True)
class PersistedDocument:
    """Stored record plus time-limited download references."""
    record: DocumentRecord
    download_url: str
    pdf_url: Optional[str] = None

    def to_response(self) -> dict:
        return {
            "success": True,
            "document_id": self.record.id,
            "download_url": self.download_url,
            "pdf_url": self.pdf_url,
            "document": self.record.to_dict(),
        }


def document_title(template: DocumentTemplate, fields: Mapping[str, Any]) -> str:
    return f"{template.name} - {first_present(fields, PRIMARY_NAME_KEYS) or 'Untitled'}"


class ArtifactPersistenceCoordinator:
    """Renders, uploads and records a generated document.

    Args:
        docx_renderer: Primary artifact renderer
        pdf_renderer: Secondary artifact renderer
        blob_store: Where artifacts are uploaded
        documents: Repository for document records
        download_ttl_seconds: Lifetime of issued download references
        clock: Callable returning the current datetime
    """

    def __init__(
        self,
        docx_renderer,
        pdf_renderer,
        blob_store: BlobStore,
        documents: DocumentRepository,
        download_ttl_seconds: int = 3600,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.docx_renderer = docx_renderer
        self.pdf_renderer = pdf_renderer
        self.blob_store = blob_store
        self.documents = documents
        self.download_ttl_seconds = download_ttl_seconds
        self.clock = clock or datetime.now

    def download_url(self, key: str) -> str:
        token = self.blob_store.create_signed_reference(key, self.download_ttl_seconds)
        return f"{DOWNLOAD_PATH}/{token}"

    def _discard(self, keys: List[str]) -> None:
        for key in keys:
            try:
                self.blob_store.delete(key)
            except StorageError:
                logger.exception("Failed to delete orphaned artifact %s", key)

    def _store_secondary(
        self,
        key: str,
        title: str,
        document: SanitizedDocument,
        fields: Mapping[str, Any],
        watermark: Optional[str],
    ) -> Optional[str]:
        try:
            pdf_bytes = self.pdf_renderer.render(title, document.text, fields, watermark)
            self.blob_store.put(key, pdf_bytes, self.pdf_renderer.content_type)
        except Exception as e:
            error = UploadError(f"PDF artifact unavailable: {e}")
            logger.warning("%s (%s); continuing with DOCX only", error.message, error.code)
            return None
        return key

    def persist(
        self,
        organization: Organization,
        user_id: str,
        template: DocumentTemplate,
        document: SanitizedDocument,
        fields: Mapping[str, Any],
    ) -> PersistedDocument:
        """Render, upload and record a sanitized document.

        Raises:
            PersistenceError: If the primary artifact or the record cannot be stored
            EntitlementError: If the usage limit was reached by a concurrent request
        """
        created_at = self.clock()
        timestamp_ms = int(created_at.timestamp() * 1000)
        base_key = f"{organization.id}/{timestamp_ms}_{template.id}"
        docx_key = f"{base_key}.docx"
        pdf_key = f"{base_key}.pdf"

        try:
            docx_bytes = self.docx_renderer.render(template.name, document.text, fields)
            self.blob_store.put(docx_key, docx_bytes, self.docx_renderer.content_type)
        except Exception as e:
            logger.exception("Primary artifact failed for %s: %s", template.id, e)
            raise PersistenceError(GENERIC_FAILURE_MESSAGE) from e
        uploaded = [docx_key]

        watermark = watermark_for_tier(organization.subscription_tier)
        stored_pdf = self._store_secondary(pdf_key, template.name, document, fields, watermark)
        if stored_pdf:
            uploaded.append(stored_pdf)

        record = DocumentRecord(
            id=str(uuid.uuid4()),
            organization_id=organization.id,
            user_id=user_id,
            template_id=template.id,
            title=document_title(template, fields),
            form_data=dict(fields),
            file_url=docx_key,
            pdf_url=stored_pdf,
            file_size=len(docx_bytes),
            status=DocumentStatus.GENERATING,
            created_at=created_at,
        ).transition(DocumentStatus.GENERATED)

        limit = get_document_limit(organization.subscription_tier)
        try:
            committed = self.documents.insert_document_and_increment_usage(record, limit)
        except StorageError as e:
            logger.exception("Failed to save document record for %s", organization.id)
            self._discard(uploaded)
            raise PersistenceError(GENERIC_FAILURE_MESSAGE) from e

        if not committed:
            self._discard(uploaded)
            raise entitlement_error(EntitlementDecision(
                allowed=False,
                current_usage=limit,
                limit=limit,
                tier=SubscriptionTier(organization.subscription_tier),
                reason=DenyReason.LIMIT_REACHED,
            ))

        logger.info("Stored document %s for organization %s", record.id, organization.id)
        return PersistedDocument(
            record=record,
            download_url=self.download_url(docx_key),
            pdf_url=self.download_url(stored_pdf) if stored_pdf else None,
        )
