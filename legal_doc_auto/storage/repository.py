"""
Repository pattern for data access.

Handles database operations and data persistence logic. Every operation
opens its own connection and closes it before returning.
"""

import json
import logging
import sqlite3
import uuid
from datetime import datetime
from typing import List, Optional

from .db import DEFAULT_DB_PATH, StorageError, get_connection
from .models import (
    DocumentRecord,
    DocumentStatus,
    DocumentTemplate,
    Organization,
    UserProfile,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES = (
    DocumentTemplate(
        id="divorce-petition-ca",
        name="Petition for Dissolution of Marriage",
        description="Start a California divorce: residency, separation, children and property.",
        category="divorce",
    ),
    DocumentTemplate(
        id="custody-agreement-ca",
        name="Child Custody and Visitation Agreement",
        description="Legal and physical custody, parenting schedule and exchanges.",
        category="custody",
    ),
    DocumentTemplate(
        id="property-settlement-ca",
        name="Property Settlement Agreement",
        description="Division of community property, debts and retirement accounts.",
        category="property",
    ),
    DocumentTemplate(
        id="child-support-ca",
        name="Child Support Order",
        description="Guideline child support with add-on expenses.",
        category="support",
    ),
    DocumentTemplate(
        id="spousal-support-ca",
        name="Spousal Support Order",
        description="Spousal support under the Family Code section 4320 factors.",
        category="support",
    ),
)


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create all tables if they don't exist.

    Args:
        db_path: Path to SQLite database file
    """
    conn = get_connection(db_path)
    try:
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS organizations (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                subscription_tier TEXT NOT NULL DEFAULT 'trial',
                subscription_status TEXT NOT NULL DEFAULT 'active',
                documents_used INTEGER NOT NULL DEFAULT 0
            );
            CREATE TABLE IF NOT EXISTS user_profiles (
                id TEXT PRIMARY KEY,
                organization_id TEXT NOT NULL REFERENCES organizations(id)
            );
            CREATE TABLE IF NOT EXISTS document_templates (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                category TEXT NOT NULL DEFAULT ''
            );
            CREATE TABLE IF NOT EXISTS generated_documents (
                id TEXT PRIMARY KEY,
                organization_id TEXT NOT NULL REFERENCES organizations(id),
                user_id TEXT NOT NULL REFERENCES user_profiles(id),
                template_id TEXT NOT NULL REFERENCES document_templates(id),
                title TEXT NOT NULL,
                form_data TEXT NOT NULL,
                file_url TEXT,
                pdf_url TEXT,
                file_size INTEGER NOT NULL DEFAULT 0,
                status TEXT NOT NULL,
                created_at TEXT NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_generated_documents_org
                ON generated_documents (organization_id, created_at);
        """)
    finally:
        conn.close()


def _organization_from_row(row) -> Organization:
    return Organization(
        id=row[0],
        name=row[1],
        subscription_tier=row[2],
        subscription_status=row[3],
        documents_used=row[4],
    )


def _document_from_row(row) -> DocumentRecord:
    return DocumentRecord(
        id=row[0],
        organization_id=row[1],
        user_id=row[2],
        template_id=row[3],
        title=row[4],
        form_data=json.loads(row[5]),
        file_url=row[6],
        pdf_url=row[7],
        file_size=row[8],
        status=DocumentStatus(row[9]),
        created_at=datetime.fromisoformat(row[10]),
    )


_DOCUMENT_COLUMNS = """
    id, organization_id, user_id, template_id, title, form_data,
    file_url, pdf_url, file_size, status, created_at
"""


class OrganizationRepository:
    """Organizations, their subscription and usage counter."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    def create(
        self,
        name: str,
        subscription_tier: str = "trial",
        subscription_status: str = "active",
        organization_id: Optional[str] = None,
    ) -> Organization:
        organization = Organization(
            id=organization_id or str(uuid.uuid4()),
            name=name,
            subscription_tier=subscription_tier,
            subscription_status=subscription_status,
        )
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                """
                INSERT INTO organizations
                (id, name, subscription_tier, subscription_status, documents_used)
                VALUES (?, ?, ?, ?, 0)
                """,
                (organization.id, name, subscription_tier, subscription_status),
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to create organization: {e}") from e
        finally:
            conn.close()
        return organization

    def get(self, organization_id: str) -> Optional[Organization]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                """
                SELECT id, name, subscription_tier, subscription_status, documents_used
                FROM organizations WHERE id = ?
                """,
                (organization_id,),
            ).fetchone()
            return _organization_from_row(row) if row else None
        finally:
            conn.close()

    def update_subscription(
        self,
        organization_id: str,
        subscription_tier: Optional[str] = None,
        subscription_status: Optional[str] = None,
    ) -> Organization:
        """Apply a tier/status change reported by external billing.

        Raises:
            StorageError: If the organization does not exist
        """
        conn = get_connection(self.db_path)
        try:
            cursor = conn.execute(
                """
                UPDATE organizations
                SET subscription_tier = COALESCE(?, subscription_tier),
                    subscription_status = COALESCE(?, subscription_status)
                WHERE id = ?
                """,
                (subscription_tier, subscription_status, organization_id),
            )
            if cursor.rowcount == 0:
                raise StorageError(f"Organization not found: {organization_id}")
        finally:
            conn.close()
        return self.get(organization_id)

    def get_usage(self, organization_id: str) -> int:
        organization = self.get(organization_id)
        if organization is None:
            raise StorageError(f"Organization not found: {organization_id}")
        return organization.documents_used


class UserProfileRepository:
    """Maps authenticated users to their organization."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    def create(self, user_id: str, organization_id: str) -> UserProfile:
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                "INSERT INTO user_profiles (id, organization_id) VALUES (?, ?)",
                (user_id, organization_id),
            )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to create user profile: {e}") from e
        finally:
            conn.close()
        return UserProfile(id=user_id, organization_id=organization_id)

    def get(self, user_id: str) -> Optional[UserProfile]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT id, organization_id FROM user_profiles WHERE id = ?",
                (user_id,),
            ).fetchone()
            return UserProfile(id=row[0], organization_id=row[1]) if row else None
        finally:
            conn.close()


class TemplateRepository:
    """Display metadata for document types."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    def get(self, template_id: str) -> Optional[DocumentTemplate]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                "SELECT id, name, description, category FROM document_templates WHERE id = ?",
                (template_id,),
            ).fetchone()
            if not row:
                return None
            return DocumentTemplate(id=row[0], name=row[1], description=row[2], category=row[3])
        finally:
            conn.close()

    def list(self) -> List[DocumentTemplate]:
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute(
                """
                SELECT id, name, description, category FROM document_templates
                ORDER BY category, name
                """
            ).fetchall()
            return [
                DocumentTemplate(id=row[0], name=row[1], description=row[2], category=row[3])
                for row in rows
            ]
        finally:
            conn.close()

    def upsert(self, template: DocumentTemplate) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute(
                """
                INSERT INTO document_templates (id, name, description, category)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    category = excluded.category
                """,
                (template.id, template.name, template.description, template.category),
            )
        finally:
            conn.close()

    def seed_default_templates(self) -> int:
        """Insert or refresh the built-in templates. Returns how many were written."""
        for template in DEFAULT_TEMPLATES:
            self.upsert(template)
        return len(DEFAULT_TEMPLATES)


class DocumentRepository:
    """Generated document records."""

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        self.db_path = db_path

    def get(self, document_id: str) -> Optional[DocumentRecord]:
        conn = get_connection(self.db_path)
        try:
            row = conn.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM generated_documents WHERE id = ?",
                (document_id,),
            ).fetchone()
            return _document_from_row(row) if row else None
        finally:
            conn.close()

    def list_for_organization(self, organization_id: str, limit: int = 100) -> List[DocumentRecord]:
        """Documents for an organization, newest first."""
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute(
                f"""
                SELECT {_DOCUMENT_COLUMNS} FROM generated_documents
                WHERE organization_id = ?
                ORDER BY created_at DESC LIMIT ?
                """,
                (organization_id, limit),
            ).fetchall()
            return [_document_from_row(row) for row in rows]
        finally:
            conn.close()

    def insert_document_and_increment_usage(self, record: DocumentRecord, limit: int) -> bool:
        """Insert a record and bump the organization's usage counter atomically.

        Both writes happen in one BEGIN IMMEDIATE transaction. The increment
        is conditional on the organization still being under its limit, so
        concurrent requests cannot push usage past it.

        Args:
            record: Record to insert (status must be GENERATED)
            limit: Organization's document limit; -1 means unlimited

        Returns:
            True if committed, False if the limit was reached (nothing written)

        Raises:
            StorageError: If the write fails or the organization does not exist
        """
        conn = get_connection(self.db_path)
        try:
            conn.execute("BEGIN IMMEDIATE")
            conn.execute(
                f"""
                INSERT INTO generated_documents ({_DOCUMENT_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.organization_id,
                    record.user_id,
                    record.template_id,
                    record.title,
                    json.dumps(record.form_data, default=str),
                    record.file_url,
                    record.pdf_url,
                    record.file_size,
                    record.status.value,
                    record.created_at.isoformat(),
                ),
            )
            cursor = conn.execute(
                """
                UPDATE organizations
                SET documents_used = documents_used + 1
                WHERE id = ? AND (? = -1 OR documents_used < ?)
                """,
                (record.organization_id, limit, limit),
            )
            if cursor.rowcount != 1:
                exists = conn.execute(
                    "SELECT 1 FROM organizations WHERE id = ?", (record.organization_id,)
                ).fetchone()
                conn.execute("ROLLBACK")
                if exists is None:
                    raise StorageError(f"Organization not found: {record.organization_id}")
                logger.warning(
                    "Usage limit reached for organization %s at commit time",
                    record.organization_id,
                )
                return False
            conn.execute("COMMIT")
            return True
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK")
            raise StorageError(f"Failed to save document record: {e}") from e
        finally:
            conn.close()
