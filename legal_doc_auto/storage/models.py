"""
Data models for storage layer.

Defines database entities and data structures.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class Organization:
    """Tenant holding the subscription and the usage counter."""
    id: str
    name: str
    subscription_tier: str = "trial"
    subscription_status: str = "active"
    documents_used: int = 0


@dataclass(frozen=True)
class UserProfile:
    id: str
    organization_id: str


@dataclass(frozen=True)
class DocumentTemplate:
    """Display metadata for a document type."""
    id: str
    name: str
    description: str = ""
    category: str = ""


class DocumentStatus(Enum):
    DRAFT = "draft"
    GENERATING = "generating"
    GENERATED = "generated"
    ERROR = "error"


# One-way lifecycle: draft -> generating -> generated | error
ALLOWED_TRANSITIONS = {
    DocumentStatus.DRAFT: {DocumentStatus.GENERATING},
    DocumentStatus.GENERATING: {DocumentStatus.GENERATED, DocumentStatus.ERROR},
    DocumentStatus.GENERATED: set(),
    DocumentStatus.ERROR: set(),
}


@dataclass(frozen=True)
class DocumentRecord:
    """Persisted output of one successful generation request.

    file_url and pdf_url hold blob-store keys; callers receive time-limited
    signed references built from them, never the keys themselves.
    """
    id: str
    organization_id: str
    user_id: str
    template_id: str
    title: str
    form_data: Dict[str, Any] = field(default_factory=dict)
    file_url: Optional[str] = None
    pdf_url: Optional[str] = None
    file_size: int = 0
    status: DocumentStatus = DocumentStatus.DRAFT
    created_at: datetime = field(default_factory=datetime.now)

    def transition(self, new_status: DocumentStatus) -> "DocumentRecord":
        """Return a copy in the new status.

        Raises:
            ValueError: If the lifecycle does not allow the move
        """
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise ValueError(
                f"Invalid document status transition: {self.status.value} -> {new_status.value}"
            )
        return replace(self, status=new_status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "user_id": self.user_id,
            "template_id": self.template_id,
            "title": self.title,
            "form_data": dict(self.form_data),
            "file_url": self.file_url,
            "pdf_url": self.pdf_url,
            "file_size": self.file_size,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
        }
