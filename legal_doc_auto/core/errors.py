"""
Error taxonomy for the document generation pipeline.

Guard-layer errors (auth, entitlement, template lookup, field checks) carry a
specific machine-readable code back to the caller. Downstream failures
(generation, rendering, storage) are reported with a generic message; the
detail stays in server-side logs.
"""

from typing import Any, Dict, Optional

GENERIC_FAILURE_MESSAGE = "Failed to generate document"


class DocumentPipelineError(Exception):
    """Base class for all pipeline errors."""
    code = "PIPELINE_ERROR"
    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def to_payload(self) -> Dict[str, Any]:
        """Body returned to the caller."""
        return {"error": self.message, "code": self.code}


class AuthError(DocumentPipelineError):
    """No authenticated identity or no organization affiliation."""
    code = "UNAUTHORIZED"
    status_code = 401


class EntitlementError(DocumentPipelineError):
    """Subscription inactive or usage limit reached.

    Carries the quota details so the caller can render an upgrade prompt.
    """
    status_code = 403

    def __init__(
        self,
        message: str,
        code: str,
        current_usage: int,
        limit: int,
        tier: str,
    ):
        super().__init__(message, code)
        self.current_usage = current_usage
        self.limit = limit
        self.tier = tier

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload.update({
            "currentUsage": self.current_usage,
            "limit": self.limit,
            "tier": self.tier,
        })
        return payload


class TemplateNotFound(DocumentPipelineError):
    """Document-type identifier does not resolve to a template."""
    code = "TEMPLATE_NOT_FOUND"
    status_code = 404


class InvalidFieldsError(DocumentPipelineError):
    """Field map fails a consistency check (e.g. dates out of order)."""
    code = "INVALID_FIELDS"
    status_code = 400


class GenerationError(DocumentPipelineError):
    """Generation or sanitization failed."""
    code = "GENERATION_FAILED"


class PersistenceError(DocumentPipelineError):
    """Primary artifact render/upload or record write failed."""
    code = "STORAGE_FAILED"


class UploadError(DocumentPipelineError):
    """Secondary artifact render/upload failed. Never surfaced to callers."""
    code = "UPLOAD_FAILED"
