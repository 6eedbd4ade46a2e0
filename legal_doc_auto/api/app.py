"""
HTTP entry point.

FastAPI application exposing document generation, signed artifact
downloads, the template catalogue and the support calculator.
"""

import logging
from dataclasses import asdict
from pathlib import PurePosixPath
from typing import Any, Dict, Optional

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from legal_doc_auto.core.errors import DocumentPipelineError
from legal_doc_auto.core.pipeline import (
    DocumentPipeline,
    GenerationRequest,
    ProfileIdentityProvider,
)
from legal_doc_auto.core.support_calculator import (
    SupportCalculationInputs,
    compute_support,
    validate_support_inputs,
)
from legal_doc_auto.rendering.docx_renderer import DOCX_CONTENT_TYPE
from legal_doc_auto.rendering.pdf_renderer import PDF_CONTENT_TYPE
from legal_doc_auto.storage.blob_store import BlobStore, InvalidReferenceError
from legal_doc_auto.storage.db import StorageError

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".docx": DOCX_CONTENT_TYPE,
    ".pdf": PDF_CONTENT_TYPE,
}


class GenerateDocumentBody(BaseModel):
    template_id: str
    form_data: Dict[str, Any] = Field(default_factory=dict)
    ai_provider: Optional[str] = None


class SupportCalculationBody(BaseModel):
    """Monthly figures for both parents."""
    parent1_gross_income: float
    parent1_deductions: float = 0
    parent1_timeshare: float
    parent2_gross_income: float
    parent2_deductions: float = 0
    parent2_timeshare: float
    number_of_children: int = 1
    childcare_costs: float = 0
    health_insurance_premium: float = 0
    uninsured_medical_costs: float = 0


def create_app(
    pipeline: DocumentPipeline,
    blob_store: BlobStore,
    identity_provider: ProfileIdentityProvider,
) -> FastAPI:
    """Build the application around already-assembled collaborators.

    Args:
        pipeline: Document pipeline
        blob_store: Store behind signed download references
        identity_provider: Resolves the X-User-Id header to an Identity

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="legal-doc-auto",
        description="California family law document generation",
        version="0.1.0",
    )

    @app.exception_handler(DocumentPipelineError)
    async def pipeline_error_handler(request: Request, exc: DocumentPipelineError):
        if exc.status_code >= 500:
            logger.error("Request to %s failed: %s", request.url.path, exc.code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.post("/api/generate-document")
    def generate_document(
        body: GenerateDocumentBody,
        x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    ):
        identity = identity_provider.resolve(x_user_id)
        persisted = pipeline.generate(
            identity,
            GenerationRequest(
                template_id=body.template_id,
                form_data=body.form_data,
                ai_provider=body.ai_provider,
            ),
        )
        return persisted.to_response()

    @app.get("/api/files/{token}")
    def download_file(token: str):
        try:
            key = blob_store.resolve_signed_reference(token)
        except InvalidReferenceError as e:
            return JSONResponse(status_code=403, content={"error": str(e), "code": "INVALID_REFERENCE"})
        try:
            data = blob_store.get(key)
        except StorageError:
            logger.warning("Signed reference points at missing blob %s", key)
            return JSONResponse(status_code=404, content={"error": "File not found", "code": "NOT_FOUND"})

        name = PurePosixPath(key).name
        return Response(
            content=data,
            media_type=CONTENT_TYPES.get(PurePosixPath(key).suffix, "application/octet-stream"),
            headers={"Content-Disposition": f'attachment; filename="{name}"'},
        )

    @app.get("/api/templates")
    def list_templates():
        return {"templates": [asdict(template) for template in pipeline.templates.list()]}

    @app.post("/api/support/calculate")
    def calculate_support(body: SupportCalculationBody):
        inputs = SupportCalculationInputs(**body.model_dump())
        validation = validate_support_inputs(inputs)
        if not validation.is_valid:
            return JSONResponse(
                status_code=400,
                content={
                    "error": "Invalid calculation inputs",
                    "code": "INVALID_FIELDS",
                    "errors": validation.errors,
                },
            )
        return asdict(compute_support(inputs))

    return app
