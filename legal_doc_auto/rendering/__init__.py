"""
Rendering of final document text to DOCX and PDF artifacts.
"""

from .docx_renderer import DocxRenderer
from .pdf_renderer import PdfRenderer

TRIAL_WATERMARK = "TRIAL - NOT FOR FILING"


def watermark_for_tier(tier: str):
    """Watermark text for a subscription tier, or None."""
    return TRIAL_WATERMARK if getattr(tier, "value", tier) == "trial" else None


__all__ = ["DocxRenderer", "PdfRenderer", "TRIAL_WATERMARK", "watermark_for_tier"]
