"""
Word-processor (DOCX) rendering.
"""

import io
from datetime import date
from typing import Any, Callable, Mapping, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Inches, Pt, RGBColor

from legal_doc_auto.prompts.base import format_long_date

REVIEW_NOTE = "This document was generated using LegalDocAuto. Please review carefully before filing."
DOCX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


def split_blocks(text: str):
    """Blank-line separated blocks, surrounding whitespace dropped."""
    return [block.strip("\n") for block in text.split("\n\n") if block.strip()]


class DocxRenderer:
    """Renders final document text to a .docx file."""

    content_type = DOCX_CONTENT_TYPE
    extension = "docx"

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self.today = today or date.today

    def render(
        self,
        title: str,
        text: str,
        fields: Mapping[str, Any],
        watermark: Optional[str] = None,
    ) -> bytes:
        doc = Document()
        for section in doc.sections:
            section.top_margin = section.bottom_margin = Inches(1)
            section.left_margin = section.right_margin = Inches(1)
            if watermark:
                header = section.header
                header_para = header.paragraphs[0] if header.paragraphs else header.add_paragraph()
                run = header_para.add_run(watermark)
                run.font.size = Pt(12)
                run.font.bold = True
                run.font.color.rgb = RGBColor(200, 200, 200)
                header_para.alignment = WD_ALIGN_PARAGRAPH.CENTER

        heading = doc.add_heading(title.upper(), level=1)
        heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
        heading.paragraph_format.space_after = Pt(20)

        for block in split_blocks(text):
            para = doc.add_paragraph(block)
            para.paragraph_format.space_after = Pt(10)

        footer = doc.add_paragraph(f"Generated on {format_long_date(self.today())}")
        footer.alignment = WD_ALIGN_PARAGRAPH.CENTER
        footer.paragraph_format.space_before = Pt(20)

        note = doc.add_paragraph()
        note_run = note.add_run(REVIEW_NOTE)
        note_run.italic = True
        note.alignment = WD_ALIGN_PARAGRAPH.CENTER

        buffer = io.BytesIO()
        doc.save(buffer)
        return buffer.getvalue()
