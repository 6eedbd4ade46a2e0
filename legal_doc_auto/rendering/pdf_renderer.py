"""
PDF rendering.

Uses reportlab platypus. Generated text is XML-escaped before it reaches
Paragraph, which otherwise interprets markup. An optional watermark is drawn
diagonally across every page.
"""

import io
from datetime import date
from typing import Any, Callable, Mapping, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from legal_doc_auto.prompts.base import format_long_date

from .docx_renderer import REVIEW_NOTE, split_blocks

PDF_CONTENT_TYPE = "application/pdf"


class PdfRenderer:
    """Renders final document text to a PDF file."""

    content_type = PDF_CONTENT_TYPE
    extension = "pdf"

    def __init__(self, today: Optional[Callable[[], date]] = None):
        self.today = today or date.today

    def _watermark_painter(self, watermark: str):
        def paint(canvas, doc):
            canvas.saveState()
            canvas.setFont("Helvetica-Bold", 40)
            canvas.setFillColor(colors.Color(0.8, 0.8, 0.8, alpha=0.4))
            width, height = doc.pagesize
            canvas.translate(width / 2, height / 2)
            canvas.rotate(45)
            canvas.drawCentredString(0, 0, watermark)
            canvas.restoreState()
        return paint

    def render(
        self,
        title: str,
        text: str,
        fields: Mapping[str, Any],
        watermark: Optional[str] = None,
    ) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=LETTER,
            rightMargin=inch,
            leftMargin=inch,
            topMargin=inch,
            bottomMargin=inch,
            title=title,
        )

        styles = getSampleStyleSheet()
        body = ParagraphStyle(
            name='LegalBody',
            parent=styles['Normal'],
            fontName='Times-Roman',
            fontSize=12,
            leading=16,
            alignment=TA_JUSTIFY,
            spaceAfter=8,
        )
        footer = ParagraphStyle(
            name='LegalFooter',
            parent=styles['Normal'],
            fontSize=9,
            textColor=colors.HexColor('#666666'),
            alignment=TA_CENTER,
        )

        story = [Paragraph(escape(title.upper()), styles['Title']), Spacer(1, 12)]
        for block in split_blocks(text):
            story.append(Paragraph(escape(block).replace("\n", "<br/>"), body))

        story.append(Spacer(1, 20))
        story.append(Paragraph(f"Generated on {format_long_date(self.today())}", footer))
        story.append(Paragraph(f"<i>{escape(REVIEW_NOTE)}</i>", footer))

        if watermark:
            paint = self._watermark_painter(watermark)
            doc.build(story, onFirstPage=paint, onLaterPages=paint)
        else:
            doc.build(story)
        return buffer.getvalue()
