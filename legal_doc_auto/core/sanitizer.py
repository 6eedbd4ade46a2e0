"""
Content sanitization.

Normalizes raw generated text into a finished document:

1. Date placeholders ([INSERT MONTH], [INSERT DATE], [DATE], ...) become the
   current date
2. Bracketed editorial notes are dropped; any other bracketed placeholder
   or "to be determined" marker becomes a blank line marker
3. A signature block is synthesized unless one is already present

Whether a signature block is present is carried alongside the text in
SanitizedDocument. Detection by pattern matching only runs on raw text that
has never been through the sanitizer; once a block is added or detected the
flag is set and never re-derived.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Mapping, Optional, Union

from legal_doc_auto.prompts.base import format_long_date
from legal_doc_auto.prompts.registry import (
    DocumentTypeRegistry,
    SignatureLayout,
    first_present,
    get_registry,
)

logger = logging.getLogger(__name__)

BLANK_MARKER = "_________________"
SIGNATURE_RULE = "_________________________________"

_MONTH_PATTERN = re.compile(r"\[\s*(?:INSERT\s+)?MONTH\s*\]", re.IGNORECASE)
_DAY_PATTERN = re.compile(r"\[\s*(?:INSERT\s+)?DAY\s*\]", re.IGNORECASE)
_YEAR_PATTERN = re.compile(r"\[\s*(?:INSERT\s+)?YEAR\s*\]", re.IGNORECASE)
_DATE_PATTERN = re.compile(
    r"\[\s*(?:INSERT\s+(?:CURRENT\s+|TODAY'?S\s+)?DATE|DATE|TODAY'?S\s+DATE|CURRENT\s+DATE)\s*\]",
    re.IGNORECASE,
)
# Whole-line bracketed editorial notes, e.g. "[This is a test document. Review before filing.]"
_NOTE_LINE = re.compile(r"^[ \t]*\[[^\[\]\n]*[.!?]\][ \t]*(?:\n|\Z)", re.MULTILINE)
_BRACKET_PLACEHOLDER = re.compile(r"\[[^\[\]\n]{1,120}\]")
_TBD_MARKER = re.compile(r"\b(?:TO BE DETERMINED|TBD)\b")
_SIGNATURE_PATTERN = re.compile(
    r"signature|respectfully submitted|_{3,}\s*$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class SanitizedDocument:
    """Final document text plus whether it carries a signature block."""
    text: str
    has_signature_block: bool


def detect_signature_block(text: str) -> bool:
    """Heuristic check for a signature block in raw generated text."""
    return bool(_SIGNATURE_PATTERN.search(text))


def replace_date_placeholders(text: str, today: date) -> str:
    long_date = format_long_date(today)
    text = _MONTH_PATTERN.sub(today.strftime("%B"), text)
    text = _DAY_PATTERN.sub(str(today.day), text)
    text = _YEAR_PATTERN.sub(str(today.year), text)
    return _DATE_PATTERN.sub(long_date, text)


def replace_remaining_placeholders(text: str) -> str:
    text = _NOTE_LINE.sub("", text)
    text = _BRACKET_PLACEHOLDER.sub(BLANK_MARKER, text)
    return _TBD_MARKER.sub(BLANK_MARKER, text)


def replace_placeholders(text: str, today: date) -> str:
    """Apply date then remaining-placeholder rules until nothing changes.

    Repeats because nested brackets such as "[[Name]]" only resolve one
    level per pass.
    """
    text = replace_date_placeholders(text, today)
    previous = None
    while text != previous:
        previous = text
        text = replace_remaining_placeholders(text)
    return text


def build_signature_block(layout: SignatureLayout, fields: Mapping[str, Any], today: date) -> str:
    """Dated line, closing phrase, rule and signer name(s) with roles."""
    lines = [
        "",
        "",
        f"Dated: {format_long_date(today)}",
        "",
        "Respectfully submitted,",
        "",
        SIGNATURE_RULE,
        layout.primary_name(fields),
        layout.primary_role,
    ]
    second = layout.second_signer
    if second is not None:
        lines += [
            "",
            "",
            SIGNATURE_RULE,
            first_present(fields, second.name_keys) or second.fallback_name,
            second.role,
        ]
    return "\n".join(lines)


class ContentSanitizer:
    """Applies placeholder replacement and signature synthesis.

    Args:
        registry: Document-type registry supplying signature layouts
        today: Callable returning the current date
    """

    def __init__(
        self,
        registry: Optional[DocumentTypeRegistry] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.registry = registry or get_registry()
        self.today = today or date.today

    def sanitize(
        self,
        raw: Union[str, SanitizedDocument],
        document_type: str,
        fields: Mapping[str, Any],
    ) -> SanitizedDocument:
        if isinstance(raw, SanitizedDocument):
            text = raw.text
            has_signature = raw.has_signature_block
        else:
            text = raw
            has_signature = None

        current_date = self.today()
        text = replace_placeholders(text, current_date)

        if has_signature is None:
            has_signature = detect_signature_block(text)

        if not has_signature:
            layout = self.registry.get(document_type).signature_layout
            # Signer names come from the field map and may be placeholders themselves
            text = replace_placeholders(
                text.rstrip() + build_signature_block(layout, fields, current_date),
                current_date,
            )
            has_signature = True
            logger.debug("Synthesized signature block for %s", document_type)

        return SanitizedDocument(text=text, has_signature_block=has_signature)


def sanitize_document(
    raw: Union[str, SanitizedDocument],
    document_type: str,
    fields: Mapping[str, Any],
    today: Optional[date] = None,
) -> SanitizedDocument:
    """Convenience wrapper around ContentSanitizer with the default registry."""
    sanitizer = ContentSanitizer(today=(lambda: today) if today else None)
    return sanitizer.sanitize(raw, document_type, fields)
