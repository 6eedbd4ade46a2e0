"""
Prompt building blocks.

A PromptBuilder turns a structured field map into a (system, user)
instruction pair. Concrete builders supply the persona, case information,
legal requirements, caption and ordered section skeleton; the base class
injects the shared formatting rules and output constraints.
"""

import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence

RULE = "=" * 38

BASE_PERSONA = (
    "You are an experienced California family law attorney with 15+ years of "
    "practice. Generate legally accurate, court-ready documents using formal "
    "legal language. Use proper legal citation format and maintain a "
    "professional, assertive but not antagonistic tone."
)

WRITING_STYLE_RULES = (
    "Use FORMAL legal language (respectfully requests, is informed and believes, etc.)",
    'Write in THIRD PERSON (not "I" or "my")',
    "Be ASSERTIVE but NOT antagonistic or inflammatory",
    "Use ACTIVE voice where possible",
    'Cite code sections in the form "California Family Code § 2320" on first '
    'reference and "Fam. Code § 2320" thereafter',
    "Number paragraphs for easy reference (1, 2, 3, etc.)",
    "Keep sentences clear and unambiguous",
)

EXCLUDED_CONTENT = (
    "Explanatory notes or instructions",
    "Bracketed placeholders",
    '"This is a draft" disclaimers',
    "Legal advice or recommendations",
    "Formatting instructions",
)

TRUE_STRINGS = {"true", "yes", "y", "on", "1"}


@dataclass(frozen=True)
class PromptPair:
    """System and user instructions for a single generation call."""
    system_instruction: str
    user_instruction: str


def flag(fields: Mapping[str, Any], key: str) -> bool:
    """Read a boolean form field; string values like "yes"/"true" count as set."""
    value = fields.get(key)
    if isinstance(value, str):
        return value.strip().lower() in TRUE_STRINGS
    return bool(value)


def value_of(fields: Mapping[str, Any], key: str, default: str = "") -> str:
    """Read a form field as display text."""
    value = fields.get(key)
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, (date, datetime)):
        return format_long_date(value)
    text = str(value).strip()
    return text or default


def detail(label: str, value: str) -> Optional[str]:
    """A "- Label: value" line, or None when the value is empty."""
    if not value:
        return None
    return f"- {label}: {value}"


def check(text: str, enabled: bool = True) -> Optional[str]:
    return f"✓ {text}" if enabled else None


def format_long_date(value: date) -> str:
    """e.g. October 19, 2026"""
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def parse_date(value: Any) -> Optional[date]:
    """Parse a date field: date objects, ISO strings or MM/DD/YYYY. None if unparseable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    for fmt in ("%Y-%m-%d", "%m/%d/%Y", "%B %d, %Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


ROMAN_NUMERALS = ((40, "XL"), (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I"))


def roman(number: int) -> str:
    result = []
    for amount, symbol in ROMAN_NUMERALS:
        while number >= amount:
            result.append(symbol)
            number -= amount
    return "".join(result)


def join_lines(lines: Iterable[Optional[str]]) -> str:
    """Join lines, dropping omitted (None) entries and keeping blank separators."""
    return "\n".join(line for line in lines if line is not None)


class PromptBuilder:
    """Base class for document-type specific prompt builders."""

    document_type = ""
    document_title = ""
    specialty = ""
    task = ""
    end_instruction = "END with the signature block."

    def system_instruction(self, fields: Mapping[str, Any]) -> str:
        return f"{BASE_PERSONA} You specialize in {self.specialty}."

    def sections(self, fields: Mapping[str, Any]) -> Sequence[str]:
        """Ordered section headings of the document skeleton."""
        raise NotImplementedError

    def case_information(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        raise NotImplementedError

    def legal_requirements(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        raise NotImplementedError

    def caption(self, fields: Mapping[str, Any]) -> List[str]:
        raise NotImplementedError

    def build(self, fields: Mapping[str, Any], today: date) -> PromptPair:
        skeleton = [
            f"{roman(index)}. {heading}"
            for index, heading in enumerate(self.sections(fields), start=1)
        ]
        lines: List[Optional[str]] = [
            f"TASK: {self.task}",
            "",
            f"Document type: {self.document_type}",
            f"Prepared as of {format_long_date(today)}.",
            "",
            "CASE INFORMATION:",
            RULE,
            *self.case_information(fields),
            "",
            "CRITICAL LEGAL REQUIREMENTS:",
            RULE,
            *self.legal_requirements(fields),
            "",
            "EXACT FORMAT REQUIREMENTS:",
            RULE,
            "Header Block:",
            "",
            *self.caption(fields),
            "",
            "Document Structure (use THIS EXACT order):",
            *skeleton,
            "",
            "WRITING STYLE REQUIREMENTS:",
            RULE,
            *(f"✓ {rule}" for rule in WRITING_STYLE_RULES),
            "",
            "OUTPUT INSTRUCTIONS:",
            RULE,
            f"Generate ONLY the {self.document_title} text, ready to file with the court.",
            f'Use "{format_long_date(today)}" wherever a date of signing is required.',
            "",
            "DO NOT INCLUDE:",
            *(f"✗ {item}" for item in EXCLUDED_CONTENT),
            "",
            "START with the case caption header.",
            self.end_instruction,
            f"Generate the complete, court-ready {self.document_title} now:",
        ]
        return PromptPair(
            system_instruction=self.system_instruction(fields),
            user_instruction=join_lines(lines),
        )


class GenericPromptBuilder(PromptBuilder):
    """Fallback for unregistered document types.

    Serializes the field map as-is; no fixed section ordering.
    """

    def __init__(self, document_type: str, display_name: Optional[str] = None):
        self.document_type = document_type
        self.document_title = display_name or document_type

    def system_instruction(self, fields: Mapping[str, Any]) -> str:
        return BASE_PERSONA

    def build(self, fields: Mapping[str, Any], today: date) -> PromptPair:
        serialized = json.dumps(dict(fields), indent=2, default=str, sort_keys=True)
        lines = [
            f"Generate a {self.document_title} for California jurisdiction "
            "with the following information:",
            "",
            f"Document type: {self.document_type}",
            f"Prepared as of {format_long_date(today)}.",
            "",
            serialized,
            "",
            "REQUIREMENTS:",
            "1. Use formal legal language appropriate for family law",
            "2. Include all necessary legal elements",
            "3. Use proper legal citation format",
            "4. Be professional and clear",
            "5. End with a signing block for each party",
            "6. Do not use bracketed placeholders or disclaimers",
            "",
            "Generate the complete document text now:",
        ]
        return PromptPair(
            system_instruction=self.system_instruction(fields),
            user_instruction=join_lines(lines),
        )
