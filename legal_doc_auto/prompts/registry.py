"""
Document-type registry.

Maps a document-type identifier to everything type-specific in the
pipeline: the prompt builder and the signature layout used by the content
sanitizer. Adding a document type is a single register() call.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from legal_doc_auto.core.errors import InvalidFieldsError

from .base import GenericPromptBuilder, PromptBuilder, PromptPair, parse_date
from .child_support import ChildSupportBuilder
from .custody import CustodyAgreementBuilder
from .divorce import DivorcePetitionBuilder
from .property_settlement import PropertySettlementBuilder
from .spousal_support import SpousalSupportBuilder

# First match wins across document-type specific name fields
PRIMARY_NAME_KEYS: Tuple[str, ...] = (
    "petitioner_name",
    "party1_name",
    "parent1_name",
    "paying_parent",
    "paying_spouse",
)

# (start date key, event date key); the event must not precede the start
DATE_ORDER_CHECKS: Tuple[Tuple[str, str], ...] = (
    ("marriage_date", "separation_date"),
)


@dataclass(frozen=True)
class SecondSigner:
    name_keys: Tuple[str, ...]
    fallback_name: str
    role: str


@dataclass(frozen=True)
class SignatureLayout:
    """How the synthesized signature block is laid out for a document type."""
    primary_role: str = "Petitioner, In Pro Per"
    primary_name_keys: Tuple[str, ...] = PRIMARY_NAME_KEYS
    primary_fallback_name: str = "Petitioner"
    second_signer: Optional[SecondSigner] = None

    @property
    def requires_two_signers(self) -> bool:
        return self.second_signer is not None

    def primary_name(self, fields: Mapping[str, Any]) -> str:
        return first_present(fields, self.primary_name_keys) or self.primary_fallback_name


DEFAULT_SIGNATURE_LAYOUT = SignatureLayout()


@dataclass(frozen=True)
class DocumentType:
    identifier: str
    display_name: str
    builder: PromptBuilder
    signature_layout: SignatureLayout = DEFAULT_SIGNATURE_LAYOUT


def first_present(fields: Mapping[str, Any], keys: Tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = fields.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class DocumentTypeRegistry:
    """Registry of known document types with a generic fallback."""

    def __init__(self):
        self._types: Dict[str, DocumentType] = {}

    def register(self, document_type: DocumentType) -> None:
        if document_type.identifier in self._types:
            raise ValueError(f"Document type already registered: {document_type.identifier}")
        self._types[document_type.identifier] = document_type

    def is_registered(self, identifier: str) -> bool:
        return identifier in self._types

    def identifiers(self) -> List[str]:
        return list(self._types)

    def get(self, identifier: str, display_name: Optional[str] = None) -> DocumentType:
        """Registered type, or a generic one for unknown identifiers."""
        registered = self._types.get(identifier)
        if registered is not None:
            return registered
        return DocumentType(
            identifier=identifier,
            display_name=display_name or identifier,
            builder=GenericPromptBuilder(identifier, display_name),
        )


def build_default_registry() -> DocumentTypeRegistry:
    registry = DocumentTypeRegistry()
    registry.register(DocumentType(
        identifier="divorce-petition-ca",
        display_name="Petition for Dissolution of Marriage",
        builder=DivorcePetitionBuilder(),
    ))
    registry.register(DocumentType(
        identifier="custody-agreement-ca",
        display_name="Child Custody and Visitation Agreement",
        builder=CustodyAgreementBuilder(),
        signature_layout=SignatureLayout(
            primary_role="Parent 1",
            primary_name_keys=("parent1_name",) + PRIMARY_NAME_KEYS,
            primary_fallback_name="Parent 1",
            second_signer=SecondSigner(("parent2_name",), "Parent 2", "Parent 2"),
        ),
    ))
    registry.register(DocumentType(
        identifier="property-settlement-ca",
        display_name="Property Settlement Agreement",
        builder=PropertySettlementBuilder(),
        signature_layout=SignatureLayout(
            primary_role="Party 1 (Petitioner)",
            primary_name_keys=("party1_name",) + PRIMARY_NAME_KEYS,
            primary_fallback_name="Party 1",
            second_signer=SecondSigner(("party2_name",), "Party 2", "Party 2 (Respondent)"),
        ),
    ))
    registry.register(DocumentType(
        identifier="child-support-ca",
        display_name="Child Support Order",
        builder=ChildSupportBuilder(),
    ))
    registry.register(DocumentType(
        identifier="spousal-support-ca",
        display_name="Spousal Support Order",
        builder=SpousalSupportBuilder(),
    ))
    return registry


_default_registry: Optional[DocumentTypeRegistry] = None


def get_registry() -> DocumentTypeRegistry:
    """Shared default registry."""
    global _default_registry
    if _default_registry is None:
        _default_registry = build_default_registry()
    return _default_registry


def register_document_type(
    document_type: DocumentType,
    registry: Optional[DocumentTypeRegistry] = None,
) -> None:
    """Add a document type to a registry (the shared one by default)."""
    (registry or get_registry()).register(document_type)


def check_date_order(fields: Mapping[str, Any]) -> None:
    """Reject field maps whose event date precedes their start date.

    Raises:
        InvalidFieldsError: If both dates parse and are out of order
    """
    for start_key, event_key in DATE_ORDER_CHECKS:
        start = parse_date(fields.get(start_key))
        event = parse_date(fields.get(event_key))
        if start is not None and event is not None and event < start:
            raise InvalidFieldsError(
                f"{event_key.replace('_', ' ').capitalize()} cannot be before "
                f"{start_key.replace('_', ' ')}"
            )


def compile_prompt(
    document_type: str,
    fields: Mapping[str, Any],
    today: Optional[date] = None,
    registry: Optional[DocumentTypeRegistry] = None,
    display_name: Optional[str] = None,
) -> PromptPair:
    """Compile the (system, user) instruction pair for a document type.

    Args:
        document_type: Document-type identifier
        fields: Structured field map
        today: Date used for "as of" language (defaults to today)
        registry: Registry to consult (defaults to the shared registry)
        display_name: Name used by the generic builder for unknown types

    Returns:
        PromptPair

    Raises:
        InvalidFieldsError: If the separation date precedes the marriage date
    """
    check_date_order(fields)
    registry = registry or get_registry()
    entry = registry.get(document_type, display_name)
    return entry.builder.build(fields, today or date.today())
