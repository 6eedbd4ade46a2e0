"""
Unit tests for the local stub backend.
"""

from datetime import date

import pytest

from legal_doc_auto.core.sanitizer import ContentSanitizer
from legal_doc_auto.prompts import compile_prompt
from legal_doc_auto.sdk.stub import TEST_NOTE, LocalStubBackend, match_document_type

TODAY = date(2026, 10, 19)


class TestMatchDocumentType:
    """Test prompt recognition."""

    def test_marker_wins_over_keywords(self):
        prompt = "Document type: custody-agreement-ca\nDivide the property and set child support"
        assert match_document_type(prompt) == "custody-agreement-ca"

    @pytest.mark.parametrize("prompt,expected", [
        ("Draft an alimony order", "spousal-support-ca"),
        ("Spousal support with child support", "spousal-support-ca"),
        ("Child support for two kids", "child-support-ca"),
        ("Joint custody plan", "custody-agreement-ca"),
        ("Property settlement agreement", "property-settlement-ca"),
        ("Petition for dissolution", "divorce-petition-ca"),
        ("Draft a will", None),
    ])
    def test_keywords(self, prompt, expected):
        assert match_document_type(prompt) == expected

    def test_unknown_marker_falls_back_to_keywords(self):
        assert match_document_type("Document type: name-change-ca\nfor a divorce") == "divorce-petition-ca"


class TestLocalStubBackend:
    """Test canned document generation."""

    def setup_method(self):
        self.stub = LocalStubBackend(today=lambda: TODAY)

    def test_name(self):
        assert self.stub.name == "test"

    def test_divorce_skeleton_uses_prompt_values(self):
        prompt = compile_prompt("divorce-petition-ca", {
            "petitioner_name": "Jane Doe",
            "respondent_name": "John Doe",
            "county": "Orange",
            "marriage_date": "2015-06-20",
            "separation_date": "2025-01-15",
        }, today=TODAY)

        text = self.stub.generate(prompt.system_instruction, prompt.user_instruction)

        assert "COUNTY OF ORANGE" in text
        assert "The Petitioner, Jane Doe, respectfully petitions" in text
        assert "married on 2015-06-20 and separated on 2025-01-15" in text
        assert "Dated: October 19, 2026" in text
        assert text.endswith(TEST_NOTE)

    def test_divorce_skeleton_defaults(self):
        text = self.stub.generate("", "Please draft a divorce petition")
        assert "COUNTY OF LOS ANGELES" in text
        assert "PETITIONER NAME (Petitioner)" in text

    def test_child_support_skeleton_lifts_amount(self):
        prompt = compile_prompt("child-support-ca", {
            "paying_parent_income": "6500",
            "receiving_parent_income": "4500",
            "paying_parent_deductions": "1300",
            "receiving_parent_deductions": "900",
            "paying_parent_timeshare": "20",
            "number_of_children": "2",
        }, today=TODAY)

        text = self.stub.generate(prompt.system_instruction, prompt.user_instruction)
        assert "Monthly child support: $1238/month" in text

    def test_generic_document_echoes_request(self):
        text = self.stub.generate("", "Draft a will for Jane Doe")

        assert text.startswith("TEST DOCUMENT")
        assert "Request Details:\nDraft a will for Jane Doe" in text
        assert "Generated on: October 19, 2026" in text

    def test_custody_skeleton_gets_two_signers_after_sanitizing(self):
        prompt = compile_prompt("custody-agreement-ca", {
            "parent1_name": "Ann Lee", "parent2_name": "Ben Lee",
        }, today=TODAY)
        raw = self.stub.generate(prompt.system_instruction, prompt.user_instruction)

        result = ContentSanitizer(today=lambda: TODAY).sanitize(
            raw, "custody-agreement-ca", {"parent1_name": "Ann Lee", "parent2_name": "Ben Lee"}
        )

        assert TEST_NOTE not in result.text
        assert "[" not in result.text
        assert result.text.endswith("Ben Lee\nParent 2")
