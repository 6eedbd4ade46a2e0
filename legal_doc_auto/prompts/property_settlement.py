"""Property Settlement (Marital Settlement) Agreement."""

from typing import Any, List, Mapping, Optional, Sequence

from .base import PromptBuilder, detail, flag, value_of


def _money(value: str) -> str:
    return f"${value}" if value else ""


class PropertySettlementBuilder(PromptBuilder):
    document_type = "property-settlement-ca"
    document_title = "Property Settlement Agreement"
    specialty = "marital property division and asset settlements"
    task = (
        "Draft a complete, court-ready Property Settlement Agreement (Marital "
        "Settlement Agreement) that divides all community property and debts "
        "in accordance with California law."
    )
    end_instruction = "END with the signature blocks for both parties."

    def sections(self, fields: Mapping[str, Any]) -> Sequence[str]:
        return (
            "PARTIES AND RECITALS",
            "GENERAL PROVISIONS",
            "REAL PROPERTY",
            "PERSONAL PROPERTY",
            "FINANCIAL ACCOUNTS",
            "INVESTMENT ACCOUNTS",
            "RETIREMENT ACCOUNTS AND QDRO",
            "BUSINESS INTERESTS",
            "OTHER ASSETS",
            "DEBTS AND OBLIGATIONS",
            "TAX ISSUES",
            "SPOUSAL SUPPORT",
            "ATTORNEYS' FEES AND COSTS",
            "MUTUAL RELEASES",
            "MISCELLANEOUS PROVISIONS",
            "DECLARATIONS AND SIGNATURES",
        )

    def case_information(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        return [
            "Party Information:",
            f"- Party 1 (Petitioner): {value_of(fields, 'party1_name')}",
            detail("Address", value_of(fields, "party1_address")),
            f"- Party 2 (Respondent): {value_of(fields, 'party2_name')}",
            detail("Address", value_of(fields, "party2_address")),
            "",
            "Jurisdiction:",
            f"- County: {value_of(fields, 'county')}",
            "- State: California",
            "",
            "Marriage Details:",
            detail("Date of Marriage", value_of(fields, "marriage_date")),
            detail("Date of Separation", value_of(fields, "separation_date")),
            "",
            "Property and Assets to be Divided:",
            detail("Real Property", value_of(fields, "real_property")),
            detail("Family Residence", value_of(fields, "family_home")),
            detail("Estimated Value", _money(value_of(fields, "family_home_value"))),
            detail("Equity", _money(value_of(fields, "family_home_equity"))),
            detail("Mortgage Balance", _money(value_of(fields, "mortgage_balance"))),
            detail("Personal Property", value_of(fields, "personal_property")),
            detail("Vehicles", value_of(fields, "vehicles")),
            detail("Bank Accounts", value_of(fields, "bank_accounts")),
            detail("Investment Accounts", value_of(fields, "investment_accounts")),
            detail("Retirement Accounts", value_of(fields, "retirement_accounts")),
            detail("Business Interests", value_of(fields, "business_interests")),
            detail("Other Assets", value_of(fields, "other_assets")),
            "",
            "Debts and Obligations:",
            detail("Debts", value_of(fields, "debts")),
            detail("Credit Card Debt", value_of(fields, "credit_card_debt")),
            detail("Auto Loans", value_of(fields, "auto_loans")),
            detail("Other Debts", value_of(fields, "other_debts")),
            "",
            "Division Terms:",
            f"- Division Method: {value_of(fields, 'division_method', 'Equal division (Fam. Code § 2550)')}",
            detail("Equalization / Buyout Amount", _money(value_of(fields, "buyout_amount"))),
        ]

    def legal_requirements(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        lines: List[Optional[str]] = [
            "1. Equal Division (MANDATORY):",
            "   ✓ Divide community estate equally per California Family Code § 2550",
            "   ✓ Characterize each asset and debt as community or separate property",
            "",
            "2. Full Disclosure (MANDATORY):",
            "   ✓ Each party represents full disclosure of assets and debts "
            "(Fam. Code §§ 2100-2107)",
            "",
            "3. Debts:",
            "   ✓ Assign each debt to a party with hold-harmless and indemnity language "
            "(Fam. Code § 2622)",
        ]
        if flag(fields, "qdro_required") or value_of(fields, "retirement_accounts"):
            lines += [
                "",
                "4. Retirement Accounts:",
                "   ✓ Divide retirement benefits by Qualified Domestic Relations Order",
                "   ✓ Court retains jurisdiction to enter and amend the QDRO",
            ]
        if flag(fields, "spousal_support_waiver"):
            lines += [
                "",
                "5. Spousal Support Waiver:",
                "   ✓ Each party knowingly and permanently waives spousal support",
                "   ✓ State the Court's jurisdiction to award support is terminated",
            ]
        elif value_of(fields, "spousal_support_terms"):
            lines += [
                "",
                "5. Spousal Support:",
                f"   ✓ Incorporate agreed terms: {value_of(fields, 'spousal_support_terms')}",
            ]
        return lines

    def caption(self, fields: Mapping[str, Any]) -> List[str]:
        return [
            "SUPERIOR COURT OF CALIFORNIA",
            f"COUNTY OF {value_of(fields, 'county').upper()}",
            "",
            "In re the Marriage of                    Case No.: ________________",
            "",
            f"{value_of(fields, 'party1_name').upper()},",
            "              Petitioner,                 MARITAL SETTLEMENT AGREEMENT",
            "and                                      (Family Code §§ 2550, 2622)",
            f"{value_of(fields, 'party2_name').upper()},",
            "              Respondent.",
        ]
