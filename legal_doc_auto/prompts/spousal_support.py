"""Spousal Support Order (Family Code section 4320)."""

from typing import Any, List, Mapping, Optional, Sequence

from .base import PromptBuilder, check, detail, flag, value_of

SPOUSE_DETAILS = (
    ("income_source", "Income Source"),
    ("assets", "Assets"),
    ("age", "Age"),
    ("health", "Health"),
    ("education", "Education"),
    ("earning_capacity", "Earning Capacity"),
)


class SpousalSupportBuilder(PromptBuilder):
    document_type = "spousal-support-ca"
    document_title = "Spousal Support Order"
    specialty = "spousal support (alimony) matters and Family Code § 4320 factors"
    task = (
        "Draft a complete, court-ready Spousal Support Order (or Spousal "
        "Support Stipulation) that establishes support amount and duration in "
        "accordance with California Family Code § 4320 and related provisions."
    )

    def sections(self, fields: Mapping[str, Any]) -> Sequence[str]:
        return (
            "PARTIES AND JURISDICTION",
            "MARRIAGE DURATION",
            "FINDINGS UNDER FAMILY CODE § 4320",
            "INCOME FINDINGS",
            "SPOUSAL SUPPORT ORDER",
            "PAYMENT TERMS",
            "TAX TREATMENT",
            "DURATION AND TERMINATION",
            "MODIFICATION AND RESERVATION OF JURISDICTION",
            "ARREARS AND INTEREST",
            "GENERAL PROVISIONS",
            "SIGNATURE BLOCKS",
        )

    def _spouse_lines(self, fields: Mapping[str, Any], prefix: str) -> List[Optional[str]]:
        lines = [
            "- Gross Monthly Income: "
            + (f"${value_of(fields, prefix + '_income')}"
               if value_of(fields, prefix + "_income") else "To be determined"),
        ]
        lines += [detail(label, value_of(fields, f"{prefix}_{key}")) for key, label in SPOUSE_DETAILS]
        return lines

    def case_information(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        lines: List[Optional[str]] = [
            "Party Information:",
            f"- Paying Spouse (Obligor): {value_of(fields, 'paying_spouse')}",
            detail("Address", value_of(fields, "paying_spouse_address")),
            f"- Receiving Spouse (Obligee): {value_of(fields, 'receiving_spouse')}",
            detail("Address", value_of(fields, "receiving_spouse_address")),
            "",
            "Jurisdiction:",
            f"- County: {value_of(fields, 'county')}",
            "- State: California",
            "",
            "Marriage Information:",
            f"- Date of Marriage: {value_of(fields, 'marriage_date', 'To be specified')}",
            f"- Date of Separation: {value_of(fields, 'separation_date', 'To be specified')}",
            f"- Length of Marriage: {value_of(fields, 'marriage_length', 'To be calculated')}",
            check("Long-term marriage (10+ years) - Court retains jurisdiction indefinitely",
                  flag(fields, "long_term_marriage")),
            check("Short-term marriage (under 10 years) - support typically ends at "
                  "one-half the length of the marriage",
                  flag(fields, "short_term_marriage") and not flag(fields, "long_term_marriage")),
            detail("Marital Standard of Living", value_of(fields, "marital_standard_of_living")),
            "",
            "Paying Spouse Income and Ability to Pay:",
            *self._spouse_lines(fields, "paying_spouse"),
            "",
            "Receiving Spouse Needs:",
            *self._spouse_lines(fields, "receiving_spouse"),
            detail("Monthly Needs/Expenses", value_of(fields, "receiving_spouse_needs")),
            detail("Time Needed for Job Training", value_of(fields, "time_needed_for_training")),
            "",
            "Support Terms:",
            "- Monthly Support Amount: "
            + (f"${value_of(fields, 'support_amount')}"
               if value_of(fields, "support_amount") else "To be determined per § 4320 factors"),
            detail("Duration", value_of(fields, "support_duration")),
            detail("Temporary vs Permanent", value_of(fields, "temporary_vs_permanent")),
            detail("Step-Down Provisions", value_of(fields, "step_down_provisions")),
            detail("Termination Events", value_of(fields, "termination_events")),
            detail("Tax Treatment", value_of(fields, "tax_treatment")),
            detail("Payment Method", value_of(fields, "payment_method")),
        ]
        return lines

    def legal_requirements(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        lines: List[Optional[str]] = [
            "1. Family Code § 4320 Factors (MANDATORY):",
            "   ✓ Address earning capacity, marketable skills, and contributions to the "
            "supporting spouse's career",
            "   ✓ Address ability to pay, needs based on the marital standard of living, "
            "assets, duration of marriage, age and health",
            "   ✓ State the goal that the supported party become self-supporting within "
            "a reasonable period (Gavron warning)",
            "",
            "2. Termination (MANDATORY):",
            "   ✓ Support terminates on death of either party or remarriage of the "
            "supported party (Fam. Code § 4337)",
            "",
            "3. Tax Treatment:",
            "   ✓ For orders after 2018, support is neither deductible to the payor nor "
            "taxable to the payee for federal purposes",
        ]
        if flag(fields, "long_term_marriage"):
            lines += [
                "",
                "4. Long-Term Marriage:",
                "   ✓ Court retains jurisdiction indefinitely (Fam. Code § 4336)",
            ]
        elif flag(fields, "short_term_marriage"):
            lines += [
                "",
                "4. Short-Term Marriage:",
                "   ✓ Duration presumptively one-half the length of the marriage "
                "(Fam. Code § 4320(l))",
            ]
        return lines

    def caption(self, fields: Mapping[str, Any]) -> List[str]:
        return [
            "SUPERIOR COURT OF CALIFORNIA",
            f"COUNTY OF {value_of(fields, 'county').upper()}",
            "",
            "In re the Marriage of                    Case No.: ________________",
            "",
            f"{value_of(fields, 'paying_spouse', 'Petitioner').upper()},",
            "              Petitioner/Obligor,        SPOUSAL SUPPORT ORDER",
            "and                                      (Family Code §§ 4320, 4330)",
            f"{value_of(fields, 'receiving_spouse', 'Respondent').upper()},",
            "              Respondent/Obligee.",
        ]
