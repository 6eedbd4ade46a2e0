"""Child Custody and Visitation Agreement (stipulation)."""

from typing import Any, List, Mapping, Optional, Sequence

from .base import PromptBuilder, check, detail, flag, value_of


class CustodyAgreementBuilder(PromptBuilder):
    document_type = "custody-agreement-ca"
    document_title = "Child Custody and Visitation Agreement"
    specialty = "child custody matters and parenting plans"
    task = (
        "Draft a complete, court-ready Child Custody and Visitation Agreement "
        "that can be filed with California Superior Court or used as a "
        "stipulation between parties."
    )
    end_instruction = "END with the signature blocks for both parents."

    def sections(self, fields: Mapping[str, Any]) -> Sequence[str]:
        return (
            "PARTIES AND JURISDICTION",
            "CHILDREN SUBJECT TO THIS AGREEMENT",
            "LEGAL CUSTODY",
            "PHYSICAL CUSTODY AND PRIMARY RESIDENCE",
            "PARENTING TIME SCHEDULE",
            "EXCHANGE PROVISIONS",
            "COMMUNICATION AND ACCESS",
            "RELOCATION RESTRICTIONS",
            "ADDITIONAL PROVISIONS",
            "MODIFICATION",
            "GENERAL PROVISIONS",
            "DECLARATION AND SIGNATURES",
        )

    def case_information(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        return [
            "Parent/Party Information:",
            f"- Parent 1 (Petitioner): {value_of(fields, 'parent1_name')}",
            detail("Address", value_of(fields, "parent1_address")),
            detail("Phone", value_of(fields, "parent1_phone")),
            f"- Parent 2 (Respondent): {value_of(fields, 'parent2_name')}",
            detail("Address", value_of(fields, "parent2_address")),
            detail("Phone", value_of(fields, "parent2_phone")),
            "",
            "Jurisdiction:",
            f"- County: {value_of(fields, 'county')}",
            "- State: California",
            "",
            "Children Information:",
            value_of(fields, "children_info",
                     "Children subject to this agreement (names, DOB, ages)"),
            detail("Number of Minor Children", value_of(fields, "children_count")),
            "",
            "Custody Arrangement:",
            f"- Legal Custody: {value_of(fields, 'legal_custody', 'Joint Legal Custody')}",
            f"- Physical Custody: {value_of(fields, 'physical_custody', 'Joint Physical Custody')}",
            detail("Primary Residence", value_of(fields, "primary_residence")),
            detail("Overall Type", value_of(fields, "custody_type")),
            "",
            "Parenting Time Schedule:",
            detail("Regular Schedule", value_of(fields, "regular_schedule")),
            detail("Holidays", value_of(fields, "holiday_schedule")),
            detail("Summer", value_of(fields, "summer_schedule")),
            detail("Exchange Location", value_of(fields, "exchange_location")),
            "",
            "Special Provisions:",
            check("Relocation restrictions apply", flag(fields, "relocation_restriction")),
            check("Right of first refusal requested", flag(fields, "right_of_first_refusal")),
            detail("Child communication", value_of(fields, "communication_method")),
        ]

    def legal_requirements(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        lines: List[Optional[str]] = [
            "1. Best Interests of the Child Standard (MANDATORY):",
            "   ✓ State that all provisions serve the best interests of the minor children",
            "   ✓ Reference California Family Code § 3011 (best interests factors)",
            "",
            "2. Legal Custody Provisions:",
            "   ✓ Define joint or sole legal custody and decision-making for education, "
            "healthcare, religion and extracurricular activities",
            "   ✓ Cite Fam. Code § 3003 where joint legal custody is ordered",
            "",
            "3. Parenting Schedule (MANDATORY - Be Specific):",
            "   ✓ Regular weekly schedule with pick-up and drop-off times",
            "   ✓ Holiday schedule with even-year/odd-year alternation",
            "   ✓ Summer vacation and school break schedule",
            "",
            "4. UCCJEA Compliance:",
            '   ✓ State California is the "home state" (Fam. Code § 3400 et seq.)',
            "",
            "5. Communication and Access:",
            "   ✓ Frequent and continuing contact with both parents (Fam. Code § 3020)",
        ]
        if flag(fields, "relocation_restriction"):
            lines += [
                "",
                "6. Relocation Restrictions:",
                "   ✓ 60 days written notice before any move-away (Fam. Code § 7501)",
                "   ✓ Court approval required for moves outside the restricted area",
            ]
        if flag(fields, "right_of_first_refusal"):
            lines += [
                "",
                "7. Right of First Refusal:",
                "   ✓ Each parent shall first offer the other parent any parenting time "
                "the parent cannot exercise personally",
            ]
        return lines

    def caption(self, fields: Mapping[str, Any]) -> List[str]:
        return [
            "SUPERIOR COURT OF CALIFORNIA",
            f"COUNTY OF {value_of(fields, 'county').upper()}",
            "",
            "In re the Marriage/Parentage of          Case No.: ________________",
            "",
            f"{value_of(fields, 'parent1_name').upper()},",
            "              Petitioner/Parent 1,       CHILD CUSTODY AND VISITATION",
            "and                                      AGREEMENT (STIPULATION)",
            f"{value_of(fields, 'parent2_name').upper()},",
            "              Respondent/Parent 2.       (Family Code §§ 3011, 3020, 3080)",
        ]
