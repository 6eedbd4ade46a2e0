"""Child Support Order (guideline support under Family Code section 4055)."""

from typing import Any, List, Mapping, Optional, Sequence

from legal_doc_auto.core.support_calculator import (
    NON_FINITE_WARNING,
    SupportCalculationResult,
    compute_support,
    inputs_from_fields,
    validate_support_inputs,
)

from .base import PromptBuilder, detail, value_of


def guideline_calculation(fields: Mapping[str, Any]) -> Optional[SupportCalculationResult]:
    """Run the guideline calculator when the field map carries valid inputs."""
    inputs = inputs_from_fields(fields)
    if inputs is None or not validate_support_inputs(inputs).is_valid:
        return None
    result = compute_support(inputs)
    if NON_FINITE_WARNING in result.warnings:
        return None
    return result


class ChildSupportBuilder(PromptBuilder):
    document_type = "child-support-ca"
    document_title = "Child Support Order"
    specialty = "child support matters and guideline calculations"
    task = (
        "Draft a complete, court-ready Child Support Order that establishes "
        "guideline child support pursuant to California Family Code § 4055 "
        "and related provisions."
    )

    def sections(self, fields: Mapping[str, Any]) -> Sequence[str]:
        return (
            "PARTIES AND JURISDICTION",
            "CHILDREN SUBJECT TO SUPPORT",
            "INCOME FINDINGS",
            "TIMESHARE CALCULATION",
            "GUIDELINE CHILD SUPPORT CALCULATION",
            "MANDATORY ADD-ON EXPENSES",
            "TOTAL CHILD SUPPORT ORDER",
            "PAYMENT TERMS",
            "DURATION AND TERMINATION",
            "HEALTH INSURANCE AND MEDICAL EXPENSES",
            "MODIFICATION PROVISIONS",
            "ARREARS AND INTEREST",
            "INCOME AND EXPENSE DECLARATION",
            "FINDINGS AND ORDER",
            "SIGNATURE BLOCKS",
        )

    def case_information(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        lines: List[Optional[str]] = [
            "Party Information:",
            f"- Paying Parent (Obligor): {value_of(fields, 'paying_parent')}",
            detail("Address", value_of(fields, "paying_parent_address")),
            f"- Receiving Parent (Obligee): {value_of(fields, 'receiving_parent')}",
            detail("Address", value_of(fields, "receiving_parent_address")),
            "",
            "Jurisdiction:",
            f"- County: {value_of(fields, 'county')}",
            "- State: California",
            "",
            "Children Subject to Support:",
            value_of(fields, "children_info",
                     "Children for whom support is ordered (names, DOB, ages)"),
            f"- Number of Minor Children: {value_of(fields, 'number_of_children', 'To be specified')}",
            "",
            "Paying Parent (Obligor) Income:",
            "- Gross Monthly Income: "
            + _dollars(value_of(fields, "paying_parent_income"), "To be determined"),
            detail("Income Source", value_of(fields, "paying_parent_income_source")),
            detail("Allowable Deductions", value_of(fields, "paying_parent_deductions")),
            detail("Tax Filing Status", value_of(fields, "paying_parent_tax_filing")),
            "",
            "Receiving Parent (Obligee) Income:",
            "- Gross Monthly Income: "
            + _dollars(value_of(fields, "receiving_parent_income"), "To be determined"),
            detail("Income Source", value_of(fields, "receiving_parent_income_source")),
            detail("Allowable Deductions", value_of(fields, "receiving_parent_deductions")),
            "",
            "Timeshare:",
            "- Paying Parent's Time: "
            + _percent(value_of(fields, "paying_parent_timeshare"), "To be specified"),
            "- Receiving Parent's Time: "
            + _percent(value_of(fields, "receiving_parent_timeshare"), "To be specified"),
            detail("Overall Arrangement", value_of(fields, "timeshare")),
            "",
            "Add-On Expenses:",
            "- Childcare Costs: "
            + _dollars(value_of(fields, "childcare_costs"), "To be addressed if applicable"),
            "- Health Insurance Premium (children only): "
            + _dollars(value_of(fields, "health_insurance_premium"), "To be addressed"),
            "- Uninsured Medical/Dental Expenses: "
            + value_of(fields, "uninsured_medical", "Split per percentage of incomes"),
            detail("Educational Expenses", value_of(fields, "educational_expenses")),
            detail("Travel Costs for Visitation", value_of(fields, "travel_costs")),
            "",
        ]
        lines += self._support_calculation(fields)
        lines += [
            "",
            "Payment Details:",
            "- Payment Method: "
            + value_of(fields, "payment_method", "Income Withholding Order (wage assignment)"),
            f"- Payment Due: {value_of(fields, 'payment_date', 'First day of each month')}",
        ]
        return lines

    def _support_calculation(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        stated_amount = value_of(fields, "guideline_support_amount")
        if stated_amount:
            return [
                "Support Calculation:",
                f"- Guideline Support Amount: {_dollars(stated_amount)}/month",
                detail("Calculated using", value_of(fields, "support_calculator_used")),
            ]

        result = guideline_calculation(fields)
        if result is None:
            return [
                "Support Calculation:",
                "- Amount to be calculated per Fam. Code § 4055 formula from the "
                "income and timeshare findings",
            ]

        breakdown = result.breakdown
        lines: List[Optional[str]] = [
            "Support Calculation (guideline estimate):",
            f"- Obligor Net Disposable Income: ${breakdown.parent1_net_income}/month",
            f"- Obligee Net Disposable Income: ${breakdown.parent2_net_income}/month",
            f"- Combined Net Disposable Income: ${breakdown.total_net_income}/month",
            f"- High Earner Share of Net Income: {breakdown.higher_earner_percentage}%",
            f"- Base Guideline Support: ${result.base_support}/month",
            f"- Add-On Expenses: ${result.add_on_expenses}/month",
            f"- Total Monthly Child Support: ${result.monthly_support}/month",
            "- State this exact total in the TOTAL CHILD SUPPORT ORDER section",
        ]
        if result.paying_parent == "parent2":
            lines.append(
                "- Note: the receiving parent has the higher net income; address "
                "the direction of payment in the findings"
            )
        return lines

    def legal_requirements(self, fields: Mapping[str, Any]) -> List[Optional[str]]:
        return [
            "1. Mandatory Guideline Formula:",
            "   ✓ Apply the California Family Code § 4055 statewide uniform guideline",
            "   ✓ Formula: CS = K[HN - (H%)(TN)]",
            "   ✓ State that guideline support is presumptively correct",
            "   ✓ Justify any deviation from guideline under Fam. Code § 4057",
            "",
            "2. Income Determination:",
            '   ✓ Define "gross income" per Fam. Code § 4058 and allowable deductions '
            "per Fam. Code § 4059",
            "",
            "3. Mandatory Add-On Expenses (Fam. Code § 4062):",
            "   ✓ Childcare and children's health insurance divided per income percentage",
            "",
            "4. Duration:",
            "   ✓ Support continues until age 18, or 19 while a full-time high school "
            "student (Fam. Code § 3901)",
            "",
            "5. Payment Provisions:",
            "   ✓ Exact monthly amount, due date and payment method",
            "   ✓ Reference the Income Withholding Order (Form FL-195, Fam. Code § 5230)",
            "   ✓ Interest on arrears at 10% per annum",
            "",
            "6. Modification:",
            "   ✓ Support is modifiable upon a material change of circumstances "
            "(Fam. Code § 3651)",
        ]

    def caption(self, fields: Mapping[str, Any]) -> List[str]:
        return [
            "SUPERIOR COURT OF CALIFORNIA",
            f"COUNTY OF {value_of(fields, 'county').upper()}",
            "",
            "In re the Marriage/Parentage of          Case No.: ________________",
            "",
            f"{value_of(fields, 'paying_parent', 'Petitioner').upper()},",
            "              Petitioner/Obligor,        CHILD SUPPORT ORDER",
            "and                                      (Family Code §§ 4050-4076)",
            f"{value_of(fields, 'receiving_parent', 'Respondent').upper()},",
            "              Respondent/Obligee.",
        ]


def _dollars(value: str, default: str = "") -> str:
    if not value:
        return default
    return value if value.startswith("$") else f"${value}"


def _percent(value: str, default: str = "") -> str:
    if not value:
        return default
    return value if value.endswith("%") else f"{value}%"
