"""
Guideline child support calculation.

Simplified California guideline formula (Family Code section 4055):

    CS = K * [HN - (H% * TN)] * child multiplier

Net disposable income is approximated with a bracketed effective tax rate on
annualized gross income. The bracket table is the documented contract, not a
claim of statutory accuracy.

compute_support() never raises; out-of-range conditions are reported as
advisory warnings, and figures that are not finite (or overflow) yield a
zero result. Callers must run validate_support_inputs() before trusting a
result.
"""

import math
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Any, List, Mapping, Optional, Tuple

# (annual income ceiling, effective rate); incomes above the last ceiling use TOP_TAX_RATE
TAX_BRACKETS: Tuple[Tuple[float, float], ...] = (
    (20000, 0.10),
    (40000, 0.15),
    (80000, 0.20),
    (150000, 0.25),
    (300000, 0.30),
)
TOP_TAX_RATE = 0.35

CHILD_MULTIPLIERS = {1: 0.25, 2: 0.40, 3: 0.50, 4: 0.55}
MAX_CHILD_MULTIPLIER = 0.60

MIN_CHILDREN = 1
MAX_CHILDREN = 20

NON_FINITE_WARNING = "Income and expense figures must be finite numbers - unable to calculate support"


@dataclass(frozen=True)
class SupportCalculationInputs:
    """Monthly figures for both parents."""
    parent1_gross_income: float
    parent1_deductions: float
    parent1_timeshare: float  # Percentage (0-100)
    parent2_gross_income: float
    parent2_deductions: float
    parent2_timeshare: float  # Percentage (0-100)
    number_of_children: int
    childcare_costs: float = 0.0
    health_insurance_premium: float = 0.0
    uninsured_medical_costs: float = 0.0


@dataclass(frozen=True)
class SupportBreakdown:
    parent1_net_income: int
    parent2_net_income: int
    total_net_income: int
    higher_earner_percentage: int
    base_calculation: int
    childcare_add_on: int
    health_insurance_add_on: int
    uninsured_medical_add_on: int


@dataclass(frozen=True)
class SupportCalculationResult:
    """Result of a guideline calculation. monthly_support is never negative."""
    monthly_support: int
    base_support: int
    add_on_expenses: int
    breakdown: SupportBreakdown
    paying_parent: str  # "parent1" or "parent2"
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: List[str]


def round_currency(amount: float) -> int:
    """Round to the nearest whole currency unit, halves away from zero.

    Raises:
        decimal.InvalidOperation: If amount is not finite
    """
    with localcontext() as ctx:
        # Enough digits for any finite float
        ctx.prec = 400
        return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def effective_tax_rate(gross_monthly_income: float) -> float:
    """Approximate combined federal, state and FICA rate."""
    annual_income = gross_monthly_income * 12
    for ceiling, rate in TAX_BRACKETS:
        if annual_income <= ceiling:
            return rate
    return TOP_TAX_RATE


def net_disposable_income(gross_monthly_income: float, deductions: float) -> float:
    """Gross income after approximated taxes and mandatory deductions, floored at zero."""
    net_after_tax = gross_monthly_income * (1 - effective_tax_rate(gross_monthly_income))
    return max(0.0, net_after_tax - deductions)


def child_multiplier(number_of_children: int) -> float:
    if number_of_children >= 5:
        return MAX_CHILD_MULTIPLIER
    return CHILD_MULTIPLIERS.get(number_of_children, CHILD_MULTIPLIERS[1])


def calculate_base_support(
    higher_earner_net: float,
    lower_earner_net: float,
    higher_earner_timeshare: float,
    number_of_children: int,
) -> float:
    """Timeshare-adjusted base amount before add-ons.

    Args:
        higher_earner_net: HN, higher earner's monthly net disposable income
        lower_earner_net: Lower earner's monthly net disposable income
        higher_earner_timeshare: H%, as a fraction (0-1)
        number_of_children: Number of children supported

    Returns:
        Base support amount, never negative
    """
    total_net = higher_earner_net + lower_earner_net
    if total_net == 0:
        return 0.0

    k_factor = 1 + higher_earner_timeshare
    base_amount = k_factor * (higher_earner_net - higher_earner_timeshare * total_net)
    return max(0.0, base_amount * child_multiplier(number_of_children))


def _numeric_inputs(inputs: SupportCalculationInputs) -> Tuple[float, ...]:
    return (
        inputs.parent1_gross_income,
        inputs.parent1_deductions,
        inputs.parent1_timeshare,
        inputs.parent2_gross_income,
        inputs.parent2_deductions,
        inputs.parent2_timeshare,
        inputs.number_of_children,
        inputs.childcare_costs,
        inputs.health_insurance_premium,
        inputs.uninsured_medical_costs,
    )


def _unavailable_result() -> SupportCalculationResult:
    return SupportCalculationResult(
        monthly_support=0,
        base_support=0,
        add_on_expenses=0,
        breakdown=SupportBreakdown(0, 0, 0, 0, 0, 0, 0, 0),
        paying_parent="parent1",
        warnings=[NON_FINITE_WARNING],
    )


def compute_support(inputs: SupportCalculationInputs) -> SupportCalculationResult:
    """Calculate guideline support. Never raises; see module docstring."""
    if not all(math.isfinite(value) for value in _numeric_inputs(inputs)):
        return _unavailable_result()

    warnings: List[str] = []

    parent1_net = net_disposable_income(inputs.parent1_gross_income, inputs.parent1_deductions)
    parent2_net = net_disposable_income(inputs.parent2_gross_income, inputs.parent2_deductions)
    total_net = parent1_net + parent2_net

    higher_is_parent1 = parent1_net > parent2_net
    if higher_is_parent1:
        higher_net, lower_net = parent1_net, parent2_net
        higher_timeshare = inputs.parent1_timeshare / 100
    else:
        higher_net, lower_net = parent2_net, parent1_net
        higher_timeshare = inputs.parent2_timeshare / 100

    higher_percentage = higher_net / total_net if total_net > 0 else 0.5

    base_support = calculate_base_support(
        higher_net, lower_net, higher_timeshare, inputs.number_of_children
    )

    # Add-ons are passed through verbatim (FC 4062)
    childcare = inputs.childcare_costs
    health_insurance = inputs.health_insurance_premium
    uninsured_medical = inputs.uninsured_medical_costs
    total_add_ons = childcare + health_insurance + uninsured_medical

    # Finite but huge figures can still overflow once annualized or summed
    if not all(math.isfinite(value) for value in (total_net, base_support, base_support + total_add_ons)):
        return _unavailable_result()

    monthly_support = max(0, round_currency(base_support + total_add_ons))

    if monthly_support > higher_net * 0.5:
        warnings.append(
            "Support exceeds 50% of paying parent's net income - court may question this"
        )
    if monthly_support < 50 and higher_net > 1000:
        warnings.append("Support amount seems unusually low - verify your income figures")
    if total_net == 0:
        warnings.append("No income reported for either parent - unable to calculate support")
    if inputs.parent1_timeshare + inputs.parent2_timeshare != 100:
        warnings.append("Timeshare percentages must add up to 100%")
    if monthly_support > 10000:
        warnings.append("High support amount - ensure income figures are correct")

    return SupportCalculationResult(
        monthly_support=monthly_support,
        base_support=round_currency(base_support),
        add_on_expenses=round_currency(total_add_ons),
        breakdown=SupportBreakdown(
            parent1_net_income=round_currency(parent1_net),
            parent2_net_income=round_currency(parent2_net),
            total_net_income=round_currency(total_net),
            higher_earner_percentage=round_currency(higher_percentage * 100),
            base_calculation=round_currency(base_support),
            childcare_add_on=round_currency(childcare),
            health_insurance_add_on=round_currency(health_insurance),
            uninsured_medical_add_on=round_currency(uninsured_medical),
        ),
        paying_parent="parent1" if higher_is_parent1 else "parent2",
        warnings=warnings,
    )


def validate_support_inputs(inputs: SupportCalculationInputs) -> ValidationResult:
    """Hard precondition checks for compute_support()."""
    errors: List[str] = []

    # Range checks below are meaningless for nan and inf
    if not all(math.isfinite(value) for value in _numeric_inputs(inputs)):
        errors.append("All income, deduction, timeshare and expense figures must be finite numbers")
        return ValidationResult(is_valid=False, errors=errors)

    if inputs.parent1_gross_income < 0:
        errors.append("Parent 1 income cannot be negative")
    if inputs.parent2_gross_income < 0:
        errors.append("Parent 2 income cannot be negative")
    if inputs.parent1_gross_income == 0 and inputs.parent2_gross_income == 0:
        errors.append("At least one parent must have income")

    if not MIN_CHILDREN <= inputs.number_of_children <= MAX_CHILDREN:
        errors.append(
            f"Number of children must be between {MIN_CHILDREN} and {MAX_CHILDREN}"
        )

    if not 0 <= inputs.parent1_timeshare <= 100:
        errors.append("Parent 1 timeshare must be between 0% and 100%")
    if not 0 <= inputs.parent2_timeshare <= 100:
        errors.append("Parent 2 timeshare must be between 0% and 100%")
    if inputs.parent1_timeshare + inputs.parent2_timeshare != 100:
        errors.append("Timeshare percentages must add up to exactly 100%")

    if inputs.childcare_costs < 0:
        errors.append("Childcare costs cannot be negative")
    if inputs.health_insurance_premium < 0:
        errors.append("Health insurance premium cannot be negative")
    if inputs.uninsured_medical_costs < 0:
        errors.append("Uninsured medical costs cannot be negative")

    return ValidationResult(is_valid=not errors, errors=errors)


def calculate_proportional_split(
    parent1_income: float,
    parent2_income: float,
    total_expense: float,
) -> dict:
    """Split an expense in proportion to income; 50/50 when neither has income."""
    total_income = parent1_income + parent2_income
    if total_income == 0:
        return {
            "parent1_share": total_expense / 2,
            "parent2_share": total_expense / 2,
            "parent1_percentage": 50,
            "parent2_percentage": 50,
        }

    return {
        "parent1_share": round_currency(total_expense * parent1_income / total_income),
        "parent2_share": round_currency(total_expense * parent2_income / total_income),
        "parent1_percentage": round_currency(parent1_income / total_income * 100),
        "parent2_percentage": round_currency(parent2_income / total_income * 100),
    }


def estimate_child_support(
    paying_parent_income: float,
    receiving_parent_income: float,
    number_of_children: int,
    paying_parent_timeshare: float = 20,
) -> int:
    """Quick estimate assuming deductions of 20% of gross and no add-ons."""
    result = compute_support(SupportCalculationInputs(
        parent1_gross_income=paying_parent_income,
        parent1_deductions=paying_parent_income * 0.20,
        parent1_timeshare=paying_parent_timeshare,
        parent2_gross_income=receiving_parent_income,
        parent2_deductions=receiving_parent_income * 0.20,
        parent2_timeshare=100 - paying_parent_timeshare,
        number_of_children=number_of_children,
    ))
    return result.monthly_support


def format_support_calculation(result: SupportCalculationResult) -> str:
    """Plain-text report of a calculation."""
    breakdown = result.breakdown
    lines = [
        "=== CALIFORNIA CHILD SUPPORT CALCULATION ===",
        "",
        f"Parent 1 Net Income: ${breakdown.parent1_net_income}/mo",
        f"Parent 2 Net Income: ${breakdown.parent2_net_income}/mo",
        f"Total Net Income: ${breakdown.total_net_income}/mo",
        "",
        f"Base Support Amount: ${result.base_support}/mo",
    ]
    if breakdown.childcare_add_on > 0:
        lines.append(f"  + Childcare: ${breakdown.childcare_add_on}/mo")
    if breakdown.health_insurance_add_on > 0:
        lines.append(f"  + Health Insurance: ${breakdown.health_insurance_add_on}/mo")
    if breakdown.uninsured_medical_add_on > 0:
        lines.append(f"  + Uninsured Medical: ${breakdown.uninsured_medical_add_on}/mo")
    lines.append("-" * 40)
    lines.append(f"TOTAL MONTHLY SUPPORT: ${result.monthly_support}/mo")
    lines.append("")

    if result.warnings:
        lines.append("WARNINGS:")
        lines.extend(f"  {warning}" for warning in result.warnings)

    return "\n".join(lines)


def _to_number(value: Any) -> Optional[float]:
    """Parse a form value such as "6,500" or "$1,300.50".

    None when absent, malformed or not finite ("inf", "nan", "1e400").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = str(value).replace("$", "").replace(",", "").replace("%", "").strip()
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def inputs_from_fields(fields: Mapping[str, Any]) -> Optional[SupportCalculationInputs]:
    """Build calculator inputs from a child-support field map.

    The paying parent is parent 1. Returns None unless both incomes and the
    paying parent's timeshare are present; the receiving timeshare defaults to
    the remainder of 100.
    """
    payer_income = _to_number(fields.get("paying_parent_income"))
    receiver_income = _to_number(fields.get("receiving_parent_income"))
    payer_timeshare = _to_number(fields.get("paying_parent_timeshare"))
    if payer_income is None or receiver_income is None or payer_timeshare is None:
        return None

    receiver_timeshare = _to_number(fields.get("receiving_parent_timeshare"))
    if receiver_timeshare is None:
        receiver_timeshare = 100 - payer_timeshare

    children = _to_number(fields.get("number_of_children"))

    return SupportCalculationInputs(
        parent1_gross_income=payer_income,
        parent1_deductions=_to_number(fields.get("paying_parent_deductions")) or 0.0,
        parent1_timeshare=payer_timeshare,
        parent2_gross_income=receiver_income,
        parent2_deductions=_to_number(fields.get("receiving_parent_deductions")) or 0.0,
        parent2_timeshare=receiver_timeshare,
        number_of_children=int(children) if children is not None else 1,
        childcare_costs=_to_number(fields.get("childcare_costs")) or 0.0,
        health_insurance_premium=_to_number(fields.get("health_insurance_premium")) or 0.0,
        uninsured_medical_costs=_to_number(fields.get("uninsured_medical")) or 0.0,
    )
