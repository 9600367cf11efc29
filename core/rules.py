from __future__ import annotations
from typing import Literal, List, Dict, Any, Optional
from pydantic import BaseModel, Field

from plotplanner.models import FinancialMetrics, UserProfile


class ValidationIssue(BaseModel):
    field: str
    message: str


class RuleResult(BaseModel):
    code: str
    severity: Literal["info", "warn", "critical"]
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


def validate_financial_inputs(
    salary: Optional[float] = None,
    emi: Optional[float] = None,
    plot_size: Optional[float] = None,
    price_per_sq_ft: Optional[float] = None,
    down_payment_pct: Optional[float] = None,
    interest_rate: Optional[float] = None,
    tenure: Optional[float] = None,
    max_foir: Optional[float] = None,
) -> List[ValidationIssue]:
    """Check user-entered values against their allowed ranges.

    Only the arguments that are passed are checked.  Out-of-range values are
    reported, never clamped; surfacing them is up to the caller.
    """
    issues: List[ValidationIssue] = []

    if salary is not None and salary <= 0:
        issues.append(ValidationIssue(field="salary", message="Salary must be greater than 0"))

    if emi is not None and emi < 0:
        issues.append(ValidationIssue(field="emi", message="EMI cannot be negative"))

    if plot_size is not None and plot_size <= 0:
        issues.append(ValidationIssue(field="plot_size", message="Plot size must be greater than 0"))

    if price_per_sq_ft is not None and price_per_sq_ft <= 0:
        issues.append(
            ValidationIssue(field="price_per_sq_ft", message="Price per sq ft must be greater than 0")
        )

    if down_payment_pct is not None and not 0 <= down_payment_pct <= 100:
        issues.append(
            ValidationIssue(
                field="down_payment_pct", message="Down payment must be between 0 and 100 percent"
            )
        )

    if interest_rate is not None and not 0 < interest_rate <= 50:
        issues.append(
            ValidationIssue(field="interest_rate", message="Interest rate must be between 0 and 50 percent")
        )

    if tenure is not None and not 1 <= tenure <= 50:
        issues.append(ValidationIssue(field="tenure", message="Loan tenure must be between 1 and 50 years"))

    if max_foir is not None and not 0 <= max_foir <= 100:
        issues.append(ValidationIssue(field="max_foir", message="Maximum FOIR must be between 0 and 100 percent"))

    return issues


def validate_profile(profile: UserProfile) -> List[ValidationIssue]:
    return validate_financial_inputs(
        salary=profile.current_salary,
        emi=profile.current_emi,
        tenure=profile.preferred_loan_tenure,
        max_foir=profile.max_foir,
    )


def evaluate_plan_rules(metrics: FinancialMetrics, profile: UserProfile) -> List[RuleResult]:
    res: List[RuleResult] = []

    if profile.current_salary <= 0:
        res.append(
            RuleResult(
                code="NO_INCOME",
                severity="critical",
                message="No salary entered; FOIR is not meaningful.",
            )
        )

    if metrics.current_foir > profile.max_foir:
        res.append(
            RuleResult(
                code="FOIR_OVER_LIMIT",
                severity="warn",
                message="Current FOIR exceeds the maximum allowed.",
                context={"actual": metrics.current_foir, "limit": profile.max_foir},
            )
        )

    if metrics.available_emi_capacity < 0:
        res.append(
            RuleResult(
                code="OVER_COMMITTED",
                severity="critical",
                message="Committed EMIs exceed the FOIR ceiling.",
                context={"shortfall": -metrics.available_emi_capacity},
            )
        )

    if metrics.risk_level == "high":
        res.append(
            RuleResult(
                code="HIGH_RISK",
                severity="warn",
                message="Overall loan risk is high.",
            )
        )
    elif metrics.risk_level == "medium" and profile.risk_tolerance == "low":
        res.append(
            RuleResult(
                code="RISK_ABOVE_TOLERANCE",
                severity="info",
                message="Loan risk is above your stated risk tolerance.",
            )
        )

    if not profile.has_emergency_fund and metrics.total_loan_amount > 0:
        res.append(
            RuleResult(
                code="CONSIDER_EMERGENCY_FUND",
                severity="info",
                message="Consider keeping an emergency fund before taking on new EMIs.",
            )
        )

    return res


def has_blocking(res: List[RuleResult]) -> bool:
    return any(r.severity == "critical" for r in res)
