from __future__ import annotations

import math
from datetime import date
from typing import Dict, List, Optional

import pandas as pd

from plotplanner.models import (
    GrowthScenario,
    LoanCalculationResult,
    PlotRecord,
    RiskLevel,
    SalaryProjection,
    YearlyBreakdown,
)
from plotplanner.presets import (
    AGE_AT_LOAN_END_POINTS,
    CURRENT_FOIR_POINTS,
    DEBT_CAPACITY_MONTHS,
    EMERGENCY_FUND_BONUS,
    PROJECTED_FOIR_POINTS,
    PROJECTION_YEARS,
    REGISTRATION_RATE_PCT,
    RISK_HIGH_SCORE,
    RISK_MEDIUM_SCORE,
    SCENARIO_SPREAD,
    SCENARIO_YEARS,
    STAMP_DUTY_RATE_PCT,
    TAX_BRACKET,
    TAX_INTEREST_DEDUCTION_CAP,
    TAX_PRINCIPAL_DEDUCTION_CAP,
)

_EPS = 1e-6  # balances below this count as paid off


def nz(x, default=0.0):
    """Return a float for ``x`` or a fallback value.

    Values coming back from form widgets or a restored session blob can be
    ``None`` or ``NaN``.  Coercing them here keeps later math from breaking
    when a value is missing.
    """

    try:
        if x is None or (isinstance(x, float) and math.isnan(x)):
            return default
        return float(x)
    except (TypeError, ValueError):
        return default


def months(tenure_years) -> int:
    """Whole number of monthly payments in a tenure given in (possibly fractional) years."""

    return int(round(nz(tenure_years) * 12))


def monthly_payment(principal, annual_rate_pct, term_years):
    """Calculate the fully amortizing monthly payment (EMI) for a loan.

    ``principal`` is the starting loan amount, ``annual_rate_pct`` is the
    nominal yearly interest rate (e.g. ``8.5`` for 8.5%), and ``term_years`` is
    the tenure in years.  A zero rate falls back to straight-line repayment.
    The result is not rounded.
    """

    L = nz(principal)
    r = nz(annual_rate_pct) / 100 / 12
    n = months(term_years)
    if n <= 0:
        return 0.0
    if abs(r) < 1e-9:
        return L / n
    return (r * L) / (1 - (1 + r) ** (-n))


def principal_from_payment(payment, annual_rate_pct, term_years):
    """Reverse amortization to find the loan amount for a given EMI.

    Uses the same monthly rate and payment count as :func:`monthly_payment`, so
    feeding the result back in reproduces ``payment``.
    """

    P = nz(payment)
    r = nz(annual_rate_pct) / 100 / 12
    n = months(term_years)
    if n <= 0:
        return 0.0
    if abs(r) < 1e-9:
        return P * n
    return P * (1 - (1 + r) ** (-n)) / r


# ---------------------------------------------------------------------------
# Amortization
# ---------------------------------------------------------------------------


def amortize(principal, annual_rate_pct, tenure_years) -> LoanCalculationResult:
    """EMI, total interest and a year-by-year balance schedule for a loan.

    Non-positive principal or tenure and a negative rate give an all-zero
    result with an empty breakdown.  A rate of exactly zero is repaid
    straight-line (``EMI = principal / months``).  The monthly walk runs on
    unrounded values; rounding to whole currency units happens only on the
    returned figures.
    """

    P = nz(principal)
    rate = nz(annual_rate_pct)
    n = months(tenure_years)
    if P <= 0 or rate < 0 or n <= 0:
        return LoanCalculationResult()

    r = rate / 12 / 100
    emi = monthly_payment(P, rate, tenure_years)
    total_amount = emi * n
    total_interest = total_amount - P

    breakdown: List[YearlyBreakdown] = []
    balance = P
    # 12-month chunks; the last year is short when the tenure has spare months
    for year, start in enumerate(range(0, n, 12), start=1):
        beginning = balance
        paid_interest = 0.0
        paid_principal = 0.0
        for _ in range(min(12, n - start)):
            if balance <= _EPS:
                break
            interest = balance * r
            principal_part = min(emi - interest, balance)
            paid_interest += interest
            paid_principal += principal_part
            balance -= principal_part
        breakdown.append(
            YearlyBreakdown(
                year=year,
                beginning_balance=round(beginning),
                payment=round(paid_interest + paid_principal),
                principal=round(paid_principal),
                interest=round(paid_interest),
                ending_balance=round(max(0.0, balance)),
            )
        )
        if balance <= _EPS:
            break

    return LoanCalculationResult(
        monthly_emi=round(emi),
        total_interest=round(total_interest),
        total_amount=round(total_amount),
        yearly_breakdown=breakdown,
    )


def amortization_schedule(principal, annual_rate_pct, tenure_years) -> pd.DataFrame:
    """Month-by-month amortization table.

    Same walk as :func:`amortize` at monthly granularity.  Degenerate inputs
    return an empty frame with the expected columns.
    """

    columns = ["month", "payment", "principal", "interest", "balance"]
    P = nz(principal)
    rate = nz(annual_rate_pct)
    n = months(tenure_years)
    if P <= 0 or rate < 0 or n <= 0:
        return pd.DataFrame(columns=columns)

    r = rate / 12 / 100
    emi = monthly_payment(P, rate, tenure_years)
    rows = []
    balance = P
    for month in range(1, n + 1):
        interest = balance * r
        principal_part = min(emi - interest, balance)
        balance -= principal_part
        rows.append(
            {
                "month": month,
                "payment": interest + principal_part,
                "principal": principal_part,
                "interest": interest,
                "balance": max(0.0, balance),
            }
        )
        if balance <= _EPS:
            break
    return pd.DataFrame(rows, columns=columns).round(0)


# ---------------------------------------------------------------------------
# Debt capacity and risk
# ---------------------------------------------------------------------------


def calculate_foir(monthly_emi, monthly_income):
    """Fixed Obligation to Income Ratio as a percentage, 2 decimals."""

    inc = nz(monthly_income)
    if inc <= 0:
        return 0.0
    return round(100 * nz(monthly_emi) / inc, 2)


def calculate_debt_to_income_ratio(total_monthly_debt, monthly_income):
    """Debt-to-income percentage for an arbitrary monthly debt figure."""

    return calculate_foir(total_monthly_debt, monthly_income)


def available_emi_capacity(monthly_income, max_foir, total_monthly_emi):
    """EMI headroom left under the FOIR ceiling.

    Negative values mean the borrower is already over-committed and are
    returned as-is.
    """

    return nz(monthly_income) * nz(max_foir) / 100 - nz(total_monthly_emi)


def total_debt_capacity(available_capacity):
    """Headroom over the fixed 20-year planning horizon."""

    return nz(available_capacity) * DEBT_CAPACITY_MONTHS


def calculate_max_loan_amount(
    monthly_income, max_foir, annual_rate_pct, tenure_years, existing_emi=0.0
):
    """Largest principal whose EMI fits in the FOIR headroom.

    This is the inverse of :func:`amortize` for the same rate and tenure, so the
    EMI of the returned principal comes back to ``income * max_foir / 100 -
    existing_emi`` within rounding.
    """

    headroom = available_emi_capacity(monthly_income, max_foir, existing_emi)
    if headroom <= 0 or nz(annual_rate_pct) < 0:
        return 0
    return round(principal_from_payment(headroom, annual_rate_pct, tenure_years))


def _points(value, table) -> int:
    for threshold, pts in table:
        if value > threshold:
            return pts
    return 0


def risk_score(current_foir, projected_foir, age_at_loan_end, has_emergency_fund=False) -> int:
    """Additive ordinal risk score over the four planner signals."""

    score = _points(nz(current_foir), CURRENT_FOIR_POINTS)
    score += _points(nz(projected_foir), PROJECTED_FOIR_POINTS)
    score += _points(nz(age_at_loan_end), AGE_AT_LOAN_END_POINTS)
    if has_emergency_fund:
        score += EMERGENCY_FUND_BONUS
    return score


def calculate_risk_level(
    current_foir, projected_foir, age_at_loan_end, has_emergency_fund=False
) -> RiskLevel:
    """Map the risk score to ``low`` (<2), ``medium`` (2-3) or ``high`` (>=4)."""

    score = risk_score(current_foir, projected_foir, age_at_loan_end, has_emergency_fund)
    if score >= RISK_HIGH_SCORE:
        return "high"
    if score >= RISK_MEDIUM_SCORE:
        return "medium"
    return "low"


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


def _grow(value, growth_rate_pct, years):
    return nz(value) * (1 + nz(growth_rate_pct) / 100) ** years


def calculate_projected_salary(current_salary, growth_rate_pct, years):
    """Salary after ``years`` of compound growth, rounded."""

    if nz(current_salary) <= 0 or nz(years) < 0:
        return 0
    return round(_grow(current_salary, growth_rate_pct, years))


def calculate_future_value(present_value, appreciation_rate_pct, years):
    """Plot value after ``years`` of compound appreciation, rounded."""

    if nz(present_value) <= 0 or nz(years) < 0:
        return 0
    return round(_grow(present_value, appreciation_rate_pct, years))


def generate_salary_projections(
    current_salary,
    growth_rate_pct,
    max_foir,
    committed_emi,
    start_year: Optional[int] = None,
    horizon: int = PROJECTION_YEARS,
) -> List[SalaryProjection]:
    """Year-by-year salary and EMI capacity under compound growth.

    Entry ``i`` is for ``start_year + i`` (default: the current year).  EMI
    capacity is the FOIR ceiling on the projected salary; available capacity
    subtracts the EMI already committed.
    """

    if start_year is None:
        start_year = date.today().year
    out: List[SalaryProjection] = []
    for i in range(horizon):
        salary = _grow(current_salary, growth_rate_pct, i) if nz(current_salary) > 0 else 0.0
        emi_capacity = salary * nz(max_foir) / 100
        out.append(
            SalaryProjection(
                year=start_year + i,
                salary=round(salary),
                emi_capacity=round(emi_capacity),
                available_capacity=round(emi_capacity - nz(committed_emi)),
            )
        )
    return out


def generate_growth_scenarios(
    current_salary, growth_rate_pct, years: int = SCENARIO_YEARS
) -> List[GrowthScenario]:
    """Conservative / moderate / aggressive salary outlooks around a base rate."""

    return [
        GrowthScenario(
            name=name,
            growth_rate=nz(growth_rate_pct) + spread,
            projected_salary=calculate_projected_salary(
                current_salary, nz(growth_rate_pct) + spread, years
            ),
        )
        for name, spread in SCENARIO_SPREAD.items()
    ]


def calculate_monthly_savings(target_amount, years, current_savings=0.0, annual_rate_pct=6.0):
    """Monthly deposit needed to reach ``target_amount`` in ``years``."""

    n = months(years)
    if n <= 0:
        return nz(target_amount)
    r = nz(annual_rate_pct) / 12 / 100
    grown_savings = nz(current_savings) * (1 + r) ** n
    remaining = nz(target_amount) - grown_savings
    if remaining <= 0:
        return 0
    if abs(r) < 1e-9:
        return round(remaining / n)
    return round(remaining * r / ((1 + r) ** n - 1))


# ---------------------------------------------------------------------------
# Plot cost composition
# ---------------------------------------------------------------------------


def calculate_construction_cost(construction) -> float:
    if not construction.include_construction:
        return 0.0
    return nz(construction.construction_area) * nz(construction.construction_price_per_sq_ft)


def calculate_plot_total_cost(
    size,
    price_per_sq_ft,
    registration_rate_pct=REGISTRATION_RATE_PCT,
    stamp_duty_rate_pct=STAMP_DUTY_RATE_PCT,
    other_charges=0.0,
    construction_cost=0.0,
) -> Dict[str, float]:
    """Acquisition cost of a plot.

    Registration and stamp duty are separate percentages of the land's base
    cost only; construction is added after them and carries neither.
    """

    base = nz(size) * nz(price_per_sq_ft)
    registration = base * nz(registration_rate_pct) / 100
    stamp = base * nz(stamp_duty_rate_pct) / 100
    total = base + nz(construction_cost) + registration + stamp + nz(other_charges)
    return {
        "base_cost": round(base),
        "construction_cost": round(nz(construction_cost)),
        "registration_cost": round(registration),
        "stamp_duty": round(stamp),
        "other_charges": round(nz(other_charges)),
        "total_cost": round(total),
    }


def refresh_loan_figures(plot: PlotRecord) -> PlotRecord:
    """Recompute EMI and total interest from the plot's current loan fields."""

    res = amortize(plot.loan_amount, plot.interest_rate, plot.loan_tenure)
    plot.monthly_emi = res.monthly_emi
    plot.total_interest = res.total_interest
    return plot


def compose_plot(plot: PlotRecord) -> PlotRecord:
    """Derive cost, down payment, loan and EMI fields of a new plot in place."""

    construction_cost = calculate_construction_cost(plot.construction)
    plot.construction.construction_cost = round(construction_cost)
    total = (
        nz(plot.size) * nz(plot.price_per_sq_ft)
        + construction_cost
        + nz(plot.registration_cost)
        + nz(plot.stamp_duty)
        + nz(plot.other_charges)
    )
    down_payment = total * nz(plot.down_payment_percentage) / 100
    plot.total_cost = round(total)
    plot.down_payment_amount = round(down_payment)
    plot.loan_amount = round(total - down_payment)
    return refresh_loan_figures(plot)


def calculate_optimal_down_payment(
    total_cost,
    available_funds,
    annual_rate_pct,
    tenure_years,
    monthly_income,
    max_foir,
    existing_emi=0.0,
):
    """Suggest a down payment that keeps the new EMI inside the FOIR ceiling.

    Searches in 1% steps for the smallest down payment whose EMI fits, then
    lifts it towards 30% of cost as far as ``available_funds`` allow.
    """

    cost = nz(total_cost)
    if cost <= 0:
        return {"optimal_down_payment": 0, "optimal_percentage": 0, "reasoning": "No cost entered"}
    max_emi = available_emi_capacity(monthly_income, max_foir, existing_emi)
    min_down_payment = 0.0
    for pct in range(0, 101):
        dp = cost * pct / 100
        if amortize(cost - dp, annual_rate_pct, tenure_years).monthly_emi <= max_emi:
            min_down_payment = dp
            break

    optimal = max(min_down_payment, min(nz(available_funds), cost * 0.30))
    if optimal == min_down_payment:
        reasoning = "Minimum down payment to meet FOIR requirements"
    elif optimal == nz(available_funds):
        reasoning = "Using all available funds for down payment"
    else:
        reasoning = "Optimal balance between EMI and liquidity"
    return {
        "optimal_down_payment": round(optimal),
        "optimal_percentage": round(optimal / cost * 100),
        "reasoning": reasoning,
    }


def calculate_tax_benefits(principal_repaid, interest_paid):
    """Approximate annual tax saving on a home loan.

    Illustrative only: principal and interest deductions are capped and the
    total is taxed at a flat 30% bracket.
    """

    principal_deduction = min(nz(principal_repaid), TAX_PRINCIPAL_DEDUCTION_CAP)
    interest_deduction = min(nz(interest_paid), TAX_INTEREST_DEDUCTION_CAP)
    return {
        "principal_deduction": principal_deduction,
        "interest_deduction": interest_deduction,
        "total_benefit": round((principal_deduction + interest_deduction) * TAX_BRACKET),
    }
