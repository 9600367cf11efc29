"""Chart-ready label/series structures built from planner state."""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from plotplanner.calculators import generate_growth_scenarios
from plotplanner.models import (
    ChartData,
    ChartSeries,
    FinancialMetrics,
    PlotRecord,
    SalaryProjection,
    UserProfile,
)
from plotplanner.presets import CHART_COLORS, PROJECTION_YEARS, SCENARIO_YEARS


def dashboard_chart(projections: List[SalaryProjection]) -> ChartData:
    """Projected salary against EMI capacity, one point per year."""
    return ChartData(
        labels=[str(p.year) for p in projections],
        datasets=[
            ChartSeries(
                label="Salary",
                data=[p.salary for p in projections],
                border_color=CHART_COLORS["PRIMARY"],
                background_color="rgba(37, 99, 235, 0.1)",
                border_width=2,
                fill=False,
            ),
            ChartSeries(
                label="EMI Capacity",
                data=[p.emi_capacity for p in projections],
                border_color=CHART_COLORS["SECONDARY"],
                background_color="rgba(16, 185, 129, 0.1)",
                border_width=2,
                fill=False,
            ),
        ],
    )


def timeline_chart(
    plots: List[PlotRecord], start_year: Optional[int] = None, years: int = PROJECTION_YEARS
) -> ChartData:
    """Purchase and loan amounts grouped by purchase year."""
    if start_year is None:
        start_year = date.today().year
    labels, purchases, loans = [], [], []
    for year in range(start_year, start_year + years):
        in_year = [p for p in plots if p.purchase_year == year]
        labels.append(str(year))
        purchases.append(sum(p.total_cost for p in in_year))
        loans.append(sum(p.loan_amount for p in in_year))
    return ChartData(
        labels=labels,
        datasets=[
            ChartSeries(
                label="Purchase Amount",
                data=purchases,
                background_color=CHART_COLORS["PRIMARY"],
                border_color=CHART_COLORS["PRIMARY"],
                border_width=1,
            ),
            ChartSeries(
                label="Loan Amount",
                data=loans,
                background_color=CHART_COLORS["SECONDARY"],
                border_color=CHART_COLORS["SECONDARY"],
                border_width=1,
            ),
        ],
    )


def scenario_chart(profile: UserProfile, years: int = SCENARIO_YEARS) -> ChartData:
    scenarios = generate_growth_scenarios(profile.current_salary, profile.salary_growth_rate, years)
    return ChartData(
        labels=[s.name for s in scenarios],
        datasets=[
            ChartSeries(
                label=f"{years}-Year Salary Projection",
                data=[s.projected_salary for s in scenarios],
                background_color=[CHART_COLORS["DANGER"], CHART_COLORS["ACCENT"], CHART_COLORS["SECONDARY"]],
                border_color=["#dc2626", "#d97706", "#059669"],
                border_width=1,
            )
        ],
    )


def foir_chart(metrics: FinancialMetrics) -> ChartData:
    # available share is not floored; an over-committed profile shows negative
    used = metrics.current_foir
    return ChartData(
        labels=["Used FOIR", "Available FOIR"],
        datasets=[
            ChartSeries(
                label="FOIR Distribution",
                data=[used, round(100 - used, 2)],
                background_color=[CHART_COLORS["PRIMARY"], CHART_COLORS["GRAY"]],
                border_color=["#1d4ed8", "#cbd5e1"],
                border_width=1,
            )
        ],
    )
