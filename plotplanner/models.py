from __future__ import annotations

from datetime import date, datetime
from typing import List, Literal, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

RiskLevel = Literal["low", "medium", "high"]
PlotStatus = Literal["planned", "purchased", "sold"]
EventType = Literal["purchase", "emi", "completion", "milestone"]


class PlannerModel(BaseModel):
    """Base model serialized with the camelCase keys of the stored blob."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_blob(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class UserProfile(PlannerModel):
    current_salary: float = 88000.0
    salary_growth_rate: float = 8.0
    current_emi: float = Field(20600.0, alias="currentEMI")
    max_foir: float = Field(40.0, alias="maxFOIR")
    risk_tolerance: RiskLevel = "medium"
    preferred_loan_tenure: int = 20
    age: Optional[int] = None
    has_emergency_fund: bool = False


class ConstructionData(PlannerModel):
    include_construction: bool = False
    construction_area: float = 1200.0
    construction_price_per_sq_ft: float = 1800.0
    construction_cost: float = 0.0
    construction_timeframe: int = 12  # months


class PlotRecord(PlannerModel):
    id: str = ""
    name: str = ""
    location: str = ""
    size: float = 1500.0  # sq ft
    price_per_sq_ft: float = 2200.0
    total_cost: float = 0.0
    down_payment_percentage: float = 20.0
    down_payment_amount: float = 0.0
    loan_amount: float = 0.0
    interest_rate: float = 8.5
    loan_tenure: int = 20
    monthly_emi: float = Field(0.0, alias="monthlyEMI")
    total_interest: float = 0.0
    purchase_year: int = Field(default_factory=lambda: date.today().year)
    status: PlotStatus = "planned"
    registration_cost: float = 0.0
    stamp_duty: float = 0.0
    other_charges: float = 0.0
    estimated_appreciation: float = 8.0
    construction: ConstructionData = Field(default_factory=ConstructionData)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class FinancialMetrics(PlannerModel):
    total_project_cost: float = 0.0
    total_loan_amount: float = 0.0
    total_monthly_emi: float = Field(0.0, alias="totalMonthlyEMI")
    total_interest: float = 0.0
    current_foir: float = Field(0.0, alias="currentFOIR")
    available_emi_capacity: float = Field(0.0, alias="availableEMICapacity")
    total_debt_capacity: float = 0.0
    risk_level: RiskLevel = "low"
    loan_end_year: int = Field(default_factory=lambda: date.today().year)


class SalaryProjection(PlannerModel):
    year: int
    salary: float
    emi_capacity: float
    available_capacity: float


class GrowthScenario(PlannerModel):
    name: str
    growth_rate: float
    projected_salary: float


class TimelineEvent(PlannerModel):
    id: str = ""
    date: datetime
    title: str
    description: str = ""
    type: EventType = "milestone"
    amount: Optional[float] = None
    plot_id: Optional[str] = None


class YearlyBreakdown(PlannerModel):
    year: int
    beginning_balance: float
    payment: float
    principal: float
    interest: float
    ending_balance: float


class LoanCalculationResult(PlannerModel):
    monthly_emi: float = Field(0.0, alias="monthlyEMI")
    total_interest: float = 0.0
    total_amount: float = 0.0
    yearly_breakdown: List[YearlyBreakdown] = Field(default_factory=list)


class ChartSeries(PlannerModel):
    label: str
    data: List[float] = Field(default_factory=list)
    background_color: Optional[Union[str, List[str]]] = None
    border_color: Optional[Union[str, List[str]]] = None
    border_width: Optional[int] = None
    fill: Optional[bool] = None


class ChartData(PlannerModel):
    labels: List[str] = Field(default_factory=list)
    datasets: List[ChartSeries] = Field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        """One column per series, indexed by label, for ``st.line_chart`` and friends."""
        return pd.DataFrame(
            {s.label: s.data for s in self.datasets},
            index=pd.Index(self.labels, name="label"),
        )
