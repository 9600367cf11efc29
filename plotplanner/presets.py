DISCLAIMER = (
    "This tool implements common home and plot loan calculations (EMI, FOIR, debt capacity "
    "and salary growth projections). Results are estimates only; lender appraisal, credit "
    "policy and actual sanctioned terms prevail. Tax benefit figures are illustrative and do "
    "not cover the full income tax code."
)

# Fixed horizons of the planning model.
PROJECTION_YEARS = 10
SCENARIO_YEARS = 5
DEBT_CAPACITY_MONTHS = 240  # 20 years

# Risk scoring thresholds: (exclusive lower bound, points), checked high to low.
CURRENT_FOIR_POINTS = [(40.0, 3), (30.0, 2), (20.0, 1)]
PROJECTED_FOIR_POINTS = [(45.0, 2), (35.0, 1)]
AGE_AT_LOAN_END_POINTS = [(65, 2), (60, 1)]
EMERGENCY_FUND_BONUS = -1
RISK_HIGH_SCORE = 4
RISK_MEDIUM_SCORE = 2

SCENARIO_SPREAD = {"Conservative": -2.0, "Moderate": 0.0, "Aggressive": 2.0}

LOAN_INTEREST_RATES = {"HOME_LOAN": 8.5, "PLOT_LOAN": 9.0, "CONSTRUCTION_LOAN": 8.5, "PERSONAL_LOAN": 12.0}

# Registration and stamp duty, as % of the plot's base cost.
REGISTRATION_RATE_PCT = 1.0
STAMP_DUTY_RATE_PCT = 5.0

# Illustrative income tax caps (80C principal, Sec. 24 interest) and bracket.
TAX_PRINCIPAL_DEDUCTION_CAP = 150000.0
TAX_INTEREST_DEDUCTION_CAP = 200000.0
TAX_BRACKET = 0.30

CHART_COLORS = {
    "PRIMARY": "#2563eb",
    "SECONDARY": "#10b981",
    "ACCENT": "#f59e0b",
    "DANGER": "#ef4444",
    "GRAY": "#e2e8f0",
}
