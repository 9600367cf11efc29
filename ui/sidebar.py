import streamlit as st
from core.rules import validate_financial_inputs
from core.store import PlannerStore

RISK_TOLERANCES = ["low", "medium", "high"]


def render_profile_sidebar(store: PlannerStore):
    """Sidebar with the user's salary, obligations and FOIR limit."""
    p = store.user_profile
    st.sidebar.header("Your Profile")
    salary = st.sidebar.number_input(
        "Monthly Salary", value=float(p.current_salary), step=1000.0
    )
    growth = st.sidebar.number_input(
        "Salary Growth % / year", value=float(p.salary_growth_rate), step=0.5
    )
    current_emi = st.sidebar.number_input(
        "Existing EMIs", value=float(p.current_emi), step=500.0
    )
    max_foir = st.sidebar.number_input(
        "Max FOIR %", value=float(p.max_foir), step=1.0,
        help="Banks typically cap total EMIs at 40-50% of take-home salary",
    )
    tolerance = st.sidebar.selectbox(
        "Risk Tolerance", RISK_TOLERANCES, index=RISK_TOLERANCES.index(p.risk_tolerance)
    )
    tenure = st.sidebar.number_input(
        "Preferred Tenure (years)", value=int(p.preferred_loan_tenure), step=1
    )
    age = st.sidebar.number_input("Age (0 = skip)", value=int(p.age or 0), min_value=0, step=1)
    fund = st.sidebar.checkbox("Emergency fund in place", value=p.has_emergency_fund)

    issues = validate_financial_inputs(
        salary=salary, emi=current_emi, tenure=tenure, max_foir=max_foir
    )
    for issue in issues:
        st.sidebar.error(issue.message)
    if issues:
        return p

    updates = {
        "current_salary": salary,
        "salary_growth_rate": growth,
        "current_emi": current_emi,
        "max_foir": max_foir,
        "risk_tolerance": tolerance,
        "preferred_loan_tenure": int(tenure),
        "age": int(age) or None,
        "has_emergency_fund": fund,
    }
    changed = {k: v for k, v in updates.items() if getattr(p, k) != v}
    if changed:
        store.update_user_profile(changed)
    return store.user_profile
