import pandas as pd
import streamlit as st
from core.rules import evaluate_plan_rules, has_blocking, validate_profile
from core.store import PlannerStore
from core.utils import format_currency, format_percentage


def projections_frame(projections) -> pd.DataFrame:
    return pd.DataFrame([p.model_dump() for p in projections])


def render_dashboard_view(store: PlannerStore):
    """Render planner metrics, projections and rule evaluations."""
    st.header("Dashboard")
    m = store.metrics
    profile = store.user_profile
    cols = st.columns(4)
    cols[0].metric("Total Project Cost", format_currency(m.total_project_cost, compact=True))
    cols[1].metric("Total Loan", format_currency(m.total_loan_amount, compact=True))
    cols[2].metric("Monthly EMI", format_currency(m.total_monthly_emi))
    cols[3].metric(
        "Current FOIR",
        format_percentage(m.current_foir),
        delta="PASS" if m.current_foir <= profile.max_foir else "CHECK",
    )
    cols = st.columns(4)
    cols[0].metric("Available EMI Capacity", format_currency(m.available_emi_capacity))
    cols[1].metric("Debt Capacity (20y)", format_currency(m.total_debt_capacity, compact=True))
    cols[2].metric("Risk Level", m.risk_level.title())
    cols[3].metric("Loans End", str(m.loan_end_year))

    for issue in validate_profile(profile):
        st.warning(issue.message)
    results = evaluate_plan_rules(m, profile)
    if has_blocking(results):
        st.error("This plan does not qualify as entered. Resolve the critical items below.")
    for r in results:
        if r.severity == "critical":
            st.error(f"[{r.code}] {r.message}")
        elif r.severity == "warn":
            st.warning(f"[{r.code}] {r.message}")
        else:
            st.info(f"[{r.code}] {r.message}")

    st.subheader("Salary vs EMI Capacity")
    st.line_chart(store.dashboard_chart.to_frame())
    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Growth Scenarios")
        st.bar_chart(store.scenario_chart.to_frame())
    with c2:
        st.subheader("FOIR")
        st.bar_chart(store.foir_chart.to_frame())
    st.subheader("Purchases by Year")
    st.bar_chart(store.timeline_chart.to_frame())
    with st.expander("Projection table"):
        st.dataframe(projections_frame(store.salary_projections), use_container_width=True)
    with st.expander("Change log"):
        log = pd.DataFrame(store.changes.as_dict(), columns=["timestamp", "action", "target", "target_id", "changes"])
        log["changes"] = log["changes"].astype(str)
        st.dataframe(log, use_container_width=True)
