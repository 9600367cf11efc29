import streamlit as st
from core.store import PlannerStore
from core.utils import format_currency, format_percentage, parse_currency
from plotplanner.calculators import (
    amortization_schedule,
    amortize,
    calculate_debt_to_income_ratio,
    calculate_future_value,
    calculate_max_loan_amount,
    calculate_monthly_savings,
    calculate_optimal_down_payment,
    calculate_tax_benefits,
)


def render_affordability_view(store: PlannerStore):
    """Render the affordability solver for the current profile."""
    st.header("Affordability")
    p = store.user_profile
    m = store.metrics
    rate = st.number_input("Rate %", value=8.5, key="mq_rate")
    tenure = st.number_input("Tenure (years)", value=int(p.preferred_loan_tenure), step=1, key="mq_term")
    committed = m.total_monthly_emi
    max_loan = calculate_max_loan_amount(p.current_salary, p.max_foir, rate, tenure, committed)
    st.caption(
        f"Max Loan: {format_currency(max_loan)} • EMI headroom: {format_currency(m.available_emi_capacity)}"
    )
    other_debts = parse_currency(st.text_input("Other monthly debts (cards, personal loans)", "0", key="mq_other"))
    dti = calculate_debt_to_income_ratio(committed + other_debts, p.current_salary)
    st.caption(f"Debt-to-income incl. other debts: {format_percentage(dti, 2)}")

    st.subheader("Down Payment Planner")
    cost = st.number_input("Total Cost", value=3300000.0, step=100000.0, key="mq_cost")
    funds = st.number_input("Available Funds", value=600000.0, step=50000.0, key="mq_funds")
    dp = calculate_optimal_down_payment(
        cost, funds, rate, tenure, p.current_salary, p.max_foir, committed
    )
    st.caption(
        f"Suggested Down Payment: {format_currency(dp['optimal_down_payment'])}"
        f" ({dp['optimal_percentage']}%) • {dp['reasoning']}"
    )
    if dp["optimal_down_payment"] > funds:
        save_years = st.slider("Save the gap over (years)", 1, 10, 3, key="mq_save_years")
        monthly = calculate_monthly_savings(dp["optimal_down_payment"], save_years, current_savings=funds)
        st.caption(f"Monthly saving needed: {format_currency(monthly)}")

    loan = max(cost - dp["optimal_down_payment"], 0)
    res = amortize(loan, rate, tenure)
    st.caption(
        f"EMI: {format_currency(res.monthly_emi)} • Total Interest: {format_currency(res.total_interest)}"
    )
    if res.yearly_breakdown:
        first = res.yearly_breakdown[0]
        tax = calculate_tax_benefits(first.principal, first.interest)
        st.caption(f"Approx. first-year tax benefit: {format_currency(tax['total_benefit'])}")
    years = st.slider("Hold for (years)", 1, 30, 10, key="mq_hold")
    st.caption(f"Estimated value after {years} years: {format_currency(calculate_future_value(cost, 8.0, years))}")
    with st.expander("Monthly schedule"):
        st.dataframe(amortization_schedule(loan, rate, tenure), use_container_width=True)
