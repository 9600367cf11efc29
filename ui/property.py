import pandas as pd
import streamlit as st
from core.rules import validate_financial_inputs
from core.store import PlannerStore
from core.utils import format_currency
from plotplanner.calculators import calculate_plot_total_cost
from plotplanner.models import ConstructionData, PlotRecord
from plotplanner.presets import LOAN_INTEREST_RATES

PLOT_COLUMNS = [
    "name",
    "location",
    "purchase_year",
    "status",
    "total_cost",
    "down_payment_amount",
    "loan_amount",
    "interest_rate",
    "loan_tenure",
    "monthly_emi",
    "total_interest",
]


def plots_frame(plots) -> pd.DataFrame:
    if not plots:
        return pd.DataFrame(columns=PLOT_COLUMNS)
    return pd.DataFrame([p.model_dump() for p in plots])[PLOT_COLUMNS]


def render_add_plot_form(store: PlannerStore):
    with st.form("add_plot", clear_on_submit=True):
        st.subheader("Add Plot")
        c1, c2 = st.columns(2)
        name = c1.text_input("Name")
        location = c2.text_input("Location")
        size = c1.number_input("Size (sq ft)", value=1500.0, step=100.0)
        price = c2.number_input("Price per sq ft", value=2200.0, step=100.0)
        dp_pct = c1.number_input("Down Payment %", value=20.0, step=5.0)
        rate = c2.number_input("Interest Rate %", value=LOAN_INTEREST_RATES["PLOT_LOAN"], step=0.1)
        tenure = c1.number_input("Loan Tenure (years)", value=20, step=1)
        year = c2.number_input("Purchase Year", value=store.current_year, step=1)
        other = c1.number_input("Other Charges", value=0.0, step=1000.0)
        appreciation = c2.number_input("Appreciation % / year", value=8.0, step=0.5)
        with_charges = st.checkbox("Add registration (1%) and stamp duty (5%)", value=True)
        include_construction = st.checkbox("Include construction")
        area = c1.number_input("Construction Area (sq ft)", value=1200.0, step=100.0)
        build_rate = c2.number_input("Construction cost per sq ft", value=1800.0, step=100.0)
        submitted = st.form_submit_button("Add Plot")

    if not submitted:
        return None
    issues = validate_financial_inputs(
        plot_size=size,
        price_per_sq_ft=price,
        down_payment_pct=dp_pct,
        interest_rate=rate,
        tenure=tenure,
    )
    for issue in issues:
        st.error(issue.message)
    if issues:
        return None

    charges = calculate_plot_total_cost(size, price, other_charges=other)
    draft = PlotRecord(
        name=name or f"Plot {len(store.plots) + 1}",
        location=location,
        size=size,
        price_per_sq_ft=price,
        down_payment_percentage=dp_pct,
        interest_rate=rate,
        loan_tenure=int(tenure),
        purchase_year=int(year),
        registration_cost=charges["registration_cost"] if with_charges else 0.0,
        stamp_duty=charges["stamp_duty"] if with_charges else 0.0,
        other_charges=other,
        estimated_appreciation=appreciation,
        construction=ConstructionData(
            include_construction=include_construction,
            construction_area=area,
            construction_price_per_sq_ft=build_rate,
        ),
    )
    plot_id = store.add_plot(draft)
    st.success(f"Added {draft.name}")
    return plot_id


def render_plots_view(store: PlannerStore):
    """Plot list with add, status change and delete."""
    st.header("Plots")
    render_add_plot_form(store)
    plots = store.plots
    st.dataframe(plots_frame(plots), use_container_width=True)
    if not plots:
        st.caption("No plots yet.")
        return

    labels = {p.id: f"{p.name} ({p.location or 'no location'})" for p in plots}
    selected = st.selectbox("Plot", list(labels), format_func=labels.get, key="plot_select")
    plot = next(p for p in plots if p.id == selected)
    st.caption(
        f"Total Cost: {format_currency(plot.total_cost)} • Loan: {format_currency(plot.loan_amount)}"
        f" • EMI: {format_currency(plot.monthly_emi)}"
    )
    c1, c2, c3 = st.columns(3)
    status = c1.selectbox(
        "Status", ["planned", "purchased", "sold"],
        index=["planned", "purchased", "sold"].index(plot.status), key=f"status_{plot.id}",
    )
    if status != plot.status:
        store.update_plot(plot.id, status=status)
    new_rate = c2.number_input("Revise Rate %", value=float(plot.interest_rate), key=f"rate_{plot.id}")
    if new_rate != plot.interest_rate:
        store.update_plot(plot.id, interest_rate=new_rate)
    if c3.button("Delete Plot", key=f"delete_{plot.id}"):
        store.delete_plot(plot.id)
        st.rerun()
