import streamlit as st

from core.observability import setup_logging
from core.state import get_store
from plotplanner import __version__
from plotplanner.presets import DISCLAIMER
from ui.affordability import render_affordability_view
from ui.dashboard import render_dashboard_view
from ui.property import render_plots_view
from ui.sidebar import render_profile_sidebar
from ui.timeline import render_timeline_view


@st.cache_resource
def _configure_logging():
    setup_logging()
    return True


def main():
    st.set_page_config(page_title="Plot Planner", layout="wide")
    _configure_logging()
    store = get_store()

    render_profile_sidebar(store)
    if st.sidebar.button("Reset All Data"):
        store.reset()
        st.rerun()
    st.sidebar.caption(f"v{__version__}")

    st.title("PLOT PURCHASE & LOAN PLANNER")
    st.caption("EMI • FOIR • Debt capacity • Salary growth projections")

    dashboard, plots, affordability, timeline = st.tabs(
        ["Dashboard", "Plots", "Affordability", "Timeline"]
    )
    with dashboard:
        render_dashboard_view(store)
    with plots:
        render_plots_view(store)
    with affordability:
        render_affordability_view(store)
    with timeline:
        render_timeline_view(store)

    st.divider()
    st.caption(DISCLAIMER)


if __name__ == "__main__":
    main()
