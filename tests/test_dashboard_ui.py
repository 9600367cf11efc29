from streamlit.testing.v1 import AppTest


def dashboard_app():
    from core.store import PlannerStore
    from ui.dashboard import render_dashboard_view

    render_dashboard_view(PlannerStore())


def plots_app():
    from core.store import PlannerStore
    from plotplanner.models import PlotRecord
    from ui.property import render_plots_view

    store = PlannerStore()
    store.add_plot(PlotRecord(name="Lakeview", location="Pune", size=1500, price_per_sq_ft=2200))
    render_plots_view(store)


def _metric(at, label):
    return next(m.value for m in at.metric if m.label == label)


def test_dashboard_shows_default_metrics():
    at = AppTest.from_function(dashboard_app)
    at.run()
    assert not at.exception
    assert _metric(at, "Current FOIR") == "23.4%"
    assert _metric(at, "Available EMI Capacity") == "₹14,600"
    assert _metric(at, "Risk Level") == "Low"


def test_plots_view_lists_plot_loan_figures():
    at = AppTest.from_function(plots_app)
    at.run()
    assert not at.exception
    caption = next(c.value for c in at.caption if "Total Cost" in c.value)
    assert "₹33,00,000" in caption
    assert "₹22,911" in caption
