import random
import threading
from datetime import datetime, timedelta, timezone

import pytest

from core.store import PlannerStore
from plotplanner.calculators import amortize
from plotplanner.models import PlotRecord, UserProfile

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def store():
    return PlannerStore(clock=lambda: NOW)


def _plot(**kw):
    data = dict(
        name="Lakeview",
        location="Pune",
        size=1500,
        price_per_sq_ft=2200,
        down_payment_percentage=20,
        interest_rate=8.5,
        loan_tenure=20,
        purchase_year=2025,
    )
    data.update(kw)
    return PlotRecord(**data)


def test_default_metrics(store):
    m = store.metrics
    assert m.total_monthly_emi == 20600
    assert m.current_foir == 23.41
    assert m.available_emi_capacity == 14600
    assert m.total_debt_capacity == 14600 * 240
    assert m.risk_level == "low"
    assert m.loan_end_year == 2025
    assert len(store.salary_projections) == 10
    assert store.salary_projections[0].year == 2025


def test_add_plot_derives_record_and_metrics(store):
    plot_id = store.add_plot(_plot())
    plot = store.get_plot(plot_id)
    assert plot.id == plot_id
    assert plot.created_at == NOW and plot.updated_at == NOW
    assert plot.total_cost == 3300000
    assert plot.down_payment_amount == 660000
    assert plot.loan_amount == 2640000
    assert plot.monthly_emi == amortize(2640000, 8.5, 20).monthly_emi == 22911

    m = store.metrics
    assert m.total_project_cost == 3300000
    assert m.total_loan_amount == 2640000
    assert m.total_monthly_emi == 22911 + 20600
    assert m.current_foir == 49.44
    assert m.available_emi_capacity == 35200 - 43511
    assert m.total_debt_capacity == (35200 - 43511) * 240
    assert m.risk_level == "medium"
    assert m.loan_end_year == 2045


def test_add_plot_accepts_camel_case_dict(store):
    plot_id = store.add_plot({"name": "A", "size": 1000, "pricePerSqFt": 1000, "downPaymentPercentage": 100})
    plot = store.get_plot(plot_id)
    assert plot.loan_amount == 0
    assert plot.monthly_emi == 0


def test_ids_are_unique(store):
    ids = {store.add_plot(_plot()) for _ in range(5)}
    assert len(ids) == 5


def test_projections_follow_committed_emi(store):
    store.add_plot(_plot())
    first = store.salary_projections[0]
    assert first.emi_capacity == 35200
    assert first.available_capacity == 35200 - 43511


def test_profile_update_recomputes_everything(store):
    store.update_user_profile(current_salary=100000, currentEMI=0)
    m = store.metrics
    assert m.available_emi_capacity == 40000
    assert m.current_foir == 0
    assert store.salary_projections[0].salary == 100000
    assert store.dashboard_chart.datasets[0].data[0] == 100000
    assert store.foir_chart.datasets[0].data == [0, 100]


def test_profile_update_rejects_unknown_field(store):
    with pytest.raises(ValueError):
        store.update_user_profile(salary=1)


def test_age_and_emergency_fund_feed_risk(store):
    store.add_plot(_plot())
    assert store.metrics.risk_level == "medium"
    # 46 now, 66 when the 2045 loan ends
    store.update_user_profile(age=46)
    assert store.metrics.risk_level == "high"
    store.update_user_profile(has_emergency_fund=True)
    assert store.metrics.risk_level == "high"
    store.update_user_profile(age=30)
    assert store.metrics.risk_level == "medium"


def test_partial_update_only_refreshes_emi(store):
    plot_id = store.add_plot(_plot())
    store.update_plot(plot_id, interest_rate=10.0)
    plot = store.get_plot(plot_id)
    assert plot.monthly_emi == amortize(2640000, 10.0, 20).monthly_emi
    assert plot.total_interest == amortize(2640000, 10.0, 20).total_interest
    assert plot.updated_at == NOW


def test_partial_update_leaves_cost_and_down_payment_frozen(store):
    # Cost-side edits do not re-derive total cost, down payment or loan.
    plot_id = store.add_plot(_plot())
    store.update_plot(plot_id, size=3000, down_payment_percentage=50)
    plot = store.get_plot(plot_id)
    assert plot.size == 3000
    assert plot.total_cost == 3300000
    assert plot.down_payment_amount == 660000
    assert plot.loan_amount == 2640000
    assert plot.monthly_emi == 22911


def test_loan_amount_update_refreshes_emi(store):
    plot_id = store.add_plot(_plot())
    store.update_plot(plot_id, loanAmount=1000000)
    plot = store.get_plot(plot_id)
    assert plot.monthly_emi == amortize(1000000, 8.5, 20).monthly_emi
    assert plot.total_cost == 3300000
    assert store.metrics.total_loan_amount == 1000000


def test_update_keeps_identity_fields(store):
    plot_id = store.add_plot(_plot())
    store.update_plot(plot_id, id="other", created_at=datetime(2000, 1, 1), name="Renamed")
    plot = store.get_plot(plot_id)
    assert plot.name == "Renamed"
    assert plot.created_at == NOW


def test_unknown_ids_are_reported(store):
    assert store.update_plot("missing", name="x") is False
    assert store.delete_plot("missing") is False
    assert store.update_timeline_event("missing", title="x") is False
    assert store.delete_timeline_event("missing") is False


def test_delete_plot_recomputes(store):
    plot_id = store.add_plot(_plot())
    assert store.delete_plot(plot_id) is True
    assert store.plots == []
    assert store.metrics.total_monthly_emi == 20600


def test_reads_are_copies(store):
    plot_id = store.add_plot(_plot())
    store.plots[0].monthly_emi = 1
    store.user_profile.current_salary = 1
    assert store.get_plot(plot_id).monthly_emi == 22911
    assert store.user_profile.current_salary == 88000


def test_timeline_stays_sorted():
    store = PlannerStore()
    rng = random.Random(7)
    base = datetime(2025, 1, 1)
    ids = []
    for i in range(20):
        ids.append(
            store.add_timeline_event(
                {"date": base + timedelta(days=rng.randint(0, 3000)), "title": f"e{i}", "type": "emi"}
            )
        )
    for event_id in rng.sample(ids, 8):
        store.update_timeline_event(event_id, date=base + timedelta(days=rng.randint(0, 3000)))
    dates = [e.date for e in store.timeline_events]
    assert dates == sorted(dates)


def test_timeline_mixes_naive_and_aware_dates():
    store = PlannerStore()
    store.add_timeline_event({"date": datetime(2026, 1, 1, tzinfo=timezone.utc), "title": "late"})
    store.add_timeline_event({"date": datetime(2025, 1, 1), "title": "early"})
    assert [e.title for e in store.timeline_events] == ["early", "late"]


def test_timeline_plot_reference_is_weak(store):
    plot_id = store.add_plot(_plot())
    store.add_timeline_event({"date": NOW, "title": "Buy", "type": "purchase", "plotId": plot_id})
    store.delete_plot(plot_id)
    assert store.timeline_events[0].plot_id == plot_id


def test_subscribers_see_consistent_state(store):
    seen = []

    def on_change(s):
        seen.append((len(s.plots), s.metrics.total_monthly_emi))

    unsubscribe = store.subscribe(on_change)
    store.add_plot(_plot())
    assert seen == [(1, 43511)]
    unsubscribe()
    store.update_user_profile(current_emi=0)
    assert len(seen) == 1


def test_recompute_order_is_metrics_then_projections_then_charts(store, monkeypatch):
    calls = []
    monkeypatch.setattr(store, "_calculate_metrics", lambda: calls.append("metrics"))
    monkeypatch.setattr(store, "_calculate_projections", lambda: calls.append("projections"))
    monkeypatch.setattr(store, "_update_charts", lambda: calls.append("charts"))
    store.recompute()
    assert calls == ["metrics", "projections", "charts"]


def test_flush_hook_gets_inputs_only(store):
    blobs = []
    store.on_flush = blobs.append
    store.add_plot(_plot())
    blob = blobs[-1]
    assert set(blob) == {"userProfile", "plots", "timelineEvents"}
    assert blob["userProfile"]["currentEMI"] == 20600
    assert blob["plots"][0]["monthlyEMI"] == 22911
    assert "pricePerSqFt" in blob["plots"][0]


def test_restore_hook_runs_before_first_read():
    source = PlannerStore(profile=UserProfile(current_salary=150000))
    source.add_plot(_plot())
    blob = source.snapshot()

    calls = []

    def restore():
        calls.append(1)
        return blob

    store = PlannerStore(on_restore=restore)
    assert calls == []
    assert store.user_profile.current_salary == 150000
    assert store.metrics.total_monthly_emi == 22911 + 20600
    assert len(store.plots) == 1
    assert calls == [1]


def test_bad_restore_blob_falls_back_to_defaults():
    store = PlannerStore(on_restore=lambda: {"userProfile": {"riskTolerance": "reckless"}})
    assert store.user_profile == UserProfile()


@pytest.mark.parametrize(
    "blob",
    [{"plots": 5}, {"timelineEvents": True}, {"plots": "abc"}, {"userProfile": 3}, ["not", "a", "dict"]],
)
def test_wrong_shaped_restore_blob_falls_back_to_defaults(blob):
    store = PlannerStore(on_restore=lambda: blob)
    assert store.user_profile == UserProfile()
    assert store.plots == []
    assert store.timeline_events == []


def test_reset(store):
    store.add_plot(_plot())
    store.add_timeline_event({"date": NOW, "title": "x"})
    store.update_user_profile(current_salary=1)
    store.reset()
    assert store.plots == [] and store.timeline_events == []
    assert store.user_profile == UserProfile()
    assert store.metrics.available_emi_capacity == 14600


def test_change_log_tracks_mutations(store):
    plot_id = store.add_plot(_plot())
    store.update_plot(plot_id, status="purchased")
    actions = [(e.action, e.target) for e in store.changes.entries]
    assert actions == [("add", "plot"), ("update", "plot")]
    assert store.changes.entries[-1].changes == {"status": "purchased"}


def test_failing_subscriber_still_flushes(store):
    blobs = []
    store.on_flush = blobs.append

    def broken(_):
        raise RuntimeError("boom")

    store.subscribe(broken)
    with pytest.raises(RuntimeError):
        store.add_plot(_plot())
    assert len(blobs) == 1
    assert blobs[0]["plots"][0]["name"] == "Lakeview"


def test_reads_wait_for_a_running_mutation(store):
    assert store.metrics is not None
    done = threading.Event()

    def read():
        assert store.metrics is not None
        done.set()

    with store._lock:
        reader = threading.Thread(target=read)
        reader.start()
        assert not done.wait(0.2)
    assert done.wait(5)
    reader.join()


def test_explicit_triggers_notify_and_stay_consistent(store):
    seen = []
    store.subscribe(lambda s: seen.append(s.metrics.total_monthly_emi))
    store.add_plot(_plot())
    seen.clear()

    store.calculate_metrics()
    store.calculate_salary_projections()
    store.update_charts()
    assert seen == [43511, 43511, 43511]
    assert store.salary_projections[0].available_capacity == 35200 - 43511
    assert store.foir_chart.datasets[0].data == [49.44, 50.56]
    assert store.dashboard_chart.labels[0] == "2025"
