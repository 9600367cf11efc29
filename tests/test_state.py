import json

import pytest
from streamlit.testing.v1 import AppTest

from core import state
from core.exceptions import PersistenceError
from core.store import PlannerStore
from plotplanner.models import PlotRecord, UserProfile


def _store_with_data():
    store = PlannerStore(profile=UserProfile(current_salary=120000))
    store.add_plot(PlotRecord(name="Riverside", size=1200, price_per_sq_ft=2500, purchase_year=2026))
    store.add_timeline_event({"date": "2026-03-01T00:00:00", "title": "Registration", "type": "purchase"})
    return store


def test_save_state_writes_inputs_only(tmp_path):
    file = tmp_path / "session.json"
    state.save_state(_store_with_data(), str(file))
    data = json.loads(file.read_text())
    assert set(data) == {"userProfile", "plots", "timelineEvents"}
    assert data["userProfile"]["currentSalary"] == 120000
    assert data["plots"][0]["name"] == "Riverside"
    assert "metrics" not in data


def test_load_state_round_trip(tmp_path):
    file = tmp_path / "session.json"
    original = _store_with_data()
    state.save_state(original, str(file))

    restored = PlannerStore()
    assert state.load_state(restored, str(file)) is True
    assert restored.user_profile == original.user_profile
    assert [p.id for p in restored.plots] == [p.id for p in original.plots]
    assert restored.metrics == original.metrics
    assert restored.timeline_events[0].title == "Registration"


def test_load_state_missing_file(tmp_path):
    assert state.load_state(PlannerStore(), str(tmp_path / "none.json")) is False


def test_load_ignores_unknown_keys(tmp_path):
    file = tmp_path / "session.json"
    file.write_text(json.dumps({"userProfile": {"currentSalary": 99000}, "activeTab": "dashboard"}))
    blob = state.JsonFileStorage(str(file)).load()
    assert blob == {"userProfile": {"currentSalary": 99000}}


def test_corrupt_file_raises_persistence_error(tmp_path):
    file = tmp_path / "session.json"
    file.write_text("{not json")
    with pytest.raises(PersistenceError):
        state.JsonFileStorage(str(file)).load()


def test_attached_storage_autosaves_and_restores(tmp_path):
    storage = state.JsonFileStorage(str(tmp_path / "session.json"))
    store = state.attach_storage(PlannerStore(), storage, autosave=True)
    store.update_user_profile(current_salary=95000)
    plot_id = store.add_plot(PlotRecord(name="North", purchase_year=2026))

    again = state.attach_storage(PlannerStore(), storage)
    assert again.user_profile.current_salary == 95000
    assert again.get_plot(plot_id).name == "North"


def test_corrupt_file_does_not_break_store(tmp_path):
    file = tmp_path / "session.json"
    file.write_text("[]")
    store = state.attach_storage(PlannerStore(), state.JsonFileStorage(str(file)))
    assert store.user_profile == UserProfile()


def store_app():
    import streamlit as st
    from core.state import get_store

    first = get_store()
    st.write(str(first is get_store()))
    first.update_user_profile(current_salary=70000)


def test_get_store_is_session_scoped(tmp_path, monkeypatch):
    file = tmp_path / "session.json"
    monkeypatch.setattr(state, "SESSION_FILE", str(file))
    at = AppTest.from_function(store_app)
    at.run()
    assert not at.exception
    assert at.markdown[0].value == "True"
    assert isinstance(at.session_state[state.STORE_KEY], PlannerStore)
    assert json.loads(file.read_text())["userProfile"]["currentSalary"] == 70000


def test_wrong_shaped_file_does_not_break_store(tmp_path):
    file = tmp_path / "session.json"
    file.write_text(json.dumps({"plots": 5, "timelineEvents": True}))
    store = state.attach_storage(PlannerStore(), state.JsonFileStorage(str(file)))
    assert store.plots == []
    assert store.metrics.total_monthly_emi == 20600
