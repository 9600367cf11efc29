from datetime import datetime, time

import pandas as pd
import streamlit as st
from core.store import PlannerStore

EVENT_TYPES = ["purchase", "emi", "completion", "milestone"]


def render_timeline_view(store: PlannerStore):
    st.header("Timeline")
    plots = {p.id: p.name for p in store.plots}
    with st.form("add_event", clear_on_submit=True):
        title = st.text_input("Title")
        description = st.text_input("Description")
        c1, c2, c3 = st.columns(3)
        day = c1.date_input("Date")
        kind = c2.selectbox("Type", EVENT_TYPES, index=EVENT_TYPES.index("milestone"))
        amount = c3.number_input("Amount", value=0.0, step=1000.0)
        plot_id = st.selectbox(
            "Plot", [None] + list(plots), format_func=lambda k: plots.get(k, "None")
        )
        submitted = st.form_submit_button("Add Event")
    if submitted and title:
        store.add_timeline_event(
            {
                "date": datetime.combine(day, time()),
                "title": title,
                "description": description,
                "type": kind,
                "amount": amount or None,
                "plot_id": plot_id,
            }
        )

    events = store.timeline_events
    if not events:
        st.caption("No events yet.")
        return
    frame = pd.DataFrame([e.model_dump() for e in events])
    frame["plot"] = frame["plot_id"].map(plots)
    st.dataframe(
        frame[["date", "title", "type", "amount", "plot", "description"]], use_container_width=True
    )
    labels = {e.id: f"{e.date:%Y-%m-%d} {e.title}" for e in events}
    selected = st.selectbox("Event", list(labels), format_func=labels.get, key="event_select")
    if st.button("Delete Event"):
        store.delete_timeline_event(selected)
        st.rerun()
