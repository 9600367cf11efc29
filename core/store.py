"""Reactive state container for the planner.

``PlannerStore`` is the single owner of the user profile, the plot list and the
timeline, plus the caches derived from them.  Every mutation runs as one
locked step: apply the input change, then ``recompute()`` in the fixed order
metrics -> projections -> charts, then notify subscribers and hand the
persisted blob to the flush hook.  The store does no I/O itself; see
``core.state`` for the JSON file adapter.
"""
from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type, Union

from pydantic import BaseModel, TypeAdapter, ValidationError

from core.audit import ChangeLog
from core.charts import dashboard_chart, foir_chart, scenario_chart, timeline_chart
from core.exceptions import PersistenceError
from plotplanner.calculators import (
    available_emi_capacity,
    calculate_foir,
    calculate_projected_salary,
    calculate_risk_level,
    compose_plot,
    generate_salary_projections,
    refresh_loan_figures,
    total_debt_capacity,
)
from plotplanner.models import (
    ChartData,
    FinancialMetrics,
    PlotRecord,
    SalaryProjection,
    TimelineEvent,
    UserProfile,
)
from plotplanner.presets import SCENARIO_YEARS

logger = logging.getLogger(__name__)

# Partial plot updates touching these refresh EMI and interest only.
LOAN_FIELDS = {"loan_amount", "interest_rate", "loan_tenure"}
# Assigned by the store, never by callers.
READ_ONLY_FIELDS = {"id", "created_at"}

Subscriber = Callable[["PlannerStore"], None]
RestoreHook = Callable[[], Optional[Dict[str, Any]]]
FlushHook = Callable[[Dict[str, Any]], None]

_PLOT_LIST = TypeAdapter(List[PlotRecord])
_EVENT_LIST = TypeAdapter(List[TimelineEvent])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _field_updates(model_cls: Type[BaseModel], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Map snake_case or camelCase keys onto the model's field names."""
    names = {}
    for name, info in model_cls.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    out = {}
    for key, value in updates.items():
        if key not in names:
            raise ValueError(f"Unknown {model_cls.__name__} field: {key}")
        out[names[key]] = value
    return out


def _event_sort_key(event: TimelineEvent) -> datetime:
    # naive datetimes are taken as UTC so mixed inputs still compare
    d = event.date
    return d if d.tzinfo is not None else d.replace(tzinfo=timezone.utc)


class PlannerStore:
    """Owner of planner inputs and their derived metrics, projections and charts.

    Reads and mutations share one re-entrant lock, so a read never sees a
    mutation half applied.  Subscribers run while the lock is still held and
    get a consistent view across several reads.
    """

    def __init__(
        self,
        profile: Optional[UserProfile] = None,
        on_restore: Optional[RestoreHook] = None,
        on_flush: Optional[FlushHook] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._lock = threading.RLock()
        self._clock = clock
        self._profile = profile.model_copy(deep=True) if profile else UserProfile()
        self._plots: List[PlotRecord] = []
        self._events: List[TimelineEvent] = []
        self._metrics = FinancialMetrics()
        self._projections: List[SalaryProjection] = []
        self._charts: Dict[str, ChartData] = {}
        self._subscribers: List[Subscriber] = []
        self._restored = False
        self.on_restore = on_restore
        self.on_flush = on_flush
        self.changes = ChangeLog()
        self._recompute()

    # ------------------------------------------------------------------
    # Hooks and subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Call ``callback(store)`` after every recompute; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _ensure_restored(self) -> None:
        if self._restored:
            return
        with self._lock:
            if self._restored:
                return
            self._restored = True
            if self.on_restore is None:
                return
            try:
                blob = self.on_restore()
                if blob:
                    self._apply_blob(blob)
                    logger.info("Planner state restored", extra={"plots": len(self._plots)})
            except (PersistenceError, ValidationError) as exc:
                logger.error("Could not restore planner state, using defaults: %s", exc)
            self._recompute()

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback(self)

    def _flush(self) -> None:
        if self.on_flush is None:
            return
        try:
            self.on_flush(self.snapshot())
        except PersistenceError as exc:
            # in-memory state stays authoritative; the next mutation retries
            logger.error("Could not save planner state: %s", exc)

    def _commit(
        self,
        action: str,
        target: str,
        changes: Dict[str, Any],
        target_id: Optional[str] = None,
        derive: bool = True,
    ) -> None:
        if derive:
            self._recompute()
        self.changes.record(action, target, changes, target_id)
        logger.debug("%s %s", action, target, extra={"target_id": target_id})
        try:
            self._notify()
        finally:
            # subscriber errors must not leave the saved blob behind memory
            self._flush()

    # ------------------------------------------------------------------
    # Persistence boundary
    # ------------------------------------------------------------------

    def snapshot(self) -> Dict[str, Any]:
        """The persisted subset of state; derived values are never included."""
        with self._lock:
            return {
                "userProfile": self._profile.to_blob(),
                "plots": [p.to_blob() for p in self._plots],
                "timelineEvents": [e.to_blob() for e in self._events],
            }

    def _apply_blob(self, blob: Dict[str, Any]) -> None:
        if not isinstance(blob, dict):
            raise PersistenceError(f"Expected a planner blob, got {type(blob).__name__}")
        profile = UserProfile.model_validate(blob.get("userProfile") or {})
        plots = _PLOT_LIST.validate_python(blob.get("plots") or [])
        events = _EVENT_LIST.validate_python(blob.get("timelineEvents") or [])
        self._profile = profile
        self._plots = plots
        self._events = sorted(events, key=_event_sort_key)

    def hydrate(self, blob: Dict[str, Any]) -> None:
        """Replace all inputs with a persisted blob and rebuild derived state."""
        with self._lock:
            self._restored = True
            self._apply_blob(blob)
            self._recompute()
            self._notify()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def current_year(self) -> int:
        return self._clock().year

    def _calculate_metrics(self) -> None:
        profile = self._profile
        plots = self._plots
        salary = profile.current_salary
        total_emi = sum(p.monthly_emi for p in plots) + profile.current_emi
        available = available_emi_capacity(salary, profile.max_foir, total_emi)
        current_foir = calculate_foir(total_emi, salary)
        loan_end_year = max([p.purchase_year + p.loan_tenure for p in plots] + [self.current_year])

        projected_salary = calculate_projected_salary(salary, profile.salary_growth_rate, SCENARIO_YEARS)
        projected_foir = calculate_foir(total_emi, projected_salary)
        age_at_loan_end = 0
        if profile.age is not None:
            age_at_loan_end = profile.age + (loan_end_year - self.current_year)

        self._metrics = FinancialMetrics(
            total_project_cost=sum(p.total_cost for p in plots),
            total_loan_amount=sum(p.loan_amount for p in plots),
            total_monthly_emi=total_emi,
            total_interest=sum(p.total_interest for p in plots),
            current_foir=current_foir,
            available_emi_capacity=round(available),
            total_debt_capacity=round(total_debt_capacity(available)),
            risk_level=calculate_risk_level(
                current_foir, projected_foir, age_at_loan_end, profile.has_emergency_fund
            ),
            loan_end_year=loan_end_year,
        )

    def _calculate_projections(self) -> None:
        profile = self._profile
        self._projections = generate_salary_projections(
            profile.current_salary,
            profile.salary_growth_rate,
            profile.max_foir,
            self._metrics.total_monthly_emi,
            start_year=self.current_year,
        )

    def _update_charts(self) -> None:
        self._charts = {
            "dashboard": dashboard_chart(self._projections),
            "timeline": timeline_chart(self._plots, start_year=self.current_year),
            "scenario": scenario_chart(self._profile),
            "foir": foir_chart(self._metrics),
        }

    def _recompute(self) -> None:
        self._calculate_metrics()
        self._calculate_projections()
        self._update_charts()

    def recompute(self) -> None:
        """Rebuild metrics, then projections, then charts, and notify subscribers."""
        self._ensure_restored()
        with self._lock:
            self._recompute()
            self._notify()

    def calculate_metrics(self) -> None:
        self._ensure_restored()
        with self._lock:
            self._calculate_metrics()
            self._notify()

    def calculate_salary_projections(self) -> None:
        self._ensure_restored()
        with self._lock:
            self._calculate_projections()
            self._notify()

    def update_charts(self) -> None:
        self._ensure_restored()
        with self._lock:
            self._update_charts()
            self._notify()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def user_profile(self) -> UserProfile:
        self._ensure_restored()
        with self._lock:
            return self._profile.model_copy(deep=True)

    @property
    def plots(self) -> List[PlotRecord]:
        self._ensure_restored()
        with self._lock:
            return [p.model_copy(deep=True) for p in self._plots]

    def get_plot(self, plot_id: str) -> Optional[PlotRecord]:
        self._ensure_restored()
        with self._lock:
            plot = self._find(self._plots, plot_id)
            return plot.model_copy(deep=True) if plot else None

    @property
    def timeline_events(self) -> List[TimelineEvent]:
        self._ensure_restored()
        with self._lock:
            return [e.model_copy(deep=True) for e in self._events]

    @property
    def metrics(self) -> FinancialMetrics:
        self._ensure_restored()
        with self._lock:
            return self._metrics.model_copy(deep=True)

    @property
    def salary_projections(self) -> List[SalaryProjection]:
        self._ensure_restored()
        with self._lock:
            return [p.model_copy(deep=True) for p in self._projections]

    def _chart(self, name: str) -> ChartData:
        self._ensure_restored()
        with self._lock:
            return self._charts[name].model_copy(deep=True)

    @property
    def dashboard_chart(self) -> ChartData:
        return self._chart("dashboard")

    @property
    def timeline_chart(self) -> ChartData:
        return self._chart("timeline")

    @property
    def scenario_chart(self) -> ChartData:
        return self._chart("scenario")

    @property
    def foir_chart(self) -> ChartData:
        return self._chart("foir")

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @staticmethod
    def _find(items, item_id):
        return next((i for i in items if i.id == item_id), None)

    def update_user_profile(self, updates: Optional[Dict[str, Any]] = None, **fields: Any) -> bool:
        """Merge profile fields (snake_case or camelCase) and recompute."""
        self._ensure_restored()
        changes = _field_updates(UserProfile, {**(updates or {}), **fields})
        with self._lock:
            data = self._profile.model_dump()
            data.update(changes)
            self._profile = UserProfile.model_validate(data)
            self._commit("update", "profile", changes)
        return True

    def add_plot(self, draft: Union[PlotRecord, Dict[str, Any]]) -> str:
        """Insert a plot, deriving its cost and loan fields; returns the new id."""
        self._ensure_restored()
        if isinstance(draft, PlotRecord):
            plot = draft.model_copy(deep=True)
        else:
            plot = PlotRecord.model_validate(draft)
        now = self._clock()
        plot.id = uuid.uuid4().hex
        plot.created_at = now
        plot.updated_at = now
        compose_plot(plot)
        with self._lock:
            self._plots.append(plot)
            self._commit("add", "plot", {"name": plot.name, "total_cost": plot.total_cost}, plot.id)
        return plot.id

    def update_plot(self, plot_id: str, updates: Optional[Dict[str, Any]] = None, **fields: Any) -> bool:
        """Merge fields into a plot.

        Only EMI and total interest are re-derived, and only when a loan field
        (amount, rate, tenure) is part of the update.  Total cost and down
        payment keep their insert-time values.
        """
        self._ensure_restored()
        changes = _field_updates(PlotRecord, {**(updates or {}), **fields})
        for key in READ_ONLY_FIELDS & changes.keys():
            changes.pop(key)
        with self._lock:
            current = self._find(self._plots, plot_id)
            if current is None:
                logger.warning("Plot not found for update", extra={"plot_id": plot_id})
                return False
            data = current.model_dump()
            data.update(changes)
            data["updated_at"] = self._clock()
            plot = PlotRecord.model_validate(data)
            if LOAN_FIELDS & changes.keys():
                refresh_loan_figures(plot)
            self._plots[self._plots.index(current)] = plot
            self._commit("update", "plot", changes, plot_id)
        return True

    def delete_plot(self, plot_id: str) -> bool:
        self._ensure_restored()
        with self._lock:
            current = self._find(self._plots, plot_id)
            if current is None:
                logger.warning("Plot not found for delete", extra={"plot_id": plot_id})
                return False
            self._plots.remove(current)
            self._commit("delete", "plot", {}, plot_id)
        return True

    def add_timeline_event(self, draft: Union[TimelineEvent, Dict[str, Any]]) -> str:
        self._ensure_restored()
        if isinstance(draft, TimelineEvent):
            event = draft.model_copy(deep=True)
        else:
            event = TimelineEvent.model_validate(draft)
        event.id = uuid.uuid4().hex
        with self._lock:
            self._events.append(event)
            self._events.sort(key=_event_sort_key)
            self._commit("add", "timeline_event", {"title": event.title}, event.id, derive=False)
        return event.id

    def update_timeline_event(self, event_id: str, updates: Optional[Dict[str, Any]] = None, **fields: Any) -> bool:
        self._ensure_restored()
        changes = _field_updates(TimelineEvent, {**(updates or {}), **fields})
        changes.pop("id", None)
        with self._lock:
            current = self._find(self._events, event_id)
            if current is None:
                logger.warning("Timeline event not found for update", extra={"event_id": event_id})
                return False
            data = current.model_dump()
            data.update(changes)
            self._events[self._events.index(current)] = TimelineEvent.model_validate(data)
            self._events.sort(key=_event_sort_key)
            self._commit("update", "timeline_event", changes, event_id, derive=False)
        return True

    def delete_timeline_event(self, event_id: str) -> bool:
        self._ensure_restored()
        with self._lock:
            current = self._find(self._events, event_id)
            if current is None:
                logger.warning("Timeline event not found for delete", extra={"event_id": event_id})
                return False
            self._events.remove(current)
            self._commit("delete", "timeline_event", {}, event_id, derive=False)
        return True

    def reset(self) -> None:
        """Back to the default profile with no plots or events."""
        self._ensure_restored()
        with self._lock:
            self._profile = UserProfile()
            self._plots = []
            self._events = []
            self._commit("reset", "planner", {})
