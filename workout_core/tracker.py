# workout_core/tracker.py
# =============================================================================
# Facade used by the client screens: starts and finishes sessions against the
# catalog and performance store, and turns schedule edits into documents for
# the schedule store.
# =============================================================================

from __future__ import annotations

from typing import List, Optional, Tuple

from .clock import Clock
from .config import LONG_REST_SECONDS, SHORT_REST_SECONDS, get_logger
from .dates import CalendarDay, DateLike, date_key, month_grid
from .errors import NotFoundError, SessionStateError
from .models import PerformanceRecord, Schedule, StoredPerformance, WorkoutRef
from .notify import Notifier
from .schedule import (
    WeeklySummary,
    changed_days,
    get_day_slot,
    replace_days,
    resolve_workout_refs,
    set_day_slot,
    weekly_summary,
)
from .session import SessionEngine
from .stats import DailyTotal, ExercisePoint, daily_totals, exercise_history
from .store import PerformanceStore, ScheduleStore, WorkoutCatalog

log = get_logger("tracker")


class WorkoutTracker:
    def __init__(
        self,
        catalog: WorkoutCatalog,
        performance: PerformanceStore,
        schedule: ScheduleStore,
        clock: Clock,
        notifier: Optional[Notifier] = None,
        short_rest: int = SHORT_REST_SECONDS,
        long_rest: int = LONG_REST_SECONDS,
    ):
        self.catalog = catalog
        self.performance = performance
        self.schedule = schedule
        self.engine = SessionEngine(clock, notifier, short_rest=short_rest, long_rest=long_rest)
        # Finished records whose save failed, oldest first; retried by save_pending().
        self.pending_records: List[PerformanceRecord] = []

    @classmethod
    def from_backend(cls, backend, clock: Clock, notifier: Optional[Notifier] = None, **kwargs) -> "WorkoutTracker":
        """Wire up anything exposing ``workouts``, ``performance`` and ``schedule``."""
        return cls(backend.workouts, backend.performance, backend.schedule, clock, notifier, **kwargs)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    async def start_workout(self, workout_id: str) -> SessionEngine:
        workout = await self.catalog.get_by_id(workout_id)
        if workout is None:
            raise NotFoundError(f"Workout {workout_id} not found", missing=[workout_id])
        return self.engine.start(workout)

    async def finish_workout(self, notes: str = "") -> StoredPerformance:
        """Finish the session and save its record, after any earlier unsaved ones."""
        self.pending_records.append(self.engine.finish(notes))
        saved = await self.save_pending()
        return saved[-1]

    async def save_pending(self) -> List[StoredPerformance]:
        """Save queued records oldest first. A failure leaves it and later ones queued."""
        if not self.pending_records:
            raise SessionStateError("no finished workout waiting to be saved")
        saved = []
        while self.pending_records:
            stored = await self.performance.save(self.pending_records[0])
            self.pending_records.pop(0)
            log.info(f"Saved performance {stored.id} for {stored.workout_name}")
            saved.append(stored)
        return saved

    def exit_workout(self) -> None:
        self.engine.exit()

    # ------------------------------------------------------------------
    # Weekly schedule
    # ------------------------------------------------------------------
    async def day_view(self, weekday: str) -> List[WorkoutRef]:
        return get_day_slot(await self.schedule.get_schedule(), weekday)

    async def schedule_day(self, weekday: str, workout_ids: List[str], strict: bool = False) -> Schedule:
        current = await self.schedule.get_schedule()
        refs = resolve_workout_refs(workout_ids, await self.catalog.list(), strict=strict)
        updated = set_day_slot(current, weekday, refs)
        if not changed_days(current, updated):
            log.debug(f"{weekday} unchanged; nothing to save")
            return current
        return await self.schedule.save(updated)

    async def schedule_week(self, days: list) -> Schedule:
        current = await self.schedule.get_schedule()
        return await self.schedule.save(replace_days(current, days))

    async def clear_week(self) -> Schedule:
        return await self.schedule.clear_schedule()

    async def week_summary(self) -> WeeklySummary:
        return weekly_summary(await self.schedule.get_schedule())

    # ------------------------------------------------------------------
    # Date overrides
    # ------------------------------------------------------------------
    async def date_view(self, key: DateLike) -> List[WorkoutRef]:
        return await self.schedule.get_override(key)

    async def schedule_date(self, key: DateLike, workout_ids: List[str], strict: bool = False) -> List[WorkoutRef]:
        k = date_key(key)
        refs = resolve_workout_refs(workout_ids, await self.catalog.list(), strict=strict)
        return await self.schedule.save_override(k, refs)

    async def month_view(self, year: int, month: int) -> List[Tuple[CalendarDay, List[WorkoutRef]]]:
        cells = month_grid(year, month)
        overrides = await self.schedule.get_overrides(cells[0].date, cells[-1].date)
        return [(cell, overrides.get(cell.date.isoformat(), [])) for cell in cells]

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------
    async def exercise_progress(self, exercise_name: str) -> List[ExercisePoint]:
        return exercise_history(await self.performance.list(), exercise_name)

    async def totals_by_day(self) -> List[DailyTotal]:
        return daily_totals(await self.performance.list())
