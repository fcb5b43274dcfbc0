# workout_core/store.py
# =============================================================================
# Collaborator contracts (catalog, performance store, schedule store) and an
# in-process implementation of each. Totals are computed once, on save.
# =============================================================================

from __future__ import annotations

from typing import Dict, List, Optional, Protocol
from uuid import uuid4

from .config import get_logger
from .dates import DateLike
from .errors import StorageError
from .models import (
    DateOverrides,
    PerformanceRecord,
    Schedule,
    StoredPerformance,
    Workout,
    WorkoutRef,
)
from .schedule import (
    clear_schedule,
    empty_schedule,
    get_date_override,
    normalize_schedule,
    overrides_in_range,
    set_date_override,
)

log = get_logger("store")


# -----------------------------------------------------------------------------
# Contracts
# -----------------------------------------------------------------------------
class WorkoutCatalog(Protocol):
    async def get_by_id(self, workout_id: str) -> Optional[Workout]: ...

    async def list(self) -> List[Workout]: ...


class PerformanceStore(Protocol):
    async def save(self, record: PerformanceRecord) -> StoredPerformance: ...

    async def list(self) -> List[StoredPerformance]: ...

    async def list_for_workout(self, workout_id: str) -> List[StoredPerformance]: ...


class ScheduleStore(Protocol):
    async def get_schedule(self) -> Schedule: ...

    async def save(self, schedule: Schedule) -> Schedule: ...

    async def save_override(self, key: DateLike, refs: List[WorkoutRef]) -> List[WorkoutRef]: ...

    async def get_override(self, key: DateLike) -> List[WorkoutRef]: ...

    async def get_overrides(self, start: DateLike, end: DateLike) -> DateOverrides: ...

    async def clear_schedule(self) -> Schedule: ...


def _new_id() -> str:
    return uuid4().hex


# -----------------------------------------------------------------------------
# In-memory implementations
# -----------------------------------------------------------------------------
class MemoryCatalog:
    def __init__(self, workouts: Optional[List[Workout]] = None):
        self._workouts: Dict[str, Workout] = {}
        for w in workouts or []:
            self.add(w)

    def add(self, workout: Workout) -> Workout:
        stored = workout.model_copy(deep=True)
        if not stored.id:
            stored.id = _new_id()
        self._workouts[stored.id] = stored
        return stored.model_copy(deep=True)

    def remove(self, workout_id: str) -> bool:
        return self._workouts.pop(workout_id, None) is not None

    async def get_by_id(self, workout_id: str) -> Optional[Workout]:
        w = self._workouts.get(workout_id)
        return w.model_copy(deep=True) if w else None

    async def list(self) -> List[Workout]:
        return [w.model_copy(deep=True) for w in self._workouts.values()]


class MemoryPerformanceStore:
    def __init__(self) -> None:
        self._rows: List[StoredPerformance] = []

    async def save(self, record: PerformanceRecord) -> StoredPerformance:
        if not record.workout_id:
            raise StorageError("workoutId is required", status=400)
        stored = StoredPerformance.from_record(record, id=_new_id())
        self._rows.append(stored)
        log.info(
            f"Performance saved: {stored.workout_name} "
            f"(total weight {stored.total_weight}, total reps {stored.total_reps})"
        )
        return stored.model_copy(deep=True)

    async def list(self) -> List[StoredPerformance]:
        return [p.model_copy(deep=True) for p in self._rows]

    async def list_for_workout(self, workout_id: str) -> List[StoredPerformance]:
        return [p.model_copy(deep=True) for p in self._rows if p.workout_id == workout_id]


class MemoryScheduleStore:
    def __init__(self) -> None:
        self._schedule: Optional[Schedule] = None
        self._overrides: DateOverrides = {}

    async def get_schedule(self) -> Schedule:
        if self._schedule is None:
            self._schedule = empty_schedule()
            self._schedule.id = _new_id()
            log.info("No schedule found; created an empty one")
        return self._schedule.model_copy(deep=True)

    async def save(self, schedule: Schedule) -> Schedule:
        stored = normalize_schedule(schedule)
        if not stored.id:
            stored.id = self._schedule.id if self._schedule else _new_id()
        self._schedule = stored
        return stored.model_copy(deep=True)

    async def save_override(self, key: DateLike, refs: List[WorkoutRef]) -> List[WorkoutRef]:
        self._overrides = set_date_override(self._overrides, key, refs)
        return get_date_override(self._overrides, key)

    async def get_override(self, key: DateLike) -> List[WorkoutRef]:
        return get_date_override(self._overrides, key)

    async def get_overrides(self, start: DateLike, end: DateLike) -> DateOverrides:
        return overrides_in_range(self._overrides, start, end)

    async def clear_schedule(self) -> Schedule:
        self._schedule = clear_schedule(self._schedule)
        if not self._schedule.id:
            self._schedule.id = _new_id()
        return self._schedule.model_copy(deep=True)


class MemoryStore:
    """All three collaborators over plain in-process state."""

    def __init__(self, workouts: Optional[List[Workout]] = None):
        self.workouts = MemoryCatalog(workouts)
        self.performance = MemoryPerformanceStore()
        self.schedule = MemoryScheduleStore()
