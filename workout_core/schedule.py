# workout_core/schedule.py
# =============================================================================
# Schedule reconciler: the 7-slot weekly schedule and the date-keyed override
# map. Every operation returns a new document and leaves its inputs untouched.
# The weekly schedule and the date overrides are never merged here.
# =============================================================================

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from .config import get_logger
from .dates import DateLike, date_key, parse_date_key
from .errors import NotFoundError, ValidationError, from_pydantic
from .models import WEEKDAYS, DateOverrides, DaySlot, Schedule, Workout, WorkoutRef

log = get_logger("schedule")

RefInput = Union[WorkoutRef, Dict[str, Any]]


class WeeklySummary(BaseModel):
    total_workouts: int = 0
    total_duration: int = 0
    workout_types: Dict[str, int] = Field(default_factory=dict)


# -----------------------------------------------------------------------------
# Input checks
# -----------------------------------------------------------------------------
def _check_weekday(weekday: str) -> str:
    if weekday not in WEEKDAYS:
        raise ValidationError(f"Invalid day: {weekday!r}; expected one of {', '.join(WEEKDAYS)}")
    return weekday


def _coerce_refs(workout_refs: Any) -> List[WorkoutRef]:
    if not isinstance(workout_refs, list):
        raise ValidationError(f"Workouts must be a list, got {type(workout_refs).__name__}")
    refs = []
    for item in workout_refs:
        if isinstance(item, WorkoutRef):
            refs.append(item.model_copy())
            continue
        try:
            refs.append(WorkoutRef.model_validate(item))
        except PydanticValidationError as e:
            raise from_pydantic(e)
    return refs


def _as_schedule(schedule: Union[Schedule, Dict[str, Any]]) -> Schedule:
    if isinstance(schedule, Schedule):
        return schedule
    try:
        return Schedule.model_validate(schedule)
    except PydanticValidationError as e:
        raise from_pydantic(e)


# -----------------------------------------------------------------------------
# Weekly schedule
# -----------------------------------------------------------------------------
def empty_schedule() -> Schedule:
    return Schedule(days=[DaySlot(day=d) for d in WEEKDAYS])


def normalize_schedule(schedule: Union[Schedule, Dict[str, Any]]) -> Schedule:
    """Copy ``schedule`` and append an empty slot for every missing weekday."""
    src = _as_schedule(schedule)
    result = src.model_copy(deep=True)
    present = {slot.day for slot in result.days}
    for day in WEEKDAYS:
        if day not in present:
            result.days.append(DaySlot(day=day))
    return result


def get_day_slot(schedule: Union[Schedule, Dict[str, Any]], weekday: str) -> List[WorkoutRef]:
    for slot in _as_schedule(schedule).days:
        if slot.day == weekday:
            return [ref.model_copy() for ref in slot.workouts]
    return []


def set_day_slot(
    schedule: Union[Schedule, Dict[str, Any]], weekday: str, workout_refs: List[RefInput]
) -> Schedule:
    _check_weekday(weekday)
    refs = _coerce_refs(workout_refs)
    result = normalize_schedule(schedule)
    for slot in result.days:
        if slot.day == weekday:
            slot.workouts = refs
            break
    log.debug(f"{weekday} now holds {len(refs)} workout(s)")
    return result


def replace_days(schedule: Union[Schedule, Dict[str, Any]], days: Any) -> Schedule:
    """Replace every slot at once, as the bulk schedule update does."""
    if not isinstance(days, list):
        raise ValidationError(f"Days must be a list, got {type(days).__name__}")
    src = _as_schedule(schedule)
    try:
        replaced = Schedule(id=src.id, days=days)
    except PydanticValidationError as e:
        raise from_pydantic(e)
    return normalize_schedule(replaced)


def clear_schedule(schedule: Optional[Union[Schedule, Dict[str, Any]]] = None) -> Schedule:
    result = empty_schedule()
    if schedule is not None:
        result.id = _as_schedule(schedule).id
    return result


def changed_days(
    previous: Union[Schedule, Dict[str, Any]], current: Union[Schedule, Dict[str, Any]]
) -> List[str]:
    """Weekdays whose workout lists differ between two schedule documents."""
    before = _as_schedule(previous)
    after = _as_schedule(current)
    changed = []
    for day in WEEKDAYS:
        old = [r.to_payload() for r in get_day_slot(before, day)]
        new = [r.to_payload() for r in get_day_slot(after, day)]
        if old != new:
            changed.append(day)
    return changed


def weekly_summary(schedule: Union[Schedule, Dict[str, Any]]) -> WeeklySummary:
    summary = WeeklySummary()
    for slot in _as_schedule(schedule).days:
        for ref in slot.workouts:
            summary.total_workouts += 1
            summary.total_duration += ref.duration
            summary.workout_types[ref.type] = summary.workout_types.get(ref.type, 0) + 1
    return summary


# -----------------------------------------------------------------------------
# Date overrides
# Stored maps may hold WorkoutRefs or their JSON dicts; both are accepted.
# -----------------------------------------------------------------------------
def get_date_override(overrides: Dict[str, List[RefInput]], key: DateLike) -> List[WorkoutRef]:
    return _coerce_refs(overrides.get(date_key(key), []))


def set_date_override(
    overrides: Dict[str, List[RefInput]], key: DateLike, workout_refs: List[RefInput]
) -> DateOverrides:
    """Return a new map with ``key`` replaced. An empty list clears the date."""
    k = date_key(key)
    refs = _coerce_refs(workout_refs)
    result = {date_key(d): _coerce_refs(lst) for d, lst in overrides.items()}
    if refs:
        result[k] = refs
    else:
        result.pop(k, None)
    return result


def overrides_in_range(
    overrides: Dict[str, List[RefInput]], start: DateLike, end: DateLike
) -> DateOverrides:
    lo, hi = parse_date_key(start), parse_date_key(end)
    if lo > hi:
        raise ValidationError(f"start {lo} is after end {hi}")
    return {
        k: _coerce_refs(overrides[k])
        for k in sorted(overrides)
        if lo <= parse_date_key(k) <= hi
    }


# -----------------------------------------------------------------------------
# Catalog resolution
# -----------------------------------------------------------------------------
def resolve_workout_refs(
    selected_ids: List[str],
    catalog: Iterable[Union[Workout, Dict[str, Any]]],
    strict: bool = False,
) -> List[WorkoutRef]:
    """Snapshot each selected workout from ``catalog``, in selection order.

    IDs missing from the catalog belong to deleted workouts and are dropped,
    unless ``strict`` is set, in which case NotFoundError lists them.
    """
    if not isinstance(selected_ids, list):
        raise ValidationError(f"Workout ids must be a list, got {type(selected_ids).__name__}")
    by_id: Dict[str, Workout] = {}
    for item in catalog:
        try:
            workout = item if isinstance(item, Workout) else Workout.model_validate(item)
        except PydanticValidationError as e:
            raise from_pydantic(e)
        if workout.id:
            by_id[workout.id] = workout

    refs, missing = [], []
    for wid in selected_ids:
        workout = by_id.get(wid)
        if workout is None:
            missing.append(wid)
            continue
        refs.append(WorkoutRef.from_workout(workout))

    if missing:
        if strict:
            raise NotFoundError(f"Workouts not found: {missing}", missing=missing)
        log.info(f"Pruned {len(missing)} dangling workout reference(s): {missing}")
    return refs
