# workout_core/models.py
# =============================================================================
# Pydantic schemas for workouts, schedules and performance records.
# Wire keys keep the backend's camelCase names through aliases.
# =============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .config import DEFAULT_EXERCISE_REST

WEEKDAYS = (
    "Sunday",
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
)


class WorkoutType(str, Enum):
    strength = "strength"
    cardio = "cardio"
    hiit = "hiit"
    flexibility = "flexibility"
    mixed = "mixed"


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


def _required_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("name cannot be empty")
    return v


# -----------------------------------------------------------------------------
# Workout templates
# -----------------------------------------------------------------------------
class ExerciseTemplate(_Schema):
    name: str
    sets: int = Field(3, ge=1)
    reps: int = Field(10, ge=1)
    weight: float = Field(0, ge=0)
    rest: int = Field(DEFAULT_EXERCISE_REST, ge=0, description="seconds")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _required_name(v)


class Workout(_Schema):
    """A reusable template. Sessions copy values out of it at start."""
    id: Optional[str] = Field(None, alias="_id")
    name: str
    type: WorkoutType = WorkoutType.strength
    duration: int = Field(45, gt=0, description="planned minutes")
    exercises: List[ExerciseTemplate] = Field(default_factory=list)
    notes: str = ""

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _required_name(v)


class WorkoutRef(_Schema):
    """Denormalized workout snapshot stored in schedule slots and date overrides."""
    workout_id: str = Field(alias="workoutId")
    name: str
    type: str
    duration: int = Field(ge=0)

    @classmethod
    def from_workout(cls, workout: Workout) -> "WorkoutRef":
        if not workout.id:
            raise ValueError(f"workout '{workout.name}' has no id")
        return cls(
            workout_id=workout.id,
            name=workout.name,
            type=workout.type.value,
            duration=workout.duration,
        )


# -----------------------------------------------------------------------------
# Schedule
# -----------------------------------------------------------------------------
class DaySlot(_Schema):
    day: str
    workouts: List[WorkoutRef] = Field(default_factory=list)

    @field_validator("day")
    @classmethod
    def validate_day(cls, v: str) -> str:
        if v not in WEEKDAYS:
            raise ValueError(f"Invalid day: {v}")
        return v


class Schedule(_Schema):
    id: Optional[str] = Field(None, alias="_id")
    days: List[DaySlot] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_days(self) -> "Schedule":
        seen = set()
        for slot in self.days:
            if slot.day in seen:
                raise ValueError(f"Duplicate day: {slot.day}")
            seen.add(slot.day)
        return self


DateOverrides = Dict[str, List[WorkoutRef]]


# -----------------------------------------------------------------------------
# Session progress and performance records
# -----------------------------------------------------------------------------
class SetRecord(_Schema):
    set_number: int = Field(alias="setNumber", ge=1)
    weight: float = Field(0, ge=0)
    reps: int = Field(0, ge=0)
    completed: bool = False
    notes: str = ""


class ExerciseProgress(_Schema):
    exercise_name: str = Field(alias="exerciseName")
    sets: List[SetRecord] = Field(default_factory=list)
    completed: bool = False


class PerformanceExercise(ExerciseProgress):
    total_sets: int = Field(0, alias="totalSets", ge=0)
    completed_sets: int = Field(0, alias="completedSets", ge=0)

    @model_validator(mode="after")
    def fill_set_counts(self) -> "PerformanceExercise":
        # Older stored records carry only the sets array.
        if "total_sets" not in self.model_fields_set:
            self.total_sets = len(self.sets)
        if "completed_sets" not in self.model_fields_set:
            self.completed_sets = sum(1 for s in self.sets if s.completed)
        return self


class CompletionStats(_Schema):
    total_exercises: int = Field(0, alias="totalExercises")
    completed_exercises: int = Field(0, alias="completedExercises")
    all_exercises_completed: bool = Field(False, alias="allExercisesCompleted")


class PerformanceRecord(_Schema):
    """What a finished session hands to persistence."""
    workout_id: Optional[str] = Field(None, alias="workoutId")
    workout_name: str = Field(alias="workoutName")
    exercises: List[PerformanceExercise] = Field(default_factory=list)
    duration: int = Field(0, ge=0, description="seconds")
    notes: str = ""
    completion_stats: Optional[CompletionStats] = Field(None, alias="completionStats")


class StoredExercise(PerformanceExercise):
    total_weight: float = Field(0, alias="totalWeight")
    total_reps: int = Field(0, alias="totalReps")


class StoredPerformance(PerformanceRecord):
    id: Optional[str] = Field(None, alias="_id")
    exercises: List[StoredExercise] = Field(default_factory=list)
    total_weight: float = Field(0, alias="totalWeight")
    total_reps: int = Field(0, alias="totalReps")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="createdAt"
    )

    @classmethod
    def from_record(
        cls,
        record: PerformanceRecord,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> "StoredPerformance":
        """Copy ``record`` and compute the weight/reps totals once, at save time."""
        exercises = []
        for ex in record.exercises:
            weight, reps = compute_totals(ex.sets)
            exercises.append(
                StoredExercise(
                    **ex.model_dump(exclude={"total_weight", "total_reps"}),
                    total_weight=weight,
                    total_reps=reps,
                )
            )
        data = record.model_dump(
            exclude={"exercises", "id", "total_weight", "total_reps", "created_at"}
        )
        stored = cls(
            **data,
            id=id,
            exercises=exercises,
            total_weight=sum(e.total_weight for e in exercises),
            total_reps=sum(e.total_reps for e in exercises),
        )
        if created_at is not None:
            stored.created_at = created_at
        return stored


def compute_totals(sets: List[SetRecord]) -> tuple:
    """Return ``(sum(weight * reps), sum(reps))`` over ``sets``."""
    total_weight = 0.0
    total_reps = 0
    for s in sets:
        total_weight += s.weight * s.reps
        total_reps += s.reps
    return total_weight, total_reps
