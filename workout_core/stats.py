# workout_core/stats.py
# =============================================================================
# Progress analytics over stored performance records.
# =============================================================================

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List

from pydantic import BaseModel, ConfigDict, Field

from .models import SetRecord, StoredPerformance


class ExercisePoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: datetime
    total_reps: int = Field(alias="totalReps")
    total_weight: float = Field(alias="totalWeight")
    max_weight: float = Field(alias="maxWeight")
    avg_weight: float = Field(alias="avgWeight")
    sets: List[SetRecord] = Field(default_factory=list)


class DailyTotal(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    total_weight: float = Field(0, alias="totalWeight")
    total_reps: int = Field(0, alias="totalReps")
    count: int = 0


def exercise_history(
    performances: Iterable[StoredPerformance], exercise_name: str
) -> List[ExercisePoint]:
    """One point per performance that includes ``exercise_name``, oldest first."""
    points = []
    for perf in sorted(performances, key=lambda p: p.created_at):
        ex = next((e for e in perf.exercises if e.exercise_name == exercise_name), None)
        if ex is None:
            continue
        weights = [s.weight for s in ex.sets]
        points.append(
            ExercisePoint(
                date=perf.created_at,
                total_reps=ex.total_reps,
                total_weight=ex.total_weight,
                max_weight=max(weights, default=0.0),
                avg_weight=sum(weights) / len(weights) if weights else 0.0,
                sets=[s.model_copy() for s in ex.sets],
            )
        )
    return points


def daily_totals(performances: Iterable[StoredPerformance]) -> List[DailyTotal]:
    by_day: Dict[str, DailyTotal] = {}
    for perf in performances:
        key = perf.created_at.strftime("%Y-%m-%d")
        if key not in by_day:
            by_day[key] = DailyTotal(date=key)
        bucket = by_day[key]
        bucket.total_weight += perf.total_weight
        bucket.total_reps += perf.total_reps
        bucket.count += 1
    return [by_day[k] for k in sorted(by_day)]
