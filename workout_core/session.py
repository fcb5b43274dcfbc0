# workout_core/session.py
# =============================================================================
# Active-workout session engine: exercise/set cursor, elapsed and rest timers,
# per-set capture, and assembly of the performance record on finish.
# No I/O happens here; the finished record is handed back to the caller.
# =============================================================================

from __future__ import annotations

import math
from enum import Enum
from typing import List, Optional, Tuple

from .clock import Clock, TimerHandle
from .config import LONG_REST_SECONDS, REST_EXTEND_SECONDS, SHORT_REST_SECONDS, get_logger
from .errors import SessionStateError, ValidationError
from .models import (
    CompletionStats,
    ExerciseProgress,
    ExerciseTemplate,
    PerformanceExercise,
    PerformanceRecord,
    SetRecord,
    Workout,
)
from .notify import REST_COMPLETE, VALIDATION_FAILED, WORKOUT_COMPLETE, LogNotifier, Notifier

log = get_logger("session")

SET_FIELDS = ("weight", "reps", "notes")


class Advance(str, Enum):
    next_set = "next_set"
    next_exercise = "next_exercise"
    workout_complete = "workout_complete"


class RestState(str, Enum):
    idle = "idle"
    counting = "counting"


class SessionStatus(str, Enum):
    idle = "idle"
    active = "active"
    finished = "finished"


def format_clock(seconds: int) -> str:
    """Format a second count as MM:SS."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"


# -----------------------------------------------------------------------------
# Rest countdown
# -----------------------------------------------------------------------------
class RestTimer:
    """Two-state countdown (idle/counting), independent of the elapsed timer."""

    def __init__(self, clock: Clock, notifier: Notifier):
        self._clock = clock
        self._notifier = notifier
        self._handle: Optional[TimerHandle] = None
        self.state = RestState.idle
        self.remaining = 0
        self.visible = False

    @property
    def counting(self) -> bool:
        return self.state is RestState.counting

    def start(self, seconds: int) -> None:
        self._stop_ticks()
        if seconds <= 0:
            self.remaining = 0
            self._complete()
            return
        self.remaining = int(seconds)
        self.state = RestState.counting
        self.visible = True
        self._handle = self._clock.every_second(self._tick)

    def _tick(self) -> None:
        if not self.counting:
            return
        self.remaining -= 1
        if self.remaining <= 0:
            self.remaining = 0
            self._complete()

    def _complete(self) -> None:
        self._stop_ticks()
        self.state = RestState.idle
        self.visible = False
        self._notifier.notify(REST_COMPLETE, "Rest complete! Continue with your workout.")

    def skip(self) -> bool:
        if not self.counting:
            return False
        self.cancel()
        return True

    def extend(self, seconds: int = REST_EXTEND_SECONDS) -> bool:
        if seconds < 0:
            raise ValidationError("rest extension must be non-negative")
        if not self.counting:
            return False
        self.remaining += int(seconds)
        return True

    def cancel(self) -> None:
        """Stop counting without signalling completion."""
        self._stop_ticks()
        self.state = RestState.idle
        self.visible = False
        self.remaining = 0

    def _stop_ticks(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


# -----------------------------------------------------------------------------
# Session engine
# -----------------------------------------------------------------------------
class SessionEngine:
    """Live state of one workout run.

    The engine is driven by two inputs: user actions (the public methods) and
    once-per-second ticks from ``clock``. The elapsed timer only holds a clock
    registration while the session is running; the rest timer only while it
    is counting. Both registrations are dropped on :meth:`finish` and
    :meth:`exit`, so no tick can reach a discarded session.
    """

    def __init__(
        self,
        clock: Clock,
        notifier: Optional[Notifier] = None,
        short_rest: int = SHORT_REST_SECONDS,
        long_rest: int = LONG_REST_SECONDS,
    ):
        self.clock = clock
        self.notifier = notifier or LogNotifier()
        self.short_rest = short_rest
        self.long_rest = long_rest
        self.rest = RestTimer(clock, self.notifier)
        self._elapsed_handle: Optional[TimerHandle] = None
        self._reset()

    def _reset(self) -> None:
        self.status = SessionStatus.idle
        self.workout: Optional[Workout] = None
        self.elapsed_seconds = 0
        self.running = False
        self.exercise_index = 0
        self.set_index = 0
        self.progress: List[ExerciseProgress] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @property
    def active(self) -> bool:
        return self.status is SessionStatus.active

    def _require_active(self) -> None:
        if not self.active:
            raise SessionStateError(f"no active session (status: {self.status.value})")

    def start(self, workout: Workout) -> "SessionEngine":
        if self.active:
            raise SessionStateError(f"session for '{self.workout.name}' is already running")
        if not workout.exercises:
            raise ValidationError(f"workout '{workout.name}' has no exercises")
        self._stop_timers()
        self._reset()
        self.workout = workout.model_copy(deep=True)
        self.progress = [
            ExerciseProgress(
                exercise_name=ex.name,
                sets=[
                    SetRecord(set_number=i + 1, weight=ex.weight, reps=ex.reps)
                    for i in range(ex.sets)
                ],
            )
            for ex in self.workout.exercises
        ]
        self.status = SessionStatus.active
        log.info(f"Session started: {workout.name} ({len(self.progress)} exercises)")
        return self

    def play(self) -> None:
        self._require_active()
        if self.running:
            return
        self.running = True
        self._elapsed_handle = self.clock.every_second(self._tick_elapsed)

    def pause(self) -> None:
        self._require_active()
        if not self.running:
            return
        self.running = False
        self._cancel_elapsed()

    def toggle_running(self) -> bool:
        if self.running:
            self.pause()
        else:
            self.play()
        return self.running

    def _tick_elapsed(self) -> None:
        if self.running:
            self.elapsed_seconds += 1

    def _cancel_elapsed(self) -> None:
        if self._elapsed_handle is not None:
            self._elapsed_handle.cancel()
            self._elapsed_handle = None

    def _stop_timers(self) -> None:
        self.running = False
        self._cancel_elapsed()
        self.rest.cancel()

    def finish(self, notes: str = "") -> PerformanceRecord:
        """Freeze the session and return its performance record.

        Values stay readable afterwards but the session accepts no more
        input. Persisting the record is the caller's job.
        """
        self._require_active()
        self._stop_timers()
        self.status = SessionStatus.finished

        exercises = [
            PerformanceExercise(
                exercise_name=p.exercise_name,
                sets=[s.model_copy() for s in p.sets],
                total_sets=len(p.sets),
                completed_sets=sum(1 for s in p.sets if s.completed),
                completed=p.completed,
            )
            for p in self.progress
        ]
        completed_exercises = sum(1 for p in self.progress if p.completed)
        record = PerformanceRecord(
            workout_id=self.workout.id,
            workout_name=self.workout.name,
            exercises=exercises,
            duration=self.elapsed_seconds,
            notes=notes or "",
            completion_stats=CompletionStats(
                total_exercises=len(self.progress),
                completed_exercises=completed_exercises,
                all_exercises_completed=all(p.completed for p in self.progress),
            ),
        )
        log.info(
            f"Session finished: {self.workout.name} in {format_clock(self.elapsed_seconds)}, "
            f"{completed_exercises}/{len(self.progress)} exercises complete"
        )
        return record

    def exit(self) -> None:
        """Discard the session without producing a record."""
        if self.workout is not None:
            log.info(f"Session discarded: {self.workout.name}")
        self._stop_timers()
        self._reset()

    # ------------------------------------------------------------------
    # Set capture
    # ------------------------------------------------------------------
    def _set_at(self, exercise_index: int, set_index: int) -> Optional[SetRecord]:
        if not 0 <= exercise_index < len(self.progress):
            return None
        sets = self.progress[exercise_index].sets
        if not 0 <= set_index < len(sets):
            return None
        return sets[set_index]

    def _reject(self, message: str) -> None:
        self.notifier.notify(VALIDATION_FAILED, message)
        raise ValidationError(message)

    def _to_number(self, field: str, value) -> float:
        if isinstance(value, bool) or value is None:
            self._reject(f"{field} must be a number, got {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError):
            self._reject(f"{field} must be a number, got {value!r}")
        if math.isnan(number) or math.isinf(number):
            self._reject(f"{field} must be a finite number")
        return number

    def update_set(self, exercise_index: int, set_index: int, field: str, value) -> bool:
        """Overwrite weight, reps or notes on one set.

        Weight is clamped at 0 and reps at 1. Indices outside the session are
        ignored and ``False`` is returned.
        """
        self._require_active()
        if field not in SET_FIELDS:
            self._reject(f"unknown set field '{field}'; expected one of {', '.join(SET_FIELDS)}")
        target = self._set_at(exercise_index, set_index)
        if target is None:
            log.debug(f"update_set ignored: ({exercise_index}, {set_index}) out of range")
            return False
        if field == "notes":
            target.notes = "" if value is None else str(value)
        elif field == "weight":
            target.weight = max(0.0, self._to_number(field, value))
        else:
            target.reps = max(1, int(self._to_number(field, value)))
        return True

    def toggle_set_completion(self, exercise_index: int, set_index: int) -> bool:
        self._require_active()
        target = self._set_at(exercise_index, set_index)
        if target is None:
            return False
        target.completed = not target.completed
        return True

    def mark_exercise_complete(self, exercise_index: int) -> bool:
        # Independent of the per-set flags.
        self._require_active()
        if not 0 <= exercise_index < len(self.progress):
            return False
        entry = self.progress[exercise_index]
        entry.completed = not entry.completed
        return True

    # ------------------------------------------------------------------
    # Cursor
    # ------------------------------------------------------------------
    @property
    def position(self) -> Tuple[int, int]:
        return self.exercise_index, self.set_index

    @property
    def current_exercise(self) -> Optional[ExerciseProgress]:
        if not self.progress:
            return None
        return self.progress[self.exercise_index]

    @property
    def current_template(self) -> Optional[ExerciseTemplate]:
        if self.workout is None:
            return None
        return self.workout.exercises[self.exercise_index]

    @property
    def current_set(self) -> Optional[SetRecord]:
        return self._set_at(self.exercise_index, self.set_index)

    @property
    def is_last_set(self) -> bool:
        ex = self.current_exercise
        return ex is not None and self.set_index == len(ex.sets) - 1

    @property
    def is_last_exercise(self) -> bool:
        return self.exercise_index == len(self.progress) - 1

    def advance(self) -> Advance:
        self._require_active()
        if self.is_last_set:
            if self.is_last_exercise:
                self.notifier.notify(WORKOUT_COMPLETE, "All exercises completed!")
                return Advance.workout_complete
            self.exercise_index += 1
            self.set_index = 0
            self.rest.start(self.long_rest)
            return Advance.next_exercise
        self.set_index += 1
        self.rest.start(self.short_rest)
        return Advance.next_set

    def retreat(self) -> bool:
        self._require_active()
        if self.set_index > 0:
            self.set_index -= 1
        elif self.exercise_index > 0:
            self.exercise_index -= 1
            self.set_index = len(self.progress[self.exercise_index].sets) - 1
        else:
            return False
        return True

    # ------------------------------------------------------------------
    # Rest
    # ------------------------------------------------------------------
    @property
    def rest_remaining(self) -> int:
        return self.rest.remaining

    @property
    def rest_visible(self) -> bool:
        return self.rest.visible

    def skip_rest(self) -> bool:
        self._require_active()
        return self.rest.skip()

    def extend_rest(self, seconds: int = REST_EXTEND_SECONDS) -> bool:
        self._require_active()
        return self.rest.extend(seconds)
