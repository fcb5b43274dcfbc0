"""Workout session engine and schedule reconciler."""

from .auth import AuthContext
from .client import ApiClient
from .clock import AsyncioClock, ManualClock
from .config import configure_logging
from .errors import (
    AuthenticationError,
    NotFoundError,
    SessionStateError,
    StorageError,
    ValidationError,
    WorkoutCoreError,
)
from .models import (
    WEEKDAYS,
    DaySlot,
    ExerciseTemplate,
    PerformanceRecord,
    Schedule,
    StoredPerformance,
    Workout,
    WorkoutRef,
    WorkoutType,
)
from .notify import LogNotifier, RecordingNotifier
from .schedule import (
    changed_days,
    empty_schedule,
    get_date_override,
    get_day_slot,
    overrides_in_range,
    replace_days,
    resolve_workout_refs,
    set_date_override,
    set_day_slot,
    weekly_summary,
)
from .session import Advance, RestState, SessionEngine, SessionStatus, format_clock
from .store import MemoryStore
from .tracker import WorkoutTracker

__version__ = "1.0.0"
