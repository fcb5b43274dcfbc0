# workout_core/notify.py
# =============================================================================
# Notification sink for display-only events. Never feeds back into engine state.
# =============================================================================

from __future__ import annotations

from typing import List, Protocol, Tuple

from .config import get_logger

log = get_logger("notify")

REST_COMPLETE = "rest_complete"
WORKOUT_COMPLETE = "workout_complete"
VALIDATION_FAILED = "validation_failed"


class Notifier(Protocol):
    def notify(self, event: str, message: str) -> None: ...


class LogNotifier:
    def notify(self, event: str, message: str) -> None:
        if event == VALIDATION_FAILED:
            log.warning(f"{event}: {message}")
        else:
            log.info(f"{event}: {message}")


class RecordingNotifier:
    """Keeps every event in order; handy for UIs that poll and for tests."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, str]] = []

    def notify(self, event: str, message: str) -> None:
        self.events.append((event, message))

    def names(self) -> List[str]:
        return [e for e, _ in self.events]
