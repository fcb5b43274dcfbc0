# workout_core/clock.py
# =============================================================================
# Once-per-second tick sources for the session timers.
# ManualClock drives tests; AsyncioClock drives a live event loop.
# =============================================================================

from __future__ import annotations

import asyncio
from typing import Callable, List, Optional, Protocol

from .config import get_logger

log = get_logger("clock")

Tick = Callable[[], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...

    @property
    def active(self) -> bool: ...


class Clock(Protocol):
    def every_second(self, callback: Tick) -> TimerHandle: ...


# -----------------------------------------------------------------------------
# Synthetic clock
# -----------------------------------------------------------------------------
class _ManualHandle:
    def __init__(self, clock: "ManualClock", callback: Tick):
        self._clock = clock
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._active = False
            self._clock._handles.remove(self)

    def _fire(self) -> None:
        if self._active:
            self._callback()


class ManualClock:
    """Virtual time: nothing happens until :meth:`tick` is called."""

    def __init__(self) -> None:
        self._handles: List[_ManualHandle] = []
        self.now = 0

    def every_second(self, callback: Tick) -> _ManualHandle:
        handle = _ManualHandle(self, callback)
        self._handles.append(handle)
        return handle

    @property
    def active_timers(self) -> int:
        return len(self._handles)

    def tick(self, n: int = 1) -> None:
        for _ in range(n):
            self.now += 1
            # A callback may cancel its own or another handle mid-tick.
            for handle in list(self._handles):
                handle._fire()


# -----------------------------------------------------------------------------
# Real clock on the running asyncio loop
# -----------------------------------------------------------------------------
class _LoopHandle:
    def __init__(self, loop: asyncio.AbstractEventLoop, callback: Tick, interval: float):
        self._loop = loop
        self._callback = callback
        self._interval = interval
        self._pending: Optional[asyncio.TimerHandle] = None
        self._active = True
        self._schedule()

    @property
    def active(self) -> bool:
        return self._active

    def _schedule(self) -> None:
        self._pending = self._loop.call_later(self._interval, self._run)

    def _run(self) -> None:
        if not self._active:
            return
        try:
            self._callback()
        except Exception:
            log.exception("Timer callback failed; cancelling timer")
            self.cancel()
            return
        if self._active:
            self._schedule()

    def cancel(self) -> None:
        self._active = False
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None


class AsyncioClock:
    """Ticks on the event loop. Must be used from inside a running loop."""

    def __init__(self, interval: float = 1.0, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.interval = interval
        self._loop = loop

    def every_second(self, callback: Tick) -> _LoopHandle:
        loop = self._loop or asyncio.get_running_loop()
        return _LoopHandle(loop, callback, self.interval)
