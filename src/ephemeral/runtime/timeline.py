"""Timer-driven destruction timeline.

``Idle -> DelayWait -> Counting(n) -> Disappearing(p) -> Destroyed``; the only
way back is :meth:`DestructionTimeline.reset` from ``Destroyed``. Every timer
is stamped with the timeline generation; bumping the generation invalidates
whatever is still pending so a reset can never leave two countdowns running.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable, Optional

from ephemeral.config.models import TimelineSettings
from ephemeral.runtime.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class TimelinePhase(Enum):
    IDLE = "idle"
    DELAY_WAIT = "delay-wait"
    COUNTING = "counting"
    DISAPPEARING = "disappearing"
    DESTROYED = "destroyed"


@dataclass(frozen=True)
class TimelineState:
    phase: TimelinePhase
    remaining: int
    progress: float
    generation: int


@dataclass(slots=True)
class TimelineHooks:
    on_countdown: Optional[Callable[[int], None]] = None
    on_disappear_start: Optional[Callable[[], None]] = None
    on_disappear_step: Optional[Callable[[float], None]] = None
    on_destroyed: Optional[Callable[[], None]] = None


class DestructionTimeline:
    """One-shot countdown that ends the session until an explicit reset."""

    def __init__(
        self,
        scheduler: Scheduler,
        settings: Optional[TimelineSettings] = None,
        *,
        hooks: Optional[TimelineHooks] = None,
        log_level: int = logging.DEBUG,
    ) -> None:
        self._scheduler = scheduler
        self._settings = settings or TimelineSettings()
        self._hooks = hooks or TimelineHooks()
        self._log_level = log_level
        self._phase = TimelinePhase.IDLE
        self._remaining = int(self._settings.countdown_s)
        self._step_index = 0
        self._generation = 0
        self._pending: Optional[TimerHandle] = None
        self._closed = False

    # ---- Queries -------------------------------------------------------------
    @property
    def phase(self) -> TimelinePhase:
        return self._phase

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def progress(self) -> float:
        if self._phase is TimelinePhase.DESTROYED:
            return 1.0
        if self._phase is not TimelinePhase.DISAPPEARING:
            return 0.0
        return self._step_index / float(self._settings.disappear_steps)

    @property
    def remaining(self) -> int:
        """Seconds left for display; the full countdown until it starts."""
        if self._phase in (TimelinePhase.IDLE, TimelinePhase.DELAY_WAIT):
            return int(self._settings.countdown_s)
        if self._phase is TimelinePhase.COUNTING:
            return self._remaining
        return 0

    @property
    def accepts_loads(self) -> bool:
        return self._phase not in (TimelinePhase.DISAPPEARING, TimelinePhase.DESTROYED)

    @property
    def has_pending_timer(self) -> bool:
        return self._pending is not None

    def state(self) -> TimelineState:
        return TimelineState(
            phase=self._phase,
            remaining=self.remaining,
            progress=self.progress,
            generation=self._generation,
        )

    # ---- Transitions ---------------------------------------------------------
    def arm(self) -> bool:
        """``Idle -> DelayWait``; ignored from any other phase."""
        if self._closed or self._phase is not TimelinePhase.IDLE:
            logger.debug("timeline arm ignored phase=%s closed=%s", self._phase.value, self._closed)
            return False
        self._phase = TimelinePhase.DELAY_WAIT
        self._remaining = int(self._settings.countdown_s)
        logger.log(
            self._log_level,
            "timeline armed gen=%d delay=%.2fs",
            self._generation,
            self._settings.delay_s,
        )
        self._schedule(self._settings.delay_s, self._on_delay_elapsed)
        return True

    def reset(self) -> bool:
        """``Destroyed -> Idle``; ignored from any other phase."""
        if self._closed or self._phase is not TimelinePhase.DESTROYED:
            logger.debug("timeline reset ignored phase=%s closed=%s", self._phase.value, self._closed)
            return False
        self._invalidate_timers()
        self._phase = TimelinePhase.IDLE
        self._remaining = int(self._settings.countdown_s)
        self._step_index = 0
        logger.log(self._log_level, "timeline reset gen=%d", self._generation)
        return True

    def cancel(self) -> None:
        """Teardown: drop pending timers and refuse further transitions."""
        if self._closed:
            return
        self._closed = True
        self._invalidate_timers()
        logger.log(self._log_level, "timeline cancelled phase=%s", self._phase.value)

    # ---- Timer plumbing ------------------------------------------------------
    def _invalidate_timers(self) -> None:
        self._generation += 1
        pending, self._pending = self._pending, None
        if pending is not None:
            pending.cancel()

    def _schedule(self, delay: float, action: Callable[[], None]) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self._scheduler.call_later(delay, self._fire, self._generation, action)

    def _fire(self, generation: int, action: Callable[[], None]) -> None:
        if generation != self._generation or self._closed:
            logger.debug("timeline timer dropped gen=%d current=%d", generation, self._generation)
            return
        self._pending = None
        action()

    def _on_delay_elapsed(self) -> None:
        self._phase = TimelinePhase.COUNTING
        self._remaining = int(self._settings.countdown_s)
        logger.log(self._log_level, "timeline counting remaining=%d", self._remaining)
        self._emit_countdown()
        if self._remaining <= 0:
            self._begin_disappearing()
            return
        self._schedule(self._settings.tick_s, self._on_tick)

    def _on_tick(self) -> None:
        self._remaining = max(0, self._remaining - 1)
        self._emit_countdown()
        if self._remaining == 0:
            self._begin_disappearing()
            return
        self._schedule(self._settings.tick_s, self._on_tick)

    def _emit_countdown(self) -> None:
        if self._hooks.on_countdown is not None:
            self._hooks.on_countdown(self._remaining)

    def _begin_disappearing(self) -> None:
        self._phase = TimelinePhase.DISAPPEARING
        self._step_index = 0
        logger.log(
            self._log_level,
            "timeline disappearing duration=%.2fs steps=%d",
            self._settings.disappear_duration_s,
            self._settings.disappear_steps,
        )
        if self._hooks.on_disappear_start is not None:
            self._hooks.on_disappear_start()
        if self._hooks.on_disappear_step is not None:
            self._hooks.on_disappear_step(0.0)
        self._schedule(self._settings.step_interval_s, self._on_step)

    def _on_step(self) -> None:
        self._step_index += 1
        steps = int(self._settings.disappear_steps)
        progress = min(1.0, self._step_index / float(steps))
        if self._hooks.on_disappear_step is not None:
            self._hooks.on_disappear_step(progress)
        if self._step_index >= steps:
            self._phase = TimelinePhase.DESTROYED
            logger.log(self._log_level, "timeline destroyed gen=%d", self._generation)
            if self._hooks.on_destroyed is not None:
                self._hooks.on_destroyed()
            return
        self._schedule(self._settings.step_interval_s, self._on_step)


__all__ = [
    "DestructionTimeline",
    "TimelineHooks",
    "TimelinePhase",
    "TimelineState",
]
