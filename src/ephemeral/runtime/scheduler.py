"""Timer primitive used by the destruction timeline.

An ``asyncio`` event loop already satisfies :class:`Scheduler`: its
``call_later`` returns a handle with ``cancel()``. ``ScaledScheduler`` wraps
any scheduler to fast-forward (or slow down) every delay.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, Protocol, runtime_checkable


@runtime_checkable
class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


@runtime_checkable
class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        ...


class LoopScheduler:
    """Schedule callbacks on the running (or given) asyncio loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        if delay < 0.0:
            raise ValueError("delay must be non-negative")
        return self.loop.call_later(float(delay), callback, *args)


class ScaledScheduler:
    """Multiply every delay by ``time_scale`` before delegating."""

    def __init__(self, inner: Scheduler, time_scale: float) -> None:
        if time_scale <= 0.0:
            raise ValueError("time_scale must be positive")
        self._inner = inner
        self.time_scale = float(time_scale)

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle:
        if delay < 0.0:
            raise ValueError("delay must be non-negative")
        return self._inner.call_later(float(delay) * self.time_scale, callback, *args)


__all__ = ["LoopScheduler", "ScaledScheduler", "Scheduler", "TimerHandle"]
