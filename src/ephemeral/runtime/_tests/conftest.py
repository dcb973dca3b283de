from __future__ import annotations

import asyncio
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

import numpy as np
import pytest

from ephemeral.config.models import ParticleSettings, TimelineSettings, ViewerConfig
from ephemeral.render.interfaces import SceneAsset
from ephemeral.runtime.controller import ControllerHooks, LifecycleController
from ephemeral.runtime.errors import LoadError


class _ManualHandle:
    def __init__(self, when: float, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by an explicit clock instead of wall time."""

    def __init__(self) -> None:
        self.now = 0.0
        self._seq = itertools.count()
        self._queue: list[tuple[float, int, _ManualHandle]] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> _ManualHandle:
        handle = _ManualHandle(self.now + float(delay), callback, args)
        heapq.heappush(self._queue, (handle.when, next(self._seq), handle))
        return handle

    @property
    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def advance(self, delta: float) -> None:
        target = self.now + float(delta)
        while self._queue and self._queue[0][0] <= target + 1e-9:
            when, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = max(self.now, when)
            handle.callback(*handle.args)
        self.now = target


class RecordingSurface:
    def __init__(self) -> None:
        self.installed: dict[int, SceneAsset] = {}
        self.transforms: dict[int, tuple[float, tuple[float, ...]]] = {}
        self.log: list[tuple[str, str]] = []

    def add(self, asset: SceneAsset) -> None:
        self.installed[id(asset)] = asset
        self.log.append(("add", asset.scene_id))

    def remove(self, asset: SceneAsset) -> None:
        self.installed.pop(id(asset), None)
        self.transforms.pop(id(asset), None)
        self.log.append(("remove", asset.scene_id))

    def set_transform(self, asset: SceneAsset, scale: float, rotation: np.ndarray) -> None:
        assert id(asset) in self.installed, "transform applied to an asset that is not installed"
        self.transforms[id(asset)] = (float(scale), tuple(float(v) for v in rotation))

    def scene_ids(self) -> list[str]:
        return [asset.scene_id for asset in self.installed.values()]

    def transform_of(self, asset: SceneAsset) -> tuple[float, tuple[float, ...]]:
        return self.transforms[id(asset)]


@dataclass
class PendingFetch:
    scene_id: str
    future: asyncio.Future


@dataclass
class ControlledSource:
    """Asset source whose fetches complete only when the test says so."""

    auto_complete: bool = False
    requests: list[PendingFetch] = field(default_factory=list)
    released: list[str] = field(default_factory=list)
    produced: list[SceneAsset] = field(default_factory=list)

    async def fetch(self, scene_id: str) -> SceneAsset:
        if self.auto_complete:
            return self._make(scene_id)
        future = asyncio.get_running_loop().create_future()
        self.requests.append(PendingFetch(scene_id, future))
        return await future

    def _make(self, scene_id: str) -> SceneAsset:
        asset = SceneAsset(scene_id=scene_id, payload=b"mesh")
        self.produced.append(asset)
        return asset

    def complete(self, index: int = -1) -> SceneAsset:
        pending = self.requests[index]
        asset = self._make(pending.scene_id)
        pending.future.set_result(asset)
        return asset

    def fail(self, index: int = -1, message: str = "decode error") -> None:
        pending = self.requests[index]
        pending.future.set_exception(LoadError(message, scene_id=pending.scene_id))

    def release(self, asset: SceneAsset) -> None:
        self.released.append(asset.scene_id)


class RecordingSpawner:
    def __init__(self, fail: bool = False) -> None:
        self.positions: list[tuple[float, ...]] = []
        self.origins: list[tuple[float, ...]] = []
        self.fail = fail

    async def spawn(self, position: Sequence[float], *, origin: Sequence[float] = (0.0, 0.0, 0.0)) -> None:
        self.positions.append(tuple(position))
        self.origins.append(tuple(origin))
        if self.fail:
            raise RuntimeError("particle backend unavailable")


async def settle(rounds: int = 5) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


@pytest.fixture
def source() -> ControlledSource:
    return ControlledSource()


@pytest.fixture
def spawner() -> RecordingSpawner:
    return RecordingSpawner()


@pytest.fixture
def make_controller(scheduler, surface, source, spawner):
    def factory(
        *,
        config: Optional[ViewerConfig] = None,
        hooks: Optional[ControllerHooks] = None,
        particles: Any = spawner,
    ) -> LifecycleController:
        cfg = config or ViewerConfig(
            timeline=TimelineSettings(),
            particles=ParticleSettings(count=8, seed=7),
        )
        return LifecycleController(
            surface=surface,
            source=source,
            scheduler=scheduler,
            config=cfg,
            particles=particles,
            hooks=hooks,
            rng=np.random.default_rng(3),
        )

    return factory


@pytest.fixture
def settle_loop():
    return settle
