"""Decorative particle burst played while the scene disappears.

Particles are detached tasks: each holds only its own geometry, animates
outward over a randomized lifetime and removes itself. Nothing here reports
back to the controller and a failing particle never affects the timeline.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import math
from typing import Optional, Sequence

import numpy as np

from ephemeral.config.models import ParticleSettings
from ephemeral.render.interfaces import ParticleSpawner, RenderSurface, SceneAsset

logger = logging.getLogger(__name__)

_IDENTITY_ROTATION = np.array([1.0, 0.0, 0.0, 0.0])


def _unit_vectors(count: int, rng: np.random.Generator) -> np.ndarray:
    vecs = rng.normal(size=(count, 3))
    norms = np.linalg.norm(vecs, axis=1, keepdims=True)
    norms[norms == 0.0] = 1.0
    return vecs / norms


def plan_particles(
    center: Sequence[float],
    count: int,
    radius: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """Return ``(count, 3)`` positions spread on a sphere around ``center``."""
    if count <= 0:
        return np.zeros((0, 3), dtype=float)
    origin = np.asarray(center, dtype=float).reshape(3)
    return origin + _unit_vectors(int(count), rng) * float(radius)


def _log_particle_result(tasks: set[asyncio.Task], task: asyncio.Task) -> None:
    tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("particle effect failed: %s", exc, exc_info=exc)


def spawn_detached(
    spawner: ParticleSpawner,
    positions: np.ndarray,
    *,
    tasks: set[asyncio.Task],
    origin: Sequence[float] = (0.0, 0.0, 0.0),
) -> int:
    """Start one fire-and-forget task per position; return how many started.

    ``tasks`` holds a strong reference to each task until it finishes.
    """
    loop = asyncio.get_running_loop()
    origin_t = tuple(float(v) for v in origin)
    started = 0
    for pos in positions:
        try:
            awaitable = spawner.spawn(tuple(float(v) for v in pos), origin=origin_t)
            task = asyncio.ensure_future(awaitable, loop=loop)
        except Exception:
            logger.debug("particle spawn failed at %s", pos, exc_info=True)
            continue
        tasks.add(task)
        task.add_done_callback(functools.partial(_log_particle_result, tasks))
        started += 1
    return started


class ParticleAnimator:
    """Default :class:`ParticleSpawner` that animates through a render surface."""

    def __init__(
        self,
        surface: RenderSurface,
        settings: Optional[ParticleSettings] = None,
        *,
        rng: Optional[np.random.Generator] = None,
        time_scale: float = 1.0,
    ) -> None:
        self._surface = surface
        self._settings = settings or ParticleSettings()
        self._rng = rng if rng is not None else np.random.default_rng(self._settings.seed)
        self._time_scale = float(time_scale)
        self.active = 0

    def _direction(self, position: np.ndarray, origin: np.ndarray) -> np.ndarray:
        delta = position - origin
        norm = float(np.linalg.norm(delta))
        if norm == 0.0 or math.isnan(norm):
            return _unit_vectors(1, self._rng)[0]
        return delta / norm

    async def spawn(
        self,
        position: Sequence[float],
        *,
        origin: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> None:
        cfg = self._settings
        start = np.asarray(position, dtype=float).reshape(3)
        direction = self._direction(start, np.asarray(origin, dtype=float).reshape(3))
        lifetime = float(self._rng.uniform(cfg.min_lifetime_s, cfg.max_lifetime_s))
        step_s = lifetime / float(cfg.steps) * self._time_scale

        particle = SceneAsset(scene_id="particle", origin=tuple(float(v) for v in start))
        self._surface.add(particle)
        self.active += 1
        try:
            for i in range(1, cfg.steps + 1):
                await asyncio.sleep(step_s)
                t = i / float(cfg.steps)
                particle.origin = tuple(float(v) for v in start + direction * cfg.travel * t)
                self._surface.set_transform(particle, cfg.size * (1.0 - t), _IDENTITY_ROTATION)
        finally:
            self.active -= 1
            self._surface.remove(particle)
            particle.released = True


__all__ = ["ParticleAnimator", "plan_particles", "spawn_detached"]
