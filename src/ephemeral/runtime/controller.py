"""Scene lifecycle controller.

Owns every piece of mutable viewer state and serializes all transitions on
the asyncio loop it runs on:

* flag changes and explicit reloads mint a new load token, so only the most
  recent request can ever install its asset;
* zoom and rotation are re-applied to whichever asset is live;
* the destruction timeline shrinks the live asset, releases it, and blocks
  further loads until :meth:`LifecycleController.restart`.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from enum import Enum
import logging
from typing import Callable, Optional

import numpy as np

from ephemeral.app.snapshot import ViewerSnapshot, format_countdown
from ephemeral.config.logging_policy import DebugPolicy, load_debug_policy
from ephemeral.config.models import ViewerConfig
from ephemeral.render.interfaces import AssetSource, ParticleSpawner, RenderSurface
from ephemeral.runtime.errors import InvalidTransition, LoadError
from ephemeral.runtime.load_tokens import LoadToken, LoadTokenManager
from ephemeral.runtime.loader import AssetHandle, LoadOutcome, SceneLoader
from ephemeral.runtime.particles import plan_particles, spawn_detached
from ephemeral.runtime.scheduler import Scheduler
from ephemeral.runtime.timeline import (
    DestructionTimeline,
    TimelineHooks,
    TimelinePhase,
)
from ephemeral.scene.selector import select_scene
from ephemeral.scene.state import EnvironmentFlags, Transform

logger = logging.getLogger(__name__)


class LoadPhase(Enum):
    EMPTY = "empty"
    LOADING = "loading"
    DISPLAYED = "displayed"


@dataclass(slots=True)
class ControllerHooks:
    """Optional UI-facing callbacks."""

    on_state_changed: Optional[Callable[[ViewerSnapshot], None]] = None
    on_load_error: Optional[Callable[[LoadError], None]] = None
    on_countdown: Optional[Callable[[int], None]] = None


class LifecycleController:
    def __init__(
        self,
        *,
        surface: RenderSurface,
        source: AssetSource,
        scheduler: Scheduler,
        config: Optional[ViewerConfig] = None,
        debug_policy: Optional[DebugPolicy] = None,
        particles: Optional[ParticleSpawner] = None,
        hooks: Optional[ControllerHooks] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self._cfg = config or ViewerConfig()
        self._policy = debug_policy or load_debug_policy({})
        self._surface = surface
        self._particles = particles
        self._hooks = hooks or ControllerHooks()
        self._rng = rng if rng is not None else np.random.default_rng(self._cfg.particles.seed)

        self._loader = SceneLoader(source, log_level=self._policy.level_for("log_loads"))
        self._tokens = LoadTokenManager()
        self._timeline = DestructionTimeline(
            scheduler,
            self._cfg.timeline,
            hooks=TimelineHooks(
                on_countdown=self._on_countdown,
                on_disappear_start=self._on_disappear_start,
                on_disappear_step=self._on_disappear_step,
                on_destroyed=self._on_destroyed,
            ),
            log_level=self._policy.level_for("log_timeline"),
        )

        self._transform = Transform()
        self._flags = self._default_flags()
        self._load_phase = LoadPhase.EMPTY
        self._loading_token: Optional[LoadToken] = None
        self._pending_scene_id: Optional[str] = None
        self._handle: Optional[AssetHandle] = None
        self._last_error: Optional[str] = None
        self._base_scale: Optional[float] = None
        self._disappear_progress = 0.0
        self._load_tasks: set[asyncio.Task] = set()
        self._particle_tasks: set[asyncio.Task] = set()
        self._started = False
        self._closed = False

    # ---- Read-only views -----------------------------------------------------
    @property
    def transform(self) -> Transform:
        return self._transform

    @property
    def flags(self) -> EnvironmentFlags:
        return self._flags

    @property
    def load_phase(self) -> LoadPhase:
        return self._load_phase

    @property
    def timeline(self) -> DestructionTimeline:
        return self._timeline

    @property
    def tokens(self) -> LoadTokenManager:
        return self._tokens

    @property
    def handle(self) -> Optional[AssetHandle]:
        return self._handle

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> ViewerSnapshot:
        remaining = self._timeline.remaining
        phase = self._timeline.phase
        return ViewerSnapshot(
            timeline_phase=phase.value,
            load_phase=self._load_phase.value,
            scene_id=self._handle.scene_id if self._handle is not None else None,
            pending_scene_id=self._pending_scene_id,
            remaining_s=remaining,
            countdown_text=format_countdown(remaining),
            show_restart=phase is TimelinePhase.DESTROYED,
            transform=self._transform,
            flags=self._flags,
            disappear_progress=self._timeline.progress,
            last_error=self._last_error,
        )

    # ---- Session ---------------------------------------------------------------
    def start(self) -> None:
        """Arm the countdown and request the first scene load."""
        if self._started or self._closed:
            return
        self._started = True
        self._timeline.arm()
        self._request_load("start")
        self._notify()

    def shutdown(self) -> None:
        """Teardown: cancel timers once, drop in-flight loads, release the asset."""
        if self._closed:
            return
        self._closed = True
        self._timeline.cancel()
        self._tokens.invalidate()
        self._release_handle()
        self._load_phase = LoadPhase.EMPTY
        self._loading_token = None
        self._pending_scene_id = None
        logger.info("lifecycle controller shut down")

    async def drain(self) -> None:
        """Wait for every in-flight load task to settle."""
        while self._load_tasks:
            await asyncio.gather(*list(self._load_tasks), return_exceptions=True)

    # ---- Transform -------------------------------------------------------------
    def set_zoom(self, zoom: float) -> Transform:
        return self._update_transform(self._transform.with_zoom(zoom))

    def set_rotation_x(self, degrees: float) -> Transform:
        return self._update_transform(self._transform.with_rotation(x=degrees))

    def set_rotation_y(self, degrees: float) -> Transform:
        return self._update_transform(self._transform.with_rotation(y=degrees))

    def set_transform(self, zoom: float, rotation_x: float, rotation_y: float) -> Transform:
        return self._update_transform(Transform(zoom=zoom, rotation_x=rotation_x, rotation_y=rotation_y))

    def _update_transform(self, transform: Transform) -> Transform:
        self._transform = transform
        logger.log(
            self._policy.level_for("log_transform"),
            "transform zoom=%.3f rx=%.1f ry=%.1f",
            transform.zoom,
            transform.rotation_x,
            transform.rotation_y,
        )
        self._apply_transform()
        self._notify()
        return transform

    def _current_scale(self) -> float:
        if self._base_scale is not None:
            return self._base_scale * (1.0 - self._disappear_progress)
        return self._transform.zoom

    def _apply_transform(self) -> None:
        handle = self._handle
        if handle is None or not handle.installed:
            return
        self._surface.set_transform(handle.asset, self._current_scale(), self._transform.rotation_quaternion())

    # ---- Environment flags -----------------------------------------------------
    def set_daytime(self, daytime: bool) -> bool:
        return self._update_flags(replace(self._flags, daytime=bool(daytime)))

    def set_rainy(self, rainy: bool) -> bool:
        return self._update_flags(replace(self._flags, rainy=bool(rainy)))

    def toggle_daytime(self) -> bool:
        return self.set_daytime(not self._flags.daytime)

    def toggle_rain(self) -> bool:
        return self.set_rainy(not self._flags.rainy)

    def _update_flags(self, flags: EnvironmentFlags) -> bool:
        if flags == self._flags:
            return False
        self._flags = flags
        self._request_load("flags")
        self._notify()
        return True

    def reload(self) -> Optional[LoadToken]:
        token = self._request_load("reload")
        self._notify()
        return token

    # ---- Restart ---------------------------------------------------------------
    def restart(self, *, strict: bool = False) -> bool:
        """Leave ``Destroyed``: default flags, fresh load, re-armed countdown.

        Outside ``Destroyed`` the call is ignored and returns ``False``; with
        ``strict=True`` it raises :class:`InvalidTransition` instead.
        """
        phase = self._timeline.phase
        if self._closed or phase is not TimelinePhase.DESTROYED:
            if strict:
                raise InvalidTransition("restart", "closed" if self._closed else phase.value)
            logger.debug("restart ignored phase=%s", phase.value)
            return False
        self._timeline.reset()
        self._flags = self._default_flags()
        if self._cfg.reset_transform_on_restart:
            self._transform = Transform()
        self._base_scale = None
        self._disappear_progress = 0.0
        self._last_error = None
        self._request_load("restart")
        self._timeline.arm()
        logger.info("experience restarted flags=%s", self._flags)
        self._notify()
        return True

    def _default_flags(self) -> EnvironmentFlags:
        return EnvironmentFlags(daytime=self._cfg.default_daytime, rainy=self._cfg.default_rainy)

    # ---- Loading ---------------------------------------------------------------
    def _request_load(self, reason: str) -> Optional[LoadToken]:
        if self._closed:
            return None
        if not self._timeline.accepts_loads:
            logger.debug("load suppressed reason=%s phase=%s", reason, self._timeline.phase.value)
            return None
        token = self._tokens.new_token()
        scene_id = select_scene(self._flags)
        if self._cfg.release_on_reload:
            self._release_handle()
        self._load_phase = LoadPhase.LOADING
        self._loading_token = token
        self._pending_scene_id = scene_id
        logger.log(
            self._policy.level_for("log_loads"),
            "load requested reason=%s scene=%s token=%d",
            reason,
            scene_id,
            int(token),
        )
        task = asyncio.get_running_loop().create_task(self._run_load(scene_id, token))
        self._load_tasks.add(task)
        task.add_done_callback(self._on_load_task_done)
        return token

    def _on_load_task_done(self, task: asyncio.Task) -> None:
        self._load_tasks.discard(task)
        if task.cancelled():
            return
        try:
            task.result()
        except Exception:
            logger.exception("scene load task failed")

    async def _run_load(self, scene_id: str, token: LoadToken) -> None:
        outcome = await self._loader.load(scene_id, token)
        self._apply_outcome(outcome)

    def _apply_outcome(self, outcome: LoadOutcome) -> None:
        if self._closed or not self._tokens.is_current(outcome.token):
            logger.debug(
                "stale load dropped scene=%s token=%d current=%s",
                outcome.scene_id,
                int(outcome.token),
                self._tokens.current,
            )
            self._loader.discard(outcome)
            return

        self._loading_token = None
        self._pending_scene_id = None

        if outcome.error is not None:
            self._report_load_failure(outcome.scene_id, outcome.error)
            return
        if outcome.asset is None:
            self._report_load_failure(
                outcome.scene_id,
                LoadError("asset source returned no asset", scene_id=outcome.scene_id),
            )
            return

        self._release_handle()
        handle = AssetHandle(asset=outcome.asset, token=outcome.token)
        self._handle = handle
        try:
            handle.install(self._surface)
            self._apply_transform()
        except Exception as exc:
            logger.exception("scene install failed scene=%s", outcome.scene_id)
            self._release_handle()
            error = LoadError(f"failed to install scene: {exc}", scene_id=outcome.scene_id)
            error.__cause__ = exc
            self._report_load_failure(outcome.scene_id, error)
            return
        self._load_phase = LoadPhase.DISPLAYED
        self._last_error = None
        logger.log(
            self._policy.level_for("log_loads"),
            "scene installed scene=%s token=%d",
            handle.scene_id,
            int(handle.token),
        )
        self._notify()

    def _report_load_failure(self, scene_id: str, error: LoadError) -> None:
        self._last_error = str(error)
        self._load_phase = LoadPhase.DISPLAYED if self._handle is not None else LoadPhase.EMPTY
        logger.warning("scene load failed scene=%s: %s", scene_id, error)
        if self._hooks.on_load_error is not None:
            self._hooks.on_load_error(error)
        self._notify()

    def _release_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        handle.release(self._surface, self._loader.source)
        if self._load_phase is LoadPhase.DISPLAYED:
            self._load_phase = LoadPhase.EMPTY

    # ---- Timeline hooks ----------------------------------------------------------
    def _on_countdown(self, remaining: int) -> None:
        if self._hooks.on_countdown is not None:
            self._hooks.on_countdown(remaining)
        self._notify()

    def _on_disappear_start(self) -> None:
        # In-flight loads can no longer win.
        self._tokens.invalidate()
        self._loading_token = None
        self._pending_scene_id = None
        self._load_phase = LoadPhase.DISPLAYED if self._handle is not None else LoadPhase.EMPTY
        self._base_scale = self._transform.zoom
        self._disappear_progress = 0.0
        self._spawn_particles()
        self._notify()

    def _on_disappear_step(self, progress: float) -> None:
        self._disappear_progress = float(progress)
        self._apply_transform()
        self._notify()

    def _on_destroyed(self) -> None:
        self._release_handle()
        self._load_phase = LoadPhase.EMPTY
        self._base_scale = None
        logger.info("scene destroyed; waiting for restart")
        self._notify()

    def _spawn_particles(self) -> None:
        spawner = self._particles
        settings = self._cfg.particles
        if spawner is None or settings.count <= 0:
            return
        center = self._handle.asset.origin if self._handle is not None else (0.0, 0.0, 0.0)
        positions = plan_particles(center, settings.count, settings.radius * self._transform.zoom, self._rng)
        started = spawn_detached(spawner, positions, tasks=self._particle_tasks, origin=center)
        logger.log(self._policy.level_for("log_particles"), "particles spawned count=%d", started)

    # ---- Notifications -----------------------------------------------------------
    def _notify(self) -> None:
        if self._hooks.on_state_changed is not None:
            self._hooks.on_state_changed(self.snapshot())


__all__ = ["ControllerHooks", "LifecycleController", "LoadPhase"]
