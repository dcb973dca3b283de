"""Wire the lifecycle controller to its collaborators for one viewing session."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional

from ephemeral.app.snapshot import ViewerSnapshot
from ephemeral.config.models import ViewerCtx
from ephemeral.render.asset_source import DirectoryAssetSource
from ephemeral.render.interfaces import AssetSource, RenderSurface
from ephemeral.render.vispy_surface import VispySceneSurface
from ephemeral.runtime.controller import ControllerHooks, LifecycleController
from ephemeral.runtime.errors import LoadError
from ephemeral.runtime.particles import ParticleAnimator
from ephemeral.runtime.scheduler import LoopScheduler, ScaledScheduler, Scheduler
from ephemeral.runtime.timeline import TimelinePhase
from ephemeral.scene.selector import all_scene_ids

logger = logging.getLogger(__name__)


class ViewerSession:
    """Own one controller plus the surface, asset source and timers it uses."""

    def __init__(
        self,
        ctx: ViewerCtx,
        *,
        surface: Optional[RenderSurface] = None,
        source: Optional[AssetSource] = None,
        scheduler: Optional[Scheduler] = None,
        on_snapshot: Optional[Callable[[ViewerSnapshot], None]] = None,
    ) -> None:
        self.ctx = ctx
        cfg = ctx.cfg
        if source is None:
            if not cfg.asset_root:
                raise ValueError("an asset root is required when no asset source is given")
            source = DirectoryAssetSource(cfg.asset_root, extensions=cfg.asset_extensions)
            missing = source.missing(all_scene_ids())
            if missing:
                logger.warning("asset root %s has no file for scenes: %s", cfg.asset_root, ", ".join(missing))
        self.surface = surface if surface is not None else VispySceneSurface()
        self.source = source
        base_scheduler = scheduler if scheduler is not None else LoopScheduler()
        if ctx.time_scale != 1.0:
            base_scheduler = ScaledScheduler(base_scheduler, ctx.time_scale)
        self.scheduler = base_scheduler
        self.particles = ParticleAnimator(self.surface, cfg.particles, time_scale=ctx.time_scale)
        self.errors: list[LoadError] = []
        self._on_snapshot = on_snapshot
        self._destroyed = asyncio.Event()
        self._last_countdown: Optional[str] = None
        self.controller = LifecycleController(
            surface=self.surface,
            source=self.source,
            scheduler=self.scheduler,
            config=cfg,
            debug_policy=ctx.debug_policy,
            particles=self.particles,
            hooks=ControllerHooks(
                on_state_changed=self._handle_snapshot,
                on_load_error=self.errors.append,
            ),
        )

    def _handle_snapshot(self, snapshot: ViewerSnapshot) -> None:
        if snapshot.countdown_text != self._last_countdown:
            self._last_countdown = snapshot.countdown_text
            logger.debug("countdown %s phase=%s", snapshot.countdown_text, snapshot.timeline_phase)
        if snapshot.show_restart:
            self._destroyed.set()
        if self._on_snapshot is not None:
            self._on_snapshot(snapshot)

    async def wait_destroyed(self) -> None:
        await self._destroyed.wait()

    async def run(self, *, restarts: int = 0) -> int:
        """Play the session, restarting ``restarts`` times; returns restarts done."""
        done = 0
        self.controller.start()
        try:
            while True:
                await self.wait_destroyed()
                logger.info("session destroyed (restart %d/%d)", done, restarts)
                if done >= restarts:
                    return done
                self._destroyed.clear()
                if self.controller.restart():
                    done += 1
        finally:
            self.close()

    def close(self) -> None:
        if self.controller.timeline.phase is not TimelinePhase.DESTROYED:
            logger.info("closing session during %s", self.controller.timeline.phase.value)
        self.controller.shutdown()


__all__ = ["ViewerSession"]
