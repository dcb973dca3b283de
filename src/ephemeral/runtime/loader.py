"""Asynchronous scene loads stamped with a generation token."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Optional

from ephemeral.render.interfaces import AssetSource, RenderSurface, SceneAsset
from ephemeral.runtime.errors import LoadError
from ephemeral.runtime.load_tokens import LoadToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadOutcome:
    """Result of one fetch; exactly one of ``asset`` / ``error`` is set."""

    token: LoadToken
    scene_id: str
    asset: Optional[SceneAsset] = None
    error: Optional[LoadError] = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.asset is not None and self.error is None


@dataclass
class AssetHandle:
    """The live scene: render-side resources plus the token that produced them."""

    asset: SceneAsset
    token: LoadToken
    installed: bool = False

    @property
    def scene_id(self) -> str:
        return self.asset.scene_id

    def install(self, surface: RenderSurface) -> None:
        if self.installed:
            return
        surface.add(self.asset)
        self.installed = True

    def release(self, surface: RenderSurface, source: AssetSource) -> None:
        if self.asset.released:
            return
        if self.installed:
            surface.remove(self.asset)
            self.installed = False
        source.release(self.asset)
        self.asset.released = True


class SceneLoader:
    """Fetch assets through an :class:`AssetSource` and report outcomes.

    The loader never raises for fetch failures; they come back as
    ``LoadOutcome.error`` so the controller can decide whether the result is
    still authoritative before reacting to it.
    """

    def __init__(self, source: AssetSource, *, log_level: int = logging.DEBUG) -> None:
        self._source = source
        self._log_level = log_level

    @property
    def source(self) -> AssetSource:
        return self._source

    async def load(self, scene_id: str, token: LoadToken) -> LoadOutcome:
        logger.log(self._log_level, "load start scene=%s token=%d", scene_id, int(token))
        t0 = time.perf_counter()
        try:
            asset = await self._source.fetch(scene_id)
        except LoadError as exc:
            if exc.scene_id is None:
                exc.scene_id = scene_id
            elapsed = (time.perf_counter() - t0) * 1000.0
            logger.log(
                self._log_level,
                "load failed scene=%s token=%d after %.1fms: %s",
                scene_id,
                int(token),
                elapsed,
                exc,
            )
            return LoadOutcome(token=token, scene_id=scene_id, error=exc, elapsed_ms=elapsed)
        except Exception as exc:
            elapsed = (time.perf_counter() - t0) * 1000.0
            logger.exception("asset source error scene=%s token=%d", scene_id, int(token))
            error = LoadError(f"unexpected asset source error: {exc}", scene_id=scene_id)
            error.__cause__ = exc
            return LoadOutcome(token=token, scene_id=scene_id, error=error, elapsed_ms=elapsed)
        elapsed = (time.perf_counter() - t0) * 1000.0
        logger.log(
            self._log_level,
            "load done scene=%s token=%d in %.1fms",
            scene_id,
            int(token),
            elapsed,
        )
        return LoadOutcome(token=token, scene_id=scene_id, asset=asset, elapsed_ms=elapsed)

    def discard(self, outcome: LoadOutcome) -> None:
        """Release resources of a result that will never be installed."""
        asset = outcome.asset
        if asset is None or asset.released:
            return
        self._source.release(asset)
        asset.released = True


__all__ = ["AssetHandle", "LoadOutcome", "SceneLoader"]
