"""Collaborator interfaces consumed by the lifecycle controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Optional, Protocol, Sequence, runtime_checkable

import numpy as np


@dataclass(eq=False)
class SceneAsset:
    """Render-side resources for one loaded scene (entity plus its light).

    ``payload`` is opaque to the controller; only the asset source and the
    render surface interpret it.
    """

    scene_id: str
    payload: Any = None
    source: Optional[str] = None
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0)
    released: bool = field(default=False)


@runtime_checkable
class RenderSurface(Protocol):
    """Install, transform and uninstall assets on the render surface."""

    def add(self, asset: SceneAsset) -> None:
        ...

    def remove(self, asset: SceneAsset) -> None:
        ...

    def set_transform(self, asset: SceneAsset, scale: float, rotation: np.ndarray) -> None:
        ...


@runtime_checkable
class AssetSource(Protocol):
    """Platform asset loader; ``fetch`` may suspend for an unbounded time."""

    def fetch(self, scene_id: str) -> Awaitable[SceneAsset]:
        ...

    def release(self, asset: SceneAsset) -> None:
        ...


@runtime_checkable
class ParticleSpawner(Protocol):
    """Fire-and-forget decorative effect at a world position.

    ``origin`` is the centre the effect moves away from.
    """

    def spawn(
        self,
        position: Sequence[float],
        *,
        origin: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> Awaitable[None]:
        ...


__all__ = ["AssetSource", "ParticleSpawner", "RenderSurface", "SceneAsset"]
