"""User-adjustable scene state: transform and environment flags."""

from __future__ import annotations

from dataclasses import dataclass, replace
import math

import numpy as np
from vispy.util.quaternion import Quaternion  # type: ignore

ZOOM_MIN = 0.5
ZOOM_MAX = 2.0
ROTATION_MIN = -180.0
ROTATION_MAX = 180.0


def _clamp(value: float, lo: float, hi: float) -> float:
    v = float(value)
    if math.isnan(v):
        raise ValueError("transform values must be finite numbers")
    return min(hi, max(lo, v))


@dataclass(frozen=True)
class Transform:
    """Zoom plus two rotation axes, in degrees."""

    zoom: float = 1.0
    rotation_x: float = 0.0
    rotation_y: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "zoom", _clamp(self.zoom, ZOOM_MIN, ZOOM_MAX))
        object.__setattr__(self, "rotation_x", _clamp(self.rotation_x, ROTATION_MIN, ROTATION_MAX))
        object.__setattr__(self, "rotation_y", _clamp(self.rotation_y, ROTATION_MIN, ROTATION_MAX))

    def with_zoom(self, zoom: float) -> "Transform":
        return replace(self, zoom=zoom)

    def with_rotation(self, *, x: float | None = None, y: float | None = None) -> "Transform":
        return replace(
            self,
            rotation_x=self.rotation_x if x is None else x,
            rotation_y=self.rotation_y if y is None else y,
        )

    def rotation_quaternion(self) -> np.ndarray:
        # X is applied first, then Y.
        qx = Quaternion.create_from_axis_angle(self.rotation_x, 1.0, 0.0, 0.0, degrees=True)
        qy = Quaternion.create_from_axis_angle(self.rotation_y, 0.0, 1.0, 0.0, degrees=True)
        q = qy * qx
        return np.array([q.w, q.x, q.y, q.z], dtype=float)


@dataclass(frozen=True)
class EnvironmentFlags:
    daytime: bool = True
    rainy: bool = False


__all__ = [
    "EnvironmentFlags",
    "ROTATION_MAX",
    "ROTATION_MIN",
    "Transform",
    "ZOOM_MAX",
    "ZOOM_MIN",
]
