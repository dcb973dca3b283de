"""VisPy scene-graph render surface.

Each installed asset becomes an entity node with a child light node under a
shared root. The root can be a ``view.scene`` of a live ``SceneCanvas``; by
default it is a detached ``scene.Node`` so the surface also runs headless.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional

import numpy as np
from vispy import scene  # type: ignore
from vispy.util.quaternion import Quaternion  # type: ignore
from vispy.visuals.transforms import MatrixTransform  # type: ignore

from ephemeral.render.interfaces import SceneAsset

logger = logging.getLogger(__name__)


@dataclass
class InstalledNodes:
    entity: scene.Node
    light: scene.Node


def compose_matrix(scale: float, rotation: np.ndarray, translate: tuple[float, float, float]) -> np.ndarray:
    """Row-vector 4x4 matrix: uniform scale, then rotation, then translation."""
    w, x, y, z = (float(v) for v in rotation)
    # get_matrix is column-vector; MatrixTransform maps row vectors.
    rot = Quaternion(w, x, y, z, normalize=True).get_matrix().T
    s = float(scale)
    matrix = np.diag([s, s, s, 1.0]) @ np.asarray(rot, dtype=float)
    matrix[3, :3] = np.asarray(translate, dtype=float)
    return matrix


class VispySceneSurface:
    def __init__(self, root: Optional[scene.Node] = None) -> None:
        self._root = root if root is not None else scene.Node(name="ephemeral-root")
        self._nodes: dict[int, InstalledNodes] = {}

    @property
    def root(self) -> scene.Node:
        return self._root

    @property
    def installed_count(self) -> int:
        return len(self._nodes)

    def nodes_for(self, asset: SceneAsset) -> Optional[InstalledNodes]:
        return self._nodes.get(id(asset))

    def add(self, asset: SceneAsset) -> None:
        key = id(asset)
        if key in self._nodes:
            return
        entity = scene.Node(parent=self._root, name=asset.scene_id)
        entity.transform = MatrixTransform()
        light = scene.Node(parent=entity, name=f"{asset.scene_id}-light")
        if isinstance(asset.payload, scene.Node):
            asset.payload.parent = entity
        self._nodes[key] = InstalledNodes(entity=entity, light=light)
        entity.transform.matrix = compose_matrix(1.0, np.array([1.0, 0.0, 0.0, 0.0]), asset.origin)
        logger.debug("surface add scene=%s nodes=%d", asset.scene_id, len(self._nodes))

    def remove(self, asset: SceneAsset) -> None:
        nodes = self._nodes.pop(id(asset), None)
        if nodes is None:
            return
        nodes.light.parent = None
        nodes.entity.parent = None
        logger.debug("surface remove scene=%s nodes=%d", asset.scene_id, len(self._nodes))

    def set_transform(self, asset: SceneAsset, scale: float, rotation: np.ndarray) -> None:
        nodes = self._nodes.get(id(asset))
        if nodes is None:
            raise KeyError(f"asset not installed: {asset.scene_id}")
        nodes.entity.transform.matrix = compose_matrix(scale, rotation, asset.origin)


__all__ = ["InstalledNodes", "VispySceneSurface", "compose_matrix"]
