from __future__ import annotations

import numpy as np
import pytest
from vispy import scene

from ephemeral.render.interfaces import RenderSurface, SceneAsset
from ephemeral.render.vispy_surface import VispySceneSurface, compose_matrix
from ephemeral.scene.state import Transform


def test_compose_matrix_scales_rotates_then_translates() -> None:
    half = np.sqrt(0.5)
    quarter_turn_z = np.array([half, 0.0, 0.0, half])
    m = compose_matrix(2.0, quarter_turn_z, (1.0, 2.0, 3.0))
    point = np.array([1.0, 0.0, 0.0, 1.0]) @ m
    assert point[:3] == pytest.approx([1.0, 4.0, 3.0])
    assert point[3] == pytest.approx(1.0)


def test_matrix_matches_quaternion_rotation() -> None:
    m = compose_matrix(1.0, Transform(rotation_x=90.0, rotation_y=90.0).rotation_quaternion(), (0.0, 0.0, 0.0))
    point = np.array([0.0, 1.0, 0.0, 1.0]) @ m
    assert point[:3] == pytest.approx([1.0, 0.0, 0.0], abs=1e-6)


def test_identity_transform() -> None:
    m = compose_matrix(1.0, Transform().rotation_quaternion(), (0.0, 0.0, 0.0))
    assert m == pytest.approx(np.eye(4))


def test_add_builds_entity_and_light_nodes() -> None:
    root = scene.Node(name="test-root")
    surface = VispySceneSurface(root)
    assert isinstance(surface, RenderSurface)
    mesh = scene.Node(name="mesh")
    asset = SceneAsset(scene_id="daytimeworld", payload=mesh, origin=(0.0, 1.0, 0.0))
    surface.add(asset)
    surface.add(asset)
    assert surface.installed_count == 1

    nodes = surface.nodes_for(asset)
    assert nodes is not None
    assert nodes.entity.parent is root
    assert nodes.light.parent is nodes.entity
    assert mesh.parent is nodes.entity
    assert nodes.entity.transform.matrix[3, :3] == pytest.approx([0.0, 1.0, 0.0])


def test_set_transform_updates_matrix_and_remove_detaches() -> None:
    surface = VispySceneSurface()
    asset = SceneAsset(scene_id="rainyworld")
    surface.add(asset)
    rotation = Transform(rotation_y=90.0).rotation_quaternion()
    surface.set_transform(asset, 0.5, rotation)
    nodes = surface.nodes_for(asset)
    assert nodes is not None
    expected = compose_matrix(0.5, rotation, asset.origin)
    assert nodes.entity.transform.matrix == pytest.approx(expected)

    surface.remove(asset)
    surface.remove(asset)
    assert surface.installed_count == 0
    assert nodes.entity.parent is None
    with pytest.raises(KeyError):
        surface.set_transform(asset, 1.0, rotation)
