"""Render and asset collaborators behind the controller's interfaces."""

from .interfaces import AssetSource, ParticleSpawner, RenderSurface, SceneAsset

__all__ = ["AssetSource", "ParticleSpawner", "RenderSurface", "SceneAsset"]
