"""Pure scene data: transform, environment flags and scene selection."""

from .selector import select_scene
from .state import EnvironmentFlags, Transform

__all__ = ["EnvironmentFlags", "Transform", "select_scene"]
