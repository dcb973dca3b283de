"""
ephemeral: scene lifecycle controller for the Ephemeral 3D viewer.

The package owns the logic behind the viewer: serialized asset loads with
generation tokens, a live zoom/rotation transform, and the one-shot
destruction countdown that ends a session until it is restarted.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
