"""Error taxonomy for the scene lifecycle."""

from __future__ import annotations

from typing import Optional


class LoadError(RuntimeError):
    """Raised when a scene asset cannot be fetched or decoded."""

    def __init__(self, message: str, *, scene_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.scene_id = scene_id


class AssetNotFoundError(LoadError):
    """No asset exists for the requested scene identifier."""


class AssetDecodeError(LoadError):
    """The asset exists but could not be read or decoded."""


class InvalidTransition(RuntimeError):
    """Raised in strict mode when a lifecycle transition is not allowed."""

    def __init__(self, action: str, phase: str) -> None:
        super().__init__(f"{action} not allowed while timeline is {phase}")
        self.action = action
        self.phase = phase


__all__ = [
    "AssetDecodeError",
    "AssetNotFoundError",
    "InvalidTransition",
    "LoadError",
]
