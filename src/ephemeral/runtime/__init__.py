"""Scene lifecycle runtime: load tokens, loader, timeline and controller."""

from .controller import ControllerHooks, LifecycleController, LoadPhase
from .errors import AssetDecodeError, AssetNotFoundError, InvalidTransition, LoadError
from .load_tokens import LoadToken, LoadTokenManager
from .timeline import DestructionTimeline, TimelinePhase

__all__ = [
    "AssetDecodeError",
    "AssetNotFoundError",
    "ControllerHooks",
    "DestructionTimeline",
    "InvalidTransition",
    "LifecycleController",
    "LoadError",
    "LoadPhase",
    "LoadToken",
    "LoadTokenManager",
    "TimelinePhase",
]
