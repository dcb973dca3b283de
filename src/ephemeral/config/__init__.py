"""Shared configuration dataclasses for the Ephemeral viewer."""

from .loader import load_viewer_config, load_viewer_ctx
from .logging_policy import DebugPolicy, LoggingToggles, load_debug_policy
from .models import (
    ParticleSettings,
    TimelineSettings,
    ViewerConfig,
    ViewerCtx,
)

__all__ = [
    "DebugPolicy",
    "LoggingToggles",
    "ParticleSettings",
    "TimelineSettings",
    "ViewerConfig",
    "ViewerCtx",
    "load_debug_policy",
    "load_viewer_config",
    "load_viewer_ctx",
]
