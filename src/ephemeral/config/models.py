"""Configuration dataclasses shared across the viewer package."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ephemeral.config.logging_policy import DebugPolicy, load_debug_policy

DEFAULT_ASSET_EXTENSIONS = (".usdz", ".glb", ".gltf", ".obj", ".ply")


@dataclass(frozen=True)
class TimelineSettings:
    """Durations for the destruction countdown, in seconds."""

    delay_s: float = 120.0
    countdown_s: int = 60
    tick_s: float = 1.0
    disappear_duration_s: float = 1.6
    disappear_steps: int = 16

    def __post_init__(self) -> None:
        if self.delay_s < 0.0:
            raise ValueError("delay_s must be non-negative")
        if self.countdown_s < 0:
            raise ValueError("countdown_s must be non-negative")
        if self.tick_s <= 0.0:
            raise ValueError("tick_s must be positive")
        if self.disappear_duration_s <= 0.0:
            raise ValueError("disappear_duration_s must be positive")
        if self.disappear_steps < 1:
            raise ValueError("disappear_steps must be at least 1")

    @property
    def step_interval_s(self) -> float:
        return self.disappear_duration_s / float(self.disappear_steps)


@dataclass(frozen=True)
class ParticleSettings:
    """Decorative burst spawned when the asset starts to disappear."""

    count: int = 24
    radius: float = 0.35
    min_lifetime_s: float = 0.6
    max_lifetime_s: float = 1.4
    travel: float = 0.6
    size: float = 0.03
    steps: int = 12
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError("particle count must be non-negative")
        if self.min_lifetime_s <= 0.0 or self.max_lifetime_s < self.min_lifetime_s:
            raise ValueError("particle lifetimes must satisfy 0 < min <= max")
        if self.steps < 1:
            raise ValueError("particle steps must be at least 1")


@dataclass(frozen=True)
class ViewerConfig:
    """Top-level viewer configuration values."""

    asset_root: Optional[str] = None
    asset_extensions: tuple[str, ...] = DEFAULT_ASSET_EXTENSIONS
    default_daytime: bool = True
    default_rainy: bool = False
    release_on_reload: bool = True
    reset_transform_on_restart: bool = False
    timeline: TimelineSettings = field(default_factory=TimelineSettings)
    particles: ParticleSettings = field(default_factory=ParticleSettings)


@dataclass(frozen=True)
class ViewerCtx:
    """Resolved runtime context shared across subsystems."""

    cfg: ViewerConfig = field(default_factory=ViewerConfig)
    debug_policy: DebugPolicy = field(default_factory=lambda: load_debug_policy({}))
    time_scale: float = 1.0
