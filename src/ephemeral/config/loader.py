"""Resolve the viewer context from environment variables.

Environment keys consulted:
- EPHEMERAL_ASSET_ROOT, EPHEMERAL_ASSET_EXTENSIONS (comma separated)
- EPHEMERAL_DEFAULT_DAYTIME, EPHEMERAL_DEFAULT_RAINY
- EPHEMERAL_DELAY_S, EPHEMERAL_COUNTDOWN_S, EPHEMERAL_TICK_S
- EPHEMERAL_DISAPPEAR_S, EPHEMERAL_DISAPPEAR_STEPS
- EPHEMERAL_PARTICLES, EPHEMERAL_PARTICLE_SEED
- EPHEMERAL_RELEASE_ON_RELOAD, EPHEMERAL_RESET_TRANSFORM
- EPHEMERAL_TIME_SCALE
- EPHEMERAL_DEBUG (see ``logging_policy``)
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping, Optional

from ephemeral.config.logging_policy import load_debug_policy
from ephemeral.config.models import (
    ParticleSettings,
    TimelineSettings,
    ViewerConfig,
    ViewerCtx,
)
from ephemeral.utils.env import (
    env_bool,
    env_float,
    env_int,
    env_optional_int,
    env_str,
)

logger = logging.getLogger(__name__)

_MIN_DURATION_S = 1e-3


def _extensions(raw: Optional[str], default: tuple[str, ...]) -> tuple[str, ...]:
    if not raw:
        return default
    exts: list[str] = []
    for item in raw.split(","):
        token = item.strip().lower()
        if not token:
            continue
        exts.append(token if token.startswith(".") else f".{token}")
    return tuple(exts) or default


def load_timeline_settings(env: Mapping[str, str]) -> TimelineSettings:
    defaults = TimelineSettings()
    return TimelineSettings(
        delay_s=max(0.0, env_float("EPHEMERAL_DELAY_S", defaults.delay_s, env)),
        countdown_s=max(0, env_int("EPHEMERAL_COUNTDOWN_S", defaults.countdown_s, env)),
        tick_s=max(_MIN_DURATION_S, env_float("EPHEMERAL_TICK_S", defaults.tick_s, env)),
        disappear_duration_s=max(
            _MIN_DURATION_S,
            env_float("EPHEMERAL_DISAPPEAR_S", defaults.disappear_duration_s, env),
        ),
        disappear_steps=max(1, env_int("EPHEMERAL_DISAPPEAR_STEPS", defaults.disappear_steps, env)),
    )


def load_particle_settings(env: Mapping[str, str]) -> ParticleSettings:
    defaults = ParticleSettings()
    return ParticleSettings(
        count=max(0, env_int("EPHEMERAL_PARTICLES", defaults.count, env)),
        seed=env_optional_int("EPHEMERAL_PARTICLE_SEED", env),
    )


def load_viewer_config(env: Optional[Mapping[str, str]] = None) -> ViewerConfig:
    """Load viewer configuration from environment (no side effects)."""

    env = os.environ if env is None else env
    defaults = ViewerConfig()

    asset_root = env_str("EPHEMERAL_ASSET_ROOT", None, env)
    if asset_root is not None:
        asset_root = str(Path(asset_root).expanduser())

    return ViewerConfig(
        asset_root=asset_root,
        asset_extensions=_extensions(env_str("EPHEMERAL_ASSET_EXTENSIONS", None, env), defaults.asset_extensions),
        default_daytime=env_bool("EPHEMERAL_DEFAULT_DAYTIME", defaults.default_daytime, env),
        default_rainy=env_bool("EPHEMERAL_DEFAULT_RAINY", defaults.default_rainy, env),
        release_on_reload=env_bool("EPHEMERAL_RELEASE_ON_RELOAD", defaults.release_on_reload, env),
        reset_transform_on_restart=env_bool(
            "EPHEMERAL_RESET_TRANSFORM", defaults.reset_transform_on_restart, env
        ),
        timeline=load_timeline_settings(env),
        particles=load_particle_settings(env),
    )


def load_viewer_ctx(env: Optional[Mapping[str, str]] = None) -> ViewerCtx:
    env = os.environ if env is None else env
    cfg = load_viewer_config(env)
    policy = load_debug_policy(env)
    time_scale = env_float("EPHEMERAL_TIME_SCALE", 1.0, env)
    if time_scale <= 0.0:
        logger.warning("EPHEMERAL_TIME_SCALE must be positive; using 1.0")
        time_scale = 1.0
    ctx = ViewerCtx(cfg=cfg, debug_policy=policy, time_scale=time_scale)
    logger.debug("Resolved ViewerCtx: %s", ctx)
    return ctx


__all__ = [
    "load_particle_settings",
    "load_timeline_settings",
    "load_viewer_config",
    "load_viewer_ctx",
]
