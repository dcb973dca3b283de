from __future__ import annotations

import logging

import pytest

from ephemeral.config import load_viewer_config, load_viewer_ctx
from ephemeral.config.models import ParticleSettings, TimelineSettings, ViewerConfig


def test_defaults_without_environment() -> None:
    cfg = load_viewer_config({})
    assert cfg == ViewerConfig()
    assert cfg.timeline.delay_s == 120.0
    assert cfg.timeline.countdown_s == 60
    assert cfg.timeline.step_interval_s == pytest.approx(0.1)
    assert cfg.default_daytime and not cfg.default_rainy


def test_environment_overrides() -> None:
    env = {
        "EPHEMERAL_ASSET_ROOT": "/srv/assets",
        "EPHEMERAL_ASSET_EXTENSIONS": "GLB, .obj,,",
        "EPHEMERAL_DEFAULT_DAYTIME": "0",
        "EPHEMERAL_DEFAULT_RAINY": "yes",
        "EPHEMERAL_DELAY_S": "5",
        "EPHEMERAL_COUNTDOWN_S": "3",
        "EPHEMERAL_DISAPPEAR_STEPS": "4",
        "EPHEMERAL_PARTICLES": "10",
        "EPHEMERAL_PARTICLE_SEED": "42",
        "EPHEMERAL_RELEASE_ON_RELOAD": "off",
        "EPHEMERAL_RESET_TRANSFORM": "1",
    }
    cfg = load_viewer_config(env)
    assert cfg.asset_root == "/srv/assets"
    assert cfg.asset_extensions == (".glb", ".obj")
    assert not cfg.default_daytime and cfg.default_rainy
    assert cfg.timeline == TimelineSettings(delay_s=5.0, countdown_s=3, disappear_steps=4)
    assert cfg.particles == ParticleSettings(count=10, seed=42)
    assert not cfg.release_on_reload
    assert cfg.reset_transform_on_restart


def test_invalid_values_fall_back_or_clamp() -> None:
    cfg = load_viewer_config(
        {
            "EPHEMERAL_DELAY_S": "-4",
            "EPHEMERAL_COUNTDOWN_S": "soon",
            "EPHEMERAL_TICK_S": "0",
            "EPHEMERAL_DISAPPEAR_STEPS": "0",
            "EPHEMERAL_PARTICLES": "-1",
            "EPHEMERAL_PARTICLE_SEED": "abc",
        }
    )
    assert cfg.timeline.delay_s == 0.0
    assert cfg.timeline.countdown_s == 60
    assert cfg.timeline.tick_s > 0.0
    assert cfg.timeline.disappear_steps == 1
    assert cfg.particles.count == 0
    assert cfg.particles.seed is None


def test_settings_validate_directly() -> None:
    with pytest.raises(ValueError):
        TimelineSettings(disappear_steps=0)
    with pytest.raises(ValueError):
        TimelineSettings(countdown_s=-1)
    with pytest.raises(ValueError):
        ParticleSettings(min_lifetime_s=2.0, max_lifetime_s=1.0)


def test_ctx_time_scale(caplog) -> None:
    assert load_viewer_ctx({"EPHEMERAL_TIME_SCALE": "0.01"}).time_scale == pytest.approx(0.01)
    with caplog.at_level(logging.WARNING, logger="ephemeral.config.loader"):
        ctx = load_viewer_ctx({"EPHEMERAL_TIME_SCALE": "-2"})
    assert ctx.time_scale == 1.0
    assert "EPHEMERAL_TIME_SCALE" in caplog.text
    assert not ctx.debug_policy.enabled
