"""Map environment flags to the scene asset identifier."""

from __future__ import annotations

from ephemeral.scene.state import EnvironmentFlags

SCENE_DAY = "daytimeworld"
SCENE_NIGHT = "nighttimeworld"
SCENE_RAIN_DAY = "rainyworld"
SCENE_RAIN_NIGHT = "rainyworldnight"

_SCENES: dict[tuple[bool, bool], str] = {
    (True, False): SCENE_DAY,
    (False, False): SCENE_NIGHT,
    (True, True): SCENE_RAIN_DAY,
    (False, True): SCENE_RAIN_NIGHT,
}


def select_scene(flags: EnvironmentFlags) -> str:
    return _SCENES[(bool(flags.daytime), bool(flags.rainy))]


def all_scene_ids() -> tuple[str, ...]:
    return tuple(_SCENES.values())


__all__ = [
    "SCENE_DAY",
    "SCENE_NIGHT",
    "SCENE_RAIN_DAY",
    "SCENE_RAIN_NIGHT",
    "all_scene_ids",
    "select_scene",
]
