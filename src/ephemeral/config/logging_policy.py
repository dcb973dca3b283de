from __future__ import annotations

"""Central debug/logging policy plumbing for the Ephemeral viewer."""

import json
import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Optional

from ephemeral.utils.env import parse_bool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoggingToggles:
    log_loads: bool = False
    log_timeline: bool = False
    log_transform: bool = False
    log_particles: bool = False


@dataclass(frozen=True)
class DebugPolicy:
    enabled: bool
    logging: LoggingToggles

    def level_for(self, toggle: str) -> int:
        """INFO when the subsystem toggle is on, DEBUG otherwise."""
        return logging.INFO if getattr(self.logging, toggle, False) else logging.DEBUG


_LOG_FLAG_MAP: dict[str, Iterable[str]] = {
    "loads": ("log_loads",),
    "timeline": ("log_timeline",),
    "transform": ("log_transform",),
    "particles": ("log_particles",),
    "all": ("log_loads", "log_timeline", "log_transform", "log_particles"),
}


def _coerce_bool(value: object, default: bool = False) -> bool:
    if isinstance(value, (bool, int, float)):
        return bool(value)
    if isinstance(value, str):
        return bool(parse_bool(value, default))
    return default


def _split_flags(raw: object) -> set[str]:
    if isinstance(raw, str):
        items: Iterable[object] = raw.split(",")
    elif isinstance(raw, Iterable):
        items = raw
    else:
        return set()
    tokens = (str(item).strip().lower() for item in items)
    return {token for token in tokens if token}


def _load_debug_config(env: Mapping[str, str]) -> tuple[bool, dict[str, object]]:
    raw = env.get("EPHEMERAL_DEBUG")
    if raw is None:
        return False, {}
    raw_str = raw.strip()
    flag = parse_bool(raw_str) if raw_str else False
    if flag is not None:
        return flag, {}
    try:
        parsed = json.loads(raw_str)
    except ValueError:
        logger.debug("Failed to parse EPHEMERAL_DEBUG JSON; treating as flag list", exc_info=True)
        return True, {"flags": raw_str}
    if isinstance(parsed, dict):
        enabled = _coerce_bool(parsed.get("enabled", True), True)
        return enabled, parsed
    if isinstance(parsed, (list, tuple)):
        return True, {"flags": parsed}
    return True, {"flags": raw_str}


def load_debug_policy(env: Optional[Mapping[str, str]] = None) -> DebugPolicy:
    env = os.environ if env is None else env
    enabled, cfg = _load_debug_config(env)

    flags = _split_flags(cfg.get("flags"))

    log_kwargs = {field: False for field in LoggingToggles.__annotations__.keys()}
    if enabled:
        for flag, attrs in _LOG_FLAG_MAP.items():
            if flag in flags:
                for attr in attrs:
                    log_kwargs[attr] = True

    return DebugPolicy(enabled=enabled, logging=LoggingToggles(**log_kwargs))


__all__ = [
    "DebugPolicy",
    "LoggingToggles",
    "load_debug_policy",
]
