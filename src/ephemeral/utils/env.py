from __future__ import annotations

import os
from typing import Mapping, Optional

TRUTHY = frozenset(("1", "true", "yes", "on"))
FALSY = frozenset(("0", "false", "no", "off"))


def _source(env: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if env is None else env


def parse_bool(raw: str, default: Optional[bool] = None) -> Optional[bool]:
    s = raw.strip().lower()
    if s in TRUTHY:
        return True
    if s in FALSY:
        return False
    return default


def env_str(name: str, default: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    v = _source(env).get(name)
    if v is None:
        return default
    v = v.strip()
    return v if v != "" else default


def env_bool(name: str, default: bool = False, env: Optional[Mapping[str, str]] = None) -> bool:
    v = _source(env).get(name)
    if v is None:
        return default
    return bool(parse_bool(v, default))


def env_int(name: str, default: int, env: Optional[Mapping[str, str]] = None) -> int:
    v = _source(env).get(name)
    if not v:
        return default
    try:
        return int(v.strip(), 10)
    except ValueError:
        return default


def env_float(name: str, default: float, env: Optional[Mapping[str, str]] = None) -> float:
    v = _source(env).get(name)
    if not v:
        return default
    try:
        return float(v.strip())
    except ValueError:
        return default


def env_optional_int(name: str, env: Optional[Mapping[str, str]] = None) -> Optional[int]:
    raw = env_str(name, None, env)
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None
