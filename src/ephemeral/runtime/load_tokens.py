"""Generation tokens that decide which asynchronous load is authoritative."""

from __future__ import annotations

import itertools
from typing import NewType, Optional

LoadToken = NewType("LoadToken", int)


class LoadTokenManager:
    """Mint monotonically increasing tokens and remember only the latest.

    Minting a token implicitly supersedes every token issued before it, so
    results of in-flight loads are recognised as stale when they land.
    All calls happen on the control loop; no locking is required.
    """

    def __init__(self, start: int = 0) -> None:
        self._counter = itertools.count(int(start) + 1)
        self._current: Optional[LoadToken] = None

    @property
    def current(self) -> Optional[LoadToken]:
        return self._current

    def new_token(self) -> LoadToken:
        token = LoadToken(next(self._counter))
        self._current = token
        return token

    def is_current(self, token: Optional[LoadToken]) -> bool:
        if token is None or self._current is None:
            return False
        return int(token) == int(self._current)

    def invalidate(self) -> None:
        """Supersede all outstanding tokens without starting a load."""
        self.new_token()


__all__ = ["LoadToken", "LoadTokenManager"]
