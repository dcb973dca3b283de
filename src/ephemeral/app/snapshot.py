"""UI-facing snapshot of the viewer state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ephemeral.scene.state import EnvironmentFlags, Transform


def format_countdown(seconds: int) -> str:
    """Format remaining seconds as ``MM:SS``."""
    total = max(0, int(seconds))
    minutes, secs = divmod(total, 60)
    return f"{minutes:02d}:{secs:02d}"


@dataclass(frozen=True)
class ViewerSnapshot:
    timeline_phase: str
    load_phase: str
    scene_id: Optional[str]
    pending_scene_id: Optional[str]
    remaining_s: int
    countdown_text: str
    show_restart: bool
    transform: Transform
    flags: EnvironmentFlags
    disappear_progress: float = 0.0
    last_error: Optional[str] = None

    def as_dict(self) -> dict[str, object]:
        return {
            "timeline_phase": self.timeline_phase,
            "load_phase": self.load_phase,
            "scene_id": self.scene_id,
            "pending_scene_id": self.pending_scene_id,
            "remaining_s": self.remaining_s,
            "countdown": self.countdown_text,
            "show_restart": self.show_restart,
            "zoom": self.transform.zoom,
            "rotation_x": self.transform.rotation_x,
            "rotation_y": self.transform.rotation_y,
            "daytime": self.flags.daytime,
            "rainy": self.flags.rainy,
            "disappear_progress": self.disappear_progress,
            "last_error": self.last_error,
        }


__all__ = ["ViewerSnapshot", "format_countdown"]
