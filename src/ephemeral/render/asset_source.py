"""Directory-backed asset source.

Resolves ``<root>/<scene_id><ext>`` for the first configured extension that
exists and reads it off the event loop. The bytes are opaque here; decoding
into meshes is left to whatever consumes ``SceneAsset.payload``.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ephemeral.config.models import DEFAULT_ASSET_EXTENSIONS
from ephemeral.render.interfaces import SceneAsset
from ephemeral.runtime.errors import AssetDecodeError, AssetNotFoundError

logger = logging.getLogger(__name__)


class DirectoryAssetSource:
    def __init__(
        self,
        root: str | Path,
        *,
        extensions: Sequence[str] = DEFAULT_ASSET_EXTENSIONS,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self._root = Path(root).expanduser()
        self._extensions = tuple(ext if ext.startswith(".") else f".{ext}" for ext in extensions)
        if not self._extensions:
            raise ValueError("at least one asset extension is required")
        self._loop = loop
        self.released_count = 0

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, scene_id: str) -> Optional[Path]:
        if not scene_id or Path(scene_id).name != scene_id:
            raise AssetNotFoundError(f"invalid scene id: {scene_id!r}", scene_id=scene_id)
        for ext in self._extensions:
            candidate = self._root / f"{scene_id}{ext}"
            if candidate.is_file():
                return candidate
        return None

    def missing(self, scene_ids: Iterable[str]) -> list[str]:
        """Scene ids with no matching file under the root."""
        return [sid for sid in scene_ids if self.resolve(sid) is None]

    async def fetch(self, scene_id: str) -> SceneAsset:
        path = self.resolve(scene_id)
        if path is None:
            raise AssetNotFoundError(
                f"no asset for scene {scene_id!r} under {self._root}",
                scene_id=scene_id,
            )
        loop = self._loop or asyncio.get_running_loop()
        try:
            payload = await loop.run_in_executor(None, path.read_bytes)
        except OSError as exc:
            raise AssetDecodeError(f"failed to read {path}: {exc}", scene_id=scene_id) from exc
        if not payload:
            raise AssetDecodeError(f"asset file is empty: {path}", scene_id=scene_id)
        logger.debug("asset read scene=%s bytes=%d path=%s", scene_id, len(payload), path)
        return SceneAsset(scene_id=scene_id, payload=payload, source=str(path))

    def release(self, asset: SceneAsset) -> None:
        asset.payload = None
        self.released_count += 1


__all__ = ["DirectoryAssetSource"]
