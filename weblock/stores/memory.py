# =======================================================================================
# weblock/stores/memory.py - Local-only Store
# =======================================================================================
from typing import Tuple

from .base import LeafStore, Leaves


class MemoryStore(LeafStore):
    """Non-persistent store used when no backend is configured. Data lives for the process."""

    backend = "memory"
    persistent = False

    def __init__(self):
        super().__init__()
        self._leaves: Leaves = {}
        self._set_connected(True)

    def _load(self, segments: Tuple[str, ...]) -> Leaves:
        depth = len(segments)
        return {path: value for path, value in self._leaves.items() if path[:depth] == segments}

    def _replace(self, segments: Tuple[str, ...], leaves: Leaves) -> None:
        depth = len(segments)
        for path in list(self._leaves):
            # at/below the target, or a leaf sitting on one of its ancestors
            if path[:depth] == segments or segments[:len(path)] == path:
                del self._leaves[path]
        self._leaves.update(leaves)
