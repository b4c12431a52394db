"""Folder tree cache.

Holds a parent -> children adjacency map of the whole folder forest, built
from one scan of every folder's (id, parent_id) pair.

Contract:
- A built map is served for ``ttl_seconds`` (30s by default); the first read
  after expiry rebuilds synchronously.
- ``invalidate()`` forces the next read to rebuild regardless of TTL. Every
  folder write calls it after committing.
- The map is only ever replaced wholesale, never patched.
- Concurrent rebuilds after expiry are tolerated: each produces the same
  logical content and the last one installed wins.
- A rebuild that started before an ``invalidate()`` still answers its own
  caller but is not installed, so it can't mask the write that invalidated.

The map handed out is shared; callers must treat it as read-only.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable

from sqlalchemy.orm import Session

from assetindex.repositories import folder_repository
from assetindex.settings import settings
from assetindex.utils import get_logger

logger = get_logger(__name__)

ChildMap = dict[str, list[str]]
ParentLinkLoader = Callable[[Session], Iterable[tuple[str, str | None]]]


def build_child_map(links: Iterable[tuple[str, str | None]]) -> ChildMap:
    """Group folder ids under their parent id, keeping scan order.

    Root folders (parent None) are not keys of the map.
    """
    child_map: ChildMap = {}
    for folder_id, parent_id in links:
        if parent_id is not None:
            child_map.setdefault(parent_id, []).append(folder_id)
    return child_map


class FolderTreeCache:
    """Process-wide TTL cache of the folder adjacency map."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        loader: ParentLinkLoader | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            ttl_seconds: How long a built map stays valid (default from settings)
            loader: Returns (id, parent_id) pairs for a session; defaults to the
                folder repository's full scan
            clock: Monotonic time source, injectable for tests
        """
        self._ttl = settings.folder_cache_ttl_seconds if ttl_seconds is None else ttl_seconds
        self._loader = loader or folder_repository.get_parent_links
        self._clock = clock
        self._lock = threading.RLock()
        self._child_map: ChildMap | None = None
        self._built_at = 0.0
        self._generation = 0
        self.build_count = 0

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def is_valid(self) -> bool:
        """True if a built map is present and younger than the TTL."""
        with self._lock:
            return self._is_valid_locked()

    def _is_valid_locked(self) -> bool:
        return self._child_map is not None and (self._clock() - self._built_at) < self._ttl

    def get_child_map(self, db: Session) -> ChildMap:
        """Adjacency map, rebuilt first if expired or invalidated.

        Args:
            db: Session used for the scan when a rebuild is needed

        Returns:
            Map folder_id -> ordered direct child ids
        """
        with self._lock:
            if self._is_valid_locked():
                return self._child_map
            generation = self._generation

        # The scan runs outside the lock; racing rebuilds only waste work
        started_at = self._clock()
        child_map = build_child_map(self._loader(db))

        with self._lock:
            self.build_count += 1
            if self._generation == generation:
                self._child_map = child_map
                self._built_at = started_at
            else:
                logger.debug("Folder tree cache invalidated during rebuild, snapshot not installed")

        logger.debug(f"Folder tree cache rebuilt: {len(child_map)} parents")
        return child_map

    def invalidate(self) -> None:
        """Drop the current map; the next read rebuilds."""
        with self._lock:
            self._child_map = None
            self._generation += 1


# Singleton instance
folder_tree_cache = FolderTreeCache()
