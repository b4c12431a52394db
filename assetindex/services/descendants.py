"""Descendant resolution over the folder tree cache."""

from collections.abc import Mapping, Sequence

from sqlalchemy.orm import Session

from assetindex.services.folder_tree_cache import FolderTreeCache, folder_tree_cache


def collect_subtree(child_map: Mapping[str, Sequence[str]], folder_id: str) -> list[str]:
    """Folder id plus every id reachable through child links, in visit order.

    Iterative with a visited guard, so deep trees can't exhaust the stack and
    a corrupt (cyclic) map can't loop forever.
    """
    result = [folder_id]
    visited = {folder_id}
    stack = [folder_id]

    while stack:
        current = stack.pop()
        for child_id in child_map.get(current, ()):
            if child_id not in visited:
                visited.add(child_id)
                result.append(child_id)
                stack.append(child_id)

    return result


def post_order(child_map: Mapping[str, Sequence[str]], folder_id: str) -> list[str]:
    """Subtree ids with every folder listed after all of its descendants."""
    order: list[str] = []
    visited: set[str] = set()
    stack: list[tuple[str, bool]] = [(folder_id, False)]

    while stack:
        current, expanded = stack.pop()
        if expanded:
            order.append(current)
            continue
        if current in visited:
            continue
        visited.add(current)
        stack.append((current, True))
        for child_id in reversed(child_map.get(current, ())):
            if child_id not in visited:
                stack.append((child_id, False))

    return order


class DescendantResolver:
    """Computes descendant sets from the cached child map.

    Results may lag the store by up to the cache TTL for writes made by other
    processes; writes made through this package invalidate the cache.
    """

    def __init__(self, cache: FolderTreeCache = folder_tree_cache):
        self._cache = cache

    def descendant_ids(self, db: Session, folder_id: str) -> set[str]:
        """The folder itself plus all of its descendants."""
        return set(collect_subtree(self._cache.get_child_map(db), folder_id))

    def is_descendant(self, db: Session, folder_id: str, candidate_id: str) -> bool:
        """True if candidate_id lies strictly below folder_id."""
        if candidate_id == folder_id:
            return False
        return candidate_id in self.descendant_ids(db, folder_id)


# Singleton instance
descendant_resolver = DescendantResolver()
