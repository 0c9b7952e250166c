"""Path and ancestor-chain lookups derived from a folder tree snapshot."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from .models import FolderNode, FolderTree, coerce_folder_tree

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "/"


def build_path_index(tree: FolderTree) -> PathIndex:
    """Build the id -> display path map for every folder in ``tree``."""
    paths: dict[int, str] = {}
    stack = [(root, "") for root in reversed(tree.roots)]
    while stack:
        node, parent_path = stack.pop()
        path = f"{parent_path}{PATH_SEPARATOR}{node.name}" if parent_path else node.name
        paths[node.id] = path
        stack.extend((child, path) for child in reversed(node.children))
    logger.debug(f"Built path index for {len(paths)} folders")
    return PathIndex(tree=tree, _paths=paths)


def find_ancestor_chain(tree: FolderTree, target_id: int) -> list[int] | None:
    """Return the root-to-target id chain for ``target_id``, or None.

    Pre-order depth-first search; the first match in traversal order wins.
    """
    # each entry: (node, chain of ancestors above it)
    stack: list[tuple[FolderNode, tuple[int, ...]]] = [(root, ()) for root in reversed(tree.roots)]
    while stack:
        node, above = stack.pop()
        chain = above + (node.id,)
        if node.id == target_id:
            return list(chain)
        stack.extend((child, chain) for child in reversed(node.children))
    return None


@dataclass
class PathIndex:
    """Read-only lookups for one tree snapshot.

    Ancestor chains are searched lazily and memoized per snapshot.
    """

    tree: FolderTree
    _paths: dict[int, str] = field(default_factory=dict, repr=False)
    _chains: dict[int, tuple[int, ...] | None] = field(default_factory=dict, repr=False)

    @property
    def paths(self) -> Mapping[int, str]:
        return MappingProxyType(self._paths)

    def path_of(self, folder_id: int) -> str | None:
        return self._paths.get(folder_id)

    def __contains__(self, folder_id: object) -> bool:
        return folder_id in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def ancestor_chain_to(self, folder_id: int) -> list[int] | None:
        if folder_id not in self._chains:
            chain = find_ancestor_chain(self.tree, folder_id)
            self._chains[folder_id] = tuple(chain) if chain is not None else None
        cached = self._chains[folder_id]
        return list(cached) if cached is not None else None


class PathIndexCache:
    """Process-scoped holder of the current PathIndex.

    ``rebuild`` builds the new index completely before publishing it with a
    single reference swap, so readers see either the old or the new snapshot.
    """

    def __init__(self) -> None:
        self._index: PathIndex | None = None

    @property
    def current(self) -> PathIndex | None:
        return self._index

    def rebuild(self, tree: Any) -> PathIndex:
        index = build_path_index(coerce_folder_tree(tree))
        self._index = index
        logger.info(f"Path index rebuilt ({len(index)} folders)")
        return index

    def clear(self) -> None:
        self._index = None

    def path_of(self, folder_id: int) -> str | None:
        index = self._index
        return index.path_of(folder_id) if index is not None else None

    def ancestor_chain_to(self, folder_id: int) -> list[int] | None:
        index = self._index
        return index.ancestor_chain_to(folder_id) if index is not None else None


__all__ = [
    "PATH_SEPARATOR",
    "PathIndex",
    "PathIndexCache",
    "build_path_index",
    "find_ancestor_chain",
]
