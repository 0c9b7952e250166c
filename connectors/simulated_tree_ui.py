"""
In-memory folder tree UI that renders lazily, like the host page does.

Root folders appear after ``initial_delay`` polls. Children of a folder
appear ``child_delay`` polls after the folder is expanded. Every call to
is_present() or any_folder_present() counts as one poll. Folders listed in
``hidden`` never render; folders listed in ``leaf_ids`` render without an
expand control.
"""

from collections import Counter
from typing import Iterable, Optional

from connectors.host_interface import FolderTreeUI
from navigator.models import FolderTree, coerce_folder_tree


class SimulatedTreeUI(FolderTreeUI):
    def __init__(
        self,
        tree: FolderTree,
        initial_delay: int = 0,
        child_delay: int = 1,
        hidden: Iterable[int] = (),
        leaf_ids: Iterable[int] = (),
        expanded: Iterable[int] = (),
    ):
        tree = coerce_folder_tree(tree)
        self._nodes = {node.id: node for node in tree.walk()}
        self._parent: dict[int, Optional[int]] = {root.id: None for root in tree.roots}
        for node in self._nodes.values():
            for child in node.children:
                self._parent[child.id] = node.id
        self.initial_delay = initial_delay
        self.child_delay = child_delay
        self.hidden = set(hidden)
        self.leaf_ids = set(leaf_ids)
        self.ticks = 0
        # folder id -> tick at which it was expanded
        self._expanded_at: dict[int, int] = {folder_id: -child_delay for folder_id in expanded}
        self.actions: list[tuple[str, int]] = []
        self.presence_checks: Counter = Counter()
        self.selected: Optional[int] = None

    def _tick(self) -> None:
        self.ticks += 1

    def _rendered(self, folder_id: int) -> bool:
        if folder_id not in self._nodes or folder_id in self.hidden:
            return False
        parent_id = self._parent.get(folder_id)
        if parent_id is None:
            return self.ticks > self.initial_delay
        expanded_at = self._expanded_at.get(parent_id)
        if expanded_at is None or not self._rendered(parent_id):
            return False
        return self.ticks > expanded_at + self.child_delay

    def any_folder_present(self) -> bool:
        self._tick()
        return any(self._rendered(root_id) for root_id, parent in self._parent.items() if parent is None)

    def is_present(self, folder_id: int) -> bool:
        self._tick()
        self.presence_checks[folder_id] += 1
        return self._rendered(folder_id)

    def is_expanded(self, folder_id: int) -> bool:
        return folder_id in self._expanded_at and self._rendered(folder_id)

    def has_expand_control(self, folder_id: int) -> bool:
        node = self._nodes.get(folder_id)
        if node is None or folder_id in self.leaf_ids:
            return False
        return bool(node.children) and self._rendered(folder_id)

    def expand(self, folder_id: int) -> None:
        self.actions.append(("expand", folder_id))
        if self._rendered(folder_id) and folder_id not in self._expanded_at:
            self._expanded_at[folder_id] = self.ticks

    def select(self, folder_id: int) -> bool:
        self.actions.append(("select", folder_id))
        if not self._rendered(folder_id):
            return False
        self.selected = folder_id
        return True
