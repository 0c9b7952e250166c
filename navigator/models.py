"""Pydantic models for folder trees and navigation requests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, Mapping, Sequence

import json
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError


class FolderNode(BaseModel):
    """A folder as returned by the test-management server."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    name: str
    parent_id: int | None = Field(default=None, alias="parentId")
    children: tuple[FolderNode, ...] = Field(default_factory=tuple)

    @property
    def is_leaf(self) -> bool:
        return not self.children


FolderNode.model_rebuild()


class FolderTree(BaseModel):
    """Immutable forest of folders produced from a single fetch."""

    model_config = ConfigDict(frozen=True)

    roots: tuple[FolderNode, ...] = Field(default_factory=tuple)

    def walk(self) -> Iterator[FolderNode]:
        """Yield every node in pre-order, siblings in their given order."""
        stack = list(reversed(self.roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    @property
    def node_count(self) -> int:
        return sum(1 for _ in self.walk())


class ExpansionRequest(BaseModel):
    """Request to reveal and select ``target_id`` in the host folder tree.

    ``chain`` is the root-to-target ancestor chain when known.
    """

    model_config = ConfigDict(frozen=True)

    target_id: int
    chain: tuple[int, ...] | None = None

    @property
    def has_chain(self) -> bool:
        return bool(self.chain)


class TestRunItem(BaseModel):
    """A test case assigned to a test run, with the folder it lives in."""

    __test__ = False  # not a pytest test class

    model_config = ConfigDict(populate_by_name=True)

    id: int
    folder_id: int | None = Field(default=None, alias="folderId")


# ---------------------------------------------------------------------------
# helpers


def coerce_folder_tree(value: Any) -> FolderTree:
    """Normalize a server payload, file or text into a FolderTree.

    Accepts a FolderTree, a list of root folders, a mapping with a
    ``children`` list (a virtual root wrapper), raw YAML/JSON text or a Path.
    """
    if isinstance(value, FolderTree):
        return value
    if isinstance(value, Path):
        value = _load_text_payload(value.read_text())
    elif isinstance(value, (str, bytes)):
        value = _load_text_payload(value)
    if isinstance(value, Mapping):
        if "roots" in value:
            value = value["roots"]
        else:
            value = value.get("children", [])
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise TypeError("Unsupported value for a folder tree")
    try:
        return FolderTree.model_validate({"roots": list(value)})
    except ValidationError as exc:
        raise ValueError("Invalid folder tree payload") from exc


def _load_text_payload(raw: str | bytes) -> Any:
    """Interpret raw text as YAML first, falling back to JSON."""
    text = raw.decode() if isinstance(raw, bytes) else raw
    try:
        return yaml.safe_load(text) or []
    except yaml.YAMLError:
        return json.loads(text)


__all__ = [
    "ExpansionRequest",
    "FolderNode",
    "FolderTree",
    "TestRunItem",
    "coerce_folder_tree",
]
