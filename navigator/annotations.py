"""
Idempotent annotation passes over the host page.

The host page re-renders freely (virtualized grids, lazily expanded
folders), so every pass is re-run on each change notification. A pass must
check its marker before annotating, so re-running it over a partially
annotated page never annotates anything twice.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping, Optional, Protocol

from .tree import PathIndex

logger = logging.getLogger(__name__)

FOLDER_PATH_MARKER = "folder-path-label"
LINK_BUTTON_MARKER = "folder-link-btn"


class AnnotatableRow(Protocol):
    """A test-run row in the host grid."""

    @property
    def row_id(self) -> Optional[int]: ...
    def has_marker(self, marker: str) -> bool: ...
    def annotate(self, marker: str, text: str, title: str = "") -> None: ...


class AnnotatableFolder(Protocol):
    """A folder entry in the host folder tree."""

    @property
    def folder_id(self) -> Optional[int]: ...
    @property
    def folder_name(self) -> Optional[str]: ...
    def has_marker(self, marker: str) -> bool: ...
    def attach_action(self, marker: str, label: str, action: Callable[[], object]) -> None: ...


def annotate_folder_paths(
    rows: Iterable[AnnotatableRow],
    item_folders: Mapping[int, Optional[int]],
    index: PathIndex,
) -> int:
    """
    Append the folder path, as ``(A/B/C)``, to each test-run row.

    ``item_folders`` maps test-run item id to folder id. Rows without an id,
    without a known folder, or already labelled are left alone.

    Returns the number of rows annotated by this pass.
    """
    annotated = 0
    seen = 0
    for row in rows:
        seen += 1
        if row.has_marker(FOLDER_PATH_MARKER):
            continue
        if row.row_id is None:
            continue
        folder_id = item_folders.get(row.row_id)
        if folder_id is None:
            continue
        path = index.path_of(folder_id)
        if path is None:
            continue
        row.annotate(FOLDER_PATH_MARKER, f"({path})", title=path)
        annotated += 1
    logger.debug(f"Processed {seen} rows, annotated {annotated}")
    return annotated


def add_link_buttons(
    folders: Iterable[AnnotatableFolder],
    make_link: Callable[[int], object],
) -> int:
    """Attach a copy-link action to every folder that does not have one yet."""
    added = 0
    for folder in folders:
        folder_id = folder.folder_id
        if folder_id is None or not folder.folder_name:
            continue
        if folder.has_marker(LINK_BUTTON_MARKER):
            continue
        folder.attach_action(
            LINK_BUTTON_MARKER,
            "Copy link to this folder",
            lambda folder_id=folder_id: make_link(folder_id),
        )
        added += 1
        logger.debug(f"Link button added to folder: {folder.folder_name} ({folder_id})")
    return added


class ChangeWatcher:
    """
    Re-runs registered passes whenever the host page reports a change.

    Stands in for a DOM mutation observer: the host adapter calls
    ``notify()``; each pass is run in registration order. A failing pass is
    logged and does not prevent the others from running.
    """

    def __init__(self) -> None:
        self._passes: list[Callable[[], object]] = []
        self.active = True

    def subscribe(self, annotation_pass: Callable[[], object]) -> Callable[[], None]:
        self._passes.append(annotation_pass)

        def unsubscribe() -> None:
            if annotation_pass in self._passes:
                self._passes.remove(annotation_pass)

        return unsubscribe

    def notify(self) -> int:
        """Run every pass once. Returns the number of passes that completed."""
        if not self.active:
            return 0
        completed = 0
        for annotation_pass in list(self._passes):
            try:
                annotation_pass()
            except Exception:
                logger.exception(f"Annotation pass {annotation_pass!r} failed")
                continue
            completed += 1
        return completed

    def disconnect(self) -> None:
        self.active = False
        self._passes.clear()


__all__ = [
    "FOLDER_PATH_MARKER",
    "LINK_BUTTON_MARKER",
    "AnnotatableFolder",
    "AnnotatableRow",
    "ChangeWatcher",
    "add_link_buttons",
    "annotate_folder_paths",
]
