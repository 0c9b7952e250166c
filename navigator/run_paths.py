"""
Test cycle features.

- Folder paths on test-run rows: resolve the cycle key to a test run, fetch
  its items and the folder tree, then label every row with its folder path.
  Rows that render later are labelled when the page reports a change.
- Removing a test case from a test run, from the test player page.

Both start from a page URL; the extract_* helpers pull the keys out of it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Optional
from urllib.parse import parse_qs, urlsplit

from .annotations import FOLDER_PATH_MARKER, AnnotatableRow, ChangeWatcher, annotate_folder_paths
from .errors import TestRunNotFound
from .tree import PathIndex, PathIndexCache

if TYPE_CHECKING:
    from connectors.host_interface import TestManagementConnector

logger = logging.getLogger(__name__)

# #!/v2/testCycle/CPG-R2/addTestCases?projectId=10000
_ADD_TEST_CASES_RE = re.compile(r"/v2/testCycle/([^/?#]+)/addTestCases")
# #!/v2/testPlayer/CPG-R2?assignedTestCaseId=123
_TEST_PLAYER_RE = re.compile(r"/v2/testPlayer/([^?#]+)\?assignedTestCaseId=(\d+)")


@dataclass(frozen=True)
class CycleInfo:
    test_cycle_key: str
    project_id: str


@dataclass(frozen=True)
class PlayerInfo:
    test_cycle_key: str
    assigned_test_case_id: int
    project_key: str
    project_id: str


def _query_value(query: str, name: str) -> Optional[str]:
    values = parse_qs(query).get(name)
    return values[0] if values else None


def extract_cycle_info(url: str) -> Optional[CycleInfo]:
    """
    Read the test cycle key and project id from an "add test cases" page URL.

    The project id is taken from the fragment's query, then from the page
    query (the iframe URL carries it there).
    """
    parts = urlsplit(url)
    fragment = parts.fragment
    match = _ADD_TEST_CASES_RE.search(fragment)
    if not match:
        logger.error(f"Failed to extract test cycle info from: {url}")
        return None
    fragment_query = fragment.split("?", 1)[1] if "?" in fragment else ""
    project_id = _query_value(fragment_query, "projectId") or _query_value(parts.query, "projectId")
    if not project_id:
        logger.error(f"Failed to extract projectId from: {url}")
        return None
    return CycleInfo(test_cycle_key=match.group(1), project_id=project_id)


def extract_player_info(url: str) -> Optional[PlayerInfo]:
    """Read cycle key, assigned test case and project from a test player URL."""
    parts = urlsplit(url)
    match = _TEST_PLAYER_RE.search(parts.fragment)
    if not match:
        logger.error(f"Failed to extract test player info from: {url}")
        return None
    project_key = _query_value(parts.query, "projectKey")
    project_id = _query_value(parts.query, "projectId")
    if not project_key or not project_id:
        logger.error(f"Failed to extract project info from: {url}")
        return None
    return PlayerInfo(
        test_cycle_key=match.group(1),
        assigned_test_case_id=int(match.group(2)),
        project_key=project_key,
        project_id=project_id,
    )


@dataclass
class RunFolders:
    """A test run's items mapped to folders, plus the index to name them."""

    test_run_id: int
    item_folders: dict[int, Optional[int]]
    index: PathIndex


class RunItemRow:
    """A test-run row kept outside the host page, e.g. for console listings."""

    def __init__(self, row_id: Optional[int]):
        self.row_id = row_id
        self.labels: dict[str, tuple[str, str]] = {}

    def has_marker(self, marker: str) -> bool:
        return marker in self.labels

    def annotate(self, marker: str, text: str, title: str = "") -> None:
        self.labels[marker] = (text, title)

    @property
    def folder_path(self) -> Optional[str]:
        label = self.labels.get(FOLDER_PATH_MARKER)
        return label[1] if label else None


def _resolve_test_run(connector: TestManagementConnector, test_cycle_key: str) -> int:
    test_run_id = connector.get_test_run_id(test_cycle_key)
    if test_run_id is None:
        raise TestRunNotFound(test_cycle_key)
    logger.debug(f"Test run {test_cycle_key} has id {test_run_id}")
    return test_run_id


def load_run_folders(
    connector: TestManagementConnector,
    test_cycle_key: str,
    cache: PathIndexCache,
) -> RunFolders:
    """Fetch a test run's items and the folder tree; rebuilds ``cache``."""
    test_run_id = _resolve_test_run(connector, test_cycle_key)
    items = connector.get_test_run_items(test_run_id)
    index = cache.rebuild(connector.get_folder_tree())
    item_folders = {item.id: item.folder_id for item in items}
    logger.debug(f"Test run {test_run_id}: {len(item_folders)} items, {len(index)} folders")
    return RunFolders(test_run_id=test_run_id, item_folders=item_folders, index=index)


def display_folder_paths(
    connector: TestManagementConnector,
    test_cycle_key: str,
    rows: Callable[[], Iterable[AnnotatableRow]],
    cache: PathIndexCache,
    watcher: Optional[ChangeWatcher] = None,
) -> RunFolders:
    """
    Label the rows of a test run with their folder paths.

    ``rows`` returns the rows currently rendered. With a ``watcher``, the
    labelling pass is subscribed to it and re-run on every notification,
    using whatever index ``cache`` holds at that time.
    """
    folders = load_run_folders(connector, test_cycle_key, cache)

    def label_rows() -> int:
        index = cache.current if cache.current is not None else folders.index
        return annotate_folder_paths(rows(), folders.item_folders, index)

    annotated = label_rows()
    logger.info(f"Folder paths shown on {annotated} rows of test cycle {test_cycle_key}")
    if watcher is not None:
        watcher.subscribe(label_rows)
    return folders


def remove_test_case(
    connector: TestManagementConnector,
    test_cycle_key: str,
    test_run_item_id: int,
) -> bool:
    """Remove one assigned test case from the test run behind ``test_cycle_key``."""
    test_run_id = _resolve_test_run(connector, test_cycle_key)
    removed = connector.remove_test_run_item(test_run_id, test_run_item_id)
    if removed:
        logger.info(f"Removed test run item {test_run_item_id} from test run {test_run_id}")
    else:
        logger.error(f"Failed to remove test run item {test_run_item_id} from test run {test_run_id}")
    return removed


__all__ = [
    "CycleInfo",
    "PlayerInfo",
    "RunFolders",
    "RunItemRow",
    "display_folder_paths",
    "extract_cycle_info",
    "extract_player_info",
    "load_run_folders",
    "remove_test_case",
]
