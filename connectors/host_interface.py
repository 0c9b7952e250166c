from typing import Protocol, Any, List, Optional
from box import Box


class ConnectorInfo(Box):
    """
    Dot-access description of a connector (type, base URL, project...).
    Examples:
        info = ConnectorInfo(type="tm4j", project_id="10000")
        print(info.type)          # tm4j
        print(info['project_id']) # 10000
    """


class FolderTreeUI(Protocol):
    """
    Protocol for the host page's folder tree, as seen by the expansion sequencer.

    Every method takes a folder id and must be synchronous and idempotent.
    How a folder is found (selector, data attribute, widget id...) is up to
    the implementation.
    """

    def any_folder_present(self) -> bool:
        """True once the tree has rendered at least one folder."""
        ...

    def is_present(self, folder_id: int) -> bool: ...
    def is_expanded(self, folder_id: int) -> bool: ...
    def has_expand_control(self, folder_id: int) -> bool:
        """False for folders rendered as leaves (no chevron)."""
        ...

    def expand(self, folder_id: int) -> None: ...
    def select(self, folder_id: int) -> bool:
        """Trigger selection. Returns whether a clickable element was found."""
        ...


class TestManagementSessionProtocol(Protocol):
    """Interface Protocol for authenticated sessions against the test-management REST API."""

    @property
    def base_URL(self) -> str: ...
    @property
    def is_alive(self) -> bool: ...
    def connect(self): ...
    def disconnect(self): ...
    def request(self, method: str, endpoint: str, **kwargs) -> Any: ...


class TestManagementConnector(Protocol):
    """
       Protocol for a test-management connector.
       Implementations must accept a TestManagementSessionProtocol instance upon initialization
       and store it as self.session.
    """

    def get_test_run_id(self, test_cycle_key: str) -> Optional[int]: ...
    def get_test_run_items(self, test_run_id: int) -> List[Any]: ...
    def get_folder_tree(self) -> Any: ...
    def remove_test_run_item(self, test_run_id: int, test_run_item_id: int) -> bool: ...

    @property
    def info(self) -> ConnectorInfo:
        """
        Returns information about the connector,
          such as type, base URL and project, as a Box.
        """
        ...
