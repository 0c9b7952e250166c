"""
Connector for the Zephyr Scale (TM4J) backend REST API.

Only the handful of endpoints the navigator needs: resolve a test run,
list its items, fetch the test-case folder tree and remove an item from a
run. Every request goes through TM4JSession.request(), which calls
raise_for_status(); callers decide how to report failures.
"""

import re
from typing import Any, Optional
import uuid
import httpx

from connectors.host_interface import ConnectorInfo, TestManagementConnector, TestManagementSessionProtocol
from navigator.models import FolderTree, TestRunItem, coerce_folder_tree


def read_cookie(cookie_header: str, name: str) -> Optional[str]:
    """Return the value of cookie ``name`` from a Cookie header string."""
    match = re.search(rf"(?:^|;)\s*{re.escape(name)}\s*=\s*([^;]+)", cookie_header or "")
    return match.group(1) if match else None


def read_jwt(cookie_header: str) -> Optional[str]:
    """The backend authenticates with the JWT kept in the ``jwt`` cookie."""
    return read_cookie(cookie_header, "jwt")


##### Sessions #####
class TM4JSession(TestManagementSessionProtocol):
    """
    An authenticated session against the TM4J backend.

    Args:
        base_URL (str): The REST base URL, scheme included.
            Example: "https://app.tm4j.smartbear.com/backend/rest/tests/2.0"
        jwt (str): The JWT read from the host page cookies.
        project_id (str): The Jira project id, sent in the jira-project-id header.
        timeout (float): Request timeout in seconds.
        client (httpx.Client): Optional pre-built client (tests pass a FastAPI TestClient).
    """
    def __init__(self, base_URL: str, jwt: str, project_id: str, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self._base_URL = base_URL.rstrip("/")
        self.jwt = jwt
        self.project_id = str(project_id)
        self.session_id = str(uuid.uuid4())
        headers = {
            "Authorization": f"JWT {jwt}",
            "Content-Type": "application/json",
            "jira-project-id": self.project_id,
        }
        if client is None:
            client = httpx.Client(base_url=self._base_URL, headers=headers, timeout=timeout)
        else:
            client.headers.update(headers)
        self._client = client

    @property
    def base_URL(self) -> str:
        return self._base_URL

    def request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        """
        Make an HTTP request to the backend.
        raise_for_status() is called on the response.

        Args:
            method (str): The HTTP method (GET, POST, PUT, DELETE).
            endpoint (str): The API endpoint (path) to call.
            **kwargs: Additional arguments to pass to httpx request.
            example: session.request("GET", "/testrun/CPG-R2", params={"fields": "id"})

        Returns:
            httpx.Response: The HTTP response object.
        """
        url = f"{self._base_URL}/{endpoint.lstrip('/')}"
        response = self._client.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    @property
    def is_alive(self) -> bool:
        """Check if the backend answers a status request."""
        try:
            resp = self.request("GET", "/status", timeout=2)
            return resp.status_code == 200
        except httpx.HTTPError:
            return False

    def connect(self):
        """Establish the session. The JWT is stateless, so this only checks reachability."""
        if not self.is_alive:
            raise ConnectionError(f"Cannot connect to test management API at {self._base_URL}")

    def disconnect(self):
        self._client.close()


##### Connectors #####

class TM4JConnector(TestManagementConnector):
    """ Test-management connector for one project. Uses REST API."""

    def __init__(self, session: TM4JSession):
        self.session: TM4JSession = session
        self.request = self.session.request  # "alias" Now self.request(...) is the same as self.session.request(...)

    @property
    def info(self) -> ConnectorInfo:
        return ConnectorInfo({
            "type": "tm4j",
            "baseURL": self.session.base_URL,
            "project_id": self.session.project_id,
        })

    def get_test_run_id(self, test_cycle_key: str) -> Optional[int]:
        """Resolve a test cycle key (e.g. CPG-R2) to the numeric test run id."""
        r = self.request("GET", f"/testrun/{test_cycle_key}", params={"fields": "id,key,name"})
        return r.json().get("id")

    def get_test_run_items(self, test_run_id: int) -> list[TestRunItem]:
        r = self.request("GET", f"/testrun/{test_run_id}/testrunitems")
        payload: Any = r.json()
        if isinstance(payload, dict):
            payload = payload.get("testRunItems", [])
        return [TestRunItem.model_validate(item) for item in payload]

    def get_folder_tree(self) -> FolderTree:
        r = self.request("GET", f"/project/{self.session.project_id}/foldertree/testcase")
        return coerce_folder_tree(r.json())

    def remove_test_run_item(self, test_run_id: int, test_run_item_id: int) -> bool:
        body = {
            "deletedTestRunItems": [{"id": int(test_run_item_id)}],
            "testRunId": test_run_id,
        }
        r = self.request("PUT", "/testrunitem/bulk/save", json=body)
        return r.is_success
