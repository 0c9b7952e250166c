# connections_manager.py
"""
connections_manager.py
----------------------
Manages test-management sessions

Holds in-memory sessions to the test-management backend.

Creates sessions as needed.
Reuses existing sessions when possible.

"""

from typing import Optional

import httpx

from connectors.host_interface import TestManagementSessionProtocol
from connectors.tm4j_connector import TM4JSession

######################### Sessions #########################


## the manager is this module itself

# variable to hold active sessions:

_active_sessions: dict[tuple[str, str], TestManagementSessionProtocol] = {}
# key: (base_URL, project_id) tuple
# value: TestManagementSessionProtocol instance
# A new JWT for the same pair replaces the old session.

# create a session. If a matching session already exists, return it.
def get_session(api_type: str, base_URL: str, jwt: str, project_id: str,
                timeout: float = 10.0, client: Optional[httpx.Client] = None,
                check: bool = False) -> TestManagementSessionProtocol:
    """
    Get or create a session for the given parameters.
    Reuses an existing session if one matches the (base_URL, project_id) pair and the JWT.
    With check=True, connect() is called to verify reachability.
    """
    key = (base_URL.rstrip("/"), str(project_id))
    session = _active_sessions.get(key)
    if session is not None and getattr(session, "jwt", None) == jwt:
        return session

    # else:
    # Create a new session based on api_type
    if api_type == "tm4j":
        session = TM4JSession(base_URL, jwt, str(project_id), timeout=timeout, client=client)
    # Add other backends here as needed
    else:
        raise ValueError(f"Unsupported API type: {api_type}")

    if check:
        session.connect()
    old = _active_sessions.get(key)
    _active_sessions[key] = session
    if old is not None:
        old.disconnect()
    return session


def close_all() -> None:
    """Disconnect and forget every cached session."""
    for session in list(_active_sessions.values()):
        session.disconnect()
    _active_sessions.clear()
