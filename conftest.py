import os
import tempfile

import pytest

# CLIs configure logging at import time; keep test runs out of ~/.tmfolders
_tmp_dir = tempfile.mkdtemp(prefix="tmfolders-tests-")
os.environ.setdefault("TMFOLDERS_LOGFILE", os.path.join(_tmp_dir, "log.txt"))
os.environ.setdefault("TMFOLDERS_CONFIG", os.path.join(_tmp_dir, "missing-config.yaml"))


@pytest.fixture
def abc_tree_payload():
    """A(1) -> B(2) -> C(3), one child per level."""
    return [
        {"id": 1, "name": "A", "children": [
            {"id": 2, "name": "B", "parentId": 1, "children": [
                {"id": 3, "name": "C", "parentId": 2, "children": []},
            ]},
        ]},
    ]


@pytest.fixture
def forest_payload():
    """Two roots, duplicate names at different positions."""
    return [
        {"id": 10, "name": "Regression", "children": [
            {"id": 11, "name": "Login", "parentId": 10, "children": [
                {"id": 12, "name": "SSO", "parentId": 11, "children": []},
                {"id": 13, "name": "Password", "parentId": 11, "children": []},
            ]},
            {"id": 14, "name": "Checkout", "parentId": 10, "children": []},
        ]},
        {"id": 20, "name": "Smoke", "children": [
            {"id": 21, "name": "Login", "parentId": 20, "children": []},
        ]},
    ]
