import pytest
from fastapi.testclient import TestClient

from mock_tm import daemon

AUTH = {"Authorization": "JWT test-token", "jira-project-id": "10000"}

SEED = {
    "folders": [
        {"id": 1, "name": "Alpha", "children": [
            {"id": 2, "name": "Beta", "parentId": 1, "children": []},
        ]},
    ],
    "testRuns": [{"id": 77, "key": "CPG-R7", "name": "Nightly"}],
    "testRunItems": {"77": [{"id": 700, "folderId": 2}, {"id": 701, "folderId": 1}]},
}


@pytest.fixture
def client():
    with TestClient(daemon.app) as c:
        r = c.post("/seed", json=SEED)
        assert r.status_code == 204
        yield c
    daemon.seed_store(daemon.SeedModel())


def test_status(client):
    r = client.get("/status")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "folders": 1, "testRuns": 1}


def test_get_test_run_with_fields(client):
    r = client.get("/testrun/CPG-R7", params={"fields": "id,key"}, headers=AUTH)
    assert r.status_code == 200
    assert r.json() == {"id": 77, "key": "CPG-R7"}
    r = client.get("/testrun/CPG-R7", headers=AUTH)
    assert r.json()["name"] == "Nightly"


def test_unknown_test_run(client):
    r = client.get("/testrun/NOPE", headers=AUTH)
    assert r.status_code == 404
    r = client.get("/testrun/999/testrunitems", headers=AUTH)
    assert r.status_code == 404


def test_folder_tree(client):
    r = client.get("/project/10000/foldertree/testcase", headers=AUTH)
    assert r.status_code == 200
    tree = r.json()
    assert tree[0]["name"] == "Alpha"
    assert tree[0]["children"][0]["parentId"] == 1


def test_missing_or_wrong_authorization(client):
    assert client.get("/project/10000/foldertree/testcase").status_code == 401
    r = client.get("/project/10000/foldertree/testcase", headers={"Authorization": "Bearer x"})
    assert r.status_code == 401


def test_bulk_save_removes_items(client):
    r = client.put("/testrunitem/bulk/save", json={"testRunId": 77, "deletedTestRunItems": [{"id": 700}]}, headers=AUTH)
    assert r.status_code == 200
    assert r.json() == {"testRunId": 77, "deleted": [700]}
    r = client.get("/testrun/77/testrunitems", headers=AUTH)
    assert [item["id"] for item in r.json()] == [701]


def test_bulk_save_unknown_run(client):
    r = client.put("/testrunitem/bulk/save", json={"testRunId": 5, "deletedTestRunItems": [{"id": 1}]}, headers=AUTH)
    assert r.status_code == 404


def test_seed_rejects_invalid_folders(client):
    r = client.post("/seed", json={"folders": [{"id": 1, "name": ""}]})
    assert r.status_code == 422


def test_shutdown_without_server(client):
    r = client.post("/shutdown")
    assert r.status_code == 200
    assert r.json()["message"] == "Server shutting down"
