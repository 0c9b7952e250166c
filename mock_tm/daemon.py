"""
mock_tm.daemon
--------------
This module implements a mock test-management REST API using FastAPI.
It serves the endpoints the navigator connector talks to: test runs,
test run items, the test-case folder tree and bulk item removal,
from an in-memory store. Intended for local development, testing,
and demonstration purposes.
"""
import json
import os
import socket
import sys
from typing import Any

import typer
import uvicorn
from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel, Field

from common.app_setup import setup_logging


# Pydantic models for the wire format
class FolderModel(BaseModel):
    id: int
    name: str = Field(..., min_length=1)
    parentId: int | None = None
    children: list["FolderModel"] = Field(default_factory=list)


FolderModel.model_rebuild()


class RunModel(BaseModel):
    id: int
    key: str
    name: str = ""


class RunItemModel(BaseModel):
    id: int
    folderId: int | None = None


class SeedModel(BaseModel):
    """Replaces the whole store."""
    folders: list[FolderModel] = Field(default_factory=list)
    testRuns: list[RunModel] = Field(default_factory=list)
    testRunItems: dict[int, list[RunItemModel]] = Field(default_factory=dict)


class DeletedItemModel(BaseModel):
    id: int


class BulkSaveModel(BaseModel):
    testRunId: int
    deletedTestRunItems: list[DeletedItemModel] = Field(default_factory=list)


# Set up logging for the daemon
logger = setup_logging(app_name="tmfolders", daemon=True)


# In-memory mock store
mock_folders: list[FolderModel] = []
mock_runs: dict[str, RunModel] = {}
mock_run_items: dict[int, list[RunItemModel]] = {}

app = FastAPI()


def _require_jwt(authorization: str | None) -> None:
    if not authorization or not authorization.startswith("JWT "):
        logger.warning("Request without JWT authorization header")
        raise HTTPException(status_code=401, detail="Missing JWT authorization")


def seed_store(seed: SeedModel) -> None:
    """Replace the in-memory store with ``seed``."""
    mock_folders[:] = seed.folders
    mock_runs.clear()
    mock_runs.update({run.key: run for run in seed.testRuns})
    mock_run_items.clear()
    mock_run_items.update({run_id: list(items) for run_id, items in seed.testRunItems.items()})


def get_server():
    # Helper to get the running server instance
    return getattr(app.state, "uvicorn_server", None)


@app.post("/shutdown")
def shutdown():
    """Shutdown the server gracefully."""
    logger.info("Shutdown requested via /shutdown endpoint.")
    server = get_server()
    if server:
        server.should_exit = True
    return {"message": "Server shutting down"}


@app.get("/status")
def status():
    """Health/status endpoint for the mock test-management daemon."""
    server = get_server()
    state = "shutting_down" if server and server.should_exit else "ok"
    return {"status": state, "folders": len(mock_folders), "testRuns": len(mock_runs)}


@app.post("/seed", status_code=204)
def seed(payload: SeedModel):
    """Load folders, test runs and items, replacing the current store."""
    seed_store(payload)
    logger.info(f"Store seeded: {len(payload.folders)} root folders, {len(payload.testRuns)} test runs")


@app.get("/testrun/{key}")
def get_test_run(key: str, fields: str | None = None, authorization: str | None = Header(None)) -> dict[str, Any]:
    """Retrieve a test run by its key (e.g. CPG-R2), optionally restricted to ``fields``."""
    _require_jwt(authorization)
    run = mock_runs.get(key)
    if not run:
        logger.warning(f"Test run not found: {key}")
        raise HTTPException(status_code=404, detail="Test run not found")
    data = run.model_dump()
    if fields:
        wanted = {f.strip() for f in fields.split(",")}
        data = {k: v for k, v in data.items() if k in wanted}
    return data


@app.get("/testrun/{run_id}/testrunitems", response_model=list[RunItemModel])
def get_test_run_items(run_id: int, authorization: str | None = Header(None)) -> list[RunItemModel]:
    _require_jwt(authorization)
    if run_id not in {run.id for run in mock_runs.values()}:
        raise HTTPException(status_code=404, detail="Test run not found")
    return mock_run_items.get(run_id, [])


@app.get("/project/{project_id}/foldertree/testcase", response_model=list[FolderModel])
def get_folder_tree(project_id: str, authorization: str | None = Header(None)) -> list[FolderModel]:
    """Return the complete test-case folder forest."""
    _require_jwt(authorization)
    logger.info(f"Folder tree requested for project {project_id}")
    return mock_folders


@app.put("/testrunitem/bulk/save")
def bulk_save(body: BulkSaveModel, authorization: str | None = Header(None)):
    """Remove the listed items from a test run."""
    _require_jwt(authorization)
    items = mock_run_items.get(body.testRunId)
    if items is None:
        raise HTTPException(status_code=404, detail="Test run not found")
    deleted = {item.id for item in body.deletedTestRunItems}
    mock_run_items[body.testRunId] = [item for item in items if item.id not in deleted]
    logger.info(f"Removed items {sorted(deleted)} from test run {body.testRunId}")
    return {"testRunId": body.testRunId, "deleted": sorted(deleted)}


app_cli = typer.Typer()

@app_cli.command()
def run(port: int = typer.Option(None, help="Port to run the server on (auto if not set)"),
        seed_file: str = typer.Option(None, help="JSON file with folders, testRuns and testRunItems to preload")):
    """Run the FastAPI app using Uvicorn on localhost, reporting the actual port used."""
    if seed_file:
        with open(seed_file) as f:
            seed_store(SeedModel.model_validate(json.load(f)))
    if port is None or port == 0:
        # Bind to port 0 to get a free port, then close and reuse
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(('127.0.0.1', 0))
            port = s.getsockname()[1]
        logger.info(f"Selected port: {port}")
        print(json.dumps({"event": "port_selected", "port": port}), flush=True)
    else:
        # Check if port is available
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            try:
                s.bind(('127.0.0.1', port))
            except OSError:
                logger.error(f"ERROR: Port {port} is already in use.")
                sys.exit(98)  # 98 = EADDRINUSE
        logger.info(f"Using port: {port}")
        print(json.dumps({"event": "port_used", "port": port}), flush=True)
    config = uvicorn.Config(app, host="127.0.0.1", port=port, log_level="info")
    server = uvicorn.Server(config)
    app.state.uvicorn_server = server  # Store server instance for shutdown
    logger.info(f"Starting Uvicorn server on port {port}")
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt in main thread")
    logger.info("Server stopped, exiting process")
    os._exit(0)

if __name__ == "__main__":
    app_cli()
