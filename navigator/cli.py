"""
This file is the entry point for the 'tmfolders' command-line tool.

Resolve folder paths and ancestor chains, encode/decode path tokens, build
folder links and replay one against a simulated lazily rendered tree.
Against the REST API: fetch the folder tree, list a test cycle's items with
their folder paths, and remove a test case from a test cycle.
"""
import asyncio
import json
from pathlib import Path
from typing import List, Optional

import httpx
import typer

from common.app_setup import monkeypatch_print, print_and_log, print_error, setup_logging
from common.settings import NavigatorSettings, load_settings
from navigator.codec import decode_token, encode_chain
from navigator.annotations import ChangeWatcher
from navigator.errors import DecodeError, NavigatorError
from navigator.links import build_folder_link
from navigator.models import FolderTree, coerce_folder_tree
from navigator.navigation import open_folder
from navigator.run_paths import RunItemRow, display_folder_paths, extract_cycle_info, extract_player_info, remove_test_case
from navigator.tree import PathIndexCache

app = typer.Typer(add_completion=False, help="Folder path tools for the test-management UI.")

path_cache = PathIndexCache()
_state: dict = {"settings": NavigatorSettings()}

monkeypatch_print()


@app.callback()
def main(config: Optional[str] = typer.Option(None, help="YAML/JSON settings file (default: ~/.tmfolders/config.yaml)")):
    try:
        settings = load_settings(config)
    except (ValueError, OSError) as e:
        print_error(f"Invalid settings: {e}")
        raise typer.Exit(1)
    _state["settings"] = settings
    setup_logging(app_name="tmfolders", daemon=False, loglevel=settings.log_level.upper(), logfile=settings.logfile)


def _load_tree(tree_file: str) -> FolderTree:
    try:
        return coerce_folder_tree(Path(tree_file))
    except (OSError, TypeError, ValueError) as e:
        print_error(f"Cannot load folder tree from {tree_file}: {e}")
        raise typer.Exit(1)


@app.command()
def paths(tree: str = typer.Option(..., help="JSON/YAML file with the folder forest")):
    """Print the display path of every folder."""
    index = path_cache.rebuild(_load_tree(tree))
    for folder_id, path in index.paths.items():
        typer.echo(f"{folder_id}\t{path}")


@app.command()
def chain(folder_id: int = typer.Argument(..., help="Target folder id"),
          tree: str = typer.Option(..., help="JSON/YAML file with the folder forest")):
    """Print the ancestor chain of a folder and its path token."""
    index = path_cache.rebuild(_load_tree(tree))
    ids = index.ancestor_chain_to(folder_id)
    if ids is None:
        print_error(f"Folder {folder_id} not found in tree")
        raise typer.Exit(1)
    typer.echo(f"{' -> '.join(map(str, ids))}\t{index.path_of(folder_id)}\t{encode_chain(ids)}")


@app.command()
def encode(ids: List[int] = typer.Argument(..., help="Folder ids, root first")):
    """Encode an ancestor chain as a path token."""
    try:
        typer.echo(encode_chain(ids))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)


@app.command()
def decode(token: str = typer.Argument(..., help="Path token")):
    """Decode a path token into its ancestor chain."""
    try:
        ids = decode_token(token)
    except DecodeError as e:
        print_error(f"Failed to decode path token: {e}")
        raise typer.Exit(1)
    typer.echo(json.dumps(ids))


@app.command()
def link(folder_id: int = typer.Argument(..., help="Target folder id"),
         origin: str = typer.Option(..., help="Jira origin, e.g. https://example.atlassian.net"),
         project_key: str = typer.Option(..., help="Jira project key"),
         tree: Optional[str] = typer.Option(None, help="Folder forest file; adds the path token when given")):
    """Build a link that opens the Test Cases page at a folder."""
    ids = None
    if tree:
        ids = path_cache.rebuild(_load_tree(tree)).ancestor_chain_to(folder_id)
        if ids is None:
            print_error(f"Folder {folder_id} not found in tree, link will not carry a path")
    typer.echo(build_folder_link(origin, project_key, folder_id, ids))


@app.command()
def navigate(url: str = typer.Argument(..., help="Folder link or its fragment"),
             tree: str = typer.Option(..., help="JSON/YAML file with the folder forest"),
             hide: List[int] = typer.Option([], help="Folder ids that never render"),
             child_delay: int = typer.Option(1, help="Polls before expanded children render"),
             interval: Optional[float] = typer.Option(None, help="Override every poll interval (seconds)")):
    """Replay a folder link against a simulated, lazily rendered folder tree."""
    from connectors.simulated_tree_ui import SimulatedTreeUI

    settings: NavigatorSettings = _state["settings"]
    if interval is not None:
        settings = settings.model_copy(update={
            "locate_interval": interval,
            "tree_load_interval": interval,
            "settle_interval": interval,
        })
    ui = SimulatedTreeUI(_load_tree(tree), child_delay=child_delay, hidden=hide)
    outcome = asyncio.run(open_folder(url, ui, settings))
    if outcome is None:
        print_error("Link carries no folder id")
        raise typer.Exit(1)
    steps = " ".join(f"{state.value}({'' if i is None else i})" for state, i in outcome.history)
    if not outcome.ok:
        print_error(f"Failed: {outcome.reason}; steps: {steps}")
        raise typer.Exit(1)
    print_and_log(f"Selected folder {ui.selected}; steps: {steps}")


def _connector(project_id: str, jwt: Optional[str], cookie: Optional[str], base_url: Optional[str]):
    from connectors.connections_manager import get_session
    from connectors.tm4j_connector import TM4JConnector, read_jwt

    settings: NavigatorSettings = _state["settings"]
    token = jwt or (read_jwt(cookie) if cookie else None)
    if not token:
        print_error("JWT token not found")
        raise typer.Exit(1)
    session = get_session("tm4j", base_url or settings.api_base_url, token, project_id,
                          timeout=settings.request_timeout)
    return TM4JConnector(session)


@app.command()
def fetch_tree(project_id: str = typer.Option(..., help="Jira project id"),
               jwt: Optional[str] = typer.Option(None, envvar="TMFOLDERS_JWT", help="JWT (or pass --cookie)"),
               cookie: Optional[str] = typer.Option(None, help="Cookie header to read the jwt cookie from"),
               base_url: Optional[str] = typer.Option(None, help="REST base URL (default from settings)"),
               output: Optional[str] = typer.Option(None, help="Write the folder forest as JSON to this file")):
    """Fetch the test-case folder tree and print every folder path."""
    connector = _connector(project_id, jwt, cookie, base_url)
    try:
        folder_tree = connector.get_folder_tree()
    except (httpx.HTTPError, ValueError) as e:
        print_error(f"Failed to fetch folder tree: {e}")
        raise typer.Exit(1)
    index = path_cache.rebuild(folder_tree)
    if output:
        roots = [root.model_dump(by_alias=True) for root in folder_tree.roots]
        Path(output).write_text(json.dumps(roots, indent=2))
    for folder_id, path in index.paths.items():
        typer.echo(f"{folder_id}\t{path}")
    print_and_log(f"Fetched {len(index)} folders for project {project_id}")


@app.command()
def run_paths(url: Optional[str] = typer.Option(None, help="Add-test-cases page URL of the test cycle"),
              test_cycle: Optional[str] = typer.Option(None, help="Test cycle key, e.g. CPG-R2 (instead of --url)"),
              project_id: Optional[str] = typer.Option(None, help="Jira project id (instead of --url)"),
              jwt: Optional[str] = typer.Option(None, envvar="TMFOLDERS_JWT", help="JWT (or pass --cookie)"),
              cookie: Optional[str] = typer.Option(None, help="Cookie header to read the jwt cookie from"),
              base_url: Optional[str] = typer.Option(None, help="REST base URL (default from settings)")):
    """List the items of a test cycle with the folder path of each."""
    if url:
        info = extract_cycle_info(url)
        if info is None:
            print_error(f"Not a test cycle page URL: {url}")
            raise typer.Exit(1)
        test_cycle, project_id = info.test_cycle_key, project_id or info.project_id
    if not test_cycle or not project_id:
        print_error("Pass --url, or both --test-cycle and --project-id")
        raise typer.Exit(1)
    connector = _connector(project_id, jwt, cookie, base_url)

    # the grid renders its rows only once the run items are known
    grid: dict[int, RunItemRow] = {}
    watcher = ChangeWatcher()
    try:
        folders = display_folder_paths(connector, test_cycle, lambda: list(grid.values()), path_cache, watcher)
    except (httpx.HTTPError, NavigatorError, ValueError) as e:
        print_error(f"Failed to load test cycle {test_cycle}: {e}")
        raise typer.Exit(1)
    grid.update((item_id, RunItemRow(item_id)) for item_id in folders.item_folders)
    watcher.notify()
    watcher.disconnect()

    for item_id, row in grid.items():
        folder_id = folders.item_folders[item_id]
        typer.echo(f"{item_id}\t{'' if folder_id is None else folder_id}\t{row.folder_path or ''}")
    labelled = sum(1 for row in grid.values() if row.folder_path)
    print_and_log(f"Test cycle {test_cycle}: {labelled} of {len(grid)} items have a folder path")


@app.command()
def remove_item(url: Optional[str] = typer.Option(None, help="Test player page URL of the assigned test case"),
                test_cycle: Optional[str] = typer.Option(None, help="Test cycle key (instead of --url)"),
                item_id: Optional[int] = typer.Option(None, help="Test run item id (instead of --url)"),
                project_id: Optional[str] = typer.Option(None, help="Jira project id (instead of --url)"),
                jwt: Optional[str] = typer.Option(None, envvar="TMFOLDERS_JWT", help="JWT (or pass --cookie)"),
                cookie: Optional[str] = typer.Option(None, help="Cookie header to read the jwt cookie from"),
                base_url: Optional[str] = typer.Option(None, help="REST base URL (default from settings)")):
    """Remove an assigned test case from its test cycle."""
    if url:
        info = extract_player_info(url)
        if info is None:
            print_error(f"Not a test player page URL: {url}")
            raise typer.Exit(1)
        test_cycle, item_id, project_id = info.test_cycle_key, info.assigned_test_case_id, info.project_id
    if not test_cycle or item_id is None or not project_id:
        print_error("Pass --url, or --test-cycle, --item-id and --project-id")
        raise typer.Exit(1)
    connector = _connector(project_id, jwt, cookie, base_url)
    try:
        removed = remove_test_case(connector, test_cycle, item_id)
    except (httpx.HTTPError, NavigatorError) as e:
        print_error(f"Failed to remove test case from test cycle: {e}")
        raise typer.Exit(1)
    if not removed:
        print_error("Failed to remove test case from test cycle")
        raise typer.Exit(1)
    print_and_log(f"Removed test run item {item_id} from test cycle {test_cycle}")


@app.command()
def show_config():
    """Print the effective settings."""
    typer.echo(_state["settings"].as_box().to_json(indent=2))


if __name__ == "__main__":
    app()
