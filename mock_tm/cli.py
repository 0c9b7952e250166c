"""
This file is the entry point for the 'tmmock' command-line tool.
Run 'tmmock' in your shell to start, list and stop mock test-management servers.
"""
import json
import typer
import psutil
from common.app_setup import setup_logging, monkeypatch_print, print_and_log, print_error
import subprocess
import sys
import os
import signal
import httpx

app = typer.Typer()

DAEMON_MODULE = "mock_tm.daemon"

# Set up logging for the CLI (not daemon)
logger = setup_logging(app_name="tmfolders", daemon=False)
monkeypatch_print()

@app.command()
def start_server(port: int = typer.Option(None, help="Port to run the server on (auto if not set)"),
                 seed_file: str = typer.Option(None, help="JSON file to preload into the server")):
    """Start a new mock test-management server (daemon) in the background."""
    cmd = [sys.executable, '-m', DAEMON_MODULE]
    if port:
        cmd += ["--port", str(port)]
    if seed_file:
        cmd += ["--seed-file", seed_file]
    try:
        if port:
            proc = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, text=True, close_fds=True)
            print_and_log(f"Started mock server with PID {proc.pid} on port {port}.")
        else:
            # Capture stdout to get the selected port
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL, text=True, close_fds=True)
            selected_port = None
            assert proc.stdout is not None
            # Read lines until we get the port info or process exits
            for _ in range(10):
                line = proc.stdout.readline()
                if not line:
                    break
                try:
                    msg = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if msg.get("event") in ("port_selected", "port_used"):
                    selected_port = int(msg["port"])
                    break
            print_and_log(f"Started mock server with PID {proc.pid} on port {selected_port or 'auto'}.")
    except OSError as e:
        print_error(f"Failed to start mock server: {e}")

# List running mock servers and their listening ports
@app.command()
def list_servers():
    """List running mock servers and their listening ports."""
    found = False
    for proc in psutil.process_iter(['pid', 'name', 'cmdline']):
        try:
            # Match process by command line containing the daemon module
            if proc.info['cmdline'] and DAEMON_MODULE in ' '.join(proc.info['cmdline']):
                cons = proc.net_connections(kind='inet')
                listen_ports = [c.laddr.port for c in cons if c.status == psutil.CONN_LISTEN]
                if listen_ports:
                    for port in listen_ports:
                        print_and_log(f"PID: {proc.pid} | Port: {port} | Cmd: {' '.join(proc.info['cmdline'])}")
                else:
                    print_and_log(f"PID: {proc.pid} | No listening port found | Cmd: {' '.join(proc.info['cmdline'])}")
                found = True
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            continue
    if not found:
        print_and_log("No running mock servers found.")


@app.command()
def stop_server(port: int = typer.Argument(..., help="Port of the server")):
    """Gracefully stop a running server via REST API (localhost only)."""
    url = f"http://127.0.0.1:{port}/shutdown"
    try:
        response = httpx.post(url, timeout=5)
        if response.status_code == 200:
            print_and_log(f"Server at 127.0.0.1:{port} stopped gracefully.")
        else:
            print_error(f"Failed to stop server at 127.0.0.1:{port}: {response.status_code} {response.text}")
    except httpx.HTTPError as e:
        print_error(f"Error contacting server at 127.0.0.1:{port}: {e}")

@app.command()
def kill_server(pid: int = typer.Argument(..., help="PID of the server process to kill")):
    """Force kill a running server by PID (sends SIGTERM)."""
    try:
        proc = psutil.Process(pid)
        cmdline = ' '.join(proc.cmdline())
        if DAEMON_MODULE not in cmdline:
            print_error(f"Refusing to kill PID {pid}: not a mock server (cmdline: {cmdline})")
            return
        os.kill(pid, signal.SIGTERM)
        print_and_log(f"Sent SIGTERM to process {pid}.")
    except (psutil.Error, OSError) as e:
        print_error(f"Failed to kill process {pid}: {e}")

if __name__ == "__main__":
    app()
