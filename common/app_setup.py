"""
Reusable logging and print setup for all parts of the project.

Functions:
    setup_logging      - Configure and return a logger.
    set_print_logger   - Set the logger for print_and_log and print_error.
    monkeypatch_print  - Replace built-in print with rich print.
    print_and_log      - Print and log an info message.
    print_error        - Print and log an error message.
"""

import logging
import logging.handlers
import os
from typing import Optional
import builtins
from rich import print as rich_print
import sys

LOGFILE_ENV_VAR = "TMFOLDERS_LOGFILE"

# Module-level variable to hold the logger for print_and_log and print_error
_print_logger: Optional[logging.Logger] = None

def setup_logging(app_name: str = "tmfolders", daemon: bool = False, loglevel: int | str = logging.INFO, logfile: Optional[str] = None) -> logging.Logger:
    """
    Set up logging for the application.
    - If daemon=True, logs to syslog (Linux only), falling back to stderr.
    - Otherwise, logs to a custom logfile, to $TMFOLDERS_LOGFILE,
      or to ~/.<app_name>/log.txt.
    Returns the configured logger.
    """
    logger = logging.getLogger()
    logger.setLevel(loglevel)
    from logging import Handler
    if daemon:
        formatter = logging.Formatter(f'%(asctime)s %(levelname)s %(process)d [{app_name}] %(message)s')
        try:
            handler: Handler = logging.handlers.SysLogHandler(address='/dev/log')
        except OSError as e:
            print(f"Failed to set up SysLogHandler, logging to stderr: {e}", file=sys.stderr)
            handler = logging.StreamHandler()
    else:
        formatter = logging.Formatter('%(asctime)s %(levelname)s %(process)d %(name)s %(message)s')
        logfile = logfile or os.environ.get(LOGFILE_ENV_VAR)
        if logfile is None:
            log_dir = os.path.expanduser(f"~/.{app_name}")
            os.makedirs(log_dir, exist_ok=True)
            logfile = os.path.join(log_dir, "log.txt")
        handler = logging.FileHandler(logfile)

    # Remove any existing handlers
    for h in logger.handlers[:]:
        logger.removeHandler(h)

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    set_print_logger(logger)
    logger.debug(f"Logger initialized for {app_name}")
    return logger

def set_print_logger(logger: logging.Logger):
    """
    Set the logger to be used by print_and_log and print_error.
    setup_logging calls this; call it yourself only for a custom logger.
    """
    global _print_logger
    _print_logger = logger

def monkeypatch_print():
    """
    Monkeypatch built-in print to use rich.print for all output (no logging).
    """
    def print_to_rich(*args, **kwargs):
        rich_print(*args, **kwargs)
    builtins.print = print_to_rich  # monkeypatch print


def print_and_log(message: str, **kwargs):
    """
    Print to console (via print) and log as info.
    """
    print(message, **kwargs)
    if _print_logger is not None:
        _print_logger.info(message)

def print_error(message: str, **kwargs):
    """
    Print and log an error message (stderr and error level), using the logger set by set_print_logger.
    """
    print(f'[bold red]{message}[/bold red]', file=sys.stderr, **kwargs)
    if _print_logger is not None:
        _print_logger.error(message)
