"""Error types raised or reported by the folder navigator core."""

from __future__ import annotations


class NavigatorError(Exception):
    """Base class for all navigator errors."""


class NotFound(NavigatorError):
    """A folder never appeared in the host UI within its attempt budget.

    ``at_index`` is the position of the folder in the ancestor chain, or
    ``None`` when the folder was looked up directly by id.
    """

    def __init__(self, folder_id: int, at_index: int | None = None):
        self.folder_id = folder_id
        self.at_index = at_index
        where = f" at chain index {at_index}" if at_index is not None else ""
        super().__init__(f"Folder {folder_id} not found{where}")


class DecodeError(NavigatorError, ValueError):
    """A path token could not be decoded into an ancestor chain."""


class TestRunNotFound(NavigatorError):
    """The backend did not resolve a test cycle key to a test run."""

    __test__ = False

    def __init__(self, test_cycle_key: str):
        self.test_cycle_key = test_cycle_key
        super().__init__(f"Test run not found for test cycle {test_cycle_key}")


class WaitTimeout(NavigatorError):
    """A polled predicate never produced a value within the attempt budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Condition not met after {attempts} attempts")


__all__ = ["DecodeError", "NavigatorError", "NotFound", "TestRunNotFound", "WaitTimeout"]
