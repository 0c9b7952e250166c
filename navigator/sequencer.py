"""
Expansion sequencer.

Reveals a folder in a lazily rendered host tree by walking its ancestor
chain one level at a time:

    Idle -> Locating(0) -> Expanding(0) -> Locating(1) -> ... -> Selecting(n) -> Done

Any Locating step that runs out of attempts ends the run in Failed with a
NotFound reason. Without a chain the sequencer locates the target directly
with a larger budget and selects it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Optional, Sequence

from .errors import NotFound, WaitTimeout
from .models import ExpansionRequest
from .wait import SleepFunc, wait_until

if TYPE_CHECKING:
    from connectors.host_interface import FolderTreeUI

logger = logging.getLogger(__name__)


class SequenceState(str, Enum):
    IDLE = "idle"
    LOCATING = "locating"
    EXPANDING = "expanding"
    SELECTING = "selecting"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class SequenceBudget:
    """Attempt budgets and poll intervals (seconds) for one run."""

    locate_attempts: int = 10
    locate_interval: float = 0.5
    fallback_attempts: int = 20
    settle_attempts: int = 3
    settle_interval: float = 0.1


@dataclass
class ExpansionOutcome:
    state: SequenceState
    target_id: int
    reason: Optional[NotFound] = None
    history: list[tuple[SequenceState, Optional[int]]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is SequenceState.DONE

    @property
    def failed_at(self) -> Optional[int]:
        return self.reason.at_index if self.reason is not None else None


class ExpansionSequencer:
    """Drives a FolderTreeUI through one ExpansionRequest.

    An instance is single-use: a request is consumed exactly once.
    """

    def __init__(
        self,
        ui: FolderTreeUI,
        budget: SequenceBudget | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.ui = ui
        self.budget = budget or SequenceBudget()
        self._sleep = sleep
        self.state = SequenceState.IDLE
        self.index: Optional[int] = None
        self.history: list[tuple[SequenceState, Optional[int]]] = []

    def _enter(self, state: SequenceState, index: Optional[int] = None) -> None:
        self.state = state
        self.index = index
        self.history.append((state, index))
        logger.debug(f"Sequencer -> {state.value}({'' if index is None else index})")

    async def run(self, request: ExpansionRequest) -> ExpansionOutcome:
        if self.state is not SequenceState.IDLE:
            raise RuntimeError("ExpansionSequencer instances can only run once")
        if request.has_chain:
            chain = list(request.chain or ())
            logger.info(f"Expanding folder path: {' -> '.join(map(str, chain))}")
            reason = await self._walk_chain(chain)
        else:
            logger.info(f"No folder path, locating folder {request.target_id} directly")
            reason = await self._locate_directly(request.target_id)

        if reason is None:
            self._enter(SequenceState.DONE)
            logger.info(f"Folder {request.target_id} expanded and selected")
        else:
            self._enter(SequenceState.FAILED, reason.at_index)
            logger.error(f"Failed to open folder {request.target_id}: {reason}")
        return ExpansionOutcome(
            state=self.state,
            target_id=request.target_id,
            reason=reason,
            history=list(self.history),
        )

    async def _walk_chain(self, chain: Sequence[int]) -> Optional[NotFound]:
        last = len(chain) - 1
        for i, folder_id in enumerate(chain):
            self._enter(SequenceState.LOCATING, i)
            if not await self._locate(folder_id, self.budget.locate_attempts):
                return NotFound(folder_id, at_index=i)
            if i < last:
                self._enter(SequenceState.EXPANDING, i)
                await self._expand(folder_id)
            else:
                self._enter(SequenceState.SELECTING, i)
                self._select(folder_id)
        return None

    async def _locate_directly(self, folder_id: int) -> Optional[NotFound]:
        self._enter(SequenceState.LOCATING, 0)
        if not await self._locate(folder_id, self.budget.fallback_attempts):
            return NotFound(folder_id)
        self._enter(SequenceState.SELECTING, 0)
        self._select(folder_id)
        return None

    async def _locate(self, folder_id: int, attempts: int) -> bool:
        try:
            await wait_until(
                lambda: True if self.ui.is_present(folder_id) else None,
                interval=self.budget.locate_interval,
                max_attempts=attempts,
                sleep=self._sleep,
            )
        except WaitTimeout:
            logger.error(f"Folder element not found after waiting: {folder_id}")
            return False
        return True

    async def _expand(self, folder_id: int) -> None:
        if self.ui.is_expanded(folder_id):
            logger.debug(f"Folder {folder_id} is already expanded")
            return
        if not self.ui.has_expand_control(folder_id):
            # rendered as a leaf; children may only exist after a reload
            logger.debug(f"No expand control for folder {folder_id}, might be leaf node")
            return
        logger.debug(f"Expanding folder {folder_id}")
        self.ui.expand(folder_id)
        try:
            await wait_until(
                lambda: True if self.ui.is_expanded(folder_id) else None,
                interval=self.budget.settle_interval,
                max_attempts=self.budget.settle_attempts,
                sleep=self._sleep,
            )
        except WaitTimeout:
            logger.debug(f"Folder {folder_id} not marked expanded yet, continuing")

    def _select(self, folder_id: int) -> None:
        logger.info(f"Selecting target folder: {folder_id}")
        if not self.ui.select(folder_id):
            logger.error(f"Could not find clickable element for folder {folder_id}")


__all__ = [
    "ExpansionOutcome",
    "ExpansionSequencer",
    "SequenceBudget",
    "SequenceState",
]
