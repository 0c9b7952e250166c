"""Entry point tying link parsing, the tree-loaded gate and the sequencer together."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from common.settings import NavigatorSettings
from .errors import NotFound, WaitTimeout
from .links import parse_folder_fragment
from .sequencer import ExpansionOutcome, ExpansionSequencer, SequenceState
from .wait import SleepFunc, wait_until

if TYPE_CHECKING:
    from connectors.host_interface import FolderTreeUI

logger = logging.getLogger(__name__)


async def open_folder(
    fragment: str,
    ui: FolderTreeUI,
    settings: NavigatorSettings | None = None,
    sleep: SleepFunc = asyncio.sleep,
) -> Optional[ExpansionOutcome]:
    """
    Reveal and select the folder a link points to.

    Returns None when ``fragment`` carries no folder request, otherwise the
    outcome of the expansion. Never raises for a folder that does not show up.
    """
    settings = settings or NavigatorSettings()
    request = parse_folder_fragment(fragment)
    if request is None:
        return None
    logger.info(f"Auto-expanding folder ID: {request.target_id}")

    try:
        await wait_until(
            lambda: True if ui.any_folder_present() else None,
            interval=settings.tree_load_interval,
            max_attempts=settings.tree_load_attempts,
            sleep=sleep,
        )
    except WaitTimeout:
        logger.error("Folder tree not loaded")
        return ExpansionOutcome(
            state=SequenceState.FAILED,
            target_id=request.target_id,
            reason=NotFound(request.target_id),
        )

    sequencer = ExpansionSequencer(ui, budget=settings.sequence_budget(), sleep=sleep)
    return await sequencer.run(request)


__all__ = ["open_folder"]
