"""Cross-navigation links carrying a folder id and its encoded ancestor chain."""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence
from urllib.parse import unquote

from .codec import decode_token, encode_chain
from .errors import DecodeError
from .models import ExpansionRequest

logger = logging.getLogger(__name__)

FOLDER_ID_PARAM = "uiExtensionsFolderId"
PATH_PARAM = "p"
TEST_CASES_PAGE_ITEM = "com.atlassian.plugins.atlassian-connect-plugin:com.kanoah.test-manager__main-project-page"

_FOLDER_ID_RE = re.compile(rf"[#&]{FOLDER_ID_PARAM}=([^&#]+)")
_PATH_RE = re.compile(rf"[#&]{PATH_PARAM}=([^&#]+)")


def build_folder_link(
    origin: str,
    project_key: str,
    folder_id: int,
    chain: Optional[Sequence[int]] = None,
) -> str:
    """
    Build a link that opens the Test Cases page and reveals ``folder_id``.

    ``origin`` may be URL-encoded, as it arrives in the ``xdm_e`` iframe
    parameter. When ``chain`` is given it is appended as the ``p`` token.
    """
    base = unquote(origin).rstrip("/")
    url = (
        f"{base}/projects/{project_key}?selectedItem={TEST_CASES_PAGE_ITEM}"
        f"#!/v2/testCases#{FOLDER_ID_PARAM}={folder_id}"
    )
    if chain:
        url += f"&{PATH_PARAM}={encode_chain(chain)}"
    return url


def parse_folder_fragment(fragment: str) -> Optional[ExpansionRequest]:
    """
    Extract an ExpansionRequest from a URL or its fragment.

    Returns None when no folder id is present. An undecodable ``p`` token is
    logged and dropped, leaving a request without a chain.
    """
    id_match = _FOLDER_ID_RE.search(fragment)
    if not id_match:
        logger.debug("No folder auto-expand parameters found")
        return None
    try:
        target_id = int(id_match.group(1))
    except ValueError:
        logger.error(f"Invalid folder id in link: {id_match.group(1)!r}")
        return None

    chain = None
    path_match = _PATH_RE.search(fragment)
    if path_match:
        try:
            chain = tuple(decode_token(unquote(path_match.group(1))))
        except DecodeError as exc:
            logger.error(f"Failed to decode folder path: {exc}")
        else:
            if chain[-1] != target_id:
                logger.warning(f"Folder path ends at {chain[-1]}, not at folder {target_id}")
    return ExpansionRequest(target_id=target_id, chain=chain)


__all__ = [
    "FOLDER_ID_PARAM",
    "PATH_PARAM",
    "build_folder_link",
    "parse_folder_fragment",
]
