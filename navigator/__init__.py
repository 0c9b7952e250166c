"""Folder tree path resolution and expansion engine for the test-management UI."""

from .codec import decode_token, encode_chain
from .errors import DecodeError, NavigatorError, NotFound, TestRunNotFound, WaitTimeout
from .models import ExpansionRequest, FolderNode, FolderTree, TestRunItem, coerce_folder_tree
from .run_paths import display_folder_paths, extract_cycle_info, extract_player_info, remove_test_case
from .sequencer import ExpansionOutcome, ExpansionSequencer, SequenceBudget, SequenceState
from .tree import PathIndex, PathIndexCache, build_path_index, find_ancestor_chain
from .wait import wait_until

__all__ = [
    "DecodeError",
    "ExpansionOutcome",
    "ExpansionRequest",
    "ExpansionSequencer",
    "FolderNode",
    "FolderTree",
    "NavigatorError",
    "NotFound",
    "PathIndex",
    "PathIndexCache",
    "SequenceBudget",
    "SequenceState",
    "TestRunItem",
    "TestRunNotFound",
    "WaitTimeout",
    "build_path_index",
    "coerce_folder_tree",
    "decode_token",
    "display_folder_paths",
    "encode_chain",
    "extract_cycle_info",
    "extract_player_info",
    "find_ancestor_chain",
    "remove_test_case",
    "wait_until",
]
