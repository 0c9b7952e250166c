"""
Path token codec.

An ancestor chain ``[12, 345, 6789]`` is joined as ``"12-345-6789"`` and
Base64-encoded with the URL-safe alphabet, padding stripped, so the token can
sit in a URL fragment as-is.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Iterable

from .errors import DecodeError

SEPARATOR = "-"

_TOKEN_RE = re.compile(r"[A-Za-z0-9_-]+={0,2}")
_CHAIN_RE = re.compile(r"[0-9]+(?:-[0-9]+)*")


def encode_chain(chain: Iterable[int]) -> str:
    """Encode a non-empty chain of non-negative folder ids as a token."""
    ids = list(chain)
    if not ids:
        raise ValueError("Cannot encode an empty chain")
    for folder_id in ids:
        if isinstance(folder_id, bool) or not isinstance(folder_id, int) or folder_id < 0:
            raise ValueError(f"Invalid folder id in chain: {folder_id!r}")
    raw = SEPARATOR.join(str(folder_id) for folder_id in ids).encode("ascii")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_token(token: str) -> list[int]:
    """Decode a token back into the chain it was encoded from.

    Tokens with standard ``=`` padding, as produced by ``btoa()``, are
    accepted too. Raises DecodeError for bad characters, impossible lengths,
    invalid Base64, text that is not ``-``-separated digits or ids too long
    to convert. Never returns a partial chain.
    """
    if not token:
        raise DecodeError("Empty path token")
    if not _TOKEN_RE.fullmatch(token):
        raise DecodeError(f"Path token contains invalid characters: {token!r}")
    body = token.rstrip("=")
    # btoa() output keeps its padding, so a padded token must be whole quads
    if len(body) % 4 == 1 or (body != token and len(token) % 4):
        raise DecodeError(f"Path token has an impossible length: {token!r}")
    padded = body + "=" * (-len(body) % 4)
    try:
        text = base64.urlsafe_b64decode(padded).decode("ascii")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise DecodeError(f"Path token is not valid Base64: {token!r}") from exc
    if not _CHAIN_RE.fullmatch(text):
        raise DecodeError(f"Malformed folder chain in path token: {text!r}")
    try:
        return [int(part) for part in text.split(SEPARATOR)]
    except ValueError as exc:
        # int() refuses digit strings past sys.get_int_max_str_digits()
        raise DecodeError(f"Folder id in path token is too long: {exc}") from exc


__all__ = ["SEPARATOR", "decode_token", "encode_chain"]
