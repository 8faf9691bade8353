"""
Identifier parsing for OpenDota paths.

OpenDota addresses players by their 32-bit account id; users paste either
that or a 64-bit Steam id. Everything is validated here, before any quota
is spent on a request.
"""

from __future__ import annotations

import re
from typing import Final

from apps.core.errors import InvalidInput

__all__ = [
    "STEAM_ID_OFFSET",
    "is_valid_account_id",
    "is_valid_steam64",
    "parse_match_id",
    "steam64_to_account_id",
    "account_id_to_steam64",
    "normalize_account_id",
]

STEAM_ID_OFFSET: Final[int] = 76561197960265728
MAX_MATCH_ID: Final[int] = 2**64 - 1

_ACCOUNT_ID_RE: Final[re.Pattern[str]] = re.compile(r"^\d{1,10}$")
_STEAM64_RE: Final[re.Pattern[str]] = re.compile(r"^7656119\d{10}$")
_MATCH_ID_RE: Final[re.Pattern[str]] = re.compile(r"^\d{1,20}$")


def is_valid_account_id(value: str) -> bool:
    return bool(_ACCOUNT_ID_RE.match(value))


def is_valid_steam64(value: str) -> bool:
    return bool(_STEAM64_RE.match(value))


def steam64_to_account_id(steam_id64: str | int) -> int:
    return int(steam_id64) - STEAM_ID_OFFSET


def account_id_to_steam64(account_id: str | int) -> str:
    return str(int(account_id) + STEAM_ID_OFFSET)


def normalize_account_id(steam_id: str | int) -> int:
    """
    Accepts a 32-bit account id or a Steam64 id and returns the account id.

    >>> normalize_account_id("76561197960287930")
    22202
    >>> normalize_account_id(22202)
    22202
    """
    raw = str(steam_id).strip()
    if is_valid_account_id(raw):
        value = int(raw)
        if value >= 2**32:
            msg = f"Invalid Steam ID format: {steam_id!r}"
            raise InvalidInput(msg)
        return value
    if is_valid_steam64(raw):
        value = steam64_to_account_id(raw)
        if value < 0:
            msg = f"Steam ID below the individual account range: {steam_id!r}"
            raise InvalidInput(msg)
        return value
    msg = f"Invalid Steam ID format: {steam_id!r}"
    raise InvalidInput(msg)


def parse_match_id(match_id: str | int) -> int:
    raw = str(match_id).strip()
    if not _MATCH_ID_RE.match(raw):
        msg = f"Invalid match ID: {match_id!r}"
        raise InvalidInput(msg)
    value = int(raw)
    if value <= 0 or value > MAX_MATCH_ID:
        msg = f"Match ID out of range: {match_id!r}"
        raise InvalidInput(msg)
    return value
