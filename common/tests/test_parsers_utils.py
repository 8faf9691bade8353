import pytest

from apps.core.errors import InvalidInput
from common.parsers_utils import (
    STEAM_ID_OFFSET,
    account_id_to_steam64,
    normalize_account_id,
    parse_match_id,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("22202", 22202),
        (22202, 22202),
        (" 22202 ", 22202),
        ("76561197960287930", 22202),
        (str(STEAM_ID_OFFSET + 1), 1),
    ],
)
def test_normalize_account_id(raw, expected):
    assert normalize_account_id(raw) == expected


@pytest.mark.parametrize("raw", ["", "abc", "-5", "4294967296", "12345678901234567", "7656119x", "76561190000000000"])
def test_normalize_account_id_rejects(raw):
    with pytest.raises(InvalidInput):
        normalize_account_id(raw)


def test_steam64_round_trip_value():
    assert account_id_to_steam64(22202) == "76561197960287930"


@pytest.mark.parametrize(("raw", "expected"), [("7000000000", 7000000000), (123, 123)])
def test_parse_match_id(raw, expected):
    assert parse_match_id(raw) == expected


@pytest.mark.parametrize("raw", ["0", "abc", "1.5", "-1", "99999999999999999999", "123456789012345678901"])
def test_parse_match_id_rejects(raw):
    with pytest.raises(InvalidInput):
        parse_match_id(raw)
