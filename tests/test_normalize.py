"""
Unit tests for field normalization.
"""
from datetime import date
from decimal import Decimal

import pytest

from core.exceptions import ValidationError
from core.normalize import (
    build_subject,
    is_blank,
    parse_amount,
    parse_entry_date,
    transliterate_holder,
)


@pytest.mark.parametrize("name,expected", [
    ("Jürgen Müller", "Jurgen Muller"),
    ("Renée O'Brien-Smith", "Renee OBrienSmith"),
    ("Straße & Söhne GmbH", "Strasse  Sohne GmbH"),
    ("", ""),
    (None, ""),
])
def test_transliterate_holder(name, expected):
    assert transliterate_holder(name) == expected


def test_build_subject_concatenates_in_order():
    """DESC1..DESC14 are joined without separator, blanks skipped."""
    row = {f"DESC{i}": "" for i in range(1, 15)}
    row.update({"DESC1": "Rent ", "DESC3": "March", "DESC14": "!", "DESC7": "  "})
    assert build_subject(row) == "Rent March!"


def test_build_subject_ignores_other_columns():
    row = {"DESC10": "b", "DESC2": "a", "DESC15": "x", "AMOUNT": "1"}
    assert build_subject(row) == "ab"


@pytest.mark.parametrize("value,expected", [
    ("50.00", Decimal("50.00")),
    ("-25.50", Decimal("-25.50")),
    ("25,50", Decimal("25.50")),
    (" 7 ", Decimal("7")),
])
def test_parse_amount(value, expected):
    assert parse_amount(value) == expected


@pytest.mark.parametrize("value", ["", "   ", None, "abc", "NaN"])
def test_parse_amount_invalid(value):
    with pytest.raises(ValidationError):
        parse_amount(value)


@pytest.mark.parametrize("value", ["2024-03-01", "01.03.2024", "20240301"])
def test_parse_entry_date(value):
    assert parse_entry_date(value) == date(2024, 3, 1)


def test_parse_entry_date_invalid():
    with pytest.raises(ValidationError):
        parse_entry_date("31.02.2024")
    with pytest.raises(ValidationError):
        parse_entry_date("")


def test_is_blank():
    assert is_blank(None)
    assert is_blank("")
    assert is_blank("  ")
    assert not is_blank("0")
