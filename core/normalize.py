"""
Field normalization for imported rows.
Handles amounts, value dates, payment subjects and payer name transliteration.
"""
import re
import unicodedata
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

from core.exceptions import ValidationError
from core.logger import setup_logger
from core.schema import DESC_FIELDS

logger = setup_logger(__name__)

# Characters without a useful NFKD decomposition
_TRANSLIT_OVERRIDES = {
    "ß": "ss",
    "Æ": "AE",
    "æ": "ae",
    "Ø": "O",
    "ø": "o",
    "Œ": "OE",
    "œ": "oe",
}

_NON_WORD_OR_SPACE = re.compile(r"[^\w\s]", re.ASCII)

_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%Y%m%d")


def is_blank(value: Any) -> bool:
    """True for None, empty and whitespace-only values."""
    return value is None or not str(value).strip()


def safe_get_string(row: Mapping[str, Any], key: str, default: str = "") -> str:
    """
    Safely read a column value as a string.

    Args:
        row: Parsed CSV row
        key: Column key
        default: Default string value

    Returns:
        String value or default
    """
    value = row.get(key)
    if value is None:
        return default
    return str(value)


def optional_string(row: Mapping[str, Any], key: str) -> Optional[str]:
    """Column value, or None when the column is blank."""
    value = row.get(key)
    if is_blank(value):
        return None
    return str(value).strip()


def build_subject(row: Mapping[str, Any]) -> str:
    """
    Concatenate DESC1..DESC14 into the payment subject.

    Blank segments are skipped, the others are joined without separator.

    Args:
        row: Parsed CSV row

    Returns:
        Payment subject
    """
    return "".join(str(row[key]) for key in DESC_FIELDS if not is_blank(row.get(key)))


def transliterate_holder(name: Optional[str]) -> str:
    """
    Transliterate an account holder name to plain ASCII.

    Accents are dropped ("Jürgen Müller" -> "Jurgen Muller") and every
    character that is neither a word character nor whitespace is removed.

    Args:
        name: Holder name as delivered in the file

    Returns:
        Normalized holder name
    """
    if not name:
        return ""

    text = "".join(_TRANSLIT_OVERRIDES.get(char, char) for char in name)
    ascii_text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    return _NON_WORD_OR_SPACE.sub("", ascii_text)


def parse_amount(value: Any) -> Decimal:
    """
    Parse an amount column into a Decimal.

    Accepts a decimal point or a decimal comma ("25,50").

    Args:
        value: Raw amount string

    Returns:
        Decimal amount

    Raises:
        ValidationError: If the amount is blank or not numeric
    """
    if is_blank(value):
        raise ValidationError("Amount is missing")

    amount_str = str(value).strip().replace(" ", "").replace("\xa0", "")
    if "," in amount_str and "." not in amount_str:
        amount_str = amount_str.replace(",", ".")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValidationError(f"Amount {value} is not a number", details={"value": value})

    if not amount.is_finite():
        raise ValidationError(f"Amount {value} is not a number", details={"value": value})
    return amount


def parse_entry_date(value: Any) -> date:
    """
    Parse the ENTRY_DATE column.

    Args:
        value: Raw date string (YYYY-MM-DD, DD.MM.YYYY or YYYYMMDD)

    Returns:
        Parsed date

    Raises:
        ValidationError: If the date is blank or in an unknown format
    """
    if is_blank(value):
        raise ValidationError("Entry date is missing")

    text = str(value).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    logger.debug(f"Unrecognised entry date: {text!r}")
    raise ValidationError(f"Entry date {text} is invalid", details={"value": text})
