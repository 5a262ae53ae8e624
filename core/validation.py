"""
Structural checks applied to a row before it is classified.
"""
from typing import Mapping, Optional

from core.normalize import safe_get_string

PURPOSE_KEY_FIELD = "UMSATZ_KEY"
ALLOWED_PURPOSE_KEYS = frozenset({"10", "16"})


def validate_row(row: Mapping[str, str]) -> Optional[str]:
    """
    Check a row's preconditions.

    Args:
        row: Parsed CSV row

    Returns:
        None if the row is acceptable, otherwise the error message
    """
    purpose_key = row.get(PURPOSE_KEY_FIELD)
    if purpose_key not in ALLOWED_PURPOSE_KEYS:
        activity_id = safe_get_string(row, "ACTIVITY_ID")
        return f"{activity_id}: {PURPOSE_KEY_FIELD} {purpose_key or ''} is not allowed"
    return None
