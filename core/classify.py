"""
Rule-based transaction classification.

A row is mapped to one of the transaction kinds from its sender bank code,
receiver bank code and purpose key. Rules are evaluated in priority order;
the first match wins.
"""
from typing import Callable, List, Mapping, Tuple

from core.normalize import build_subject, optional_string, safe_get_string
from core.schema import (
    AccountTransferRow,
    BankTransferRow,
    ClassifiedRow,
    DirectDebitRow,
    TransactionKind,
    UnclassifiedRow,
)

# Bank code used for accounts held in our own ledger
INTERNAL_BANK_CODE = "00000000"
# Bank code of the collecting account for direct debits
DIRECT_DEBIT_BANK_CODE = "70022200"

PURPOSE_TRANSFER = "10"
PURPOSE_DIRECT_DEBIT = "16"

Rule = Tuple[TransactionKind, Callable[[Mapping[str, str]], bool]]

CLASSIFICATION_RULES: List[Rule] = [
    (
        TransactionKind.ACCOUNT_TRANSFER,
        lambda r: r.get("SENDER_BLZ") == INTERNAL_BANK_CODE
        and r.get("RECEIVER_BLZ") == INTERNAL_BANK_CODE,
    ),
    (
        TransactionKind.BANK_TRANSFER,
        lambda r: r.get("SENDER_BLZ") == INTERNAL_BANK_CODE
        and r.get("UMSATZ_KEY") == PURPOSE_TRANSFER,
    ),
    (
        TransactionKind.DIRECT_DEBIT,
        lambda r: r.get("RECEIVER_BLZ") == DIRECT_DEBIT_BANK_CODE
        and r.get("UMSATZ_KEY") == PURPOSE_DIRECT_DEBIT,
    ),
]


def classify_kind(row: Mapping[str, str]) -> TransactionKind:
    """
    Determine the transaction kind of a row.

    Args:
        row: Parsed CSV row

    Returns:
        Matching kind, or UNCLASSIFIED
    """
    for kind, matches in CLASSIFICATION_RULES:
        if matches(row):
            return kind
    return TransactionKind.UNCLASSIFIED


def classify(row: Mapping[str, str]) -> ClassifiedRow:
    """
    Classify a row and extract the fields its handler needs.

    Args:
        row: Parsed CSV row

    Returns:
        One of AccountTransferRow, BankTransferRow, DirectDebitRow, UnclassifiedRow
    """
    kind = classify_kind(row)
    activity_id = safe_get_string(row, "ACTIVITY_ID")

    if kind == TransactionKind.ACCOUNT_TRANSFER:
        return AccountTransferRow(
            activity_id=activity_id,
            sender_account=safe_get_string(row, "SENDER_KONTO"),
            receiver_account=safe_get_string(row, "RECEIVER_KONTO"),
            amount=safe_get_string(row, "AMOUNT"),
            entry_date=safe_get_string(row, "ENTRY_DATE"),
            subject=build_subject(row),
            depot_activity_id=optional_string(row, "DEPOT_ACTIVITY_ID"),
        )
    if kind == TransactionKind.BANK_TRANSFER:
        return BankTransferRow(
            activity_id=activity_id,
            sender_account=safe_get_string(row, "SENDER_KONTO"),
            receiver_name=safe_get_string(row, "RECEIVER_NAME"),
            receiver_account=safe_get_string(row, "RECEIVER_KONTO"),
            receiver_bank_code=safe_get_string(row, "RECEIVER_BLZ"),
            amount=safe_get_string(row, "AMOUNT"),
            subject=build_subject(row),
        )
    if kind == TransactionKind.DIRECT_DEBIT:
        return DirectDebitRow(
            activity_id=activity_id,
            payer_account=safe_get_string(row, "SENDER_KONTO"),
            payer_bank_code=safe_get_string(row, "SENDER_BLZ"),
            payer_name=safe_get_string(row, "SENDER_NAME"),
            amount=safe_get_string(row, "AMOUNT"),
            subject=build_subject(row),
        )
    return UnclassifiedRow(activity_id=activity_id)
