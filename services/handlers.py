"""
Transaction handlers.
Turn a classified row into ledger transfers or a direct debit entry.
"""
from typing import List, NamedTuple, Optional, Tuple

from core.exporters import DebitBatchWriter
from core.logger import setup_logger
from core.normalize import parse_amount, parse_entry_date, transliterate_holder
from core.schema import (
    AccountTransferRow,
    BankTransferRow,
    ClassifiedRow,
    DebitEntry,
    DirectDebitRow,
)
from ledger.base import STATE_PENDING, Account, LedgerService

logger = setup_logger(__name__)


class HandlerResult(NamedTuple):
    errors: List[str]
    debit_entry: Optional[DebitEntry] = None


class TransactionHandlers:
    """Dispatches classified rows to the ledger or the debit batch."""

    def __init__(self, ledger: LedgerService, batch_writer: DebitBatchWriter):
        self.ledger = ledger
        self.batch_writer = batch_writer

    def dispatch(self, txn: ClassifiedRow, validation_only: bool = False) -> HandlerResult:
        """
        Run the handler for a classified row.

        Args:
            txn: Classified row
            validation_only: Validate without persisting anything

        Returns:
            Errors recorded for the row and the debit entry it produced, if any
        """
        if isinstance(txn, AccountTransferRow):
            return self.add_account_transfer(txn, validation_only)
        if isinstance(txn, BankTransferRow):
            return self.add_bank_transfer(txn, validation_only)
        if isinstance(txn, DirectDebitRow):
            return self.add_direct_debit(txn)
        return HandlerResult([f"{txn.activity_id}: Transaction type not found"])

    def get_sender(self, activity_id: str, account_no: str) -> Tuple[Optional[Account], Optional[str]]:
        sender = self.ledger.find_account_by_number(account_no)
        if sender is None:
            return None, f"{activity_id}: Account {account_no} not found"
        return sender, None

    def add_account_transfer(self, txn: AccountTransferRow, validation_only: bool) -> HandlerResult:
        sender, error = self.get_sender(txn.activity_id, txn.sender_account)
        if sender is None:
            return HandlerResult([error])

        if txn.depot_activity_id is None:
            transfer = sender.build_pending_transfer(
                amount=parse_amount(txn.amount),
                subject=txn.subject,
                receiver_account=txn.receiver_account,
                value_date=parse_entry_date(txn.entry_date),
                skip_mobile_tan=True,
            )
        else:
            transfer = sender.find_credit_transfer(txn.depot_activity_id)
            if transfer is None:
                return HandlerResult([f"{txn.activity_id}: AccountTransfer not found"])
            if transfer.state != STATE_PENDING:
                return HandlerResult([
                    f"{txn.activity_id}: AccountTransfer state expected '{STATE_PENDING}' "
                    f"but was '{transfer.state}'"
                ])
            transfer.subject = txn.subject

        messages = transfer.validate()
        if messages:
            return HandlerResult([
                f"{txn.activity_id}: AccountTransfer validation error(s): {'; '.join(messages)}"
            ])

        if not validation_only:
            if txn.depot_activity_id is None:
                transfer.save()
                logger.debug(f"{txn.activity_id}: saved account transfer {transfer.id}")
            else:
                transfer.complete()
                logger.debug(f"{txn.activity_id}: completed account transfer {transfer.id}")
        return HandlerResult([])

    def add_bank_transfer(self, txn: BankTransferRow, validation_only: bool) -> HandlerResult:
        sender, error = self.get_sender(txn.activity_id, txn.sender_account)
        if sender is None:
            return HandlerResult([error])

        transfer = sender.build_bank_transfer(
            amount=parse_amount(txn.amount),
            subject=txn.subject,
            receiver_name=txn.receiver_name,
            receiver_account=txn.receiver_account,
            receiver_bank_code=txn.receiver_bank_code,
        )

        messages = transfer.validate()
        if messages:
            return HandlerResult([
                f"{txn.activity_id}: BankTransfer validation error(s): {'; '.join(messages)}"
            ])

        if not validation_only:
            transfer.save()
            logger.debug(f"{txn.activity_id}: saved bank transfer {transfer.id}")
        return HandlerResult([])

    def add_direct_debit(self, txn: DirectDebitRow) -> HandlerResult:
        # Whether the batch gets written is decided once per file.
        if not self.batch_writer.is_acceptable_debit_party(txn.payer_account, txn.payer_bank_code):
            return HandlerResult([f"{txn.activity_id}: BLZ/Konto not valid, csv file not written"])

        entry = DebitEntry(
            account=txn.payer_account,
            bank_code=txn.payer_bank_code,
            holder=transliterate_holder(txn.payer_name),
            amount=abs(parse_amount(txn.amount)),
            subject=txn.subject,
        )
        return HandlerResult([], entry)
