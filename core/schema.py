"""
Pydantic models for rows, classified transactions, outcomes and run reports.
"""
from decimal import Decimal
from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

# A parsed CSV line: column header -> raw string value, in file column order.
Row = Dict[str, str]

DESC_FIELDS = [f"DESC{i}" for i in range(1, 15)]


class TransactionKind(str, Enum):
    """Classification of a single row."""
    ACCOUNT_TRANSFER = "AccountTransfer"
    BANK_TRANSFER = "BankTransfer"
    DIRECT_DEBIT = "DirectDebit"
    UNCLASSIFIED = "Unclassified"


class AccountTransferRow(BaseModel):
    """Internal transfer between two accounts of the ledger."""
    kind: Literal[TransactionKind.ACCOUNT_TRANSFER] = TransactionKind.ACCOUNT_TRANSFER
    activity_id: str
    sender_account: str
    receiver_account: str
    amount: str
    entry_date: str
    subject: str
    depot_activity_id: Optional[str] = None


class BankTransferRow(BaseModel):
    """Outgoing transfer to an account at another bank."""
    kind: Literal[TransactionKind.BANK_TRANSFER] = TransactionKind.BANK_TRANSFER
    activity_id: str
    sender_account: str
    receiver_name: str
    receiver_account: str
    receiver_bank_code: str
    amount: str
    subject: str


class DirectDebitRow(BaseModel):
    """Debit to be collected from the payer via the direct debit batch."""
    kind: Literal[TransactionKind.DIRECT_DEBIT] = TransactionKind.DIRECT_DEBIT
    activity_id: str
    payer_account: str
    payer_bank_code: str
    payer_name: str
    amount: str
    subject: str


class UnclassifiedRow(BaseModel):
    """Row that matched none of the classification rules."""
    kind: Literal[TransactionKind.UNCLASSIFIED] = TransactionKind.UNCLASSIFIED
    activity_id: str


ClassifiedRow = Annotated[
    Union[AccountTransferRow, BankTransferRow, DirectDebitRow, UnclassifiedRow],
    Field(discriminator="kind"),
]


class DebitEntry(BaseModel):
    """Single booking of a direct debit batch."""
    account: str
    bank_code: str
    holder: str
    amount: Decimal = Field(..., ge=0)
    subject: str


class DirectDebitBatch(BaseModel):
    """
    Debit entries accumulated while importing one file.

    The batch lives only as long as the import call that owns it and is
    written out in one piece, never partially.
    """
    entries: List[DebitEntry] = Field(default_factory=list)

    def append_debit(
        self,
        account: str,
        bank_code: str,
        holder: str,
        amount: Decimal,
        subject: str,
    ) -> DebitEntry:
        entry = DebitEntry(
            account=account,
            bank_code=bank_code,
            holder=holder,
            amount=amount,
            subject=subject,
        )
        self.entries.append(entry)
        return entry

    def is_empty(self) -> bool:
        return not self.entries

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def total_amount(self) -> Decimal:
        return sum((e.amount for e in self.entries), Decimal("0"))


class RowOutcome(BaseModel):
    """Result of classifying and dispatching one row."""
    activity_id: str
    kind: Optional[TransactionKind] = None
    errors: List[str] = Field(default_factory=list)
    attempts: int = 0
    debit_entry: Optional[DebitEntry] = None

    @property
    def ok(self) -> bool:
        return not self.errors


class ImportOutcome(BaseModel):
    """Per-file import result."""
    success: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    batch_path: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def summary(self) -> str:
        """
        Format the result the way it is logged, quarantined and emailed.

        Returns:
            "Success" or "Imported: <ids> Errors: <errors>"
        """
        if self.ok:
            return "Success"
        return f"Imported: {', '.join(self.success)} Errors: {'; '.join(self.errors)}"


class FileDisposition(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FileResult(BaseModel):
    """Disposition of one remote file within a run."""
    file: str
    disposition: FileDisposition
    detail: str
    error_report_path: Optional[str] = None


class RunReport(BaseModel):
    """Aggregated outcome of one orchestrator run."""
    results: List[FileResult] = Field(default_factory=list)
    stopped_early: bool = False
    cancelled: bool = False

    def record(self, result: FileResult) -> None:
        self.results.append(result)

    @property
    def succeeded(self) -> List[FileResult]:
        return [r for r in self.results if r.disposition == FileDisposition.SUCCEEDED]

    @property
    def failed(self) -> List[FileResult]:
        return [r for r in self.results if r.disposition == FileDisposition.FAILED]
