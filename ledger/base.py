"""
Ledger capability used by the transaction handlers.

Persistence of accounts and transfers lives behind these interfaces; the
importer only looks up accounts, builds transfers, validates and saves them.
"""
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import List, Optional

STATE_PENDING = "pending"
STATE_COMPLETED = "completed"


class Transfer(ABC):
    """A transfer built from an imported row."""

    id: Optional[int]
    state: str
    subject: str

    @abstractmethod
    def validate(self) -> List[str]:
        """Return domain validation messages; empty when valid."""

    @abstractmethod
    def save(self) -> None:
        """Persist a new transfer."""

    @abstractmethod
    def complete(self) -> None:
        """Mark an existing pending transfer as completed."""


class Account(ABC):
    """Ledger account that sends transfers."""

    account_no: str

    @abstractmethod
    def build_pending_transfer(
        self,
        amount: Decimal,
        subject: str,
        receiver_account: str,
        value_date: date,
        skip_mobile_tan: bool = True,
    ) -> Transfer:
        """Build (not save) a new internal transfer from this account."""

    @abstractmethod
    def find_credit_transfer(self, transfer_id: str) -> Optional[Transfer]:
        """Find an internal transfer of this account by id, in any state."""

    @abstractmethod
    def build_bank_transfer(
        self,
        amount: Decimal,
        subject: str,
        receiver_name: str,
        receiver_account: str,
        receiver_bank_code: str,
    ) -> Transfer:
        """Build (not save) a transfer to an account at another bank."""


class LedgerService(ABC):
    """Entry point for account lookups."""

    @abstractmethod
    def find_account_by_number(self, account_no: str) -> Optional[Account]:
        """Find an account by its account number."""
