import sqlite3
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from core.config import Settings, get_settings
from core.exceptions import LedgerError
from core.logger import setup_logger
from ledger.base import STATE_COMPLETED, STATE_PENDING, Account, LedgerService, Transfer

logger = setup_logger(__name__)


class SQLiteAccountTransfer(Transfer):
    """Internal transfer between two ledger accounts."""

    def __init__(
        self,
        ledger: "SQLiteLedger",
        sender_account: str,
        receiver_account: str,
        amount: Decimal,
        subject: str,
        value_date: Optional[date],
        skip_mobile_tan: bool = False,
        state: str = STATE_PENDING,
        id: Optional[int] = None,
    ):
        self.ledger = ledger
        self.sender_account = sender_account
        self.receiver_account = receiver_account
        self.amount = amount
        self.subject = subject
        self.value_date = value_date
        self.skip_mobile_tan = skip_mobile_tan
        self.state = state
        self.id = id

    def validate(self) -> List[str]:
        messages = []
        if self.amount is None or self.amount <= 0:
            messages.append("Amount must be greater than 0")
        if not self.subject:
            messages.append("Subject can't be blank")
        if not self.receiver_account:
            messages.append("Receiver can't be blank")
        elif self.receiver_account == self.sender_account:
            messages.append("Receiver must differ from sender")
        elif self.ledger.find_account_by_number(self.receiver_account) is None:
            messages.append(f"Receiver account {self.receiver_account} not found")
        if self.value_date is None:
            messages.append("Date can't be blank")
        return messages

    def save(self) -> None:
        if self.id is not None:
            raise LedgerError("Account transfer already saved", details={"id": self.id})
        conn = self.ledger.get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO account_transfers
                    (sender_account, receiver_account, amount, subject, value_date,
                     skip_mobile_tan, state, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    self.sender_account,
                    self.receiver_account,
                    str(self.amount),
                    self.subject,
                    self.value_date.isoformat() if self.value_date else None,
                    int(self.skip_mobile_tan),
                    self.state,
                    datetime.utcnow().isoformat(),
                ),
            )
            conn.commit()
            self.id = cursor.lastrowid
        except sqlite3.Error as e:
            logger.error(f"Failed to save account transfer: {e}")
            raise LedgerError("Failed to save account transfer", details={"error": str(e)})
        finally:
            conn.close()

    def complete(self) -> None:
        if self.state != STATE_PENDING:
            raise LedgerError(
                f"Cannot complete transfer in state '{self.state}'",
                details={"id": self.id}
            )
        conn = self.ledger.get_connection()
        try:
            conn.execute(
                "UPDATE account_transfers SET state = ?, subject = ? WHERE id = ?",
                (STATE_COMPLETED, self.subject, self.id),
            )
            conn.commit()
            self.state = STATE_COMPLETED
        except sqlite3.Error as e:
            logger.error(f"Failed to complete account transfer {self.id}: {e}")
            raise LedgerError("Failed to complete account transfer", details={"error": str(e)})
        finally:
            conn.close()


class SQLiteBankTransfer(Transfer):
    """Transfer to an account at another bank."""

    def __init__(
        self,
        ledger: "SQLiteLedger",
        sender_account: str,
        amount: Decimal,
        subject: str,
        receiver_name: str,
        receiver_account: str,
        receiver_bank_code: str,
    ):
        self.ledger = ledger
        self.sender_account = sender_account
        self.amount = amount
        self.subject = subject
        self.receiver_name = receiver_name
        self.receiver_account = receiver_account
        self.receiver_bank_code = receiver_bank_code
        self.state = STATE_PENDING
        self.id = None

    def validate(self) -> List[str]:
        messages = []
        if self.amount is None or self.amount <= 0:
            messages.append("Amount must be greater than 0")
        if not self.subject:
            messages.append("Subject can't be blank")
        if not (self.receiver_name or "").strip():
            messages.append("Receiver name can't be blank")
        if not (self.receiver_account.isdigit() and len(self.receiver_account) <= 10):
            messages.append("Receiver account number is invalid")
        if not (self.receiver_bank_code.isdigit() and len(self.receiver_bank_code) == 8):
            messages.append("Receiver bank code is invalid")
        return messages

    def save(self) -> None:
        conn = self.ledger.get_connection()
        try:
            cursor = conn.execute(
                """
                INSERT INTO bank_transfers
                    (sender_account, amount, subject, receiver_name, receiver_account,
                     receiver_bank_code, state, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    self.sender_account,
                    str(self.amount),
                    self.subject,
                    self.receiver_name,
                    self.receiver_account,
                    self.receiver_bank_code,
                    self.state,
                    datetime.utcnow().isoformat(),
                ),
            )
            conn.commit()
            self.id = cursor.lastrowid
        except sqlite3.Error as e:
            logger.error(f"Failed to save bank transfer: {e}")
            raise LedgerError("Failed to save bank transfer", details={"error": str(e)})
        finally:
            conn.close()

    def complete(self) -> None:
        raise LedgerError("Bank transfers are completed by the clearing run")


class SQLiteAccount(Account):
    def __init__(self, ledger: "SQLiteLedger", account_no: str, holder: str):
        self.ledger = ledger
        self.account_no = account_no
        self.holder = holder

    def build_pending_transfer(self, amount, subject, receiver_account, value_date, skip_mobile_tan=True):
        return SQLiteAccountTransfer(
            self.ledger,
            sender_account=self.account_no,
            receiver_account=receiver_account,
            amount=amount,
            subject=subject,
            value_date=value_date,
            skip_mobile_tan=skip_mobile_tan,
        )

    def find_credit_transfer(self, transfer_id):
        try:
            transfer_pk = int(transfer_id)
        except (TypeError, ValueError):
            return None

        conn = self.ledger.get_connection()
        try:
            row = conn.execute(
                "SELECT * FROM account_transfers WHERE id = ? AND sender_account = ?",
                (transfer_pk, self.account_no),
            ).fetchone()
        finally:
            conn.close()

        if row is None:
            return None
        try:
            amount = Decimal(row["amount"])
        except InvalidOperation:
            raise LedgerError(f"Stored amount of transfer {transfer_pk} is corrupt")
        return SQLiteAccountTransfer(
            self.ledger,
            sender_account=row["sender_account"],
            receiver_account=row["receiver_account"],
            amount=amount,
            subject=row["subject"],
            value_date=date.fromisoformat(row["value_date"]) if row["value_date"] else None,
            skip_mobile_tan=bool(row["skip_mobile_tan"]),
            state=row["state"],
            id=row["id"],
        )

    def build_bank_transfer(self, amount, subject, receiver_name, receiver_account, receiver_bank_code):
        return SQLiteBankTransfer(
            self.ledger,
            sender_account=self.account_no,
            amount=amount,
            subject=subject,
            receiver_name=receiver_name,
            receiver_account=receiver_account,
            receiver_bank_code=receiver_bank_code,
        )


class SQLiteLedger(LedgerService):
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.db_path = self.settings.database_path

    def get_connection(self) -> sqlite3.Connection:
        """Create a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Initialize database tables."""
        conn = self.get_connection()
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS accounts (
                    account_no TEXT PRIMARY KEY,
                    holder TEXT NOT NULL
                );
                CREATE TABLE IF NOT EXISTS account_transfers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    sender_account TEXT NOT NULL REFERENCES accounts(account_no),
                    receiver_account TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    subject TEXT NOT NULL,
                    value_date TEXT,
                    skip_mobile_tan INTEGER NOT NULL DEFAULT 0,
                    state TEXT NOT NULL,
                    created_at TIMESTAMP
                );
                CREATE TABLE IF NOT EXISTS bank_transfers (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    sender_account TEXT NOT NULL REFERENCES accounts(account_no),
                    amount TEXT NOT NULL,
                    subject TEXT NOT NULL,
                    receiver_name TEXT NOT NULL,
                    receiver_account TEXT NOT NULL,
                    receiver_bank_code TEXT NOT NULL,
                    state TEXT NOT NULL,
                    created_at TIMESTAMP
                );
            """)
            conn.commit()
            logger.info("Ledger database initialized successfully")
        except Exception as e:
            logger.error(f"Ledger database initialization failed: {e}")
            raise
        finally:
            conn.close()

    def add_account(self, account_no: str, holder: str) -> SQLiteAccount:
        """Add an account to the ledger."""
        conn = self.get_connection()
        try:
            conn.execute(
                "INSERT OR IGNORE INTO accounts (account_no, holder) VALUES (?, ?)",
                (account_no, holder)
            )
            conn.commit()
        except Exception as e:
            logger.error(f"Failed to add account {account_no}: {e}")
            raise
        finally:
            conn.close()
        return SQLiteAccount(self, account_no, holder)

    def find_account_by_number(self, account_no: str) -> Optional[SQLiteAccount]:
        conn = self.get_connection()
        try:
            row = conn.execute(
                "SELECT account_no, holder FROM accounts WHERE account_no = ?",
                (account_no,)
            ).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        return SQLiteAccount(self, row["account_no"], row["holder"])

    def count_transfers(self, table: str = "account_transfers", state: Optional[str] = None) -> int:
        """Count stored transfers, optionally by state."""
        if table not in ("account_transfers", "bank_transfers"):
            raise ValueError(f"Unknown transfer table: {table}")
        conn = self.get_connection()
        try:
            if state is None:
                row = conn.execute(f"SELECT COUNT(*) AS n FROM {table}").fetchone()
            else:
                row = conn.execute(f"SELECT COUNT(*) AS n FROM {table} WHERE state = ?", (state,)).fetchone()
            return row["n"]
        finally:
            conn.close()

