"""
Shared fixtures and in-memory fakes for the importer tests.
"""
import posixpath
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from core.config import Settings
from core.exceptions import RemoteConnectionError, RemoteStoreError
from ledger.base import STATE_COMPLETED, STATE_PENDING, Account, LedgerService, Transfer
from transport.base import RemoteFileStore

CSV_COLUMNS = [
    "ACTIVITY_ID", "UMSATZ_KEY",
    "SENDER_KONTO", "SENDER_BLZ", "SENDER_NAME",
    "RECEIVER_KONTO", "RECEIVER_BLZ", "RECEIVER_NAME",
    "AMOUNT", "ENTRY_DATE", "DEPOT_ACTIVITY_ID",
] + [f"DESC{i}" for i in range(1, 15)]


def make_row(**overrides) -> Dict[str, str]:
    """An account transfer row with every column present."""
    row = {column: "" for column in CSV_COLUMNS}
    row.update({
        "ACTIVITY_ID": "1",
        "UMSATZ_KEY": "10",
        "SENDER_KONTO": "1000000001",
        "SENDER_BLZ": "00000000",
        "SENDER_NAME": "Max Mustermann",
        "RECEIVER_KONTO": "1000000002",
        "RECEIVER_BLZ": "00000000",
        "RECEIVER_NAME": "Erika Mustermann",
        "AMOUNT": "50.00",
        "ENTRY_DATE": "2024-03-01",
        "DESC1": "Invoice ",
        "DESC2": "4711",
    })
    row.update(overrides)
    return row


def debit_row(**overrides) -> Dict[str, str]:
    """A direct debit row."""
    values = {
        "UMSATZ_KEY": "16",
        "SENDER_KONTO": "1234567890",
        "SENDER_BLZ": "37040044",
        "SENDER_NAME": "Jürgen Müller",
        "RECEIVER_KONTO": "1000000002",
        "RECEIVER_BLZ": "70022200",
        "AMOUNT": "-25.50",
    }
    values.update(overrides)
    return make_row(**values)


def write_csv(path: Path, rows: List[Dict[str, str]], columns: Optional[List[str]] = None) -> str:
    """Write rows as a semicolon separated file with a header line."""
    columns = columns or CSV_COLUMNS
    lines = [";".join(columns)]
    for row in rows:
        lines.append(";".join(row.get(column, "") for column in columns))
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return str(path)


class FakeTransfer(Transfer):
    def __init__(self, ledger, kind, fields, state=STATE_PENDING, id=None, messages=None):
        self.ledger = ledger
        self.kind = kind
        self.fields = fields
        self.subject = fields.get("subject", "")
        self.state = state
        self.id = id
        self.messages = messages or []

    def validate(self):
        return list(self.messages)

    def save(self):
        self.ledger.saved.append(self)

    def complete(self):
        self.state = STATE_COMPLETED
        self.ledger.completed.append(self)


class FakeAccount(Account):
    def __init__(self, ledger, account_no):
        self.ledger = ledger
        self.account_no = account_no
        self.transfers: Dict[str, FakeTransfer] = {}

    def build_pending_transfer(self, amount, subject, receiver_account, value_date, skip_mobile_tan=True):
        transfer = FakeTransfer(self.ledger, "account", {
            "amount": amount,
            "subject": subject,
            "receiver_account": receiver_account,
            "value_date": value_date,
            "skip_mobile_tan": skip_mobile_tan,
        }, messages=self.ledger.validation_messages)
        self.ledger.built.append(transfer)
        return transfer

    def find_credit_transfer(self, transfer_id):
        return self.transfers.get(transfer_id)

    def build_bank_transfer(self, amount, subject, receiver_name, receiver_account, receiver_bank_code):
        transfer = FakeTransfer(self.ledger, "bank", {
            "amount": amount,
            "subject": subject,
            "receiver_name": receiver_name,
            "receiver_account": receiver_account,
            "receiver_bank_code": receiver_bank_code,
        }, messages=self.ledger.validation_messages)
        self.ledger.built.append(transfer)
        return transfer


class FakeLedger(LedgerService):
    """Records every build, save and completion."""

    def __init__(self, *account_numbers):
        self.accounts = {no: FakeAccount(self, no) for no in account_numbers}
        self.built: List[FakeTransfer] = []
        self.saved: List[FakeTransfer] = []
        self.completed: List[FakeTransfer] = []
        self.validation_messages: List[str] = []
        self.lookup_error: Optional[Exception] = None

    def find_account_by_number(self, account_no):
        if self.lookup_error is not None:
            raise self.lookup_error
        return self.accounts.get(account_no)

    @property
    def mutations(self) -> int:
        return len(self.saved) + len(self.completed)


class FakeStore(RemoteFileStore):
    """In-memory remote store recording every operation."""

    def __init__(self, files: Optional[Dict[str, str]] = None, fail_connect: bool = False):
        self.files = dict(files or {})
        self.fail_connect = fail_connect
        self.fail_download: set = set()
        self.fail_upload = False
        self.operations: List[tuple] = []
        self.open = False
        self.close_count = 0

    def connect(self):
        if self.fail_connect:
            raise RemoteConnectionError("connection refused")
        self.open = True

    def close(self):
        self.open = False
        self.close_count += 1

    def list(self, directory):
        self.operations.append(("list", directory))
        prefix = directory.rstrip("/") + "/"
        return [p[len(prefix):] for p in self.files if p.startswith(prefix) and "/" not in p[len(prefix):]]

    def download(self, remote_path, local_path):
        self.operations.append(("download", remote_path))
        if remote_path in self.fail_download or remote_path not in self.files:
            raise RemoteStoreError(f"Failed to download {remote_path}")
        Path(local_path).write_text(self.files[remote_path], encoding="utf-8")

    def remove(self, remote_path):
        self.operations.append(("remove", remote_path))
        if remote_path not in self.files:
            raise RemoteStoreError(f"No such file {remote_path}")
        del self.files[remote_path]

    def upload(self, local_path, remote_path):
        self.operations.append(("upload", remote_path))
        if self.fail_upload:
            raise RemoteStoreError(f"Failed to upload {remote_path}")
        self.files[remote_path] = Path(local_path).read_text(encoding="utf-8")

    def put_csv(self, directory, name, content, ready=True):
        self.files[posixpath.join(directory, name)] = content
        if ready:
            self.files[posixpath.join(directory, name + ".start")] = ""


class FakeNotifier:
    def __init__(self):
        self.messages: List[tuple] = []

    def notify(self, subject, body):
        self.messages.append((subject, body))
        return True


@pytest.fixture
def settings(tmp_path):
    """Settings with all working directories below tmp_path."""
    return Settings(
        _env_file=None,
        download_dir=str(tmp_path / "download"),
        upload_dir=str(tmp_path / "upload"),
        batch_output_dir=str(tmp_path / "batches"),
        database_path=str(tmp_path / "ledger.db"),
        local_remote_root=str(tmp_path / "remote"),
        sendgrid_api_key=None,
    )


@pytest.fixture
def ledger():
    return FakeLedger("1000000001", "1000000002")
