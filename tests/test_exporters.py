"""
Unit tests for the direct debit batch writer.
"""
import re
from decimal import Decimal
from pathlib import Path

import pytest

from core.exceptions import ExportError
from core.exporters import DebitBatchWriter, create_batch_filename
from core.schema import DirectDebitBatch


@pytest.mark.parametrize("account,bank_code,expected", [
    ("1234567890", "37040044", True),
    ("42", "37040044", True),
    ("12345678901", "37040044", False),
    ("0000000000", "37040044", False),
    ("12A4", "37040044", False),
    ("1234567890", "3704004", False),
    ("1234567890", "00000000", False),
    ("", "", False),
    (None, None, False),
])
def test_is_acceptable_debit_party(settings, account, bank_code, expected):
    writer = DebitBatchWriter(settings)
    assert writer.is_acceptable_debit_party(account, bank_code) is expected


def test_write_batch(settings, tmp_path):
    batch = DirectDebitBatch()
    batch.append_debit("1234567890", "37040044", "Jurgen Muller", Decimal("25.50"), "Fee")
    batch.append_debit("42", "37040044", "Erika", Decimal("4.5"), "Fee 2")

    output = DebitBatchWriter(settings).write(batch, str(tmp_path / "out" / "batch.csv"))

    lines = Path(output).read_text(encoding="utf-8").splitlines()
    assert lines[0] == "RECORD;KONTO;BLZ;NAME;AMOUNT;SUBJECT"
    assert lines[1] == "A;8888888888;99999999;Credit collection;;LK"
    assert lines[2] == "C;1234567890;37040044;Jurgen Muller;25.50;Fee"
    assert lines[3] == "C;42;37040044;Erika;4.50;Fee 2"
    assert lines[4] == "E;1234567932;74080088;2;30.00;"


def test_write_empty_batch_refused(settings, tmp_path):
    with pytest.raises(ExportError):
        DebitBatchWriter(settings).write(DirectDebitBatch(), str(tmp_path / "batch.csv"))
    assert not (tmp_path / "batch.csv").exists()


def test_create_batch_filename(tmp_path):
    path = create_batch_filename(str(tmp_path / "batches"), "201_import")
    assert Path(path).parent.is_dir()
    assert re.fullmatch(r"DTAUS\d{8}_\d{6}_201_import\.csv", Path(path).name)


def test_batch_totals():
    batch = DirectDebitBatch()
    assert batch.is_empty()
    batch.append_debit("1", "37040044", "A", Decimal("1.10"), "x")
    batch.append_debit("2", "37040044", "B", Decimal("2.20"), "y")
    assert len(batch) == 2
    assert batch.total_amount == Decimal("3.30")
