"""
Direct debit batch export.
Checks debit parties and writes accumulated debit entries to a batch file.
"""
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from core.config import Settings, get_settings
from core.exceptions import ExportError
from core.logger import setup_logger
from core.schema import DirectDebitBatch

logger = setup_logger(__name__)

BATCH_COLUMNS = ["RECORD", "KONTO", "BLZ", "NAME", "AMOUNT", "SUBJECT"]

# DTAUS transaction type for a debit collection ("Lastschrift")
TRANSACTION_TYPE = "LK"


class DebitBatchWriter:
    """Writes direct debit batches on behalf of the configured creditor."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.creditor_account = self.settings.creditor_account
        self.creditor_bank_code = self.settings.creditor_bank_code
        self.creditor_name = self.settings.creditor_name

    def is_acceptable_debit_party(self, account: Optional[str], bank_code: Optional[str]) -> bool:
        """
        Check whether an account can be debited through the batch.

        Args:
            account: Account number (1-10 digits, not all zeros)
            bank_code: Bank code (8 digits, not all zeros)

        Returns:
            True if the pair is acceptable
        """
        account = (account or "").strip()
        bank_code = (bank_code or "").strip()

        if not account.isdigit() or len(account) > 10 or int(account) == 0:
            return False
        if not bank_code.isdigit() or len(bank_code) != 8 or int(bank_code) == 0:
            return False
        return True

    def write(self, batch: DirectDebitBatch, output_path: str) -> str:
        """
        Write a batch to disk.

        The file has a header record with the creditor, one record per debit
        entry and a trailer record with the control totals.

        Args:
            batch: Accumulated debit entries
            output_path: Output file path

        Returns:
            Path to created file

        Raises:
            ExportError: If the batch is empty or the file cannot be written
        """
        if batch.is_empty():
            raise ExportError(
                "Refusing to write an empty direct debit batch",
                details={"output_path": output_path}
            )

        logger.info(f"Writing {len(batch)} debit entries to {output_path}")

        records = [{
            "RECORD": "A",
            "KONTO": self.creditor_account,
            "BLZ": self.creditor_bank_code,
            "NAME": self.creditor_name,
            "AMOUNT": "",
            "SUBJECT": TRANSACTION_TYPE,
        }]
        for entry in batch.entries:
            records.append({
                "RECORD": "C",
                "KONTO": entry.account,
                "BLZ": entry.bank_code,
                "NAME": entry.holder,
                "AMOUNT": f"{entry.amount:.2f}",
                "SUBJECT": entry.subject,
            })
        records.append({
            "RECORD": "E",
            "KONTO": str(sum(int(e.account) for e in batch.entries)),
            "BLZ": str(sum(int(e.bank_code) for e in batch.entries)),
            "NAME": str(len(batch)),
            "AMOUNT": f"{batch.total_amount:.2f}",
            "SUBJECT": "",
        })

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            pd.DataFrame(records, columns=BATCH_COLUMNS).to_csv(
                output_file, sep=";", index=False, encoding="utf-8"
            )
            logger.info(f"Successfully exported to {output_path}")
            return output_path
        except Exception as e:
            logger.error(f"Failed to export direct debit batch: {e}")
            raise ExportError(
                "Failed to write direct debit batch",
                details={"output_path": output_path, "error": str(e)}
            )


def create_batch_filename(base_path: str, suffix: str) -> str:
    """
    Create timestamped batch filename.

    Args:
        base_path: Output directory
        suffix: File name suffix identifying the batch source

    Returns:
        Full output file path
    """
    Path(base_path).mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filename = f"DTAUS{timestamp}_{suffix}.csv"

    return str(Path(base_path) / filename)
