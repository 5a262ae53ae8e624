"""
File import service.
Parses one transaction file, drives every row through validation, classification
and dispatch, and writes the direct debit batch when the whole file imported cleanly.
"""
from datetime import datetime
from typing import Optional

from core.config import Settings, get_settings
from core.exporters import DebitBatchWriter, create_batch_filename
from core.logger import setup_logger
from core.normalize import is_blank
from core.parsing import parse_csv_file
from core.schema import DirectDebitBatch, ImportOutcome
from core.validation import validate_row
from ledger.base import LedgerService
from services.handlers import TransactionHandlers
from services.row_processor import RowProcessor

logger = setup_logger(__name__)


class FileImporter:
    """Imports transaction files row by row, stopping at the first failing row."""

    def __init__(
        self,
        ledger: LedgerService,
        batch_writer: Optional[DebitBatchWriter] = None,
        settings: Optional[Settings] = None,
        row_processor: Optional[RowProcessor] = None,
    ):
        self.settings = settings or get_settings()
        self.batch_writer = batch_writer or DebitBatchWriter(self.settings)
        self.row_processor = row_processor or RowProcessor(
            TransactionHandlers(ledger, self.batch_writer),
            max_attempts=self.settings.import_max_attempts,
            retry_faults=self.settings.import_retry_faults,
        )

    def import_file(self, file_path: str, validation_only: bool = False) -> ImportOutcome:
        """
        Import a file, converting any file-level fault into an error outcome.

        Args:
            file_path: Path to the downloaded CSV file
            validation_only: Validate without touching the ledger or writing a batch

        Returns:
            ImportOutcome for the file
        """
        try:
            outcome = self.import_rows(file_path, validation_only)
        except Exception as e:
            logger.error(f"Import of {file_path} aborted: {e}", exc_info=True)
            outcome = ImportOutcome(errors=[str(e)])

        logger.info(
            f"Import time: {datetime.now():%Y-%m-%d %H:%M:%S} "
            f"Imported {file_path}: {outcome.summary()}"
        )
        return outcome

    def import_rows(self, file_path: str, validation_only: bool = False) -> ImportOutcome:
        """
        Import all rows of a file in order.

        Rows with a blank ACTIVITY_ID are skipped. Processing stops at the
        first row that fails validation or records an error.

        Args:
            file_path: Path to the CSV file
            validation_only: Validate without touching the ledger or writing a batch

        Returns:
            ImportOutcome with imported ids, errors and the written batch path

        Raises:
            DataNotFoundError, ParsingError: If the file cannot be parsed
            ExportError: If the debit batch cannot be written
        """
        rows = parse_csv_file(file_path, encoding=self.settings.csv_encoding)

        outcome = ImportOutcome()
        batch = DirectDebitBatch()

        for activity_id, row in rows:
            if is_blank(activity_id):
                continue

            error = validate_row(row)
            if error:
                outcome.errors.append(error)
                break

            row_outcome = self.row_processor.process_row(row, validation_only)
            if row_outcome.errors:
                outcome.errors.extend(row_outcome.errors)
                break

            if row_outcome.debit_entry is not None:
                batch.append_debit(**row_outcome.debit_entry.model_dump())
            outcome.success.append(activity_id)

        if outcome.ok and not validation_only and not batch.is_empty():
            output_path = create_batch_filename(
                self.settings.batch_output_dir, self.settings.batch_file_suffix
            )
            outcome.batch_path = self.batch_writer.write(batch, output_path)
            logger.info(
                f"Direct debit batch with {len(batch)} entries "
                f"({batch.total_amount:.2f}) written to {output_path}"
            )
        elif not batch.is_empty():
            logger.info(f"Discarding direct debit batch with {len(batch)} entries")

        return outcome
