"""
CSV file parsing for semicolon-delimited transaction exports.
"""
from pathlib import Path
from typing import List, Set, Tuple

import pandas as pd

from core.exceptions import DataNotFoundError, ParsingError
from core.logger import setup_logger
from core.schema import DESC_FIELDS, Row

logger = setup_logger(__name__)

ID_COLUMN = "ACTIVITY_ID"

# Columns the classifier and handlers read
EXPECTED_COLUMNS: Set[str] = {
    ID_COLUMN,
    "UMSATZ_KEY",
    "SENDER_KONTO",
    "SENDER_BLZ",
    "SENDER_NAME",
    "RECEIVER_KONTO",
    "RECEIVER_BLZ",
    "RECEIVER_NAME",
    "AMOUNT",
    "ENTRY_DATE",
    "DEPOT_ACTIVITY_ID",
    *DESC_FIELDS,
}


def parse_csv_file(file_path: str, encoding: str = "utf-8") -> List[Tuple[str, Row]]:
    """
    Parse a transaction CSV file into (activity id, row) pairs.

    Values are kept as strings exactly as delivered; file order and
    header order are preserved and blank lines are skipped.

    Args:
        file_path: Path to the CSV file
        encoding: File encoding

    Returns:
        List of (ACTIVITY_ID, row) tuples in file order

    Raises:
        DataNotFoundError: If file doesn't exist
        ParsingError: If the file is empty, malformed or has no ACTIVITY_ID column
    """
    path = Path(file_path)
    if not path.exists():
        raise DataNotFoundError(
            f"File not found: {file_path}",
            details={"file_path": file_path}
        )

    logger.info(f"Parsing transactions from {path.name}")

    try:
        df = pd.read_csv(
            path,
            sep=";",
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding=encoding,
        )
    except pd.errors.EmptyDataError:
        raise ParsingError(
            "File is empty",
            details={"file_path": file_path}
        )
    except Exception as e:
        logger.error(f"Failed to parse {file_path}: {str(e)}")
        raise ParsingError(
            f"Invalid CSV format: {e}",
            details={"file_path": file_path, "error": str(e)}
        )

    # Short lines leave NaN in trailing columns
    df = df.fillna("")

    columns = [str(c) for c in df.columns]
    if ID_COLUMN not in columns:
        raise ParsingError(
            f"Missing required column {ID_COLUMN}",
            details={"file_path": file_path, "columns": columns}
        )

    missing_cols = EXPECTED_COLUMNS - set(columns)
    if missing_cols:
        logger.warning(f"Missing expected columns: {sorted(missing_cols)}")
        logger.debug(f"Available columns: {columns}")

    rows: List[Tuple[str, Row]] = []
    for values in df.itertuples(index=False, name=None):
        row = dict(zip(columns, values))
        rows.append((row[ID_COLUMN], row))

    logger.info(f"Successfully parsed {len(rows)} rows from {path.name}")
    return rows
