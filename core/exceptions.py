"""
Custom exceptions for the batch importer.
"""
from typing import Any, Dict, Optional


class BatchImportException(Exception):
    """Base exception for all batch import errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class FileProcessingError(BatchImportException):
    """Raised when processing a whole file fails."""
    pass


class ValidationError(BatchImportException):
    """Raised when a field value cannot be interpreted."""
    pass


class ParsingError(BatchImportException):
    """Raised when CSV parsing fails."""
    pass


class ExportError(BatchImportException):
    """Raised when the direct debit batch cannot be written."""
    pass


class ConfigurationError(BatchImportException):
    """Raised when configuration is invalid."""
    pass


class DataNotFoundError(BatchImportException):
    """Raised when required data is not found."""
    pass


class LedgerError(BatchImportException):
    """Raised when the ledger rejects an operation."""
    pass


class RemoteStoreError(BatchImportException):
    """Raised when a remote file operation fails."""
    pass


class RemoteConnectionError(RemoteStoreError):
    """Raised when the remote file store cannot be reached."""
    pass


class RunInProgressError(BatchImportException):
    """Raised when an import run is started while another one is active."""
    pass
