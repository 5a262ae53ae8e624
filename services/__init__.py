"""
Service layer for business logic.

This package contains the services that run the import pipeline: transaction
handlers, the row processor, the file importer, the batch orchestrator and
operator notifications.
"""
from typing import Optional

from core.config import Settings, get_settings


def build_importer(settings: Optional[Settings] = None):
    """Wire a FileImporter against the SQLite ledger."""
    from ledger.sqlite_ledger import SQLiteLedger
    from services.import_service import FileImporter

    settings = settings or get_settings()
    ledger = SQLiteLedger(settings)
    ledger.init_db()
    return FileImporter(ledger, settings=settings)


def build_orchestrator(settings: Optional[Settings] = None):
    """Wire a BatchOrchestrator from configuration."""
    from services.notifier import create_notifier
    from services.orchestrator import BatchOrchestrator
    from transport import create_file_store

    settings = settings or get_settings()
    return BatchOrchestrator(
        importer=build_importer(settings),
        store_factory=lambda: create_file_store(settings),
        notifier=create_notifier(settings),
        settings=settings,
    )
