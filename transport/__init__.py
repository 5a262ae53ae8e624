"""
Remote file stores the importer pulls transaction files from.

This package contains:
- base: Store interface used as a context manager
- sftp: paramiko SFTP store
- local: Directory backed store
"""
from typing import Optional

from core.config import Settings, get_settings
from transport.base import RemoteFileStore


def create_file_store(settings: Optional[Settings] = None) -> RemoteFileStore:
    """Build the store selected by REMOTE_BACKEND."""
    settings = settings or get_settings()
    if settings.remote_backend == "local":
        from transport.local import LocalFileStore
        return LocalFileStore(settings=settings)

    from transport.sftp import SFTPFileStore
    return SFTPFileStore(settings)
