"""
Directory backed file store for development and tests.
Remote paths are resolved below a local root directory.
"""
import shutil
from pathlib import Path
from typing import List, Optional

from core.config import Settings, get_settings
from core.exceptions import RemoteConnectionError, RemoteStoreError
from core.logger import setup_logger
from transport.base import RemoteFileStore

logger = setup_logger(__name__)


class LocalFileStore(RemoteFileStore):

    def __init__(self, root: Optional[str] = None, settings: Optional[Settings] = None):
        if root is None:
            root = (settings or get_settings()).local_remote_root
        self.root = Path(root)
        self.connected = False

    def _resolve(self, remote_path: str) -> Path:
        path = (self.root / remote_path.lstrip("/")).resolve()
        if not str(path).startswith(str(self.root.resolve())):
            raise RemoteStoreError(f"Path escapes store root: {remote_path}")
        return path

    def connect(self) -> None:
        if not self.root.is_dir():
            raise RemoteConnectionError(
                f"Store root {self.root} does not exist",
                details={"root": str(self.root)}
            )
        self.connected = True
        logger.debug(f"Opened local store at {self.root}")

    def close(self) -> None:
        self.connected = False

    def _check_open(self) -> None:
        if not self.connected:
            raise RemoteStoreError("Local store is not open")

    def list(self, directory: str) -> List[str]:
        self._check_open()
        try:
            return [p.name for p in self._resolve(directory).iterdir()]
        except OSError as e:
            raise RemoteStoreError(f"Failed to list {directory}: {e}", details={"directory": directory})

    def download(self, remote_path: str, local_path: str) -> None:
        self._check_open()
        try:
            shutil.copyfile(self._resolve(remote_path), local_path)
        except OSError as e:
            raise RemoteStoreError(f"Failed to download {remote_path}: {e}", details={"remote_path": remote_path})

    def remove(self, remote_path: str) -> None:
        self._check_open()
        try:
            self._resolve(remote_path).unlink()
        except OSError as e:
            raise RemoteStoreError(f"Failed to remove {remote_path}: {e}", details={"remote_path": remote_path})

    def upload(self, local_path: str, remote_path: str) -> None:
        self._check_open()
        target = self._resolve(remote_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(local_path, target)
        except OSError as e:
            raise RemoteStoreError(f"Failed to upload {local_path}: {e}", details={"remote_path": remote_path})
