"""
Remote file store interface.

A store is a scoped resource: entering the context opens the connection,
leaving it closes the connection on every exit path.
"""
from abc import ABC, abstractmethod
from typing import List


class RemoteFileStore(ABC):

    @abstractmethod
    def connect(self) -> None:
        """Open the connection. Raises RemoteConnectionError."""

    @abstractmethod
    def close(self) -> None:
        """Release the connection. Must be safe to call more than once."""

    @abstractmethod
    def list(self, directory: str) -> List[str]:
        """Names of the entries in a remote directory."""

    @abstractmethod
    def download(self, remote_path: str, local_path: str) -> None:
        """Copy a remote file to a local path."""

    @abstractmethod
    def remove(self, remote_path: str) -> None:
        """Delete a remote file."""

    @abstractmethod
    def upload(self, local_path: str, remote_path: str) -> None:
        """Copy a local file to a remote path."""

    def __enter__(self) -> "RemoteFileStore":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
