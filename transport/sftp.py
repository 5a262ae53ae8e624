"""
SFTP file store backed by paramiko.
Connection setup is retried; every operation failure is wrapped in RemoteStoreError.
"""
import socket
from typing import List, Optional

import paramiko
from tenacity import (
    retry,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import Settings, get_settings
from core.exceptions import RemoteConnectionError, RemoteStoreError
from core.logger import setup_logger
from transport.base import RemoteFileStore

logger = setup_logger(__name__)

_TRANSIENT_ERRORS = (paramiko.SSHException, socket.timeout, OSError)


class SFTPFileStore(RemoteFileStore):
    """Remote file store on an SFTP server using key based authentication."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.host = self.settings.sftp_host
        self.port = self.settings.sftp_port
        self.username = self.settings.sftp_user
        self.key_path = self.settings.sftp_key_path
        self.timeout = self.settings.sftp_timeout

        self._ssh: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=(
            retry_if_exception_type(_TRANSIENT_ERRORS)
            & retry_if_not_exception_type(paramiko.AuthenticationException)
        ),
        reraise=True
    )
    def _open(self) -> None:
        ssh = paramiko.SSHClient()
        ssh.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            ssh.connect(
                hostname=self.host,
                port=self.port,
                username=self.username,
                key_filename=self.key_path,
                timeout=self.timeout,
                banner_timeout=self.timeout,
                auth_timeout=self.timeout,
                look_for_keys=self.key_path is None,
                allow_agent=False,
            )
            sftp = ssh.open_sftp()
        except Exception:
            ssh.close()
            raise
        sftp.get_channel().settimeout(self.timeout)
        self._ssh = ssh
        self._sftp = sftp

    def connect(self) -> None:
        logger.info(f"Connecting to sftp://{self.username}@{self.host}:{self.port}")
        try:
            self._open()
        except paramiko.AuthenticationException as e:
            raise RemoteConnectionError(
                f"Authentication failed for {self.username}@{self.host}",
                details={"host": self.host, "port": self.port, "error": str(e)}
            )
        except _TRANSIENT_ERRORS as e:
            raise RemoteConnectionError(
                f"Failed to connect to {self.host}:{self.port}: {e}",
                details={"host": self.host, "port": self.port, "error": str(e)}
            )

    def close(self) -> None:
        if self._sftp is not None:
            self._sftp.close()
            self._sftp = None
        if self._ssh is not None:
            self._ssh.close()
            self._ssh = None
            logger.info(f"Closed connection to {self.host}:{self.port}")

    @property
    def client(self) -> paramiko.SFTPClient:
        if self._sftp is None:
            raise RemoteStoreError("SFTP connection is not open")
        return self._sftp

    def list(self, directory: str) -> List[str]:
        try:
            return self.client.listdir(directory)
        except _TRANSIENT_ERRORS as e:
            raise RemoteStoreError(
                f"Failed to list {directory}: {e}",
                details={"directory": directory, "error": str(e)}
            )

    def download(self, remote_path: str, local_path: str) -> None:
        try:
            self.client.get(remote_path, local_path)
        except _TRANSIENT_ERRORS as e:
            raise RemoteStoreError(
                f"Failed to download {remote_path}: {e}",
                details={"remote_path": remote_path, "error": str(e)}
            )

    def remove(self, remote_path: str) -> None:
        try:
            self.client.remove(remote_path)
        except _TRANSIENT_ERRORS as e:
            raise RemoteStoreError(
                f"Failed to remove {remote_path}: {e}",
                details={"remote_path": remote_path, "error": str(e)}
            )

    def upload(self, local_path: str, remote_path: str) -> None:
        try:
            self.client.put(local_path, remote_path)
        except _TRANSIENT_ERRORS as e:
            raise RemoteStoreError(
                f"Failed to upload {local_path} to {remote_path}: {e}",
                details={"remote_path": remote_path, "error": str(e)}
            )
