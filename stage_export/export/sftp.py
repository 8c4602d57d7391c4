from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass

import paramiko

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SftpConfig:
    host: str
    port: int
    username: str
    password: str | None
    key_path: str | None
    remote_dir: str

    def remote_path(self, file_name: str) -> str:
        """Remote path for `file_name`, keeping its sub-directories under remote_dir."""
        rel = posixpath.normpath(file_name.lstrip("/"))
        if rel in ("", ".") or rel == ".." or rel.startswith("../"):
            raise ValueError(f"Invalid file_name for SFTP upload: {file_name!r}")
        return posixpath.join(self.remote_dir, rel)


def _ensure_remote_dir(sftp: paramiko.SFTPClient, path: str) -> None:
    """Create `path` and any missing parents on the server."""
    if path in ("", ".", "/"):
        return
    current = "/" if path.startswith("/") else ""
    for part in path.strip("/").split("/"):
        current = posixpath.join(current, part) if current else part
        try:
            sftp.stat(current)
            continue
        except FileNotFoundError:
            pass
        try:
            sftp.mkdir(current)
        except OSError:
            # another worker may have created it first
            sftp.stat(current)


class SftpUploader:
    """
    Uploads one local file per call over a fresh SFTP session.

    Each upload opens and closes its own transport so concurrent workers
    never share a channel.
    """

    def __init__(self, *, cfg: SftpConfig) -> None:
        self._cfg = cfg

    def _connect(self) -> paramiko.Transport:
        transport = paramiko.Transport((self._cfg.host, self._cfg.port))
        try:
            if self._cfg.key_path:
                pkey = paramiko.PKey.from_path(self._cfg.key_path)
                transport.connect(username=self._cfg.username, pkey=pkey)
            else:
                transport.connect(username=self._cfg.username, password=self._cfg.password)
        except Exception:
            transport.close()
            raise
        return transport

    def upload(self, local_path: str, file_name: str) -> str:
        remote_path = self._cfg.remote_path(file_name)
        transport = self._connect()
        try:
            sftp = paramiko.SFTPClient.from_transport(transport)
            if sftp is None:
                raise RuntimeError(f"Could not open SFTP channel to {self._cfg.host}")
            try:
                _ensure_remote_dir(sftp, posixpath.dirname(remote_path))
                sftp.put(local_path, remote_path)
            finally:
                sftp.close()
        finally:
            transport.close()

        logger.debug("Uploaded %s to sftp://%s/%s", local_path, self._cfg.host, remote_path)
        return remote_path
