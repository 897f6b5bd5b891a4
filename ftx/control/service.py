"""Host-local transfer operations shared by the agent and the CLIs."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from ..common.filesystem import construct_destination_file_path, directory_size
from ..config import TransferSettings
from ..data.base import TransferError, TransferStatus
from ..data.sender import FileSender
from ..data.tracker import TransferTracker
from ..logging_utils import log_progress, setup_logging

_LOGGER = setup_logging("ftx.service")


class FileTransferService:
    """Combines a :class:`TransferTracker` and a :class:`FileSender` for one host."""

    def __init__(
        self,
        settings: Optional[TransferSettings] = None,
        *,
        tracker: Optional[TransferTracker] = None,
        sender: Optional[FileSender] = None,
    ) -> None:
        self.settings = settings or TransferSettings()
        self.tracker = tracker or TransferTracker(self.settings)
        self.sender = sender or FileSender(
            buffer_size=self.settings.buffer_size,
            connect_timeout=self.settings.timeout,
        )
        self._logger = _LOGGER

    def set_copy_file_port_range(self, start: Optional[int], end: Optional[int]) -> None:
        self.tracker.set_port_range(start, end)

    def open_file_transfer_socket(self) -> int:
        port, _ = self.tracker.open()
        log_progress(self._logger, port=port, state="LISTENING")
        return port

    def read_transfer(self, host: str, port: int) -> int:
        local_port, _ = self.tracker.connect(host, port)
        log_progress(
            self._logger,
            port=local_port,
            state="CONNECTED",
            detail=f"reading from {host}:{port}",
        )
        return local_port

    def wait_for_file_transfer_completion(
        self, port: int, timeout: Optional[float] = None
    ) -> Optional[TransferStatus]:
        try:
            status = self.tracker.wait(port, timeout)
        except TransferError as exc:
            log_progress(self._logger, port=port, state="FAILED", detail=str(exc))
            raise
        if status is None:
            log_progress(self._logger, port=port, state="SUCCESS", detail="no pending transfer")
            return None
        log_progress(
            self._logger,
            port=port,
            state="SUCCESS",
            bytes_transferred=status.bytes_received,
            total_bytes=status.bytes_received,
            files=status.files_received,
        )
        return status

    def pending_transfers(self) -> List[int]:
        return self.tracker.pending()

    def send_file_to(
        self, from_file: str, to_file: str, host: str, port: int, *, fail_on_error: bool = False
    ) -> None:
        size = Path(from_file).stat().st_size if Path(from_file).is_file() else 0
        log_progress(
            self._logger,
            port=port,
            path=from_file,
            bytes_transferred=0,
            total_bytes=size,
            state="IN_PROGRESS",
            detail=f"sending to {host}:{port} as {to_file}",
        )
        try:
            self.sender.send_file_to(from_file, to_file, host, port, fail_on_error=fail_on_error)
        except (OSError, TransferError) as exc:
            log_progress(
                self._logger,
                port=port,
                path=from_file,
                total_bytes=size,
                state="FAILED",
                detail=str(exc),
            )
            raise
        log_progress(
            self._logger,
            port=port,
            path=from_file,
            bytes_transferred=size,
            total_bytes=size,
            state="SUCCESS",
        )

    def send_directory_to(
        self,
        from_dir: str,
        to_dir: str,
        host: str,
        port: int,
        *,
        recursive: bool = True,
        fail_on_error: bool = False,
    ) -> None:
        root = Path(from_dir)
        total = directory_size(root, recursive=recursive) if root.is_dir() else 0
        log_progress(
            self._logger,
            port=port,
            path=from_dir,
            bytes_transferred=0,
            total_bytes=total,
            state="IN_PROGRESS",
            detail=f"sending to {host}:{port} as {to_dir}",
        )
        try:
            self.sender.send_directory_to(
                from_dir,
                to_dir,
                host,
                port,
                recursive=recursive,
                fail_on_error=fail_on_error,
            )
        except (OSError, TransferError) as exc:
            log_progress(
                self._logger,
                port=port,
                path=from_dir,
                total_bytes=total,
                state="FAILED",
                detail=str(exc),
            )
            raise
        log_progress(
            self._logger,
            port=port,
            path=from_dir,
            bytes_transferred=total,
            total_bytes=total,
            state="SUCCESS",
        )

    def construct_destination_file_path(self, src_file_name: str, dst_file_path: str) -> str:
        return construct_destination_file_path(src_file_name, dst_file_path)


__all__ = ["FileTransferService"]
