"""Receiving side of the socket transfer protocol."""
from __future__ import annotations

import socket
from contextlib import closing
from pathlib import Path
from threading import Thread
from typing import BinaryIO, Callable, Optional

from ..common.filesystem import ensure_directory, normalize_file_path
from ..config import DEFAULT_BUFFER_SIZE_BYTES, DEFAULT_TRANSFER_TIMEOUT, DIR_COMMAND, FILE_COMMAND
from ..logging_utils import setup_logging
from .base import FrameHeader, ProtocolError, TransferError, TransferStatus, TransferTimeoutError
from .codec import read_frame_header

_LOGGER = setup_logging(__name__)


class FrameReceiver:
    """Reads frames from a stream and materializes them on local disk."""

    def __init__(
        self,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE_BYTES,
        normalize: Callable[[str], str] = normalize_file_path,
    ) -> None:
        self.buffer_size = buffer_size
        self.normalize = normalize
        self.files_received = 0
        self.bytes_received = 0

    def receive(self, stream: BinaryIO) -> None:
        """Consume frames until the peer closes the stream or sends an unknown command."""

        while True:
            header = read_frame_header(stream)
            if header is None:
                return
            if header.command not in (FILE_COMMAND, DIR_COMMAND):
                _LOGGER.error(
                    "unknown socket command, stopping",
                    extra={"_ftx_command": header.command, "_ftx_path": header.path},
                )
                return
            path = Path(self.normalize(header.path))
            try:
                if header.command == FILE_COMMAND:
                    self._receive_file(stream, path, header)
                else:
                    if not path.exists():
                        _LOGGER.debug("creating directory", extra={"_ftx_path": str(path)})
                    ensure_directory(path)
            except ValueError as exc:
                # embedded NUL bytes and similar are rejected by the os layer
                raise TransferError(f"Illegal path {header.path!r} received: {exc}") from exc

    def _receive_file(self, stream: BinaryIO, path: Path, header: FrameHeader) -> None:
        size = header.size or 0
        _LOGGER.debug("creating file", extra={"_ftx_path": str(path), "_ftx_size": size})
        parent = path.parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise TransferError(
                    f"Could not create parent directories of file '{path}'. "
                    "File transfer is interrupted."
                ) from exc
        try:
            fh = path.open("wb")
        except OSError as exc:
            raise TransferError(f"Could not create destination file '{path}'") from exc
        with fh:
            remaining = size
            while remaining > 0:
                data = stream.read(min(self.buffer_size, remaining))
                if not data:
                    raise ProtocolError(
                        f"unexpected end of stream while receiving '{path}' "
                        f"({size - remaining} of {size} bytes received)"
                    )
                fh.write(data)
                fh.flush()
                remaining -= len(data)
        self.files_received += 1
        self.bytes_received += size


class TransferReceiver(Thread):
    """Runs one receive session on a background thread.

    Exactly one of *server_sock* (listener variant, accepts one connection)
    or *sock* (client variant, already connected to the sending peer) must be
    given. Both are owned and closed by the receiver. The outcome is recorded
    on *status*.
    """

    def __init__(
        self,
        status: TransferStatus,
        *,
        server_sock: Optional[socket.socket] = None,
        sock: Optional[socket.socket] = None,
        timeout: float = DEFAULT_TRANSFER_TIMEOUT,
        buffer_size: int = DEFAULT_BUFFER_SIZE_BYTES,
        name: Optional[str] = None,
    ) -> None:
        if (server_sock is None) == (sock is None):
            raise ValueError("exactly one of server_sock or sock must be provided")
        super().__init__(name=name, daemon=True)
        self.status = status
        self.timeout = timeout
        self._server_sock = server_sock
        self._sock = sock
        self.frames = FrameReceiver(buffer_size=buffer_size)

    @property
    def port(self) -> int:
        owned = self._server_sock if self._server_sock is not None else self._sock
        return owned.getsockname()[1]  # type: ignore[union-attr]

    def run(self) -> None:  # type: ignore[override]
        error: Optional[BaseException] = None
        port = self.port
        try:
            conn = self._accept() if self._server_sock is not None else self._sock
            with closing(conn) as sock:  # type: ignore[arg-type]
                sock.settimeout(self.timeout)
                with sock.makefile("rb") as stream:
                    self.frames.receive(stream)
            _LOGGER.info(
                "transfer finished",
                extra={
                    "_ftx_port": port,
                    "_ftx_files": self.frames.files_received,
                    "_ftx_bytes": self.frames.bytes_received,
                },
            )
        except socket.timeout as exc:
            _LOGGER.error(
                "reached timeout while waiting for file/directory copy operation",
                extra={"_ftx_port": port, "_ftx_timeout": self.timeout},
            )
            error = TransferTimeoutError(
                f"Reached timeout of {self.timeout} seconds while waiting for "
                f"file/directory copy operation on port {port}"
            )
            error.__cause__ = exc
        except TransferError as exc:
            _LOGGER.error("transfer failed", extra={"_ftx_port": port, "_ftx_detail": str(exc)})
            error = exc
        except OSError as exc:
            _LOGGER.error("an I/O error occurred", extra={"_ftx_port": port, "_ftx_detail": str(exc)})
            error = TransferError(f"I/O error during transfer on port {port}: {exc}")
            error.__cause__ = exc
        except Exception as exc:
            _LOGGER.exception("receiver crashed", extra={"_ftx_port": port})
            error = TransferError(f"Unexpected error during transfer on port {port}: {exc!r}")
            error.__cause__ = exc
        finally:
            if self._server_sock is not None:
                self._server_sock.close()
            self.status.finish(
                error,
                files_received=self.frames.files_received,
                bytes_received=self.frames.bytes_received,
            )

    def _accept(self) -> socket.socket:
        server = self._server_sock
        server.settimeout(self.timeout)  # type: ignore[union-attr]
        conn, addr = server.accept()  # type: ignore[union-attr]
        _LOGGER.debug("accepted transfer connection", extra={"_ftx_peer": f"{addr[0]}:{addr[1]}"})
        return conn


__all__ = ["FrameReceiver", "TransferReceiver"]
