"""Sending side of the socket transfer protocol."""
from __future__ import annotations

import os
import socket
from contextlib import closing
from pathlib import Path
from typing import BinaryIO, Optional

from ..common.filesystem import join_remote_path, walk_tree
from ..config import DEFAULT_BUFFER_SIZE_BYTES, DEFAULT_TRANSFER_TIMEOUT
from ..logging_utils import setup_logging
from .base import TransferError, TransferSizeMismatch
from .codec import write_dir_frame, write_file_header

_LOGGER = setup_logging(__name__)


class FileSender:
    """Walks a local file or directory and streams it as command frames."""

    def __init__(
        self,
        *,
        buffer_size: int = DEFAULT_BUFFER_SIZE_BYTES,
        connect_timeout: float = DEFAULT_TRANSFER_TIMEOUT,
    ) -> None:
        if buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        self.buffer_size = buffer_size
        self.connect_timeout = connect_timeout

    def file_size(self, path: Path) -> int:
        """Size announced in the frame header, captured before streaming starts."""

        return path.stat().st_size

    def send_file_to(
        self,
        from_file: str,
        to_file: str,
        host: str,
        port: int,
        *,
        fail_on_error: bool = False,
    ) -> None:
        source = Path(from_file)
        if not source.exists():
            raise FileNotFoundError(f"File '{from_file}' does not exist")
        try:
            with closing(self._connect(host, port)) as sock, sock.makefile("wb") as stream:
                self.send(source, to_file, stream, fail_on_size_mismatch=fail_on_error)
        except TransferError:
            raise
        except OSError as exc:
            raise TransferError(
                f"Unable to send file '{from_file}' to '{to_file}' on {host}:{port}: {exc}"
            ) from exc

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
        if from_dir is None:
            raise ValueError("Could not copy directories. The source directory name is null")
        if to_dir is None:
            raise ValueError("Could not copy directories. The target directory name is null")
        if recursive and _is_nested(to_dir, from_dir):
            raise ValueError(
                "Could not copy directories. The target directory is subdirectory of the source one"
            )
        source = Path(from_dir)
        if not source.exists():
            raise FileNotFoundError(f"Directory '{from_dir}' does not exist")
        try:
            with closing(self._connect(host, port)) as sock, sock.makefile("wb") as stream:
                self.send(
                    source,
                    to_dir,
                    stream,
                    fail_on_size_mismatch=fail_on_error,
                    recursive=recursive,
                )
        except TransferError:
            raise
        except OSError as exc:
            raise TransferError(
                f"Unable to send directory '{from_dir}' to '{to_dir}' on {host}:{port}: {exc}"
            ) from exc

    def send(
        self,
        source: Path,
        destination: str,
        stream: BinaryIO,
        *,
        fail_on_size_mismatch: bool = False,
        recursive: bool = True,
    ) -> None:
        """Stream *source* to *destination* on the peer through *stream*."""

        if not source.is_dir():
            self._send_file(source, destination, stream, fail_on_size_mismatch)
            return

        write_dir_frame(stream, destination)
        for path, parts in walk_tree(source, recursive=recursive):
            target = join_remote_path(destination, parts)
            if path.is_dir():
                write_dir_frame(stream, target)
            else:
                self._send_file(path, target, stream, fail_on_size_mismatch)

    def _send_file(
        self, source: Path, destination: str, stream: BinaryIO, fail_on_size_mismatch: bool
    ) -> None:
        declared = self.file_size(source)
        _LOGGER.debug(
            "sending file",
            extra={"_ftx_path": str(source), "_ftx_destination": destination, "_ftx_size": declared},
        )
        write_file_header(stream, destination, declared)
        with source.open("rb") as fh:
            stream_content(
                fh,
                declared,
                stream,
                buffer_size=self.buffer_size,
                fail_on_size_mismatch=fail_on_size_mismatch,
                name=str(source),
            )

    def _connect(self, host: str, port: int) -> socket.socket:
        return socket.create_connection((host, port), timeout=self.connect_timeout)


def stream_content(
    source: BinaryIO,
    declared_size: int,
    stream: BinaryIO,
    *,
    buffer_size: int = DEFAULT_BUFFER_SIZE_BYTES,
    fail_on_size_mismatch: bool = False,
    name: Optional[str] = None,
) -> int:
    """Copy exactly *declared_size* bytes from *source* to *stream*.

    A source that yields more is cut at *declared_size*; one that yields less
    is padded with zero bytes. With *fail_on_size_mismatch* both cases raise
    :class:`TransferSizeMismatch` instead. Returns the number of real source
    bytes sent.
    """

    label = name or "<stream>"
    remaining = declared_size
    while True:
        data = source.read(buffer_size)
        if not data:
            break
        if len(data) <= remaining:
            stream.write(data)
            stream.flush()
            remaining -= len(data)
            continue
        extra = len(data) - remaining
        if fail_on_size_mismatch:
            raise TransferSizeMismatch(
                f"The size of file '{label}' grew by at least {extra} bytes! "
                f"The initial file size was {declared_size}"
            )
        _LOGGER.warning(
            "file grew while sending, extra bytes are not transferred",
            extra={"_ftx_path": label, "_ftx_declared_size": declared_size},
        )
        stream.write(data[:remaining])
        stream.flush()
        remaining = 0
        break

    sent = declared_size - remaining
    if remaining > 0:
        if fail_on_size_mismatch:
            raise TransferSizeMismatch(
                f"The size of file '{label}' shrank by {remaining} bytes! "
                f"The initial file size was {declared_size}"
            )
        _LOGGER.warning(
            "file shrank while sending, padding with zero bytes",
            extra={"_ftx_path": label, "_ftx_declared_size": declared_size, "_ftx_padding": remaining},
        )
        zeros = bytes(min(buffer_size, remaining))
        while remaining > 0:
            block = zeros[: min(len(zeros), remaining)]
            stream.write(block)
            remaining -= len(block)
        stream.flush()
    return sent


def _is_nested(candidate: str, root: str) -> bool:
    """Return True if *candidate* equals *root* or lies beneath it."""

    root_abs = os.path.abspath(root)
    candidate_abs = os.path.abspath(candidate)
    return candidate_abs == root_abs or candidate_abs.startswith(root_abs.rstrip(os.sep) + os.sep)


__all__ = ["FileSender", "stream_content"]
