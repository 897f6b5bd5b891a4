"""Shared types for the socket transfer protocol."""
from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional


class TransferError(RuntimeError):
    """Generic transfer error, usually wrapping a socket or filesystem failure."""


class ProtocolError(TransferError):
    """Raised for malformed or oversized frame fields."""


class TransferTimeoutError(TransferError):
    """Raised when accepting or reading exceeds the configured timeout."""


class TransferSizeMismatch(TransferError):
    """Raised when a file changed size while it was being streamed."""


class NoFreePortError(TransferError):
    """Raised when no port in the configured range could be bound."""


@dataclass(frozen=True)
class FrameHeader:
    """Decoded frame header. ``size`` is only set for ``file`` frames."""

    command: str
    path: str
    size: Optional[int] = None


class TransferStatus:
    """Completion record shared between a receiver thread and its waiters.

    The receiver calls :meth:`finish` exactly once; any number of threads may
    block in :meth:`wait` until that happens.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self.finished = False
        self.exception: Optional[BaseException] = None
        self.files_received = 0
        self.bytes_received = 0

    def finish(
        self,
        exception: Optional[BaseException] = None,
        *,
        files_received: int = 0,
        bytes_received: int = 0,
    ) -> None:
        with self._cond:
            if self.finished:
                return
            self.exception = exception
            self.files_received = files_received
            self.bytes_received = bytes_received
            self.finished = True
            self._cond.notify_all()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until finished or *timeout* elapses; return ``finished``."""

        with self._cond:
            self._cond.wait_for(lambda: self.finished, timeout=timeout)
            return self.finished

    def __repr__(self) -> str:
        return f"TransferStatus(finished={self.finished!r}, exception={self.exception!r})"


__all__ = [
    "FrameHeader",
    "NoFreePortError",
    "ProtocolError",
    "TransferError",
    "TransferSizeMismatch",
    "TransferStatus",
    "TransferTimeoutError",
]
