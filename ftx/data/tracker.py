"""Registry of in-flight receive sessions keyed by port."""
from __future__ import annotations

import socket
import threading
from typing import Dict, List, Optional, Tuple

from ..config import DEFAULT_BIND_HOST, TransferSettings
from ..logging_utils import setup_logging
from .base import NoFreePortError, TransferError, TransferStatus, TransferTimeoutError
from .receiver import TransferReceiver

_LOGGER = setup_logging(__name__)


class TransferTracker:
    """Opens receivers on background threads and lets callers await them.

    Each receiver is registered under a port. :meth:`wait` blocks until the
    receiver on that port finishes, forgets the entry and re-raises whatever
    the receiver thread failed with.
    """

    def __init__(self, settings: Optional[TransferSettings] = None) -> None:
        self.settings = settings or TransferSettings()
        self._lock = threading.Lock()
        self._transfers: Dict[int, TransferStatus] = {}
        self._port_range: Optional[Tuple[int, int]] = None
        if self.settings.port_range is not None:
            self.set_port_range(*self.settings.port_range)

    @property
    def timeout(self) -> float:
        return self.settings.timeout

    @property
    def port_range(self) -> Optional[Tuple[int, int]]:
        return self._port_range

    def set_port_range(self, start: Optional[int], end: Optional[int]) -> None:
        """Restrict listener ports to ``[start, end]``; two ``None`` values clear it."""

        if start is None and end is None:
            self._port_range = None
            return
        for value in (start, end):
            if value is None or value <= 0:
                raise ValueError(f"Specified port for copy file '{value}' port must be a positive integer!")
        if start > end:  # type: ignore[operator]
            _LOGGER.warning(
                "start port is bigger than the end port, switching them",
                extra={"_ftx_start_port": start, "_ftx_end_port": end},
            )
            start, end = end, start
        self._port_range = (start, end)  # type: ignore[assignment]

    def open(self) -> Tuple[int, TransferStatus]:
        """Bind a listener, start its receiver thread and return ``(port, status)``."""

        server = self._bind()
        port = server.getsockname()[1]
        status = TransferStatus()
        receiver = TransferReceiver(
            status,
            server_sock=server,
            timeout=self.settings.timeout,
            buffer_size=self.settings.buffer_size,
            name=f"ftx-transfer-server-port{port}",
        )
        self._register(port, status)
        _LOGGER.debug("starting file transfer server", extra={"_ftx_port": port})
        receiver.start()
        return port, status

    def connect(self, host: str, port: int) -> Tuple[int, TransferStatus]:
        """Dial a sending peer that already listens and receive from it.

        The session is registered under the local port of the connection.
        """

        try:
            sock = socket.create_connection((host, port), timeout=self.settings.timeout)
        except OSError as exc:
            raise TransferError(f"Unable to open file transfer socket to {host}:{port}") from exc
        local_port = sock.getsockname()[1]
        status = TransferStatus()
        receiver = TransferReceiver(
            status,
            sock=sock,
            timeout=self.settings.timeout,
            buffer_size=self.settings.buffer_size,
            name=f"ftx-transfer-reader-port{port}",
        )
        self._register(local_port, status)
        _LOGGER.debug(
            "starting file transfer reader",
            extra={"_ftx_peer": f"{host}:{port}", "_ftx_port": local_port},
        )
        receiver.start()
        return local_port, status

    def wait(self, port: int, timeout: Optional[float] = None) -> Optional[TransferStatus]:
        """Block until the transfer on *port* completes and surface its error, if any.

        Returns the finished status. Ports that are not registered (never
        opened or already awaited) return ``None`` immediately.
        """

        with self._lock:
            status = self._transfers.get(port)
        if status is None:
            return None
        limit = self.settings.timeout if timeout is None else timeout
        finished = status.wait(limit)
        with self._lock:
            self._transfers.pop(port, None)
        if not finished:
            raise TransferTimeoutError(
                f"Timeout while waiting for the file transfer on port {port} to complete. "
                f"The timeout is {limit} sec."
            )
        if status.exception is not None:
            raise status.exception
        return status

    def pending(self) -> List[int]:
        with self._lock:
            return sorted(self._transfers)

    def _register(self, port: int, status: TransferStatus) -> None:
        with self._lock:
            self._transfers[port] = status

    def _bind(self) -> socket.socket:
        host = self.settings.bind_host or DEFAULT_BIND_HOST
        if self._port_range is None:
            return _listen(host, 0)
        start, end = self._port_range
        for port in range(start, end + 1):
            try:
                return _listen(host, port)
            except OSError:
                _LOGGER.debug(
                    "port is busy, checking the next one", extra={"_ftx_port": port}
                )
        raise NoFreePortError(f"No free port found in range {start} to {end}")


def _listen(host: str, port: int) -> socket.socket:
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        server.bind((host, port))
        server.listen(1)
    except OSError:
        server.close()
        raise
    return server


__all__ = ["TransferTracker"]
