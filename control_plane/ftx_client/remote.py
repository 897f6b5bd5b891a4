"""Copy files and directories between this host and FTX agents."""

from __future__ import annotations

import asyncio
import socket
from contextlib import closing
from pathlib import Path
from typing import Any, Awaitable, Optional, Tuple

from ftx.control.service import FileTransferService
from ftx.logging_utils import setup_logging

from .client import AgentClient

_LOGGER = setup_logging("ftx.remote")


class FileSystemOperationError(RuntimeError):
    """Raised when a remote copy operation fails."""


def validate_copy_port(value: Any) -> Optional[int]:
    """Parse a copy port property; empty values mean "not configured"."""

    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        port = int(value)
    except (TypeError, ValueError) as exc:
        raise FileSystemOperationError(
            f'Port for file copy operation "{value}" is illegal! '
            "It must be a valid positive number from 1 to 65535"
        ) from exc
    if not 1 <= port <= 65535:
        raise FileSystemOperationError(
            f'Port for file copy operation "{value}" is illegal! It must be in range from 1 to 65535.'
        )
    return port


def public_local_address(peer_host: str, peer_port: int = 80) -> str:
    """Return the local address this host uses to reach *peer_host*."""

    with closing(socket.socket(socket.AF_INET, socket.SOCK_DGRAM)) as probe:
        try:
            probe.connect((peer_host, peer_port))
        except OSError:
            return "127.0.0.1"
        return probe.getsockname()[0]


class RemoteFileSystemOperations:
    """Copy operations between the local host and the agent behind *agent*.

    Every copy pairs one receiver (opened on the destination side) with one
    sender (on the source side) and then waits for the receiver to finish.
    """

    def __init__(
        self,
        agent: AgentClient,
        local: FileTransferService,
        *,
        agent_host: Optional[str] = None,
        local_host: Optional[str] = None,
        copy_start_port: Any = None,
        copy_end_port: Any = None,
    ) -> None:
        self.agent = agent
        self.local = local
        self.agent_host = agent_host or agent.host
        self._local_host = local_host
        start = validate_copy_port(copy_start_port)
        end = validate_copy_port(copy_end_port)
        self.port_range: Optional[Tuple[int, int]] = (start, end) if start and end else None
        self._logger = _LOGGER

    @property
    def local_host(self) -> str:
        if self._local_host is None:
            self._local_host = public_local_address(self.agent_host)
        return self._local_host

    async def _guard(self, message: str, operation: Awaitable[None]) -> None:
        try:
            await operation
        except (OSError, RuntimeError, ValueError) as exc:
            self._logger.error(message, extra={"_ftx_detail": str(exc)})
            raise FileSystemOperationError(f"{message}: {exc}") from exc

    async def _open_local(self) -> int:
        if self.port_range is not None:
            self.local.set_copy_file_port_range(*self.port_range)
        return await asyncio.to_thread(self.local.open_file_transfer_socket)

    async def copy_file(self, from_file: str, to_file: str, *, fail_on_error: bool = False) -> None:
        """Copy a local file to the agent."""

        async def run() -> None:
            target = await self.agent.destination_path(Path(from_file).name, to_file)
            port = await self.agent.open_transfer(self.port_range)
            await asyncio.to_thread(
                self.local.send_file_to,
                from_file,
                target,
                self.agent_host,
                port,
                fail_on_error=fail_on_error,
            )
            await self.agent.wait_transfer(port)

        await self._guard(
            f"Unable to copy file {from_file} to {to_file} on host {self.agent.agent_url}", run()
        )

    async def copy_file_from(self, from_file: str, to_file: str, *, fail_on_error: bool = False) -> None:
        """Copy a file from the agent to the local host."""

        async def run() -> None:
            port = await self._open_local()
            await self.agent.send_file(
                from_file, to_file, self.local_host, port, fail_on_error=fail_on_error
            )
            await asyncio.to_thread(self.local.wait_for_file_transfer_completion, port)

        await self._guard(
            f"Unable to copy file {from_file} from {self.agent.agent_url} "
            f"to file {to_file} on the local host",
            run(),
        )

    async def copy_file_to(
        self,
        from_file: str,
        to_agent: AgentClient,
        to_file: str,
        *,
        fail_on_error: bool = False,
    ) -> None:
        """Copy a file from the agent to another agent."""

        async def run() -> None:
            port = await to_agent.open_transfer(self.port_range)
            await self.agent.send_file(
                from_file, to_file, to_agent.host, port, fail_on_error=fail_on_error
            )
            await to_agent.wait_transfer(port)

        await self._guard(
            f"Unable to copy file {from_file} from {self.agent.agent_url} "
            f"to file {to_file} on {to_agent.agent_url}",
            run(),
        )

    async def copy_directory(
        self, from_dir: str, to_dir: str, *, recursive: bool = True, fail_on_error: bool = False
    ) -> None:
        """Copy a local directory to the agent."""

        async def run() -> None:
            port = await self.agent.open_transfer(self.port_range)
            await asyncio.to_thread(
                self.local.send_directory_to,
                from_dir,
                to_dir,
                self.agent_host,
                port,
                recursive=recursive,
                fail_on_error=fail_on_error,
            )
            await self.agent.wait_transfer(port)

        await self._guard(
            f"Unable to copy directory {from_dir} to {to_dir} on host {self.agent.agent_url}", run()
        )

    async def copy_directory_from(
        self, from_dir: str, to_dir: str, *, recursive: bool = True, fail_on_error: bool = False
    ) -> None:
        """Copy a directory from the agent to the local host."""

        async def run() -> None:
            port = await self._open_local()
            await self.agent.send_directory(
                from_dir,
                to_dir,
                self.local_host,
                port,
                recursive=recursive,
                fail_on_error=fail_on_error,
            )
            await asyncio.to_thread(self.local.wait_for_file_transfer_completion, port)

        await self._guard(
            f"Unable to copy directory {from_dir} from {self.agent.agent_url} "
            f"to {to_dir} on the local host",
            run(),
        )

    async def copy_directory_to(
        self,
        from_dir: str,
        to_agent: AgentClient,
        to_dir: str,
        *,
        recursive: bool = True,
        fail_on_error: bool = False,
    ) -> None:
        """Copy a directory from the agent to another agent."""

        async def run() -> None:
            port = await to_agent.open_transfer(self.port_range)
            await self.agent.send_directory(
                from_dir,
                to_dir,
                to_agent.host,
                port,
                recursive=recursive,
                fail_on_error=fail_on_error,
            )
            await to_agent.wait_transfer(port)

        await self._guard(
            f"Unable to copy directory {from_dir} from {self.agent.agent_url} "
            f"to {to_dir} on {to_agent.agent_url}",
            run(),
        )
