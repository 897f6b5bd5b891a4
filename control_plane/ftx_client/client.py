"""Async HTTP client for an FTX agent."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import httpx

from ftx_agent.models import (
    DestinationPath,
    PendingTransfers,
    SendDirectoryRequest,
    SendFileRequest,
    TransferPort,
)


class AgentCommunicationError(RuntimeError):
    """Raised when the agent cannot be reached."""


class RemoteOperationError(RuntimeError):
    """Raised when the agent answered with an error status."""

    def __init__(self, status_code: int, detail: str) -> None:
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"agent returned {status_code}: {detail}")


class AgentClient:
    def __init__(
        self,
        agent_url: str,
        *,
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.agent_url = agent_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def host(self) -> str:
        return httpx.URL(self.agent_url).host

    async def _post(self, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        try:
            response = await self._client.post(f"{self.agent_url}{path}", json=payload)
        except httpx.HTTPError as exc:
            raise AgentCommunicationError(
                f"Failed to communicate with agent at {self.agent_url}: {exc}"
            ) from exc
        return self._unwrap(response)

    async def _get(self, path: str) -> Any:
        try:
            response = await self._client.get(f"{self.agent_url}{path}")
        except httpx.HTTPError as exc:
            raise AgentCommunicationError(
                f"Failed to communicate with agent at {self.agent_url}: {exc}"
            ) from exc
        return self._unwrap(response)

    @staticmethod
    def _unwrap(response: httpx.Response) -> Any:
        if response.is_success:
            return response.json()
        try:
            detail = response.json().get("detail", response.text)
        except ValueError:
            detail = response.text
        raise RemoteOperationError(response.status_code, str(detail))

    async def open_transfer(self, port_range: Optional[Tuple[int, int]] = None) -> int:
        payload = None
        if port_range is not None:
            payload = {"port_range": {"start": port_range[0], "end": port_range[1]}}
        data = await self._post("/transfers", payload)
        return TransferPort.model_validate(data).port

    async def connect_transfer(self, host: str, port: int) -> int:
        data = await self._post("/transfers/connect", {"host": host, "port": port})
        return TransferPort.model_validate(data).port

    async def wait_transfer(self, port: int) -> None:
        await self._post(f"/transfers/{port}/wait")

    async def pending_transfers(self) -> List[int]:
        data = await self._get("/transfers")
        return PendingTransfers.model_validate(data).ports

    async def send_file(
        self, from_file: str, to_file: str, host: str, port: int, *, fail_on_error: bool = False
    ) -> None:
        request = SendFileRequest(
            from_file=from_file, to_file=to_file, host=host, port=port, fail_on_error=fail_on_error
        )
        await self._post("/files/send", request.model_dump())

    async def send_directory(
        self,
        from_dir: str,
        to_dir: str,
        host: str,
        port: int,
        *,
        recursive: bool = True,
        fail_on_error: bool = False,
    ) -> None:
        request = SendDirectoryRequest(
            from_dir=from_dir,
            to_dir=to_dir,
            host=host,
            port=port,
            recursive=recursive,
            fail_on_error=fail_on_error,
        )
        await self._post("/directories/send", request.model_dump())

    async def destination_path(self, src_file_name: str, dst_file_path: str) -> str:
        data = await self._post(
            "/files/destination",
            {"src_file_name": src_file_name, "dst_file_path": dst_file_path},
        )
        return DestinationPath.model_validate(data).path

    async def close(self) -> None:
        await self._client.aclose()
