"""FastAPI wrapper exposing the FTX transfer service of one host."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException

from ftx.control.service import FileTransferService
from ftx.data.base import NoFreePortError, TransferError, TransferTimeoutError

from .config import AgentConfig, load_config
from .models import (
    ConnectTransferRequest,
    DestinationPath,
    DestinationPathRequest,
    OpenTransferRequest,
    PendingTransfers,
    SendDirectoryRequest,
    SendFileRequest,
    TransferOutcome,
    TransferPort,
)


_SERVICE_INSTANCE: FileTransferService | None = None
_SERVICE_CONFIG_PATH: Optional[str] = None


def get_service(config_path: Optional[str] = None) -> FileTransferService:
    global _SERVICE_INSTANCE, _SERVICE_CONFIG_PATH

    if _SERVICE_INSTANCE is None or (
        config_path is not None and config_path != _SERVICE_CONFIG_PATH
    ):
        config: AgentConfig = load_config(config_path)
        _SERVICE_INSTANCE = FileTransferService(config.transfer.to_settings())
        _SERVICE_CONFIG_PATH = config_path

    return _SERVICE_INSTANCE


def reset_service_cache() -> None:
    global _SERVICE_INSTANCE, _SERVICE_CONFIG_PATH
    _SERVICE_INSTANCE = None
    _SERVICE_CONFIG_PATH = None


def service_dependency() -> FileTransferService:
    return get_service()


def _as_http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, FileNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NoFreePortError):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, TransferTimeoutError):
        return HTTPException(status_code=504, detail=str(exc))
    return HTTPException(status_code=502, detail=str(exc))


@asynccontextmanager
async def lifespan(app: FastAPI):
    await asyncio.sleep(0)
    try:
        yield
    finally:
        reset_service_cache()


app = FastAPI(title="FTX Agent", version="0.1.0", lifespan=lifespan)


@app.post("/transfers", response_model=TransferPort, status_code=201)
async def open_transfer(
    request: Optional[OpenTransferRequest] = None,
    service: FileTransferService = Depends(service_dependency),
) -> TransferPort:
    try:
        if request is not None and request.port_range is not None:
            service.set_copy_file_port_range(request.port_range.start, request.port_range.end)
        port = await asyncio.to_thread(service.open_file_transfer_socket)
    except (ValueError, OSError, TransferError) as exc:
        raise _as_http_error(exc) from exc
    return TransferPort(port=port)


@app.post("/transfers/connect", response_model=TransferPort, status_code=201)
async def connect_transfer(
    request: ConnectTransferRequest,
    service: FileTransferService = Depends(service_dependency),
) -> TransferPort:
    try:
        port = await asyncio.to_thread(service.read_transfer, request.host, request.port)
    except TransferError as exc:
        raise _as_http_error(exc) from exc
    return TransferPort(port=port)


@app.get("/transfers", response_model=PendingTransfers)
async def list_transfers(
    service: FileTransferService = Depends(service_dependency),
) -> PendingTransfers:
    return PendingTransfers(ports=service.pending_transfers())


@app.post("/transfers/{port}/wait", response_model=TransferOutcome)
async def wait_transfer(
    port: int, service: FileTransferService = Depends(service_dependency)
) -> TransferOutcome:
    try:
        await asyncio.to_thread(service.wait_for_file_transfer_completion, port)
    except (OSError, TransferError) as exc:
        raise _as_http_error(exc) from exc
    return TransferOutcome(port=port, status="completed")


@app.post("/files/send")
async def send_file(
    request: SendFileRequest, service: FileTransferService = Depends(service_dependency)
) -> dict:
    try:
        await asyncio.to_thread(
            service.send_file_to,
            request.from_file,
            request.to_file,
            request.host,
            request.port,
            fail_on_error=request.fail_on_error,
        )
    except (ValueError, OSError, TransferError) as exc:
        raise _as_http_error(exc) from exc
    return {"status": "sent", "from_file": request.from_file, "to_file": request.to_file}


@app.post("/directories/send")
async def send_directory(
    request: SendDirectoryRequest, service: FileTransferService = Depends(service_dependency)
) -> dict:
    try:
        await asyncio.to_thread(
            service.send_directory_to,
            request.from_dir,
            request.to_dir,
            request.host,
            request.port,
            recursive=request.recursive,
            fail_on_error=request.fail_on_error,
        )
    except (ValueError, OSError, TransferError) as exc:
        raise _as_http_error(exc) from exc
    return {"status": "sent", "from_dir": request.from_dir, "to_dir": request.to_dir}


@app.post("/files/destination", response_model=DestinationPath)
async def destination_path(
    request: DestinationPathRequest, service: FileTransferService = Depends(service_dependency)
) -> DestinationPath:
    try:
        path = service.construct_destination_file_path(request.src_file_name, request.dst_file_path)
    except (ValueError, OSError) as exc:
        raise _as_http_error(exc) from exc
    return DestinationPath(path=path)
