"""Pydantic models shared by the agent API and its client."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class PortRange(BaseModel):
    start: Optional[int] = Field(None, ge=1, le=65535)
    end: Optional[int] = Field(None, ge=1, le=65535)


class OpenTransferRequest(BaseModel):
    port_range: Optional[PortRange] = Field(
        None, description="Restrict the listener to this port range before binding"
    )


class ConnectTransferRequest(BaseModel):
    host: str
    port: int = Field(..., ge=1, le=65535)


class TransferPort(BaseModel):
    port: int


class TransferOutcome(BaseModel):
    port: int
    status: str


class PendingTransfers(BaseModel):
    ports: List[int] = Field(default_factory=list)


class SendFileRequest(BaseModel):
    from_file: str
    to_file: str
    host: str
    port: int = Field(..., ge=1, le=65535)
    fail_on_error: bool = False


class SendDirectoryRequest(BaseModel):
    from_dir: str
    to_dir: str
    host: str
    port: int = Field(..., ge=1, le=65535)
    recursive: bool = True
    fail_on_error: bool = False

    @model_validator(mode="after")
    def _validate_paths(self) -> "SendDirectoryRequest":
        if not self.from_dir or not self.to_dir:
            raise ValueError("from_dir and to_dir must not be empty")
        return self


class DestinationPathRequest(BaseModel):
    src_file_name: str
    dst_file_path: str


class DestinationPath(BaseModel):
    path: str
