"""Configuration utilities for the FTX agent server."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from ftx.config import (
    DEFAULT_AGENT_PORT,
    DEFAULT_BIND_HOST,
    DEFAULT_BUFFER_SIZE_BYTES,
    DEFAULT_TRANSFER_TIMEOUT,
    TransferSettings,
)


@dataclass
class PortRangeConfig:
    start: int
    end: int


@dataclass
class TransferConfig:
    timeout: float = DEFAULT_TRANSFER_TIMEOUT
    buffer_size: int = DEFAULT_BUFFER_SIZE_BYTES
    bind_host: str = DEFAULT_BIND_HOST
    port_range: PortRangeConfig | None = None

    def to_settings(self) -> TransferSettings:
        port_range: Optional[Tuple[int, int]] = None
        if self.port_range is not None:
            port_range = (self.port_range.start, self.port_range.end)
        return TransferSettings(
            timeout=self.timeout,
            buffer_size=self.buffer_size,
            bind_host=self.bind_host,
            port_range=port_range,
        )


@dataclass
class AgentConfig:
    host: str = "0.0.0.0"
    port: int = DEFAULT_AGENT_PORT
    transfer: TransferConfig = field(default_factory=TransferConfig)
    log_file: Optional[str] = None


DEFAULT_CONFIG = AgentConfig()


def _build_port_range(data: Optional[Dict[str, Any]]) -> PortRangeConfig | None:
    if not data:
        return None
    missing = {"start", "end"} - data.keys()
    if missing:
        raise ValueError("Port range configuration missing fields: " + ", ".join(sorted(missing)))
    start, end = data["start"], data["end"]
    for value in (start, end):
        if not isinstance(value, int) or not 1 <= value <= 65535:
            raise ValueError(f"Port range values must be integers from 1 to 65535, got {value!r}")
    return PortRangeConfig(start=start, end=end)


def _build_transfer(data: Optional[Dict[str, Any]]) -> TransferConfig:
    if not data:
        return TransferConfig()
    timeout = float(data.get("timeout", DEFAULT_TRANSFER_TIMEOUT))
    if timeout <= 0:
        raise ValueError("transfer.timeout must be positive")
    buffer_size = int(data.get("buffer_size", DEFAULT_BUFFER_SIZE_BYTES))
    if buffer_size <= 0:
        raise ValueError("transfer.buffer_size must be positive")
    return TransferConfig(
        timeout=timeout,
        buffer_size=buffer_size,
        bind_host=data.get("bind_host", DEFAULT_BIND_HOST),
        port_range=_build_port_range(data.get("port_range")),
    )


def load_config(path: str | Path | None) -> AgentConfig:
    if path is None:
        return DEFAULT_CONFIG
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(path)
    with config_path.open("r", encoding="utf-8") as fh:
        data: Dict[str, Any] = yaml.safe_load(fh) or {}
    return AgentConfig(
        host=data.get("host", DEFAULT_CONFIG.host),
        port=int(data.get("port", DEFAULT_CONFIG.port)),
        transfer=_build_transfer(data.get("transfer")),
        log_file=data.get("log_file"),
    )
