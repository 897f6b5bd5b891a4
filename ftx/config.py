"""FTX configuration defaults."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


DEFAULT_TRANSFER_TIMEOUT: float = 60.0  # seconds, accept and steady-state reads
DEFAULT_BUFFER_SIZE_BYTES: int = 512 * 1024  # 512 KiB
MAX_PARAMETER_LENGTH: int = 1024  # command tag and path, in UTF-8 bytes
DEFAULT_BIND_HOST: str = "0.0.0.0"
DEFAULT_AGENT_PORT: int = 8700
LOG_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


@dataclass(frozen=True)
class TransferSettings:
    """Tunables shared by the sender and the receivers of one host."""

    timeout: float = DEFAULT_TRANSFER_TIMEOUT
    buffer_size: int = DEFAULT_BUFFER_SIZE_BYTES
    bind_host: str = DEFAULT_BIND_HOST
    port_range: Optional[Tuple[int, int]] = None


FILE_COMMAND = "file"
DIR_COMMAND = "dir"
SUPPORTED_COMMANDS = {FILE_COMMAND, DIR_COMMAND}
