"""FTX agent client package."""
from __future__ import annotations

from importlib import import_module
from typing import Any

__all__ = [
    "AgentClient",
    "AgentCommunicationError",
    "FileSystemOperationError",
    "RemoteFileSystemOperations",
    "RemoteOperationError",
    "validate_copy_port",
]

_EXPORTS = {
    "AgentClient": ".client",
    "AgentCommunicationError": ".client",
    "RemoteOperationError": ".client",
    "FileSystemOperationError": ".remote",
    "RemoteFileSystemOperations": ".remote",
    "validate_copy_port": ".remote",
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name], __name__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
