"""Data plane exports."""
from .base import (
    NoFreePortError,
    ProtocolError,
    TransferError,
    TransferSizeMismatch,
    TransferStatus,
    TransferTimeoutError,
)
from .receiver import FrameReceiver, TransferReceiver
from .sender import FileSender
from .tracker import TransferTracker

__all__ = [
    "FileSender",
    "FrameReceiver",
    "NoFreePortError",
    "ProtocolError",
    "TransferError",
    "TransferReceiver",
    "TransferSizeMismatch",
    "TransferStatus",
    "TransferTimeoutError",
    "TransferTracker",
]
