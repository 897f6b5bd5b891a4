"""Control package exports."""
from .service import FileTransferService

__all__ = ["FileTransferService"]
