import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent
for path in (ROOT, ROOT / "control_plane"):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from ftx.config import TransferSettings  # noqa: E402
from ftx.data.tracker import TransferTracker  # noqa: E402


@pytest.fixture
def tracker() -> TransferTracker:
    return TransferTracker(TransferSettings(timeout=5.0, buffer_size=4096, bind_host="127.0.0.1"))
