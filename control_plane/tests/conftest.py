import asyncio
import inspect
import sys
from functools import wraps
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[2]
CONTROL_PLANE = ROOT / "control_plane"
for path in (ROOT, CONTROL_PLANE):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from ftx.config import TransferSettings  # noqa: E402
from ftx.control.service import FileTransferService  # noqa: E402
from ftx_agent.app import app, service_dependency  # noqa: E402


def _wrap_async(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        return asyncio.run(func(*args, **kwargs))

    return wrapper


def pytest_collection_modifyitems(items):
    for item in items:
        obj = getattr(item, "obj", None)
        if obj and inspect.iscoroutinefunction(obj):
            item.obj = _wrap_async(obj)


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark a test to run on the default asyncio event loop")


@pytest.fixture
def service() -> FileTransferService:
    return FileTransferService(
        TransferSettings(timeout=3.0, buffer_size=8192, bind_host="127.0.0.1")
    )


@pytest.fixture
def agent_service(service: FileTransferService):
    """Route the agent app to *service* for the duration of a test."""

    app.dependency_overrides[service_dependency] = lambda: service
    try:
        yield service
    finally:
        app.dependency_overrides.clear()
