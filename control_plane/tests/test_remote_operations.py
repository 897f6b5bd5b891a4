from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from ftx.config import TransferSettings
from ftx.control.service import FileTransferService
from ftx_agent.app import app
from ftx_client.client import AgentClient
from ftx_client.remote import (
    FileSystemOperationError,
    RemoteFileSystemOperations,
    validate_copy_port,
)


def _agent() -> AgentClient:
    return AgentClient("http://127.0.0.1", transport=httpx.ASGITransport(app=app))


def _operations(agent: AgentClient) -> RemoteFileSystemOperations:
    local = FileTransferService(
        TransferSettings(timeout=3.0, buffer_size=4096, bind_host="127.0.0.1")
    )
    return RemoteFileSystemOperations(agent, local, local_host="127.0.0.1")


def _tree(root: Path) -> Path:
    (root / "sub").mkdir(parents=True)
    (root / "top.txt").write_text("top")
    (root / "sub" / "leaf.bin").write_bytes(b"\x00\xff" * 3000)
    return root


@pytest.mark.asyncio
async def test_copy_file_into_remote_directory(agent_service, tmp_path: Path) -> None:
    source = tmp_path / "notes.txt"
    source.write_text("pushed to the agent")
    remote_dir = tmp_path / "remote"
    remote_dir.mkdir()
    agent = _agent()
    try:
        await _operations(agent).copy_file(str(source), str(remote_dir))
    finally:
        await agent.close()

    assert (remote_dir / "notes.txt").read_text() == "pushed to the agent"
    assert agent_service.pending_transfers() == []


@pytest.mark.asyncio
async def test_copy_file_from_agent(agent_service, tmp_path: Path) -> None:
    remote = tmp_path / "remote.txt"
    remote.write_text("pulled from the agent")
    target = tmp_path / "local" / "copy.txt"
    agent = _agent()
    try:
        await _operations(agent).copy_file_from(str(remote), str(target))
    finally:
        await agent.close()

    assert target.read_text() == "pulled from the agent"


@pytest.mark.asyncio
async def test_copy_file_between_agents(agent_service, tmp_path: Path) -> None:
    remote = tmp_path / "a" / "data.bin"
    remote.parent.mkdir()
    remote.write_bytes(b"between agents" * 100)
    target = tmp_path / "b" / "data.bin"
    agent = _agent()
    other = _agent()
    try:
        await _operations(agent).copy_file_to(str(remote), other, str(target))
    finally:
        await agent.close()
        await other.close()

    assert target.read_bytes() == remote.read_bytes()


@pytest.mark.asyncio
async def test_copy_directory_round_trip(agent_service, tmp_path: Path) -> None:
    source = _tree(tmp_path / "src")
    pushed = tmp_path / "pushed"
    pulled = tmp_path / "pulled"
    relayed = tmp_path / "relayed"
    agent = _agent()
    other = _agent()
    try:
        operations = _operations(agent)
        await operations.copy_directory(str(source), str(pushed))
        await operations.copy_directory_from(str(pushed), str(pulled))
        await operations.copy_directory_to(str(pulled), other, str(relayed))
    finally:
        await agent.close()
        await other.close()

    for copy in (pushed, pulled, relayed):
        assert (copy / "top.txt").read_text() == "top"
        assert (copy / "sub" / "leaf.bin").read_bytes() == b"\x00\xff" * 3000


@pytest.mark.asyncio
async def test_non_recursive_directory_copy(agent_service, tmp_path: Path) -> None:
    source = _tree(tmp_path / "src")
    target = tmp_path / "flat"
    agent = _agent()
    try:
        await _operations(agent).copy_directory(str(source), str(target), recursive=False)
    finally:
        await agent.close()

    assert (target / "top.txt").read_text() == "top"
    assert (target / "sub").is_dir()
    assert list((target / "sub").iterdir()) == []


@pytest.mark.asyncio
async def test_missing_remote_file_is_reported(agent_service, tmp_path: Path) -> None:
    agent = _agent()
    try:
        with pytest.raises(FileSystemOperationError, match="Unable to copy file"):
            await _operations(agent).copy_file_from(
                str(tmp_path / "missing.txt"), str(tmp_path / "local.txt")
            )
    finally:
        await agent.close()


@pytest.mark.asyncio
async def test_missing_local_file_is_reported(agent_service, tmp_path: Path) -> None:
    agent = _agent()
    try:
        with pytest.raises(FileSystemOperationError) as excinfo:
            await _operations(agent).copy_file(
                str(tmp_path / "missing.txt"), str(tmp_path / "remote.txt")
            )
    finally:
        await agent.close()

    assert isinstance(excinfo.value.__cause__, FileNotFoundError)


@pytest.mark.parametrize("value, expected", [(None, None), ("", None), ("  ", None), ("8080", 8080), (1, 1)])
def test_validate_copy_port_accepts(value, expected) -> None:
    assert validate_copy_port(value) == expected


@pytest.mark.parametrize("value", ["http", "0", 65536, -5])
def test_validate_copy_port_rejects(value) -> None:
    with pytest.raises(FileSystemOperationError, match="is illegal"):
        validate_copy_port(value)


def test_port_range_only_applies_with_both_bounds(agent_service) -> None:
    agent = _agent()
    local = FileTransferService()
    assert RemoteFileSystemOperations(agent, local, copy_start_port="9000").port_range is None
    ranged = RemoteFileSystemOperations(
        agent, local, copy_start_port="9000", copy_end_port="9010"
    )
    assert ranged.port_range == (9000, 9010)
    assert ranged.agent_host == "127.0.0.1"
