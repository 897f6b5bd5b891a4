from __future__ import annotations

import socket
from pathlib import Path

from fastapi.testclient import TestClient

from ftx.control.service import FileTransferService
from ftx.data.codec import write_int
from ftx.data.sender import FileSender
from ftx_agent.app import app


def test_open_and_wait_for_transfer(agent_service: FileTransferService, tmp_path: Path) -> None:
    source = tmp_path / "report.csv"
    source.write_text("a,b\n1,2\n")
    target = tmp_path / "agent-side" / "report.csv"

    with TestClient(app) as client:
        response = client.post("/transfers")
        assert response.status_code == 201
        port = response.json()["port"]
        assert client.get("/transfers").json() == {"ports": [port]}

        FileSender().send_file_to(str(source), str(target), "127.0.0.1", port)

        waited = client.post(f"/transfers/{port}/wait")
        assert waited.status_code == 200
        assert waited.json() == {"port": port, "status": "completed"}
        assert client.get("/transfers").json() == {"ports": []}

    assert target.read_text() == "a,b\n1,2\n"


def test_wait_surfaces_receiver_errors(agent_service: FileTransferService) -> None:
    with TestClient(app) as client:
        port = client.post("/transfers").json()["port"]
        with socket.create_connection(("127.0.0.1", port)) as sock, sock.makefile("wb") as stream:
            write_int(stream, 1 << 20)

        response = client.post(f"/transfers/{port}/wait")
        assert response.status_code == 502
        assert "illegal length" in response.json()["detail"]


def test_open_with_exhausted_port_range(agent_service: FileTransferService) -> None:
    with socket.socket() as busy:
        busy.bind(("127.0.0.1", 0))
        busy.listen(1)
        port = busy.getsockname()[1]
        with TestClient(app) as client:
            response = client.post(
                "/transfers", json={"port_range": {"start": port, "end": port}}
            )
    assert response.status_code == 503
    assert "No free port" in response.json()["detail"]


def test_open_rejects_invalid_port_range(agent_service: FileTransferService) -> None:
    with TestClient(app) as client:
        response = client.post("/transfers", json={"port_range": {"start": 0, "end": 10}})
    assert response.status_code == 422


def test_send_file_endpoint_pushes_to_receiver(
    agent_service: FileTransferService, tmp_path: Path
) -> None:
    source = tmp_path / "payload.bin"
    source.write_bytes(b"\x01\x02\x03" * 1000)
    target = tmp_path / "received.bin"
    port = agent_service.open_file_transfer_socket()

    with TestClient(app) as client:
        response = client.post(
            "/files/send",
            json={
                "from_file": str(source),
                "to_file": str(target),
                "host": "127.0.0.1",
                "port": port,
            },
        )
    assert response.status_code == 200
    agent_service.wait_for_file_transfer_completion(port)
    assert target.read_bytes() == source.read_bytes()


def test_send_missing_file_returns_not_found(
    agent_service: FileTransferService, tmp_path: Path
) -> None:
    with TestClient(app) as client:
        response = client.post(
            "/files/send",
            json={
                "from_file": str(tmp_path / "missing"),
                "to_file": "/tmp/whatever",
                "host": "127.0.0.1",
                "port": 9,
            },
        )
    assert response.status_code == 404


def test_send_directory_into_itself_is_rejected(
    agent_service: FileTransferService, tmp_path: Path
) -> None:
    with TestClient(app) as client:
        response = client.post(
            "/directories/send",
            json={
                "from_dir": str(tmp_path),
                "to_dir": str(tmp_path / "nested"),
                "host": "127.0.0.1",
                "port": 9,
            },
        )
    assert response.status_code == 400
    assert "subdirectory" in response.json()["detail"]


def test_destination_path_resolution(agent_service: FileTransferService, tmp_path: Path) -> None:
    with TestClient(app) as client:
        into_dir = client.post(
            "/files/destination",
            json={"src_file_name": "a.txt", "dst_file_path": str(tmp_path)},
        )
        missing = client.post(
            "/files/destination",
            json={"src_file_name": "a.txt", "dst_file_path": str(tmp_path / "no" / "a.txt")},
        )
    assert into_dir.status_code == 200
    assert Path(into_dir.json()["path"]) == (tmp_path / "a.txt").absolute()
    assert missing.status_code == 404
