import io
from pathlib import Path

import pytest

from ftx.data.base import ProtocolError, TransferError
from ftx.data.codec import write_dir_frame, write_file_header, write_string
from ftx.data.receiver import FrameReceiver


def _file_frame(stream: io.BytesIO, path: str, content: bytes) -> None:
    write_file_header(stream, path, len(content))
    stream.write(content)


def test_file_frame_creates_missing_parents(tmp_path: Path) -> None:
    stream = io.BytesIO()
    target = tmp_path / "x" / "y" / "z.bin"
    _file_frame(stream, str(target), b"\x00\x01payload")
    stream.seek(0)

    receiver = FrameReceiver(buffer_size=3)
    receiver.receive(stream)

    assert target.read_bytes() == b"\x00\x01payload"
    assert receiver.files_received == 1
    assert receiver.bytes_received == 9


def test_file_frame_truncates_existing_file(tmp_path: Path) -> None:
    target = tmp_path / "f.txt"
    target.write_text("a much longer previous content")
    stream = io.BytesIO()
    _file_frame(stream, str(target), b"new")
    stream.seek(0)

    FrameReceiver().receive(stream)

    assert target.read_bytes() == b"new"


def test_empty_file_frame(tmp_path: Path) -> None:
    stream = io.BytesIO()
    _file_frame(stream, str(tmp_path / "empty.txt"), b"")
    stream.seek(0)

    FrameReceiver().receive(stream)

    assert (tmp_path / "empty.txt").read_bytes() == b""


def test_dir_frame_is_idempotent(tmp_path: Path) -> None:
    existing = tmp_path / "keep"
    existing.mkdir()
    (existing / "inside.txt").write_text("untouched")
    stream = io.BytesIO()
    write_dir_frame(stream, str(existing))
    write_dir_frame(stream, str(existing))
    write_dir_frame(stream, str(tmp_path / "new" / "deep"))
    stream.seek(0)

    FrameReceiver().receive(stream)

    assert (existing / "inside.txt").read_text() == "untouched"
    assert (tmp_path / "new" / "deep").is_dir()


def test_received_paths_are_normalized(tmp_path: Path) -> None:
    stream = io.BytesIO()
    _file_frame(stream, str(tmp_path) + "\\win\\style.txt", b"ok")
    stream.seek(0)

    FrameReceiver(normalize=lambda p: p.replace("\\", "/")).receive(stream)

    assert (tmp_path / "win" / "style.txt").read_bytes() == b"ok"


def test_unknown_command_stops_silently(tmp_path: Path) -> None:
    stream = io.BytesIO()
    write_dir_frame(stream, str(tmp_path / "first"))
    write_string(stream, "bye")
    write_string(stream, "ignored")
    write_dir_frame(stream, str(tmp_path / "never"))
    stream.seek(0)

    FrameReceiver().receive(stream)

    assert (tmp_path / "first").is_dir()
    assert not (tmp_path / "never").exists()


def test_truncated_content_is_a_protocol_error(tmp_path: Path) -> None:
    stream = io.BytesIO()
    write_file_header(stream, str(tmp_path / "cut.bin"), 10)
    stream.write(b"12345")
    stream.seek(0)

    with pytest.raises(ProtocolError, match="unexpected end of stream"):
        FrameReceiver().receive(stream)


def test_oversized_path_writes_nothing(tmp_path: Path) -> None:
    stream = io.BytesIO()
    write_string(stream, "file")
    write_string(stream, str(tmp_path / ("n" * 1100)))
    stream.write(b"\x00" * 8)
    stream.seek(0)

    with pytest.raises(ProtocolError, match="illegal length for path"):
        FrameReceiver().receive(stream)

    assert list(tmp_path.iterdir()) == []


def test_parent_that_is_a_file_fails_the_transfer(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("i am a file")
    stream = io.BytesIO()
    _file_frame(stream, str(blocker / "child.txt"), b"data")
    stream.seek(0)

    with pytest.raises(TransferError, match="Could not create destination file"):
        FrameReceiver().receive(stream)
    assert blocker.read_text() == "i am a file"


@pytest.mark.parametrize("command", ["dir", "file"])
def test_path_with_nul_byte_fails_the_transfer(tmp_path: Path, command: str) -> None:
    stream = io.BytesIO()
    bad_path = str(tmp_path / "bad\x00name")
    if command == "dir":
        write_dir_frame(stream, bad_path)
    else:
        _file_frame(stream, bad_path, b"abc")
    stream.seek(0)

    with pytest.raises(TransferError, match="Illegal path") as excinfo:
        FrameReceiver().receive(stream)
    assert isinstance(excinfo.value.__cause__, ValueError)
    assert list(tmp_path.iterdir()) == []
