"""Wire codec for the ``dir``/``file`` command frames.

Frame layout (all integers big-endian)::

    [tag_len: int32][tag: utf8][path_len: int32][path: utf8]
    file frames only: [size: int64][content: size bytes]

A stream is a sequence of frames terminated by the peer closing the
connection.
"""
from __future__ import annotations

import struct
from typing import BinaryIO, Optional

from ..config import DIR_COMMAND, FILE_COMMAND, MAX_PARAMETER_LENGTH
from .base import FrameHeader, ProtocolError

ENCODING = "utf-8"

_INT_STRUCT = struct.Struct("!i")
_LONG_STRUCT = struct.Struct("!q")


def read_exact(stream: BinaryIO, size: int, field: str) -> bytes:
    """Read exactly *size* bytes, retrying short reads."""

    buf = bytearray()
    while len(buf) < size:
        chunk = stream.read(size - len(buf))
        if not chunk:
            raise ProtocolError(
                f"unexpected end of stream while reading {field} "
                f"({len(buf)} of {size} bytes received)"
            )
        buf.extend(chunk)
    return bytes(buf)


def check_length(length: int, field: str) -> int:
    if length < 0 or length > MAX_PARAMETER_LENGTH:
        raise ProtocolError(
            f"illegal length for {field}: {length} (max allowed is {MAX_PARAMETER_LENGTH}); "
            "probably a non-ftx peer has connected, closing communication"
        )
    return length


def write_int(stream: BinaryIO, value: int) -> None:
    stream.write(_INT_STRUCT.pack(value))


def read_int(stream: BinaryIO, field: str, *, allow_eof: bool = False) -> Optional[int]:
    """Read an int32. With *allow_eof*, a clean EOF before the first byte returns ``None``."""

    if allow_eof:
        first = stream.read(1)
        if not first:
            return None
        raw = first + read_exact(stream, _INT_STRUCT.size - 1, field)
    else:
        raw = read_exact(stream, _INT_STRUCT.size, field)
    (value,) = _INT_STRUCT.unpack(raw)
    return value


def write_long(stream: BinaryIO, value: int) -> None:
    stream.write(_LONG_STRUCT.pack(value))


def read_long(stream: BinaryIO, field: str) -> int:
    (value,) = _LONG_STRUCT.unpack(read_exact(stream, _LONG_STRUCT.size, field))
    return value


def write_string(stream: BinaryIO, value: str) -> None:
    data = value.encode(ENCODING)
    write_int(stream, len(data))
    stream.write(data)


def read_string(stream: BinaryIO, length: int, field: str) -> str:
    raw = read_exact(stream, length, field)
    try:
        return raw.decode(ENCODING)
    except UnicodeDecodeError as exc:
        raise ProtocolError(f"illegal {field} encoding: {exc}") from exc


def _write_param(stream: BinaryIO, value: str, field: str) -> None:
    check_length(len(value.encode(ENCODING)), field)
    write_string(stream, value)


def write_dir_frame(stream: BinaryIO, path: str) -> None:
    _write_param(stream, DIR_COMMAND, "command")
    _write_param(stream, path, "path")
    stream.flush()


def write_file_header(stream: BinaryIO, path: str, size: int) -> None:
    """Write a ``file`` frame header; exactly *size* content bytes must follow."""

    _write_param(stream, FILE_COMMAND, "command")
    _write_param(stream, path, "path")
    write_long(stream, size)


def read_frame_header(stream: BinaryIO) -> Optional[FrameHeader]:
    """Read the next frame header, or return ``None`` on a clean end of stream."""

    tag_length = read_int(stream, "command length", allow_eof=True)
    if tag_length is None:
        return None
    command = read_string(stream, check_length(tag_length, "command"), "command")
    path_length = check_length(read_int(stream, "path length"), "path")  # type: ignore[arg-type]
    path = read_string(stream, path_length, "path")
    size = None
    if command == FILE_COMMAND:
        size = read_long(stream, "file size")
        if size < 0:
            raise ProtocolError(f"illegal size for file {path!r}: {size}")
    return FrameHeader(command=command, path=path, size=size)


__all__ = [
    "check_length",
    "read_exact",
    "read_frame_header",
    "read_int",
    "read_long",
    "read_string",
    "write_dir_frame",
    "write_file_header",
    "write_int",
    "write_long",
    "write_string",
]
