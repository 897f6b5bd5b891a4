#!/usr/bin/env python3
"""Send a file or directory to a listening FTX receiver."""
from __future__ import annotations

import argparse
import socket
import sys
from contextlib import closing
from pathlib import Path

from ftx.config import DEFAULT_BUFFER_SIZE_BYTES, DEFAULT_TRANSFER_TIMEOUT
from ftx.data.base import TransferError
from ftx.data.sender import FileSender
from ftx.logging_utils import setup_logging

_LOGGER = setup_logging("ftx-send")


def main() -> None:
    parser = argparse.ArgumentParser(description="Send files with the FTX protocol")
    parser.add_argument("source", type=Path, help="File or directory to send")
    parser.add_argument("destination", help="Destination path on the receiving host")
    parser.add_argument("--host", default="127.0.0.1", help="Receiver host")
    parser.add_argument("--port", type=int, required=True, help="Receiver port")
    parser.add_argument(
        "--listen",
        action="store_true",
        help="Listen on --port and send to the first receiver that connects",
    )
    parser.add_argument("--no-recursive", dest="recursive", action="store_false")
    parser.add_argument("--fail-on-error", action="store_true")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TRANSFER_TIMEOUT)
    parser.add_argument("--buffer-size", type=int, default=DEFAULT_BUFFER_SIZE_BYTES)
    args = parser.parse_args()

    sender = FileSender(buffer_size=args.buffer_size, connect_timeout=args.timeout)
    try:
        if args.listen:
            with socket.create_server(("", args.port)) as server:
                server.settimeout(args.timeout)
                conn, _ = server.accept()
                with closing(conn), conn.makefile("wb") as stream:
                    sender.send(
                        args.source,
                        args.destination,
                        stream,
                        fail_on_size_mismatch=args.fail_on_error,
                        recursive=args.recursive,
                    )
        elif args.source.is_dir():
            sender.send_directory_to(
                str(args.source),
                args.destination,
                args.host,
                args.port,
                recursive=args.recursive,
                fail_on_error=args.fail_on_error,
            )
        else:
            sender.send_file_to(
                str(args.source),
                args.destination,
                args.host,
                args.port,
                fail_on_error=args.fail_on_error,
            )
    except (OSError, TransferError) as exc:
        _LOGGER.error("send failed", extra={"_ftx_detail": str(exc)})
        sys.exit(1)
    _LOGGER.info("send completed", extra={"_ftx_path": str(args.source)})


if __name__ == "__main__":
    main()
