#!/usr/bin/env python3
"""Open one FTX receiver, print its port and wait for the transfer."""
from __future__ import annotations

import argparse
import json
import sys

from ftx.config import DEFAULT_BIND_HOST, DEFAULT_BUFFER_SIZE_BYTES, DEFAULT_TRANSFER_TIMEOUT, TransferSettings
from ftx.data.base import TransferError
from ftx.data.tracker import TransferTracker
from ftx.logging_utils import setup_logging

_LOGGER = setup_logging("ftx-receive")


def main() -> None:
    parser = argparse.ArgumentParser(description="Receive files sent with the FTX protocol")
    parser.add_argument("--bind-host", default=DEFAULT_BIND_HOST)
    parser.add_argument("--start-port", type=int, default=None)
    parser.add_argument("--end-port", type=int, default=None)
    parser.add_argument(
        "--connect",
        metavar="HOST:PORT",
        default=None,
        help="Dial a sender that already listens instead of listening",
    )
    parser.add_argument("--timeout", type=float, default=DEFAULT_TRANSFER_TIMEOUT)
    parser.add_argument("--buffer-size", type=int, default=DEFAULT_BUFFER_SIZE_BYTES)
    args = parser.parse_args()

    port_range = None
    if args.start_port is not None or args.end_port is not None:
        if args.start_port is None or args.end_port is None:
            parser.error("--start-port and --end-port must be given together")
        port_range = (args.start_port, args.end_port)
    tracker = TransferTracker(
        TransferSettings(
            timeout=args.timeout,
            buffer_size=args.buffer_size,
            bind_host=args.bind_host,
            port_range=port_range,
        )
    )

    try:
        if args.connect:
            host, _, peer_port = args.connect.rpartition(":")
            port, _ = tracker.connect(host, int(peer_port))
        else:
            port, _ = tracker.open()
    except TransferError as exc:
        _LOGGER.error("receiver not started", extra={"_ftx_detail": str(exc)})
        sys.exit(1)
    print(json.dumps({"port": port}), flush=True)

    try:
        # the receiver itself gives up after one idle timeout
        tracker.wait(port, timeout=args.timeout * 2)
    except TransferError as exc:
        _LOGGER.error("transfer failed", extra={"_ftx_port": port, "_ftx_detail": str(exc)})
        sys.exit(1)
    _LOGGER.info("transfer completed", extra={"_ftx_port": port})


if __name__ == "__main__":
    main()
