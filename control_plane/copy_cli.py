"""Command line entry point for copying files to and from an FTX agent."""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from ftx.config import DEFAULT_BUFFER_SIZE_BYTES, DEFAULT_TRANSFER_TIMEOUT, TransferSettings
from ftx.control.service import FileTransferService
from ftx_client.client import AgentClient
from ftx_client.remote import FileSystemOperationError, RemoteFileSystemOperations


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Copy files or directories with an FTX agent")
    parser.add_argument("direction", choices=["push", "pull"], help="push to or pull from the agent")
    parser.add_argument("source", help="Source file or directory")
    parser.add_argument("destination", help="Destination file or directory")
    parser.add_argument("--agent", required=True, help="Agent base URL, e.g. http://10.0.0.5:8700")
    parser.add_argument("--directory", action="store_true", help="Copy a directory tree")
    parser.add_argument(
        "--no-recursive",
        dest="recursive",
        action="store_false",
        help="Only copy the direct children of a directory",
    )
    parser.add_argument(
        "--fail-on-error",
        action="store_true",
        help="Fail if a file changes size while it is being copied",
    )
    parser.add_argument("--local-host", default=None, help="Address the agent uses to reach this host")
    parser.add_argument("--start-port", default=None, help="First port of the copy port range")
    parser.add_argument("--end-port", default=None, help="Last port of the copy port range")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TRANSFER_TIMEOUT)
    parser.add_argument("--buffer-size", type=int, default=DEFAULT_BUFFER_SIZE_BYTES)
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
    )
    return parser.parse_args(argv)


async def run_copy(args: argparse.Namespace, operations: RemoteFileSystemOperations) -> None:
    if args.direction == "push":
        if args.directory or Path(args.source).is_dir():
            await operations.copy_directory(
                args.source,
                args.destination,
                recursive=args.recursive,
                fail_on_error=args.fail_on_error,
            )
        else:
            await operations.copy_file(
                args.source, args.destination, fail_on_error=args.fail_on_error
            )
    elif args.directory:
        await operations.copy_directory_from(
            args.source,
            args.destination,
            recursive=args.recursive,
            fail_on_error=args.fail_on_error,
        )
    else:
        await operations.copy_file_from(
            args.source, args.destination, fail_on_error=args.fail_on_error
        )


async def _run(args: argparse.Namespace) -> None:
    settings = TransferSettings(timeout=args.timeout, buffer_size=args.buffer_size)
    client = AgentClient(args.agent, timeout=args.timeout * 2)
    try:
        operations = RemoteFileSystemOperations(
            client,
            FileTransferService(settings),
            local_host=args.local_host,
            copy_start_port=args.start_port,
            copy_end_port=args.end_port,
        )
        await run_copy(args, operations)
    finally:
        await client.close()


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)
    try:
        asyncio.run(_run(args))
    except FileSystemOperationError as exc:
        logging.error("%s", exc)
        raise SystemExit(1)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
