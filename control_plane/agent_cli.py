"""Command line entry point for running an FTX agent."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

import uvicorn

from ftx.logging_utils import setup_logging
from ftx_agent.app import app, get_service, reset_service_cache
from ftx_agent.config import AgentConfig, load_config


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run an FTX file transfer agent")
    parser.add_argument("--config", help="Path to the agent YAML configuration", default=None)
    parser.add_argument("--host", default=None, help="Override the configured listen address")
    parser.add_argument("--port", type=int, default=None, help="Override the configured HTTP port")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        help="Logging level for the agent process",
    )
    return parser.parse_args(argv)


def resolve_bind(config: AgentConfig, args: argparse.Namespace) -> tuple[str, int]:
    host = args.host if args.host is not None else config.host
    port = args.port if args.port is not None else config.port
    return host, port


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    try:
        config = load_config(args.config)
    except (OSError, ValueError) as exc:
        print(f"Agent startup aborted: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    level = getattr(logging, args.log_level)
    for name in ("ftx.service", "ftx.data.receiver", "ftx.data.sender", "ftx.data.tracker"):
        setup_logging(name, level=level, log_file=config.log_file)

    # Preload the service so the configured transfer settings are used.
    reset_service_cache()
    get_service(args.config)

    host, port = resolve_bind(config, args)
    uvicorn.run(app, host=host, port=port, log_level=args.log_level.lower())


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
