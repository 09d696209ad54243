"""Strata CLI entry points.

This module exposes inspection commands over persisted collections.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from cli.describe_command import add_describe_command, run_describe_command
from cli.document_commands import (
    add_delete_command,
    add_get_command,
    add_list_command,
    run_delete_command,
    run_get_command,
    run_list_command,
)
from core.config import StrataConfig
from core.errors import StrataError
from core.logging_config import configure_logging
from mapper.client import StrataClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="strata", description="Strata document store CLI")
    parser.add_argument("--data-root", help="Override STRATA_DATA_ROOT for this command")
    parser.add_argument(
        "--log-level",
        default="info",
        help="Minimum structured log level written to stderr",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_describe_command(subparsers)
    add_get_command(subparsers)
    add_list_command(subparsers)
    add_delete_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Strata CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        configure_logging(args.log_level)
        client = _build_client(args.data_root)
        if args.command == "describe":
            return run_describe_command(client, args)
        if args.command == "get":
            return run_get_command(client, args)
        if args.command == "list":
            return run_list_command(client, args)
        if args.command == "delete":
            return run_delete_command(client, args)
    except StrataError as error:
        print(f"error={error}")
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_client(data_root: str | None) -> StrataClient:
    """Build SDK client over the file-backed stores.

    The in-memory backends hold nothing between processes, so the CLI
    always reads documents from the local backend and keeps S3 blobs
    when configured.

    Args:
        data_root: Optional override path.

    Returns:
        Configured SDK client.
    """
    config = StrataConfig.from_env()
    if data_root:
        config = replace(config, data_root=Path(data_root).expanduser().resolve())
    blob_backend = "local" if config.blob_backend == "memory" else config.blob_backend
    config = replace(config, document_backend="local", blob_backend=blob_backend)
    return StrataClient(config)
