"""TickerSync CLI entry points.

This module exposes the long-running service and one-shot commands.
It maps argparse commands onto service and pipeline calls.
"""

from __future__ import annotations

import argparse
import json
import signal
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from core.config import TickerSyncConfig
from core.errors import TickerSyncConfigError
from core.hashing import compute_digest
from core.logging_config import configure_logging
from runtime.service import TickerSyncService


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="tickersync", description="Company overview ingest and sync"
    )
    parser.add_argument("--config", help="YAML config file; overrides TICKERSYNC_CONFIG_FILE")
    parser.add_argument("--log-level", help="Override TICKERSYNC_LOG_LEVEL for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("run", help="Run ingest and poll triggers until interrupted")
    subparsers.add_parser("ingest", help="Run one batch ingest of the configured source")
    _add_poll_command(subparsers)
    _add_init_schema_command(subparsers)
    _add_digest_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the TickerSync CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "digest":
        return _run_digest_command(args)
    config = TickerSyncConfig.from_env(args.config)
    configure_logging(args.log_level or config.log_level)
    if args.command == "run":
        return _run_service_command(config)
    if args.command == "ingest":
        return _run_ingest_command(config)
    if args.command == "poll":
        return _run_poll_command(config, args)
    if args.command == "init-schema":
        return _run_init_schema_command(config, args)
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_service_command(config: TickerSyncConfig) -> int:
    """Run triggers until SIGINT or SIGTERM."""
    service = TickerSyncService(config)

    def _handle_signal(signum: int, frame: Any) -> None:
        service.stop()

    signal.signal(signal.SIGTERM, _handle_signal)
    service.start()
    try:
        while not service.wait(1.0):
            continue
    except KeyboardInterrupt:
        pass
    finally:
        service.stop()
    return 0


def _run_ingest_command(config: TickerSyncConfig) -> int:
    """Handle ingest command.

    Args:
        config: Runtime configuration.

    Returns:
        Exit code; non-zero when any record failed.
    """
    service = TickerSyncService(config)
    service.start(schedule=False)
    try:
        summary = service.run_batch_now()
    finally:
        service.stop()
    print(json.dumps(summary.to_dict(), indent=2, sort_keys=True))
    return 1 if summary.failures else 0


def _run_poll_command(config: TickerSyncConfig, args: argparse.Namespace) -> int:
    """Handle poll command."""
    service = TickerSyncService(config)
    service.start(schedule=False)
    try:
        summary = service.run_poll_now(args.symbol or None)
    finally:
        service.stop()
    print(json.dumps(summary.to_dict(), indent=2, sort_keys=True))
    return 1 if summary.failures else 0


def _run_init_schema_command(config: TickerSyncConfig, args: argparse.Namespace) -> int:
    """Handle init-schema command."""
    store_config = replace(
        config.document_store,
        initialize_schema=True,
        drop_if_exists=args.drop_if_exists or config.document_store.drop_if_exists,
    )
    service = TickerSyncService(replace(config, document_store=store_config))
    try:
        created = service.initialize_schema()
    finally:
        service.stop()
    print("created" if created else "exists")
    return 0


def _run_digest_command(args: argparse.Namespace) -> int:
    """Print the deterministic digest of a JSON file."""
    json_path = Path(args.path).expanduser()
    try:
        payload = json.loads(json_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise TickerSyncConfigError(
            f"Failed to read JSON from {json_path}: {error}. Provide a valid JSON file."
        ) from error
    print(compute_digest(payload))
    return 0


def _add_poll_command(subparsers: Any) -> None:
    """Register poll subcommand."""
    parser = subparsers.add_parser("poll", help="Run one quote API poll cycle")
    parser.add_argument(
        "--symbol",
        action="append",
        help="Symbol to poll; repeat to poll several. Defaults to configured symbols",
    )


def _add_init_schema_command(subparsers: Any) -> None:
    """Register init-schema subcommand."""
    parser = subparsers.add_parser("init-schema", help="Create the document store dataset")
    parser.add_argument(
        "--drop-if-exists",
        action="store_true",
        help="Delete the existing dataset before creating it",
    )


def _add_digest_command(subparsers: Any) -> None:
    """Register digest subcommand."""
    parser = subparsers.add_parser("digest", help="Print the content digest of a JSON file")
    parser.add_argument("path", help="JSON file path")
