"""Main module for the multicloud gateway CLI."""

import argparse
import json
import sys
from typing import Any, Dict

from . import __version__
from . import handlers
from .core.exceptions import GatewayError
from .core.logging_config import setup_logger

THUMBNAIL_HANDLERS: Dict[Any, str] = {
    None: "thumbnail_handler",
    "aws": "aws_thumbnail_handler",
    "alibaba": "alibaba_thumbnail_handler",
}


def _load_event(path: str) -> Any:
    with open(path, "rb") as f:
        raw = f.read()
    try:
        return json.loads(raw)
    except ValueError:
        # OSS triggers deliver bytes; let the driver report the problem
        return raw


def _print_result(result: Any) -> None:
    if isinstance(result, (dict, list)):
        print(json.dumps(result, indent=2))
    else:
        print(result)


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="multicloud-gateway",
        description="Multicloud gateway - run the function handlers locally",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create thumbnails for the objects listed in an S3 event
  multicloud-gateway thumbnails --event s3-event.json --provider aws

  # Run the sample task workflow against PostgreSQL
  multicloud-gateway tasks

  # Show version
  multicloud-gateway version
        """,
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers: argparse._SubParsersAction = parser.add_subparsers(
        dest="command", help="Available commands"
    )

    thumbnails_parser = subparsers.add_parser(
        "thumbnails", help="Create thumbnails for an object created event"
    )
    thumbnails_parser.add_argument(
        "--event", required=True, help="Path to the event payload (JSON)"
    )
    thumbnails_parser.add_argument(
        "--provider",
        type=str,
        default=None,
        choices=["aws", "alibaba"],
        help="Cloud provider (default: CLOUD_PROVIDER)",
    )

    subparsers.add_parser("tasks", help="Run the sample task workflow")
    subparsers.add_parser(
        "object-storage", help="Read test.txt and write a generated file"
    )
    subparsers.add_parser("notify", help="Send a sample message")
    subparsers.add_parser("version", help="Show version information")
    return parser


def main() -> None:
    """
    Entry point for the command-line interface of the gateway.

    Every subcommand calls the matching function handler with an empty
    invocation context and prints what the handler returns. Gateway errors
    are reported on stderr with exit status 1.
    """
    parser = build_parser()
    args: argparse.Namespace = parser.parse_args()

    if args.command == "version":
        print("Multicloud Gateway CLI")
        print(f"Version {__version__}")
        sys.exit(0)
        return

    if args.command is None:
        parser.print_help()
        sys.exit(1)
        return

    if args.debug:
        setup_logger(level="DEBUG")

    try:
        if args.command == "thumbnails":
            handler = getattr(handlers, THUMBNAIL_HANDLERS[args.provider])
            result = handler(_load_event(args.event), None)
        elif args.command == "tasks":
            result = handlers.postgres_handler(None, None)
        elif args.command == "object-storage":
            result = handlers.object_storage_handler(None, None)
        else:
            result = handlers.notification_handler(None, None)
    except GatewayError as e:
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)
        return

    _print_result(result)


if __name__ == "__main__":
    main()
