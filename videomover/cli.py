"""CLI with subcommands: detect, list, transfer, clean."""
from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .core.cancellation import CancellationToken
from .core.config import MoverConfig, load_config
from .core.errors import ConfigError, VideoMoverError
from .logging import setup_logging
from .logging.rich_logger import RichProgressReporter, QuietProgressReporter


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="videomover",
        description="Move camera videos to another folder with verified, collision-safe copies.",
    )

    # Global options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ============ DETECT command ============
    detect_parser = subparsers.add_parser(
        "detect",
        help="Guess the camera folder from the most recent media",
    )
    detect_parser.add_argument(
        "root",
        type=Path,
        help="Media root to index (e.g. mounted phone storage)",
    )
    detect_parser.add_argument(
        "--include-images",
        action="store_true",
        help="Index images as well as videos",
    )

    # ============ LIST command ============
    list_parser = subparsers.add_parser(
        "list",
        help="List the items a transfer would copy",
    )
    list_parser.add_argument(
        "root",
        type=Path,
        help="Media root to index",
    )
    list_parser.add_argument(
        "-s", "--source-path",
        type=str,
        default=None,
        help="Group path prefix, e.g. 'DCIM/Camera/' (default: typical camera folders)",
    )
    list_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of items",
    )
    list_parser.add_argument(
        "--include-images",
        action="store_true",
        help="Index images as well as videos",
    )

    # ============ TRANSFER command ============
    transfer_parser = subparsers.add_parser(
        "transfer",
        help="Copy camera media to a destination folder",
    )
    transfer_parser.add_argument(
        "root",
        type=Path,
        nargs="?",
        default=None,
        help="Media root to index (default: source_root from config)",
    )
    transfer_parser.add_argument(
        "-d", "--dest",
        type=Path,
        default=None,
        help="Destination folder (default: destination from config)",
    )
    transfer_parser.add_argument(
        "-s", "--source-path",
        type=str,
        default=None,
        help="Group path prefix (default: typical camera folders)",
    )
    transfer_parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="JSON config file; flags override its values",
    )
    transfer_parser.add_argument(
        "-w", "-j", "--workers",
        dest="workers",
        type=int,
        default=None,
        help="Number of concurrent transfers (default: 1)",
    )
    transfer_parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Copy buffer size in bytes (default: 1 MiB)",
    )
    transfer_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum number of items",
    )
    transfer_parser.add_argument(
        "--include-images",
        action="store_true",
        default=None,
        help="Transfer images as well as videos",
    )
    delete_group = transfer_parser.add_mutually_exclusive_group()
    delete_group.add_argument(
        "--delete-after",
        dest="delete_after",
        action="store_true",
        default=None,
        help="Delete verified originals after the batch (default)",
    )
    delete_group.add_argument(
        "--keep-originals",
        dest="delete_after",
        action="store_false",
        help="Keep originals after copying",
    )
    transfer_parser.add_argument(
        "--no-sweep",
        dest="sweep_partials",
        action="store_false",
        default=None,
        help="Do not remove leftover .partial files before starting",
    )

    # ============ CLEAN command ============
    clean_parser = subparsers.add_parser(
        "clean",
        help="Remove leftover .partial files from a destination",
    )
    clean_parser.add_argument(
        "dest",
        type=Path,
        help="Destination folder",
    )

    return parser


# ============ Command Handlers ============

def cmd_detect(args: argparse.Namespace, reporter) -> int:
    """Handle the detect command."""
    from .services.discovery import SourceDiscovery
    from .services.media_index import DirectoryMediaIndex

    if not args.root.is_dir():
        reporter.error(f"Media root not found: {args.root}")
        return 1

    index = DirectoryMediaIndex(args.root, include_images=args.include_images)
    group = SourceDiscovery(index).detect_likely_group()

    if group is None:
        reporter.warning("No camera folder found among recent media")
        return 1

    print(group)
    return 0


def cmd_list(args: argparse.Namespace, reporter) -> int:
    """Handle the list command."""
    from .services.discovery import SourceDiscovery
    from .services.media_index import DirectoryMediaIndex

    if not args.root.is_dir():
        reporter.error(f"Media root not found: {args.root}")
        return 1

    index = DirectoryMediaIndex(args.root, include_images=args.include_images)
    items = SourceDiscovery(index, limit=args.limit).enumerate(args.source_path)

    if not items:
        reporter.info("No items found")
        return 0

    reporter.print_items(items)
    return 0


def build_transfer_config(args: argparse.Namespace) -> MoverConfig:
    """Merge the config file (if any) with command-line overrides."""
    config = load_config(args.config) if args.config else MoverConfig()
    try:
        return config.with_overrides(
            source_root=args.root,
            destination=args.dest,
            source_path=args.source_path,
            workers=args.workers,
            chunk_size=args.chunk_size,
            limit=args.limit,
            include_images=args.include_images,
            delete_after=args.delete_after,
            sweep_partials=args.sweep_partials,
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid options: {e}") from e


def cmd_transfer(args: argparse.Namespace, reporter) -> int:
    """Handle the transfer command."""
    from .persistence.local import LocalDirectoryContainer
    from .services.batch import BatchCoordinator
    from .services.discovery import SourceDiscovery
    from .services.media_index import DirectoryMediaIndex
    from .services.transfer import TransferEngine

    config = build_transfer_config(args)

    if config.source_root is None or config.destination is None:
        reporter.error("Both a media root and a destination are required (flags or config)")
        return 1
    if not config.source_root.is_dir():
        reporter.error(f"Media root not found: {config.source_root}")
        return 1

    index = DirectoryMediaIndex(config.source_root, include_images=config.include_images)
    discovery = SourceDiscovery(index, limit=config.limit)
    source_path = config.source_path
    if source_path is None:
        source_path = discovery.detect_likely_group()
        if source_path:
            reporter.info(f"Detected camera folder: {source_path}")

    reporter.print_header("videomover transfer")
    reporter.print_config({
        "Media Root": str(config.source_root),
        "Source Path": source_path or "(camera folders)",
        "Destination": str(config.destination),
        "Workers": config.workers,
        "Hash": config.hash_algorithm,
        "Delete After": config.delete_after,
    })

    items = discovery.enumerate(source_path)
    destination = LocalDirectoryContainer(config.destination)
    engine = TransferEngine.from_config(index, config)
    coordinator = BatchCoordinator.from_config(engine, config)

    cancel = CancellationToken()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel.cancel())

    reporter.start_phase("Transferring", len(items))
    try:
        manifest = coordinator.run(
            items,
            destination,
            on_progress=reporter.on_progress,
            on_complete=reporter.on_complete,
            cancel=cancel,
        )
    finally:
        signal.signal(signal.SIGINT, previous_handler)
        reporter.end_phase()

    if config.delete_after and manifest.deletion_candidates:
        deleted = index.delete_items(manifest.deletion_candidates)
        reporter.success(f"Deleted {deleted}/{len(manifest.deletion_candidates)} originals")

    if manifest.cancelled:
        reporter.warning(f"Cancelled after {manifest.done} of {manifest.total} items")
        return 130
    return 0 if manifest.failed == 0 else 1


def cmd_clean(args: argparse.Namespace, reporter) -> int:
    """Handle the clean command."""
    from .persistence.local import LocalDirectoryContainer
    from .services.batch import sweep_partials

    if not args.dest.is_dir():
        reporter.error(f"Destination not found: {args.dest}")
        return 1

    removed = sweep_partials(LocalDirectoryContainer(args.dest, create=False))
    for name in removed:
        reporter.debug(f"Removed {name}")
    reporter.success(f"Removed {len(removed)} partial file(s)")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    verbose = getattr(args, "verbose", False)
    quiet = getattr(args, "quiet", False)
    setup_logging(verbose=verbose, quiet=quiet)

    if quiet:
        reporter = QuietProgressReporter()
    else:
        reporter = RichProgressReporter(verbose=verbose)

    # No command specified - show help
    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "detect":
            return cmd_detect(args, reporter)
        elif args.command == "list":
            return cmd_list(args, reporter)
        elif args.command == "transfer":
            return cmd_transfer(args, reporter)
        elif args.command == "clean":
            return cmd_clean(args, reporter)
        else:
            reporter.error(f"Unknown command: {args.command}")
            return 1

    except KeyboardInterrupt:
        return 130
    except VideoMoverError as e:
        reporter.error(str(e))
        return 1
    except Exception as e:
        reporter.error(f"Error: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
