"""
Channel Archive Pipeline
Loads the channel tree and brings the state of the selected channels up to date
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from archive_pipeline.core.config import AppConfig, ConfigLoader
from archive_pipeline.core.context import ArchiveContext
from archive_pipeline.core.errors import ArchiveError, KeyStoreIOError, SettingsError, StateIOError


def setup_logging(logs_dir: Path, verbose: bool = False):
    """Configure logging with file and console handlers."""
    logs_dir.mkdir(parents=True, exist_ok=True)

    log_file = logs_dir / "archive_pipeline.log"

    # Configure logging format
    log_format = "%(asctime)s - %(levelname)s - %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=log_format,
        datefmt=date_format,
        handlers=[
            logging.FileHandler(log_file, mode='a', encoding='utf-8'),
            logging.StreamHandler()
        ]
    )

    return logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Channel Archive Pipeline")
    parser.add_argument("--config", type=Path, default=Path("config.yaml"),
                        help="Path of the YAML run settings.")
    parser.add_argument("--channel", type=str, help="Process only this channel key.")
    parser.add_argument("--group", type=str, help="Process only channels of this group.")
    parser.add_argument("--start-at", type=str, help="First channel key of the range (inclusive).")
    parser.add_argument("--stop-at", type=str, help="Last channel key of the range (inclusive).")
    parser.add_argument("--refresh", action="store_true",
                        help="Clear cached channel data so it is fetched again.")
    parser.add_argument("--print-channels", action="store_true", help="Log the channel tree.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def load_configuration(logger: logging.Logger, args: argparse.Namespace) -> AppConfig:
    """Load the run settings and apply command line overrides."""
    logger.info(f"Loading configuration from: {args.config}")

    try:
        config = ConfigLoader(args.config).load()
    except FileNotFoundError as e:
        logger.error(f"Configuration file not found: {e}")
        sys.exit(1)
    except SettingsError as e:
        logger.error(f"Configuration validation failed: {e}")
        sys.exit(1)

    channel_filter = config.channel_filter
    overrides = {
        name: value for name, value in (
            ("channel", args.channel),
            ("group", args.group),
            ("start_at", args.start_at),
            ("stop_at", args.stop_at),
        ) if value
    }
    if overrides:
        channel_filter = replace(channel_filter, **overrides)
    config = config.with_overrides(
        channel_filter=channel_filter,
        print_channels=True if args.print_channels else None
    )

    logger.info("Configuration validated successfully")
    logger.info(f"  Channels File: {config.channels_file}")
    logger.info(f"  Data Directory: {config.data_dir}")
    logger.info(f"  Filter: {config.channel_filter}")
    return config


def run(context: ArchiveContext, logger: logging.Logger, refresh: bool = False) -> int:
    """
    Loads, cleans and saves the state of every selected channel.

    Returns:
        int: Number of channels that failed
    """
    channels = context.selected_channels()
    logger.info(f"Selected {len(channels)} channels")

    failures = 0
    for index, channel in enumerate(channels, start=1):
        if not channel.is_enabled():
            logger.info(f"[{index}/{len(channels)}] Skipping inactive channel: {channel.canonical_key}")
            continue

        logger.info(f"[{index}/{len(channels)}] Processing: {channel.canonical_key}")
        try:
            context.load_channel(channel)
            if refresh:
                deleted = channel.state.cleanup_data()
                logger.info(f"  Cleared {deleted} cached data files")

            logger.info(f"  Output: {channel.output_location(context.config.locations)}")
            logger.info(
                f"  Queued: {len(channel.state.queued)} | Saved: {len(channel.state.saved)} | "
                f"Blocked: {len(channel.state.blocked)} | "
                f"Keys: {len(context.key_store.get(channel.name))}"
            )
            context.save_channel(channel)
        except StateIOError as e:
            logger.error(f"Channel {channel.key} failed: {e}")
            failures += 1

    return failures


def main(argv: Optional[List[str]] = None):
    """Main execution entry for the Channel Archive Pipeline."""
    args = parse_args(argv)
    base_dir = args.config.resolve().parent
    logger = setup_logging(base_dir / "logs", args.verbose)

    logger.info("="*60)
    logger.info("Channel Archive Pipeline")
    logger.info("="*60)

    config = load_configuration(logger, args)

    try:
        context = ArchiveContext(config, base_dir)
        context.start()
    except (OSError, ValueError, KeyStoreIOError) as e:
        logger.error(f"Failed to initialize channels: {e}")
        sys.exit(1)

    failures = run(context, logger, refresh=args.refresh)

    try:
        context.shutdown()
    except ArchiveError as e:
        logger.error(f"Failed to persist key store: {e}")
        sys.exit(1)

    logger.info("="*60)
    logger.info(f"✅ Archive run complete ({failures} failed channels)")
    logger.info("="*60)

    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
