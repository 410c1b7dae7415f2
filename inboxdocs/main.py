"""
Inbox Docs - command line entry point.

Drop PDFs, LaTeX files, Python scripts, notebooks and other documents into
the inbox folder and a documentation page is generated for each of them.

Usage:
    inbox-docs                    # Watch the inbox (default)
    inbox-docs --process          # Process existing files once, no watching
    inbox-docs --file paper.tex   # Process a single file, failing loudly
"""

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from inboxdocs.utils.config import Settings, get_settings
from domains.file_ingest.collectors.inbox_watcher import InboxWatcher
from domains.file_ingest.exceptions import InboxError
from domains.file_ingest.processors.pipeline import InboxProcessor


def configure_logging(level: str = "INFO"):
    """Send loguru output to stdout in the application format."""
    logger.remove()
    logger.add(
        sys.stdout,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        level=level.upper()
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Generate MDX documentation pages for files dropped into an inbox folder.",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--watch", "-w",
        action="store_true",
        help="Watch the inbox folder (default).",
    )
    mode.add_argument(
        "--process", "-p",
        action="store_true",
        help="Process existing files once and exit.",
    )
    mode.add_argument(
        "--file", "-f",
        type=Path,
        default=None,
        help="Process a single file and exit; errors are fatal.",
    )
    parser.add_argument(
        "--source", "-s",
        type=Path,
        default=None,
        help="Inbox folder (default: settings inbox_dir).",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Folder for generated pages (default: settings docs_output_dir).",
    )
    parser.add_argument(
        "--assets",
        type=Path,
        default=None,
        help="Folder for original file copies (default: settings asset_dir).",
    )
    parser.add_argument(
        "--no-initial-scan",
        action="store_true",
        help="Only react to files added after the watcher starts.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: settings log_level).",
    )
    return parser.parse_args(argv)


def ensure_inbox(inbox_dir: Path, settings: Settings):
    """Create the inbox and its advisory per-type subfolders on first use."""
    if inbox_dir.exists():
        return
    inbox_dir.mkdir(parents=True, exist_ok=True)
    for subfolder in settings.get_inbox_subfolders():
        (inbox_dir / subfolder).mkdir(exist_ok=True)
    logger.info(f"Created inbox folder: {inbox_dir}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)

    inbox_dir = args.source or settings.inbox_dir
    processor = InboxProcessor(
        settings=settings,
        output_dir=args.output,
        asset_dir=args.assets,
    )

    if args.file is not None:
        try:
            location = processor.process(args.file)
        except InboxError as e:
            logger.error(f"Failed to process {args.file.name}: {e.message}")
            return 1
        logger.success(f"Generated MDX: {location.path}")
        return 0

    ensure_inbox(inbox_dir, settings)
    logger.info(f"Inbox folder: {inbox_dir}")
    logger.info(f"Output folder: {processor.output_dir}")

    if args.process:
        result = processor.process_batch(inbox_dir)
        logger.info(f"MDX files saved to: {processor.output_dir}")
        return 0 if result.failed == 0 else 1

    watcher = InboxWatcher(
        processor=processor,
        inbox_dir=inbox_dir,
        process_existing=False if args.no_initial_scan else None,
        settings=settings,
    )

    stop_event = threading.Event()

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, shutting down.")
        stop_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        watcher.run(stop_event)
    except Exception as e:
        logger.error(f"Inbox watcher failed: {e}")
        return 1

    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
