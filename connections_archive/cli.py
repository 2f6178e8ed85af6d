"""
Connections Archive Command Line

Fetches today's Connections answers and appends them to the local archive.
Exits 0 when a puzzle was saved, printed (--dry-run) or when nothing new
was published yet; exits 1 on fatal errors.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from connections_archive.archive import load_previous, write_puzzle
from connections_archive.config import RetryPolicy, load_config
from connections_archive.orchestrator import FetchOrchestrator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch today's NYT Connections answers into a JSON archive"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Print the parsed puzzle without writing"
    )
    parser.add_argument(
        "--archive-dir", type=str, help="Archive directory (default: $CONNECTIONS_ARCHIVE_DIR or puzzles)"
    )
    parser.add_argument(
        "--history",
        type=int,
        help="Number of archived puzzles to treat as already seen (default: all)",
    )
    parser.add_argument(
        "--no-delay", action="store_true", help="Do not wait between retry passes"
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s: %(message)s',
    )

    # Load environment variables
    load_dotenv()

    try:
        config = load_config()
        if args.archive_dir:
            config.archive_dir = Path(args.archive_dir)
        if args.history is not None:
            if args.history < 1:
                raise ValueError(f"--history must be at least 1, got {args.history}")
            config.history = args.history
        if args.no_delay:
            config.retry = RetryPolicy(max_passes=config.retry.max_passes, delay=0)

        previous = load_previous(config.archive_dir, history=config.history)
        result = FetchOrchestrator(config, previous).run()

        if not result.is_fresh:
            logger.info(f"[OK] No new puzzle yet; skipping write. ({result.reason})")
            return 0

        if args.dry_run:
            logger.info("[DRY RUN] Parsed puzzle:")
            print(json.dumps(result.puzzle.to_dict(), indent=2))
            return 0

        paths = write_puzzle(config.archive_dir, result.puzzle)
        written = "latest + archive" if paths['latest'] else "archive only"
        logger.info(
            f"[OK] Saved {result.puzzle.date} ({written}) and updated "
            f"{config.archive_dir}/manifest.json"
        )
        return 0
    except Exception as e:
        logger.error(f"Error: {e}")
        logger.debug("Traceback:", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
