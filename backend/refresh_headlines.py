#!/usr/bin/env python3
"""
Standalone Headline Refresh

Run one headline curation and write the snapshot file, without starting the
web server. Useful from a system cron or for checking curation locally.

Usage:
    python refresh_headlines.py
    python refresh_headlines.py --output headlines-cache.json
    python refresh_headlines.py --print
"""

import os
import sys
import asyncio
import argparse
import logging
from dataclasses import replace
from typing import List, Optional
from dotenv import load_dotenv

from lib.core.config import Settings
from lib.core.errors import ConfigurationMissing
from lib.news.cache import HeadlineCache, HeadlineCacheFile
from lib.services import build_curator

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "headlines-cache.json"


async def refresh(settings: Settings, output: str) -> List[str]:
    """
    Curate headlines once and write them to output.

    Args:
        settings: Application settings
        output: Snapshot file path

    Returns:
        The curated headlines
    """
    cache = HeadlineCache(build_curator(settings), snapshot_file=HeadlineCacheFile(output))
    view = await cache.force_refresh()
    return view.headlines


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Curate today's AI news headlines and write the snapshot file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Refresh into the configured HEADLINES_CACHE_FILE (or ./headlines-cache.json):
    %(prog)s

  Write to a specific file:
    %(prog)s --output /tmp/headlines.json

  Use a different Gemini model and print the result:
    %(prog)s --model gemini-2.5-pro --print
        """
    )

    parser.add_argument(
        '--output', '-o',
        default=None,
        help=f'Snapshot file to write (default: $HEADLINES_CACHE_FILE or {DEFAULT_OUTPUT})'
    )
    parser.add_argument(
        '--model', '-m',
        default=None,
        help='Gemini model to use (default: $GEMINI_MODEL or gemini-2.5-flash)'
    )
    parser.add_argument(
        '--print', '-p',
        dest='print_headlines',
        action='store_true',
        help='Print the curated headlines to stdout'
    )

    args = parser.parse_args(argv)

    settings = Settings.from_env()
    if args.model:
        settings = replace(settings, gemini_model=args.model)
    output = args.output or settings.headlines_cache_file or DEFAULT_OUTPUT

    logger.info("=" * 80)
    logger.info("HEADLINE REFRESH")
    logger.info("=" * 80)
    logger.info(f"Model: {settings.gemini_model}")
    logger.info(f"Output file: {os.path.abspath(output)}")

    try:
        headlines = asyncio.run(refresh(settings, output))

        logger.info("=" * 80)
        logger.info(f"✅ Wrote {len(headlines)} headlines to {output}")
        logger.info("=" * 80)

        if args.print_headlines:
            for idx, headline in enumerate(headlines, 1):
                print(f"{idx}. {headline}")

        return 0

    except ConfigurationMissing as e:
        logger.error(f"❌ {e}")
        logger.error("Please set it in .env file or export it")
        return 2
    except KeyboardInterrupt:
        logger.info("Cancelled by user")
        return 130
    except Exception as e:
        logger.error(f"❌ Headline refresh failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
