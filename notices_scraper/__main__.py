"""
CLI entry point for notices-scraper.

Usage:
    python -m notices_scraper
    python -m notices_scraper --sources bizinfo,kstartup
    python -m notices_scraper --dry-run --max-pages 2
"""

import argparse
import asyncio
import logging
import os
import sys

import structlog

# Log level mapping
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def setup_logging(level: str = "INFO", json_output: bool = False):
    """Configure structured logging."""
    log_level = LOG_LEVELS.get(level.upper(), logging.INFO)

    if json_output:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    else:
        processors = [
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Incremental collector for Korean public support-program announcements",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Collect from all configured sources
  python -m notices_scraper

  # Collect specific sources
  python -m notices_scraper --sources bizinfo,kstartup

  # Walk listings only, persist nothing
  python -m notices_scraper --dry-run --max-pages 2

  # Run again today even though a snapshot exists
  python -m notices_scraper --force

  # Use custom config file and data directory
  python -m notices_scraper --config /path/to/sources.yml --data-dir /var/lib/notices
        """,
    )

    parser.add_argument(
        "--sources",
        type=str,
        help="Comma-separated list of source_ids to process (default: all)",
    )

    parser.add_argument(
        "--max-pages",
        type=int,
        help="Maximum listing pages per source (default: per source config)",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=os.getenv("NOTICES_DATA_DIR"),
        help="Directory for seen-store, detail cache and snapshots (env: NOTICES_DATA_DIR)",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to sources.yml config file",
    )

    parser.add_argument(
        "--fetcher",
        choices=["browser", "http"],
        default="browser",
        help="Document fetcher: headless browser or plain HTTP (default: browser)",
    )

    parser.add_argument(
        "--force",
        action="store_true",
        help="Run even if today's snapshot already exists",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Walk listings only - no detail fetches, nothing persisted",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Output logs as JSON (for production)",
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    args = parser.parse_args(argv)
    if args.max_pages is not None and args.max_pages < 1:
        parser.error("--max-pages must be at least 1")
    return args


async def main_async(args):
    """Async main function."""
    from .orchestrator import run_collection

    logger = structlog.get_logger(__name__)

    sources = None
    if args.sources:
        sources = [s.strip() for s in args.sources.split(",") if s.strip()]

    logger.info(
        "starting_notices_scraper",
        sources=sources or "all",
        max_pages=args.max_pages,
        fetcher=args.fetcher,
        dry_run=args.dry_run,
    )

    result = await run_collection(
        sources=sources,
        max_pages=args.max_pages,
        config_path=args.config,
        data_dir=args.data_dir,
        fetcher_kind=args.fetcher,
        force=args.force,
        dry_run=args.dry_run,
    )

    if result.skipped:
        logger.info("run_skipped", date=result.run_date, hint="use --force to collect again")
    elif args.dry_run:
        for walk in result.walks.values():
            logger.info("dry_run_source", **walk.to_dict())
    else:
        logger.info(
            "run_complete",
            date=result.run_date,
            total=len(result.records),
            new=len(result.new_records()),
            snapshot=str(result.snapshot_path) if result.snapshot_path else None,
            export=str(result.export_path) if result.export_path else None,
        )

    return result


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    if args.version:
        from . import __version__
        print(f"notices-scraper {__version__}")
        sys.exit(0)

    setup_logging(args.log_level, args.json_logs)

    try:
        asyncio.run(main_async(args))
        sys.exit(0)
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        logger = structlog.get_logger(__name__)
        logger.exception("fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
