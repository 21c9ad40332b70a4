"""
CLI entry point for reports-scraper.

Usage:
    python -m reports_scraper --mode serve
    python -m reports_scraper --mode once --renderer http
    python -m reports_scraper --config /path/to/settings.yml --json-logs
"""

import argparse
import asyncio
import logging
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
    """
    Configure structured logging.

    Console output for development, one JSON object per line for
    production log shipping.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
    ]

    if json_output:
        processors += [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            LOG_LEVELS.get(level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Periodic report harvester with a rate-limited read API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the read API with hourly ingestion in the background
  python -m reports_scraper --mode serve

  # Single ingestion pass, then exit
  python -m reports_scraper --mode once

  # Plain HTTP fetches instead of headless Chromium
  python -m reports_scraper --mode once --renderer http

  # Development run without PostgreSQL
  python -m reports_scraper --database-url memory://

  # Use custom config file
  python -m reports_scraper --config /path/to/settings.yml
        """,
    )

    parser.add_argument(
        "--mode",
        choices=["serve", "once"],
        default="serve",
        help="serve: API plus periodic ingestion; once: single pass then exit",
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to settings.yml config file",
    )

    parser.add_argument(
        "--renderer",
        choices=["browser", "http"],
        help="Page renderer (default: from config)",
    )

    parser.add_argument(
        "--database-url",
        type=str,
        help="SQLAlchemy async database URL or memory:// (default: from config)",
    )

    parser.add_argument(
        "--port",
        type=int,
        help="API port (default: from config)",
    )

    parser.add_argument(
        "--interval",
        type=float,
        help="Seconds between ingestion passes (default: from config)",
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

    return parser.parse_args(argv)


def apply_overrides(settings, args):
    """Apply CLI flags on top of loaded settings."""
    if args.renderer:
        settings.renderer.kind = args.renderer
    if args.database_url:
        settings.database.url = args.database_url
    if args.port:
        settings.api.port = args.port
    if args.interval:
        settings.scheduler.interval_seconds = args.interval

    settings.validate()
    return settings


def build_scheduler(settings, renderer, store):
    """Wire parser, dedup gate and renderer into a scheduler."""
    from .core.deduplicator import DedupGate
    from .orchestrator import IngestionScheduler
    from .parsers import ReportCardParser

    parser = ReportCardParser(
        name_policy=settings.extraction.name_policy,
        max_length=settings.extraction.max_field_length,
        card_selector=settings.listing.card_selector,
        count_selector=settings.listing.count_selector,
    )

    return IngestionScheduler(
        renderer=renderer,
        parser=parser,
        gate=DedupGate(store),
        listing=settings.listing,
        interval_seconds=settings.scheduler.interval_seconds,
    )


async def main_async(args):
    """Async main function."""
    from .api import create_app, start_web_server
    from .config import load_settings
    from .core.rate_limiter import RateLimiterRegistry
    from .renderers import create_renderer
    from .storage import create_store

    logger = structlog.get_logger(__name__)

    settings = apply_overrides(load_settings(args.config), args)

    logger.info(
        "starting_reports_scraper",
        mode=args.mode,
        renderer=settings.renderer.kind,
        listing=settings.listing.listing_url,
    )

    store = create_store(settings.database.url, echo=settings.database.echo)
    await store.initialize()

    try:
        renderer = create_renderer(
            settings.renderer.kind,
            timeout=settings.renderer.timeout,
            requests_per_second=settings.renderer.requests_per_second,
            headless=settings.renderer.headless,
        )

        async with renderer:
            scheduler = build_scheduler(settings, renderer, store)

            if args.mode == "once":
                return await scheduler.run_pass()

            limiter = RateLimiterRegistry(
                capacity=settings.rate_limit.capacity,
                refill_per_minute=settings.rate_limit.refill_per_minute,
                idle_ttl=settings.rate_limit.idle_ttl,
                max_clients=settings.rate_limit.max_clients,
            )
            app = create_app(
                store,
                limiter=limiter,
                scheduler=scheduler,
                sweep_interval=settings.rate_limit.sweep_interval,
            )

            runner = await start_web_server(app, settings.api.host, settings.api.port)
            try:
                # Keep running until interrupted
                await asyncio.Event().wait()
            finally:
                await runner.cleanup()
    finally:
        await store.close()


def main():
    """Main entry point."""
    args = parse_args()

    # Version check
    if args.version:
        from . import __version__
        print(f"reports-scraper {__version__}")
        sys.exit(0)

    # Setup logging
    setup_logging(args.log_level, args.json_logs)

    # Run async main
    try:
        stats = asyncio.run(main_async(args))
        sys.exit(1 if stats is not None and stats.aborted else 0)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger = structlog.get_logger(__name__)
        logger.exception("fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
