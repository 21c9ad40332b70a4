"""
Read API for harvested reports.

Routes:
- GET /reports        all stored reports as a JSON array
- GET /reports/{id}   one report, 404 if unknown or not a UUID
- GET /health         liveness probe

Every request passes the per-client rate limit first. The ingestion
scheduler and the rate-limiter sweep run as background tasks tied to
the application lifecycle.
"""

import asyncio
import math
import uuid
from typing import Optional

import structlog
from aiohttp import web

from reports_scraper.core.exceptions import StorageError
from reports_scraper.core.rate_limiter import RateLimiterRegistry, client_id
from reports_scraper.orchestrator import IngestionScheduler
from reports_scraper.storage.base import ReportStore

logger = structlog.get_logger(__name__)


STORE_KEY = web.AppKey("store", ReportStore)
LIMITER_KEY = web.AppKey("rate_limiter", RateLimiterRegistry)
SCHEDULER_KEY = web.AppKey("scheduler", IngestionScheduler)
SWEEP_INTERVAL_KEY = web.AppKey("sweep_interval", float)
TASKS_KEY = web.AppKey("background_tasks", list)


@web.middleware
async def rate_limit_middleware(request: web.Request, handler):
    """Reject requests from clients whose bucket is empty."""
    limiter = request.app[LIMITER_KEY]
    client = client_id(request.headers.get("X-Forwarded-For"), request.remote)

    if not limiter.allow(client):
        return web.Response(
            text="Too many requests",
            status=429,
            headers={"Retry-After": str(math.ceil(limiter.seconds_per_token))},
        )

    return await handler(request)


async def handle_list_reports(request: web.Request) -> web.Response:
    """Return every stored report."""
    store = request.app[STORE_KEY]

    try:
        reports = await store.select_all()
    except StorageError as e:
        logger.error("reports_query_failed", error=str(e))
        return web.Response(text="Internal server error", status=500)

    return web.json_response([report.to_dict() for report in reports])


async def handle_get_report(request: web.Request) -> web.Response:
    """Return a single report by id."""
    store = request.app[STORE_KEY]

    try:
        report_id = uuid.UUID(request.match_info["report_id"])
    except ValueError:
        return web.Response(text="Report not found", status=404)

    try:
        report = await store.select_by_id(report_id)
    except StorageError as e:
        logger.error("report_query_failed", report_id=str(report_id), error=str(e))
        return web.Response(text="Internal server error", status=500)

    if report is None:
        return web.Response(text="Report not found", status=404)

    return web.json_response(report.to_dict())


async def handle_health(request: web.Request) -> web.Response:
    """Health check"""
    return web.Response(text="OK", status=200)


async def _sweep_rate_limiter(limiter: RateLimiterRegistry, interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        limiter.sweep()


async def _start_background_tasks(app: web.Application) -> None:
    tasks = app[TASKS_KEY]

    scheduler = app.get(SCHEDULER_KEY)
    if scheduler is not None:
        tasks.append(asyncio.create_task(scheduler.run_forever(), name="ingestion-scheduler"))

    tasks.append(asyncio.create_task(
        _sweep_rate_limiter(app[LIMITER_KEY], app[SWEEP_INTERVAL_KEY]),
        name="rate-limit-sweep",
    ))

    logger.info("background_tasks_started", count=len(tasks))


async def _stop_background_tasks(app: web.Application) -> None:
    tasks = app[TASKS_KEY]
    for task in tasks:
        task.cancel()

    # Rows committed before cancellation stay in the store
    await asyncio.gather(*tasks, return_exceptions=True)
    tasks.clear()

    logger.info("background_tasks_stopped")


def create_app(
    store: ReportStore,
    limiter: Optional[RateLimiterRegistry] = None,
    scheduler: Optional[IngestionScheduler] = None,
    sweep_interval: float = 60.0,
) -> web.Application:
    """
    Build the read API application.

    Args:
        store: Initialized report store
        limiter: Per-client rate limiter (defaults to 5 requests, 5 per minute)
        scheduler: Ingestion scheduler to run in the background (optional)
        sweep_interval: Seconds between rate-limiter sweeps

    Returns:
        aiohttp Application
    """
    app = web.Application(middlewares=[rate_limit_middleware])

    app[STORE_KEY] = store
    app[LIMITER_KEY] = limiter if limiter is not None else RateLimiterRegistry()
    app[SWEEP_INTERVAL_KEY] = sweep_interval
    app[TASKS_KEY] = []
    if scheduler is not None:
        app[SCHEDULER_KEY] = scheduler

    # Routes
    app.router.add_get("/reports", handle_list_reports)
    app.router.add_get("/reports/{report_id}", handle_get_report)
    app.router.add_get("/health", handle_health)

    app.on_startup.append(_start_background_tasks)
    app.on_cleanup.append(_stop_background_tasks)

    return app


async def start_web_server(app: web.Application, host: str = "0.0.0.0", port: int = 8080) -> web.AppRunner:
    """
    Start serving an application.

    Returns:
        The runner; call `await runner.cleanup()` to stop
    """
    logger.info("api_starting", host=host, port=port)

    # Start server with AppRunner
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info("api_running", url=f"http://{host}:{port}")

    return runner
