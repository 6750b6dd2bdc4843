"""HTTP surface: scrape endpoint, self-telemetry endpoint and landing page."""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, Response

from ..collectors.atlas_collector import AtlasCollector
from ..config.models import ExporterConfig
from ..services.atlas_client import AtlasClient
from ..services.telemetry import ExporterTelemetry
from ..utils.exposition import CONTENT_TYPE_LATEST, render_snapshot
from ..utils.metrics import Snapshot


# Sent by Prometheus with every scrape
SCRAPE_TIMEOUT_HEADER = "X-Prometheus-Scrape-Timeout-Seconds"

DISCONNECT_POLL_SECONDS = 0.25

LANDING_PAGE = """<html>
<head>
    <title>Atlas MongoDB Prometheus Exporter</title>
</head>
    <body>
    <p><a href="{telemetry_path}">Exporter Metrics</a></p>
    <p><a href="{scrape_path}">API Scraped Metrics</a></p>
    </body>
</html>"""


class ScrapeHandler:
    """
    Serves one collection cycle per scrape request.

    Every request gets its own AtlasCollector and Snapshot. The cycle lives
    only as long as the request: when the scraper's timeout header (less
    the configured offset) expires or the scraper disconnects, the in-flight
    Atlas call is cancelled and the partial snapshot is returned.
    """

    def __init__(
        self,
        config: ExporterConfig,
        client: AtlasClient,
        telemetry: ExporterTelemetry,
        logger: logging.Logger
    ):
        self.config = config
        self.client = client
        self.telemetry = telemetry
        self.base_logger = logger
        self.logger = logger.getChild(self.__class__.__name__)

    def new_collector(self) -> AtlasCollector:
        return AtlasCollector(
            self.client,
            self.config.atlas.project_id,
            self.base_logger,
            self.config.collection,
            self.config.atlas.verify_project,
        )

    async def __call__(self, request: Request) -> Response:
        self.logger.debug("Starting scrape")
        start = time.perf_counter()

        collector = self.new_collector()
        deadline = scrape_deadline(
            request.headers.get(SCRAPE_TIMEOUT_HEADER), self.config.web.timeout_offset
        )
        snapshot = await self._run(collector, request, deadline)

        try:
            body = render_snapshot(snapshot)
        except Exception as e:
            self.logger.error(f"Unable to render snapshot: {e}", exc_info=True)
            self.telemetry.request_errors.inc()
            return Response("Error rendering metrics\n", status_code=500, media_type="text/plain")
        finally:
            duration = time.perf_counter() - start
            self.telemetry.record(snapshot)
            self.telemetry.observe_duration(duration)
            self.logger.debug("Finished scrape", extra={"duration_seconds": duration})

        return Response(body, media_type=CONTENT_TYPE_LATEST)

    async def _run(
        self,
        collector: AtlasCollector,
        request: Request,
        timeout: Optional[float]
    ) -> Snapshot:
        """
        Run the collector for as long as the scraper is still waiting.

        The cycle is cancelled when the deadline passes or the scraper
        disconnects, whichever comes first.

        Args:
            collector: Fresh collector for this request
            request: Inbound scrape request
            timeout: Seconds before the response is due, None for no bound

        Returns:
            Snapshot: Complete, or whatever was collected before cancellation
        """
        task = asyncio.ensure_future(collector.collect())
        watcher = asyncio.ensure_future(_wait_disconnected(request))
        try:
            done, _ = await asyncio.wait(
                {task, watcher}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for future in (task, watcher):
                if not future.done():
                    future.cancel()

        # Let the cancelled Atlas call unwind before reading the snapshot
        await asyncio.wait({task, watcher})

        if task in done:
            return task.result()

        if watcher in done:
            self.logger.warning("Scraper disconnected, abandoning collection")
        else:
            self.logger.error(
                "Scrape deadline exceeded, returning partial metrics",
                extra={"timeout_seconds": timeout}
            )
        return collector.snapshot


async def _wait_disconnected(request: Request) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


def scrape_deadline(value: Optional[str], offset: float) -> Optional[float]:
    """
    Turn the scraper's timeout header into the collection deadline.

    The offset leaves room to unwind and render before the scraper gives
    up. When it would eat the whole timeout, half the timeout is used.

    Args:
        value: Raw header value, None when absent
        offset: Seconds reserved for unwinding and rendering

    Returns:
        Optional[float]: Deadline in seconds, None for no bound
    """
    if not value:
        return None
    try:
        timeout = float(value)
    except ValueError:
        return None
    if timeout <= 0:
        return None
    deadline = timeout - offset
    return deadline if deadline > 0 else timeout / 2


def create_app(
    config: ExporterConfig,
    client: AtlasClient,
    telemetry: ExporterTelemetry,
    logger: logging.Logger
) -> FastAPI:
    """
    Build the exporter's ASGI application.

    Args:
        config: Exporter configuration
        client: Atlas client shared by all requests, closed on shutdown
        telemetry: Process-wide self-telemetry
        logger: Logger instance

    Returns:
        FastAPI: Application with scrape, telemetry and landing routes
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Exporter starting up", extra={"listen_address": config.web.listen_address})
        yield
        await client.aclose()
        logger.info("Exporter shutting down")

    app = FastAPI(title="MongoDB Atlas Prometheus Exporter", lifespan=lifespan,
                  docs_url=None, redoc_url=None, openapi_url=None)
    scrape = ScrapeHandler(config, client, telemetry, logger)
    landing = LANDING_PAGE.format(
        telemetry_path=config.web.telemetry_path,
        scrape_path=config.web.scrape_path,
    )

    @app.get(config.web.scrape_path)
    async def scrape_metrics(request: Request) -> Response:
        return await scrape(request)

    @app.get(config.web.telemetry_path)
    async def exporter_metrics() -> Response:
        return Response(telemetry.render(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> str:
        return landing

    return app
