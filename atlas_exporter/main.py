"""Main application entry point for the MongoDB Atlas Prometheus exporter."""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

import uvicorn

from . import __version__
from .config.loader import ConfigLoader
from .config.models import ExporterConfig
from .services.atlas_client import AtlasClient
from .services.telemetry import ExporterTelemetry
from .utils.logger import LOG_LEVELS, setup_logger
from .web.server import create_app


PROG = "mongodb-atlas-prometheus-exporter"

# uvicorn has no "fatal" or "warn"
UVICORN_LOG_LEVELS = {
    logging.DEBUG: "debug",
    logging.INFO: "info",
    logging.WARNING: "warning",
    logging.ERROR: "error",
    logging.CRITICAL: "critical",
}


class ExporterApp:
    """
    Exporter application.

    Owns the configuration, the Atlas client and the self-telemetry for
    the lifetime of the process, and serves them over HTTP.
    """

    def __init__(self, config: ExporterConfig, logger: logging.Logger):
        """
        Initialize exporter application.

        Args:
            config: Validated exporter configuration
            logger: Logger instance
        """
        self.config = config
        self.logger = logger
        self.client = AtlasClient(config.atlas, logger.getChild("AtlasClient"))
        self.telemetry = ExporterTelemetry()
        self.app = create_app(config, self.client, self.telemetry, logger)

    def serve(self) -> None:
        """
        Listen and serve until interrupted.

        Raises:
            SystemExit: If the listener cannot be started
        """
        web = self.config.web
        self.logger.info(
            "Listening",
            extra={
                "listen_address": web.listen_address,
                "scrape_path": web.scrape_path,
                "telemetry_path": web.telemetry_path,
            }
        )
        uvicorn.run(
            self.app,
            host=web.host,
            port=web.port,
            log_level=UVICORN_LOG_LEVELS[LOG_LEVELS[self.config.logging.level]],
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description='A Prometheus exporter for Atlas MongoDB API',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Credentials from the environment
  ATLAS_PUBLIC_KEY=... ATLAS_PRIVATE_KEY=... atlas-exporter --atlas.project 5f1a...

  # Everything from a YAML file
  atlas-exporter --config /etc/atlas-exporter/config.yaml
        """
    )

    parser.add_argument('--config', help='Path to YAML configuration file')
    parser.add_argument(
        '--atlas.api-public-key', dest='public_key',
        help='Atlas API public key (env: ATLAS_PUBLIC_KEY)'
    )
    parser.add_argument(
        '--atlas.api-private-key', dest='private_key',
        help='Atlas API private key (env: ATLAS_PRIVATE_KEY)'
    )
    parser.add_argument(
        '--atlas.project', dest='project_id',
        help='Atlas project (group) id (env: ATLAS_PROJECT_ID)'
    )
    parser.add_argument(
        '--web.listen-address', dest='listen_address',
        help='Address to listen on for web interface and telemetry (default: :9139)'
    )
    parser.add_argument(
        '--web.scrape-path', dest='scrape_path',
        help='API metrics path (default: /scrape)'
    )
    parser.add_argument(
        '--web.telemetry-path', dest='telemetry_path',
        help='Exporter metrics path (default: /metrics)'
    )
    parser.add_argument(
        '--web.timeout-offset', dest='timeout_offset', type=float,
        help='Seconds to subtract from the scraper timeout (default: 0.5)'
    )
    parser.add_argument(
        '--log.level', dest='log_level',
        choices=['debug', 'info', 'warn', 'error', 'fatal'],
        help='Only log messages with the given severity or above (default: error)'
    )
    parser.add_argument('--version', action='store_true', help='Show version and exit')
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Map parsed CLI flags onto the nested configuration layout."""
    return {
        "atlas": {
            "public_key": args.public_key,
            "private_key": args.private_key,
            "project_id": args.project_id,
        },
        "web": {
            "listen_address": args.listen_address,
            "scrape_path": args.scrape_path,
            "telemetry_path": args.telemetry_path,
            "timeout_offset": args.timeout_offset,
        },
        "logging": {"level": args.log_level},
    }


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Returns:
        int: 1 on startup or listener failure, 0 otherwise
    """
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"Version: {__version__}")
        return 0

    logger = setup_logger("atlas_exporter", args.log_level or "error")

    try:
        config = ConfigLoader.load(args.config, overrides_from_args(args))
    except Exception as e:
        logger.error(f"Failed to load configuration: {e}")
        return 1

    logger = setup_logger("atlas_exporter", config.logging.level)

    try:
        app = ExporterApp(config, logger)
    except Exception as e:
        logger.error(f"Error connecting to Atlas: {e}", exc_info=True)
        return 1

    try:
        app.serve()
    except SystemExit as e:
        if not e.code:
            return 0
        # uvicorn exits when it cannot bind
        logger.error("Error starting HTTP server", extra={"err": str(e)})
        return 1
    except Exception as e:
        logger.error("Error starting HTTP server", exc_info=True, extra={"err": str(e)})
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
