"""CLI entry point: `serve` (exporter + /metrics), `alert` y `download` (jobs de una pasada)."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from common.config import load_app_config
from common.errors import ConfigurationError, ProviderError
from exporter_api.bootstrap import build_runtime, connect
from exporter_api.main import create_app

from .alert_job import run_alert_job
from .download_job import run_download_job

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="SmartCitizen exporter and alerting")
    p.add_argument("--config", default=None, help="path to configuration file")
    p.add_argument("--dotenv", default=None, help="path to .env file (overrides config file setting)")

    sub = p.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the poll loop and expose /metrics")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=None)

    sub.add_parser("alert", help="fetch once, evaluate alert rules and exit")

    download = sub.add_parser("download", help="dump the user and device details as JSON")
    download.add_argument("--output", "-o", default=None, help="output file (default: stdout)")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_app_config(args.config, args.dotenv)
    except ConfigurationError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    try:
        runtime = build_runtime(config)
        connect(runtime)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 1
    except ProviderError as e:
        logger.error("Failed to connect to SmartCitizen API: %s", e)
        return 1

    if args.command == "alert":
        try:
            run_alert_job(runtime)
        except ProviderError as e:
            logger.error("Alert job failed: %s", e)
            return 1
        return 0

    if args.command == "download":
        try:
            run_download_job(runtime, args.output)
        except ProviderError as e:
            logger.error("Download failed: %s", e)
            return 1
        except OSError as e:
            logger.error("Failed to write output: %s", e)
            return 1
        return 0

    port = args.port or config.port
    logger.info("Starting exporter port=%d", port)
    uvicorn.run(create_app(runtime), host=args.host, port=port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
