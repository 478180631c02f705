"""Entry point: resolve the sink configuration and check cluster health."""

import asyncio
import logging
import os
import sys

from opensearch_sink.builder import build
from opensearch_sink.client import SinkApiError, SinkHttpClient
from opensearch_sink.config import ConfigurationError
from opensearch_sink.settings import Settings


def _configure_logging() -> None:
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )


async def _check(client: SinkHttpClient) -> bool:
    try:
        return await client.healthcheck()
    finally:
        await client.aclose()


def main() -> int:
    """Load settings, build the client and report whether the cluster is reachable."""
    _configure_logging()
    logger = logging.getLogger("opensearch-sink")
    settings = Settings.load()

    try:
        client: SinkHttpClient = build(logger, settings.hosts, settings.params)
    except ConfigurationError:
        logger.exception("Invalid OpenSearch sink configuration.")
        return 2

    try:
        healthy = asyncio.run(_check(client))
    except SinkApiError:
        logger.exception("Healthcheck failed.")
        return 1

    logger.info(
        "Healthcheck against %s%s: %s",
        client.options.hosts[0],
        client.options.healthcheck_path,
        "ok" if healthy else "unhealthy",
    )
    return 0 if healthy else 1


if __name__ == "__main__":
    sys.exit(main())
