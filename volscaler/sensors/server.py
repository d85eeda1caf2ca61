"""HTTP server for exposing the operator's Prometheus metrics.

prometheus_client's built-in server runs in a daemon thread so scraping never
blocks the operator event loop. The port comes from METRICS_PORT (8000).
"""

import logging
from threading import Thread
from prometheus_client import start_http_server

logger = logging.getLogger(__name__)


def start_metrics_server(port: int = 8000) -> None:
    try:
        start_http_server(port)
        logger.info(f"Metrics available at http://0.0.0.0:{port}/metrics")
    except OSError as e:
        logger.error(f"Failed to start metrics server on port {port}: {e}")
        raise


def init_metrics_server(port: int = 8000) -> Thread:
    """Start the metrics server in a daemon thread and return the thread."""
    thread = Thread(target=start_metrics_server, args=(port,), daemon=True)
    thread.start()
    logger.info(f"Metrics server initialization complete (port: {port})")
    return thread
