import asyncio
import logging
from typing import Callable, Dict, Optional

from .client import PrometheusClient

logger = logging.getLogger(__name__)


class MetricsClientRegistry:
    """Process-wide cache of metrics clients, one per endpoint URL.

    Clients are created lazily on first use and kept until `close()`.
    Creation is serialized by a lock so that concurrent reconciles of
    different policies pointing at the same endpoint share one client.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        client_factory: Callable[..., PrometheusClient] = PrometheusClient,
    ) -> None:
        self.timeout = timeout
        self._client_factory = client_factory
        self._clients: Dict[str, PrometheusClient] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _key(endpoint: str) -> str:
        return str(endpoint).rstrip("/")

    async def get(self, endpoint: str) -> PrometheusClient:
        key = self._key(endpoint)
        client = self._clients.get(key)
        if client is not None:
            return client
        async with self._lock:
            if key not in self._clients:
                logger.info(f"Creating metrics client for {key}")
                self._clients[key] = self._client_factory(key, timeout=self.timeout)
            return self._clients[key]

    async def close(self) -> None:
        async with self._lock:
            for key, client in self._clients.items():
                logger.info(f"Closing metrics client for {key}")
                await client.close()
            self._clients.clear()

    def __contains__(self, endpoint: str) -> bool:
        return self._key(endpoint) in self._clients

    def __len__(self) -> int:
        return len(self._clients)
