"""Prometheus HTTP API client for kubelet volume statistics."""
import asyncio
import logging
import aiohttp
from typing import Any, List, Optional
from marshmallow import ValidationError
from yarl import URL

from volscaler.types.models import PrometheusSample, PrometheusResponse, VolumeMetrics
from volscaler.types.schemas import PrometheusResponseSchema
from volscaler.utils.errors import MetricsUnavailableError
from .error import AuthenticationError, NotFoundError
from .session import SessionManager

QUERY_URL = "api/v1/query"

USED_BYTES_METRIC = "kubelet_volume_stats_used_bytes"
CAPACITY_BYTES_METRIC = "kubelet_volume_stats_capacity_bytes"
HEALTH_ABNORMAL_METRIC = "kubelet_volume_stats_health_status_abnormal"
INODES_USED_METRIC = "kubelet_volume_stats_inodes_used"
INODES_METRIC = "kubelet_volume_stats_inodes"

logger = logging.getLogger(__name__)


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def volume_query(metric: str, namespace: str, pvc_name: str) -> str:
    """PromQL for one kubelet volume series, collapsed to a single sample.

    A PVC mounted on several nodes is reported by each kubelet, so the
    series are reduced with `max`.
    """
    return (
        f'max({metric}{{namespace="{_escape(namespace)}",'
        f'persistentvolumeclaim="{_escape(pvc_name)}"}})'
    )


class PrometheusClient(SessionManager):
    """Read-only client for the Prometheus instant query API."""

    def __init__(self, endpoint: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.endpoint = URL(str(endpoint))

    async def query_vector(self, promql: str) -> List[PrometheusSample]:
        """Run an instant query and return the samples of the resulting vector.

        Raises:
            MetricsUnavailableError: The endpoint is unreachable, answered with
                an error, or returned a body that is not a Prometheus response.
        """
        url = self.endpoint / QUERY_URL
        try:
            response: PrometheusResponse = await self.get(
                url,
                params={"query": promql},
                raise_errors=False,
                schema=PrometheusResponseSchema(),
            )
        except (AuthenticationError, NotFoundError) as e:
            raise MetricsUnavailableError(
                f"Metrics endpoint {self.endpoint} refused the query: {e}", promql
            ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise MetricsUnavailableError(
                f"Metrics endpoint {self.endpoint} is unreachable: {e!r}", promql
            ) from e
        except (ValidationError, ValueError) as e:
            raise MetricsUnavailableError(
                f"Malformed response from {self.endpoint}: {e}", promql
            ) from e

        if response.status != "success":
            raise MetricsUnavailableError(
                f"Query failed ({response.error_type}): {response.error}", promql
            )
        if response.data is None or response.data.result_type != "vector":
            raise MetricsUnavailableError(
                f"Expected a vector result from {self.endpoint}", promql
            )
        return response.data.result

    async def query_optional(self, promql: str) -> Optional[float]:
        """Return the single sample value, or None if the series is absent."""
        samples = await self.query_vector(promql)
        if not samples:
            return None
        if len(samples) > 1:
            raise MetricsUnavailableError(
                f"Expected 1 result, got {len(samples)}", promql
            )
        return samples[0].value

    async def query(self, promql: str) -> float:
        """Return the single sample value of an instant query.

        Raises:
            MetricsUnavailableError: Also raised when the series is absent.
        """
        value = await self.query_optional(promql)
        if value is None:
            raise MetricsUnavailableError(f"No results for query: {promql}", promql)
        return value

    async def fetch_volume_metrics(
        self, namespace: str, pvc_name: str, include_inodes: bool = False
    ) -> VolumeMetrics:
        """Read the latest used/capacity/health samples for a PVC.

        Used and capacity bytes are required. Health and inode series are
        optional, since not every kubelet exports them.
        """
        used_bytes = await self.query(
            volume_query(USED_BYTES_METRIC, namespace, pvc_name)
        )
        capacity_bytes = await self.query(
            volume_query(CAPACITY_BYTES_METRIC, namespace, pvc_name)
        )
        if capacity_bytes <= 0:
            raise MetricsUnavailableError(
                f"Capacity of {namespace}/{pvc_name} reported as {capacity_bytes}"
            )
        health = await self.query_optional(
            volume_query(HEALTH_ABNORMAL_METRIC, namespace, pvc_name)
        )

        inodes_used = inodes_total = None
        if include_inodes:
            inodes_used = await self.query_optional(
                volume_query(INODES_USED_METRIC, namespace, pvc_name)
            )
            inodes_total = await self.query_optional(
                volume_query(INODES_METRIC, namespace, pvc_name)
            )

        logger.debug(
            "Volume %s/%s uses %d of %d bytes", namespace, pvc_name, used_bytes, capacity_bytes
        )
        return VolumeMetrics(
            used_bytes=used_bytes,
            capacity_bytes=capacity_bytes,
            health_abnormal=bool(health and health > 0),
            inodes_used=inodes_used,
            inodes_total=inodes_total,
        )
