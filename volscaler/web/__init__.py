from .client import PrometheusClient
from .registry import MetricsClientRegistry

__all__ = ["PrometheusClient", "MetricsClientRegistry"]
