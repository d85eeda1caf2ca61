"""Instrumentation of reconcile passes.

- OperatorSensor: no-op hooks called by the reconciler
- SensorDelegate: forwards each hook to several backends
- PrometheusMonitor: records the hooks as Prometheus metrics
"""

from volscaler.sensors.base import OperatorSensor
from volscaler.sensors.delegate import SensorDelegate
from volscaler.sensors.prometheus import PrometheusMonitor
from volscaler.sensors.server import init_metrics_server

__all__ = [
    'OperatorSensor',
    'SensorDelegate',
    'PrometheusMonitor',
    'init_metrics_server',
]
