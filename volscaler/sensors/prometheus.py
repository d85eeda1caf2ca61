"""Prometheus monitoring backend for the volume autoscaler.

This module provides PrometheusMonitor, which collects reconcile and volume
events and exposes them as Prometheus metrics:

1. Reconciliation Loop Health - Duration and result of every pass
2. Volume Health - Latest usage sample per PVC
3. Scaling - Successful resizes, skipped resizes and errors by reason

All metrics carry the policy name and namespace so they can be filtered per
VolumeAutoscaler.
"""

from typing import Dict, Optional, Any
import time
import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram, Gauge

from volscaler.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class PrometheusMonitor(OperatorSensor):
    """Prometheus metrics monitor for the volume autoscaler.

    Exposes metrics via prometheus_client that can be scraped by Prometheus.
    Pass a dedicated ``CollectorRegistry`` to keep several monitors apart
    (each registry accepts a metric name only once).

    Example:
        monitor = PrometheusMonitor()

        state = monitor.on_reconcile_start("data", "default", 5, "poll")
        monitor.on_reconcile_complete("data", "default", state, True)
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        """Initialize Prometheus metrics."""
        super().__init__()

        # =============================================================================
        # Reconciliation Loop Metrics
        # =============================================================================

        self.reconcile_duration = Histogram(
            'volume_autoscaler_reconcile_duration_seconds',
            'Time spent in one reconcile pass',
            labelnames=['name', 'namespace', 'trigger_source', 'result'],
            buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0],
            registry=registry,
        )

        # =============================================================================
        # Volume Metrics
        # =============================================================================

        self.pvc_usage_percent = Gauge(
            'volume_autoscaler_pvc_usage_percent',
            'Latest used bytes of a PVC as a percentage of its capacity',
            labelnames=['name', 'namespace', 'pvc'],
            registry=registry,
        )

        self.scale_events = Counter(
            'volume_autoscaler_scale_events_total',
            'Total number of successful PVC resizes',
            labelnames=['name', 'namespace', 'pvc'],
            registry=registry,
        )

        self.resize_skipped = Counter(
            'volume_autoscaler_resize_skipped_total',
            'Total number of resizes blocked by a safety check',
            labelnames=['name', 'namespace', 'reason'],
            registry=registry,
        )

        self.errors = Counter(
            'volume_autoscaler_errors_total',
            'Total number of errors by reason',
            labelnames=['name', 'namespace', 'reason'],
            registry=registry,
        )

        logger.info("PrometheusMonitor initialized with all metrics")

    # =============================================================================
    # Reconciliation Lifecycle Hooks
    # =============================================================================

    def on_reconcile_start(
        self,
        name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """Record reconciliation start time."""
        return {
            'start_time': time.time(),
            'trigger_source': trigger_source,
        }

    def on_reconcile_complete(
        self,
        name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Record reconciliation duration and result."""
        if state:
            duration = time.time() - state['start_time']
            result = 'success' if success else 'failure'
            self.reconcile_duration.labels(
                name=name,
                namespace=namespace,
                trigger_source=state['trigger_source'],
                result=result,
            ).observe(duration)

        if error:
            self.errors.labels(name=name, namespace=namespace, reason='unexpected').inc()

    # =============================================================================
    # Volume Hooks
    # =============================================================================

    def on_volume_usage(
        self, name: str, namespace: str, pvc_name: str, usage_percent: float
    ) -> None:
        self.pvc_usage_percent.labels(
            name=name, namespace=namespace, pvc=pvc_name
        ).set(usage_percent)

    def on_scale_event(
        self, name: str, namespace: str, pvc_name: str, old_size: int, new_size: int
    ) -> None:
        self.scale_events.labels(name=name, namespace=namespace, pvc=pvc_name).inc()

    def on_scale_skipped(
        self, name: str, namespace: str, pvc_name: str, reason: str
    ) -> None:
        self.resize_skipped.labels(name=name, namespace=namespace, reason=reason).inc()

    def on_poll_error(self, name: str, namespace: str, reason: str) -> None:
        self.errors.labels(name=name, namespace=namespace, reason=reason).inc()

    def on_volume_removed(self, name: str, namespace: str, pvc_name: str) -> None:
        try:
            self.pvc_usage_percent.remove(name, namespace, pvc_name)
        except KeyError:
            pass
