"""One reconcile pass over a VolumeAutoscaler.

A pass resolves the target volumes, reads their usage, runs the safety
checks on the volumes over their threshold, patches the ones that pass and
writes the outcome to the policy status. Passes keep no state between them:
the policy is fetched fresh, and the time and size of the last resize of
each volume are carried in ``status.volumes``.
"""
import logging
from datetime import datetime
from logging import Logger
from typing import Any, Callable, Dict, List, Optional
from marshmallow import ValidationError
from volscaler.controller import gate
from volscaler.controller.executor import PatchExecutor
from volscaler.controller.outcome import (
    BELOW_THRESHOLD,
    KUBERNETES_ERROR,
    METRICS_UNAVAILABLE,
    NOT_FOUND,
    WARNING_GATE_REASONS,
    VolumeOutcome,
)
from volscaler.controller.reporter import EventRecorder, Report, Reporter
from volscaler.controller.resolver import TargetVolume, capacity_size, resolve_targets
from volscaler.controller.sizing import grow
from volscaler.resources import VolumeAutoscaler
from volscaler.sensors import OperatorSensor
from volscaler.types.base import BaseModel
from volscaler.types.models import (
    VolumeAutoscalerSpec,
    VolumeAutoscalerStatus,
    VolumeStatus,
)
from volscaler.types.schemas import (
    VolumeAutoscalerSpecSchema,
    VolumeAutoscalerStatusSchema,
)
from volscaler.types.schemas.volumeautoscaler_spec import DEFAULT_POLL_INTERVAL_SECONDS
from volscaler.types.settings import Settings
from volscaler.utils.errors import (
    KUBERNETES_ERRORS,
    MetricsUnavailableError,
    TargetConfigurationError,
    describe_kubernetes_error,
    not_found_error,
)
from volscaler.utils.helpers import utc_now
from volscaler.web import MetricsClientRegistry


class ReconcileResult(BaseModel):
    """Outcome of a pass and when the next one is due."""

    requeue_after: float
    outcomes: List[VolumeOutcome]
    report: Optional[Report]


def format_validation_error(error: ValidationError) -> str:
    """Flatten marshmallow's nested messages into ``field.path: message`` pairs."""

    def _flatten(messages, path):
        if isinstance(messages, dict):
            for key, value in messages.items():
                yield from _flatten(value, path if key == "_schema" else path + [str(key)])
        elif isinstance(messages, list):
            for item in messages:
                yield from _flatten(item, path)
        else:
            yield f"{'.'.join(path)}: {messages}" if path else str(messages)

    return "; ".join(_flatten(error.messages, []))


class Reconciler:
    """Runs reconcile passes for VolumeAutoscaler policies.

    Collaborators are injected so the same instance serves every policy of
    the operator: the metrics client registry, the sensor, and the event
    recorder. ``resource_factory`` builds the Kubernetes access object of a
    policy and is replaced with a fake in tests.
    """

    def __init__(
        self,
        registry: MetricsClientRegistry,
        settings: Optional[Settings] = None,
        sensor: Optional[OperatorSensor] = None,
        events: Optional[EventRecorder] = None,
        resource_factory: Callable[..., VolumeAutoscaler] = VolumeAutoscaler,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.registry = registry
        self.settings = settings or Settings()
        self.sensor = sensor if sensor is not None else OperatorSensor()
        self.events = events or EventRecorder()
        self.resource_factory = resource_factory
        self.clock = clock
        self.reporter = Reporter(self.events)
        self.executor = PatchExecutor(self.events, self.sensor)

    def retry_delay(self, poll_interval: float) -> float:
        return min(self.settings.metrics_retry_seconds, poll_interval)

    async def reconcile(
        self,
        namespace: str,
        name: str,
        logger: Optional[Logger] = None,
        stopped: Any = None,
        trigger_source: str = "poll",
    ) -> Optional[ReconcileResult]:
        """Run one pass over the policy ``namespace/name``.

        Returns None when there is nothing to requeue: the policy no longer
        exists, or ``stopped`` became true before the pass could finish.
        Unexpected errors are logged and answered with a short requeue.
        """
        logger = logger or logging.getLogger(__name__)
        resource = self.resource_factory(name, namespace, logger=logger)
        sensor_state = self.sensor.on_reconcile_start(name, namespace, 0, trigger_source)
        success, error = True, None
        try:
            body = await resource.fetch()
            if body is None:
                logger.info(f"VolumeAutoscaler {namespace}/{name} no longer exists.")
                return None
            return await self._reconcile(resource, body, logger, stopped)
        except Exception as e:
            success, error = False, e
            logger.error(f"Unexpected error during reconciliation: {e}")
            logger.exception(e)
            return ReconcileResult(
                requeue_after=self.settings.metrics_retry_seconds,
                outcomes=[],
                report=None,
            )
        finally:
            self.sensor.on_reconcile_complete(name, namespace, sensor_state, success, error)
            await resource.close()

    def _load_previous_status(self, body: Dict[str, Any], logger: Logger) -> VolumeAutoscalerStatus:
        try:
            return VolumeAutoscalerStatusSchema().load(body.get("status") or {})
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable status: {format_validation_error(e)}")
            return VolumeAutoscalerStatusSchema().load({})

    async def _reconcile(
        self,
        resource: VolumeAutoscaler,
        body: Dict[str, Any],
        logger: Logger,
        stopped: Any,
    ) -> Optional[ReconcileResult]:
        previous = self._load_previous_status(body, logger)
        now = self.clock()

        try:
            spec: VolumeAutoscalerSpec = VolumeAutoscalerSpecSchema().load(body.get("spec") or {})
        except ValidationError as e:
            return await self._configuration_error(
                resource, body, previous, now, format_validation_error(e),
                DEFAULT_POLL_INTERVAL_SECONDS, logger,
            )

        try:
            targets = await resolve_targets(resource, spec)
        except TargetConfigurationError as e:
            return await self._configuration_error(
                resource, body, previous, now, str(e), spec.poll_interval, logger
            )

        history = {v.name: v for v in previous.volumes or []}
        outcomes: List[VolumeOutcome] = []
        for target in targets:
            if stopped:
                logger.info("Stop requested, abandoning the pass.")
                return None
            outcome = await self.evaluate_volume(
                resource, body, spec, target, history.get(target.name), now
            )
            if outcome is not None:
                outcomes.append(outcome)
        if stopped:
            logger.info("Stop requested, abandoning the pass.")
            return None

        try:
            report = await self.reporter.report(resource, body, previous, outcomes, now)
        except KUBERNETES_ERRORS as e:
            if not_found_error(e):
                logger.info("VolumeAutoscaler was deleted during the pass.")
                return None
            logger.error(f"Failed to update status: {describe_kubernetes_error(e)}")
            self.sensor.on_poll_error(resource.name, resource.namespace, "status_update")
            return ReconcileResult(
                requeue_after=self.retry_delay(spec.poll_interval),
                outcomes=outcomes,
                report=None,
            )

        current = {o.name for o in outcomes}
        for pvc_name in sorted(set(history) - current):
            self.sensor.on_volume_removed(resource.name, resource.namespace, pvc_name)

        requeue_after = spec.poll_interval
        if report.all_metrics_failed:
            requeue_after = self.retry_delay(spec.poll_interval)
        logger.debug(
            f"Reconciled {len(outcomes)} volume(s), Ready={report.ready} ({report.reason}), "
            f"next pass in {requeue_after}s"
        )
        return ReconcileResult(requeue_after=requeue_after, outcomes=outcomes, report=report)

    async def _configuration_error(
        self,
        resource: VolumeAutoscaler,
        body: Dict[str, Any],
        previous: VolumeAutoscalerStatus,
        now: datetime,
        message: str,
        requeue_after: float,
        logger: Logger,
    ) -> Optional[ReconcileResult]:
        logger.error(f"Invalid VolumeAutoscaler spec: {message}")
        self.sensor.on_poll_error(resource.name, resource.namespace, "configuration")
        try:
            report = await self.reporter.report(
                resource, body, previous, [], now, config_error=message
            )
        except KUBERNETES_ERRORS as e:
            if not_found_error(e):
                return None
            logger.error(f"Failed to update status: {describe_kubernetes_error(e)}")
            report = None
        return ReconcileResult(requeue_after=requeue_after, outcomes=[], report=report)

    async def evaluate_volume(
        self,
        resource: VolumeAutoscaler,
        body: Dict[str, Any],
        spec: VolumeAutoscalerSpec,
        target: TargetVolume,
        history: Optional[VolumeStatus],
        now: datetime,
    ) -> Optional[VolumeOutcome]:
        """Query, gate, size and patch one volume.

        Returns None when the volume vanished during the pass.
        """
        outcome = VolumeOutcome(
            name=target.name,
            reason=BELOW_THRESHOLD,
            last_scale_time=history.last_scale_time if history else None,
            last_scale_size=history.last_scale_size if history else None,
        )
        pvc = target.pvc
        if pvc is None:
            try:
                pvc = await resource.fetch_pvc(target.name)
            except KUBERNETES_ERRORS as e:
                return self._kubernetes_error(resource, outcome, e)
        if pvc is None:
            resource.logger.warning(
                f"PersistentVolumeClaim {resource.namespace}/{target.name} not found"
            )
            outcome.reason = NOT_FOUND
            outcome.message = f"PersistentVolumeClaim {target.name} not found"
            outcome.missing = True
            return outcome

        outcome.current_size = capacity_size(pvc)
        endpoint = spec.metrics_endpoint or self.settings.default_metrics_endpoint
        try:
            client = await self.registry.get(endpoint)
            metrics = await client.fetch_volume_metrics(
                resource.namespace,
                target.name,
                include_inodes=spec.inode_threshold_percent > 0,
            )
        except MetricsUnavailableError as e:
            resource.logger.warning(f"Metrics unavailable for PVC {target.name}: {e}")
            self.sensor.on_poll_error(resource.name, resource.namespace, "prometheus_query")
            outcome.reason = METRICS_UNAVAILABLE
            outcome.message = str(e)
            outcome.metrics_failed = True
            return outcome

        usage = metrics.usage_percent
        outcome.usage_percent = usage
        outcome.usage_bytes = int(metrics.used_bytes)
        self.sensor.on_volume_usage(resource.name, resource.namespace, target.name, usage)

        trigger = self._threshold_trigger(spec, metrics, usage)
        if trigger is None:
            outcome.message = f"Usage {usage:.1f}% is below the {spec.threshold_percent:g}% threshold"
            return outcome

        if outcome.current_size is None:
            outcome.reason = KUBERNETES_ERROR
            outcome.message = f"PersistentVolumeClaim {target.name} has no storage size"
            return outcome

        resource.logger.info(f"PVC {target.name}: {trigger}")
        try:
            decision = await gate.evaluate(
                resource, pvc, spec, outcome.current_size, metrics,
                outcome.last_scale_time, now,
            )
        except KUBERNETES_ERRORS as e:
            return self._kubernetes_error(resource, outcome, e)
        if not decision.passed:
            resource.logger.info(f"Not resizing PVC {target.name}: {decision.message}")
            self.sensor.on_scale_skipped(
                resource.name, resource.namespace, target.name, decision.reason
            )
            if decision.reason in WARNING_GATE_REASONS:
                self.events.warning(body, decision.reason, decision.message)
            outcome.reason = decision.reason
            outcome.message = decision.message
            return outcome

        new_size = grow(
            outcome.current_size, spec.increase_percent, spec.min_increase, spec.max_size
        )
        return await self.executor.expand(resource, body, outcome, new_size, now)

    @staticmethod
    def _threshold_trigger(spec: VolumeAutoscalerSpec, metrics, usage: float) -> Optional[str]:
        if usage >= spec.threshold_percent:
            return f"usage {usage:.1f}% reached the {spec.threshold_percent:g}% threshold"
        inode_usage = metrics.inode_usage_percent
        if (
            spec.inode_threshold_percent > 0
            and inode_usage is not None
            and inode_usage >= spec.inode_threshold_percent
        ):
            return (
                f"inode usage {inode_usage:.1f}% reached the "
                f"{spec.inode_threshold_percent:g}% threshold"
            )
        return None

    def _kubernetes_error(
        self, resource: VolumeAutoscaler, outcome: VolumeOutcome, error: Exception
    ) -> VolumeOutcome:
        message = describe_kubernetes_error(error)
        resource.logger.error(f"Kubernetes API error for PVC {outcome.name}: {message}")
        self.sensor.on_poll_error(resource.name, resource.namespace, "kubernetes_api")
        outcome.reason = KUBERNETES_ERROR
        outcome.message = message
        return outcome
