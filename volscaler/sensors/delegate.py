"""Fan-out of sensor events to several monitoring backends.

A failing backend never breaks a reconcile pass: its exception is logged and
the remaining backends still receive the event.
"""

from typing import Set, Dict, Optional, Any
import logging

from volscaler.sensors.base import OperatorSensor

logger = logging.getLogger(__name__)


class SensorDelegate(OperatorSensor):
    """Forwards every hook to each registered sensor.

    The state returned by ``on_reconcile_start`` is kept per sensor, so each
    backend gets back exactly what it returned when the pass completes.

    Example:
        delegate = SensorDelegate()
        delegate.add(PrometheusMonitor())

        state = delegate.on_reconcile_start("data", "default", 5, "poll")
        delegate.on_reconcile_complete("data", "default", state, True)
    """

    def __init__(self) -> None:
        self._sensors: Set[OperatorSensor] = set()

    def add(self, sensor: OperatorSensor) -> None:
        logger.info(f"Adding sensor: {sensor.__class__.__name__}")
        self._sensors.add(sensor)

    def remove(self, sensor: OperatorSensor) -> None:
        logger.info(f"Removing sensor: {sensor.__class__.__name__}")
        self._sensors.discard(sensor)

    def clear(self) -> None:
        logger.info(f"Clearing {len(self._sensors)} sensors")
        self._sensors.clear()

    def __len__(self) -> int:
        return len(self._sensors)

    def _call(self, sensor: OperatorSensor, hook: str, *args: Any) -> Any:
        try:
            return getattr(sensor, hook)(*args)
        except Exception as e:
            logger.error(
                f"Error in {sensor.__class__.__name__}.{hook}: {e}",
                exc_info=True,
            )
            return None

    def _fan_out(self, hook: str, *args: Any) -> None:
        for sensor in self._sensors:
            self._call(sensor, hook, *args)

    def on_reconcile_start(
        self,
        name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[OperatorSensor, Any]]:
        """Returns a dict of sensor -> state, or None if no sensor kept state."""
        states = {}
        for sensor in self._sensors:
            state = self._call(
                sensor, "on_reconcile_start", name, namespace, generation, trigger_source
            )
            if state is not None:
                states[sensor] = state
        return states or None

    def on_reconcile_complete(
        self,
        name: str,
        namespace: str,
        state: Optional[Dict[OperatorSensor, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        for sensor in self._sensors:
            sensor_state = state.get(sensor) if state else None
            self._call(
                sensor, "on_reconcile_complete", name, namespace, sensor_state, success, error
            )

    def on_volume_usage(
        self, name: str, namespace: str, pvc_name: str, usage_percent: float
    ) -> None:
        self._fan_out("on_volume_usage", name, namespace, pvc_name, usage_percent)

    def on_scale_event(
        self, name: str, namespace: str, pvc_name: str, old_size: int, new_size: int
    ) -> None:
        self._fan_out("on_scale_event", name, namespace, pvc_name, old_size, new_size)

    def on_scale_skipped(
        self, name: str, namespace: str, pvc_name: str, reason: str
    ) -> None:
        self._fan_out("on_scale_skipped", name, namespace, pvc_name, reason)

    def on_poll_error(self, name: str, namespace: str, reason: str) -> None:
        self._fan_out("on_poll_error", name, namespace, reason)

    def on_volume_removed(self, name: str, namespace: str, pvc_name: str) -> None:
        self._fan_out("on_volume_removed", name, namespace, pvc_name)
