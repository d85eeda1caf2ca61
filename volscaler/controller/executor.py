import asyncio
import aiohttp
from datetime import datetime
from typing import Any, Dict, Optional
from kubernetes_asyncio.client import ApiException
from volscaler.controller.outcome import EXPAND_FAILED, EXPANDED, VolumeOutcome
from volscaler.controller.reporter import EventRecorder
from volscaler.resources import VolumeAutoscaler
from volscaler.sensors import OperatorSensor
from volscaler.utils.errors import (
    ExpandError,
    conflict_error,
    describe_api_exception,
    describe_kubernetes_error,
    not_found_error,
)
from volscaler.utils.quantity import format_quantity


class PatchExecutor:
    """Applies a computed size to a PVC and records the result."""

    def __init__(self, events: EventRecorder, sensor: Optional[OperatorSensor] = None):
        self.events = events
        self.sensor = sensor if sensor is not None else OperatorSensor()

    async def expand(
        self,
        resource: VolumeAutoscaler,
        body: Dict[str, Any],
        outcome: VolumeOutcome,
        new_size: int,
        now: datetime,
    ) -> Optional[VolumeOutcome]:
        """Patch the PVC to ``new_size`` and fold the result into ``outcome``.

        Returns None when the PVC disappeared before it could be patched.
        Failures are not retried here; the next pass evaluates the volume again.
        """
        pvc_name = outcome.name
        old_size = outcome.current_size
        try:
            await self._patch(resource, pvc_name, new_size)
        except ApiException:
            resource.logger.info(
                f"PersistentVolumeClaim {resource.namespace}/{pvc_name} was deleted before it could be resized"
            )
            return None
        except ExpandError as e:
            return self._failed(resource, body, outcome, new_size, str(e))

        message = (
            f"Expanded PVC {pvc_name} from {format_quantity(old_size)} "
            f"to {format_quantity(new_size)}"
        )
        resource.logger.info(message)
        self.events.normal(body, EXPANDED, message)
        self.sensor.on_scale_event(resource.name, resource.namespace, pvc_name, old_size, new_size)
        outcome.reason = EXPANDED
        outcome.message = message
        outcome.last_scale_time = now
        outcome.last_scale_size = new_size
        outcome.scaled = True
        return outcome

    @staticmethod
    async def _patch(resource: VolumeAutoscaler, pvc_name: str, new_size: int) -> None:
        """Send the patch; a 404 is re-raised as is, other failures as ExpandError."""
        try:
            await resource.patch_pvc_storage(pvc_name, new_size)
        except ApiException as e:
            if not_found_error(e):
                raise
            if conflict_error(e):
                raise ExpandError(
                    f"PVC was modified concurrently: {describe_api_exception(e)}"
                ) from e
            raise ExpandError(describe_api_exception(e)) from e
        except asyncio.TimeoutError as e:
            raise ExpandError("Request timed out") from e
        except aiohttp.ClientError as e:
            raise ExpandError(describe_kubernetes_error(e)) from e

    def _failed(
        self,
        resource: VolumeAutoscaler,
        body: Dict[str, Any],
        outcome: VolumeOutcome,
        new_size: int,
        error: str,
    ) -> VolumeOutcome:
        message = (
            f"Failed to expand PVC {outcome.name} to {format_quantity(new_size)}: {error}"
        )
        resource.logger.error(message)
        self.events.warning(body, EXPAND_FAILED, message)
        self.sensor.on_poll_error(resource.name, resource.namespace, "patch_pvc")
        outcome.reason = EXPAND_FAILED
        outcome.message = message
        return outcome
