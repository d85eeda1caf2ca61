"""Turns the outcomes of a pass into policy status and events."""
import kopf
from datetime import datetime
from typing import Any, Dict, List, Optional
from volscaler.controller.outcome import VolumeOutcome
from volscaler.resources import VolumeAutoscaler
from volscaler.types.base import BaseModel
from volscaler.types.models import VolumeAutoscalerStatus, VolumeStatus
from volscaler.types.schemas import VolumeAutoscalerStatusSchema
from volscaler.utils.helpers import to_iso_z, upsert_condition

READY = "Ready"
NO_VOLUMES_FOUND = "NoVolumesFound"
METRICS_UNAVAILABLE = "MetricsUnavailable"

# Ready condition reasons
POLLING = "Polling"
PARTIAL_METRICS = "PartialMetrics"
NO_PVCS_FOUND = "NoPVCsFound"
PROMETHEUS_UNAVAILABLE = "PrometheusUnavailable"
INVALID_TARGET = "InvalidTarget"


class EventRecorder:
    """Posts Kubernetes events on a VolumeAutoscaler through kopf."""

    def normal(self, body: Dict[str, Any], reason: str, message: str) -> None:
        kopf.event(body, type="Normal", reason=reason, message=message)

    def warning(self, body: Dict[str, Any], reason: str, message: str) -> None:
        kopf.warn(body, reason=reason, message=message)


class Report(BaseModel):
    ready: bool
    reason: str
    all_metrics_failed: bool
    status: Dict[str, Any]


def _condition(cond_type: str, status: str, reason: str, message: str, generation: int) -> Dict:
    return {
        "type": cond_type,
        "status": status,
        "reason": reason,
        "message": message,
        "observedGeneration": generation,
    }


def compose_conditions(
    previous: List[Dict],
    outcomes: List[VolumeOutcome],
    generation: int,
    timestamp: str,
    config_error: Optional[str] = None,
) -> List[Dict]:
    """Compute Ready, NoVolumesFound and MetricsUnavailable for a pass."""
    found = [o for o in outcomes if not o.missing]
    failed = [o for o in found if o.metrics_failed]

    if config_error is not None:
        updates = [
            _condition(READY, "False", INVALID_TARGET, config_error, generation),
            _condition(NO_VOLUMES_FOUND, "Unknown", INVALID_TARGET, config_error, generation),
            _condition(METRICS_UNAVAILABLE, "Unknown", INVALID_TARGET, config_error, generation),
        ]
    elif not found:
        message = "No PersistentVolumeClaims match the target"
        updates = [
            _condition(READY, "False", NO_PVCS_FOUND, message, generation),
            _condition(NO_VOLUMES_FOUND, "True", NO_PVCS_FOUND, message, generation),
            _condition(METRICS_UNAVAILABLE, "False", NO_PVCS_FOUND, message, generation),
        ]
    elif len(failed) == len(found):
        message = failed[0].message or "Metrics endpoint unavailable"
        updates = [
            _condition(READY, "False", PROMETHEUS_UNAVAILABLE, message, generation),
            _condition(NO_VOLUMES_FOUND, "False", "VolumesFound", f"{len(found)} volume(s) found", generation),
            _condition(METRICS_UNAVAILABLE, "True", PROMETHEUS_UNAVAILABLE, message, generation),
        ]
    else:
        if failed:
            reason = PARTIAL_METRICS
            message = f"Metrics unavailable for {len(failed)} of {len(found)} volume(s)"
        else:
            reason = POLLING
            message = f"Monitoring {len(found)} volume(s)"
        updates = [
            _condition(READY, "True", reason, message, generation),
            _condition(NO_VOLUMES_FOUND, "False", "VolumesFound", f"{len(found)} volume(s) found", generation),
            _condition(METRICS_UNAVAILABLE, "False", reason, message, generation),
        ]

    conditions = list(previous or [])
    for update in updates:
        conditions = upsert_condition(conditions, update, timestamp=timestamp)
    return conditions


class Reporter:
    """Writes the status subresource and posts policy-level events."""

    def __init__(self, events: EventRecorder):
        self.events = events

    async def report(
        self,
        resource: VolumeAutoscaler,
        body: Dict[str, Any],
        previous: VolumeAutoscalerStatus,
        outcomes: List[VolumeOutcome],
        now: datetime,
        config_error: Optional[str] = None,
    ) -> Report:
        """Compose and write the status of a pass.

        On a configuration error the previous volume entries are kept so that
        cooldowns survive until the policy is corrected.
        """
        generation = body.get("metadata", {}).get("generation", 0)
        timestamp = to_iso_z(now)
        conditions = compose_conditions(
            previous.conditions, outcomes, generation, timestamp, config_error
        )

        if config_error is not None:
            volumes: List[VolumeStatus] = list(previous.volumes or [])
        else:
            volumes = [o.to_status() for o in outcomes]

        status = VolumeAutoscalerStatus(
            conditions=conditions,
            volumes=volumes,
            last_poll_time=now,
            observed_generation=generation,
            total_scale_events=(previous.total_scale_events or 0)
            + sum(1 for o in outcomes if o.scaled),
        )
        payload = VolumeAutoscalerStatusSchema().dump(status)
        await resource.patch_status(payload)

        ready = next(c for c in conditions if c["type"] == READY)
        if ready["reason"] == NO_PVCS_FOUND:
            self.events.warning(body, NO_PVCS_FOUND, ready["message"])

        return Report(
            ready=ready["status"] == "True",
            reason=ready["reason"],
            all_metrics_failed=ready["reason"] == PROMETHEUS_UNAVAILABLE,
            status=payload,
        )
