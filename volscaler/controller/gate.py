"""Safety checks run before a volume over its threshold is resized.

Checks run in a fixed order and the first one that fails decides:

1. a resize is already in progress
2. the cooldown since the last resize has not elapsed
3. the volume is already at its maximum size
4. the storage class does not allow expansion
5. the kubelet reports the volume as abnormal
"""
from datetime import datetime, timedelta
from typing import Optional
from kubernetes_asyncio.client import V1PersistentVolumeClaim
from volscaler.controller.outcome import (
    ALREADY_RESIZING,
    COOLDOWN_ACTIVE,
    MAX_SIZE_REACHED,
    NOT_EXPANDABLE,
    VOLUME_UNHEALTHY,
    GateDecision,
)
from volscaler.controller.resolver import requested_size
from volscaler.resources import VolumeAutoscaler
from volscaler.types.models import VolumeAutoscalerSpec, VolumeMetrics
from volscaler.utils.quantity import format_quantity

RESIZE_CONDITIONS = ("Resizing", "FileSystemResizePending")


def resize_in_progress(pvc: V1PersistentVolumeClaim, current_size: int) -> Optional[str]:
    """Describe an unfinished resize of ``pvc``, or None if there is none."""
    for cond in (pvc.status.conditions if pvc.status else None) or []:
        if cond.type in RESIZE_CONDITIONS and cond.status == "True":
            return f"PVC condition {cond.type} is True"
    requested = requested_size(pvc)
    if requested is not None and current_size is not None and requested > current_size:
        return (
            f"Requested size {format_quantity(requested)} is not yet provisioned "
            f"(capacity {format_quantity(current_size)})"
        )
    return None


def cooldown_remaining(
    last_scale_time: Optional[datetime], cooldown_period: float, now: datetime
) -> Optional[timedelta]:
    if last_scale_time is None or cooldown_period <= 0:
        return None
    remaining = last_scale_time + timedelta(seconds=cooldown_period) - now
    return remaining if remaining > timedelta(0) else None


async def evaluate(
    resource: VolumeAutoscaler,
    pvc: V1PersistentVolumeClaim,
    spec: VolumeAutoscalerSpec,
    current_size: int,
    metrics: VolumeMetrics,
    last_scale_time: Optional[datetime],
    now: datetime,
) -> GateDecision:
    in_progress = resize_in_progress(pvc, current_size)
    if in_progress:
        return GateDecision.deny(ALREADY_RESIZING, f"Resize already in progress: {in_progress}")

    remaining = cooldown_remaining(last_scale_time, spec.cooldown_period, now)
    if remaining is not None:
        return GateDecision.deny(
            COOLDOWN_ACTIVE,
            f"Last resize was less than {int(spec.cooldown_period)}s ago, "
            f"{int(remaining.total_seconds())}s remaining",
        )

    if current_size >= spec.max_size:
        return GateDecision.deny(
            MAX_SIZE_REACHED,
            f"PVC {pvc.metadata.name} is at {format_quantity(current_size)}, "
            f"maxSize is {format_quantity(spec.max_size)}",
        )

    storage_class_name = pvc.spec.storage_class_name if pvc.spec else None
    if storage_class_name:
        storage_class = await resource.fetch_pvc_storage_class(storage_class_name)
        if storage_class is None:
            return GateDecision.deny(
                NOT_EXPANDABLE, f"StorageClass {storage_class_name} not found"
            )
        if not storage_class.allow_volume_expansion:
            return GateDecision.deny(
                NOT_EXPANDABLE,
                f"StorageClass {storage_class_name} does not allow volume expansion",
            )

    if metrics.health_abnormal:
        return GateDecision.deny(
            VOLUME_UNHEALTHY, f"Kubelet reports PVC {pvc.metadata.name} as abnormal"
        )

    return GateDecision.allow()
