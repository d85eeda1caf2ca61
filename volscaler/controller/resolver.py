from typing import List, Optional
from kubernetes_asyncio.client import V1PersistentVolumeClaim
from volscaler.resources import VolumeAutoscaler
from volscaler.types.base import BaseModel
from volscaler.types.models import (
    LabelSelector,
    PVCNameTarget,
    SelectorTarget,
    VolumeAutoscalerSpec,
)
from volscaler.utils.errors import TargetConfigurationError
from volscaler.utils.quantity import parse_quantity


class TargetVolume(BaseModel):
    """A PVC selected by a policy. ``pvc`` is only known for selector matches."""

    name: str
    pvc: Optional[V1PersistentVolumeClaim]


def render_label_selector(selector: LabelSelector) -> str:
    """Render a label selector in the string form the Kubernetes API accepts."""
    terms = []
    for key, value in sorted((selector.match_labels or {}).items()):
        terms.append(f"{key}={value}")
    for expr in selector.match_expressions or []:
        if expr.operator == "In":
            terms.append(f"{expr.key} in ({','.join(expr.values)})")
        elif expr.operator == "NotIn":
            terms.append(f"{expr.key} notin ({','.join(expr.values)})")
        elif expr.operator == "Exists":
            terms.append(expr.key)
        elif expr.operator == "DoesNotExist":
            terms.append(f"!{expr.key}")
        else:
            raise TargetConfigurationError(
                f"Unsupported label selector operator: {expr.operator}"
            )
    return ",".join(terms)


async def resolve_targets(
    resource: VolumeAutoscaler, spec: VolumeAutoscalerSpec
) -> List[TargetVolume]:
    """List the volumes a policy applies to, ordered by name.

    A named target is returned as-is; whether it exists is found out when
    it is evaluated.
    """
    target = spec.target
    if isinstance(target, PVCNameTarget):
        if not target.name:
            raise TargetConfigurationError("target.pvcName must not be empty")
        return [TargetVolume(name=target.name, pvc=None)]
    if isinstance(target, SelectorTarget):
        label_selector = render_label_selector(target.selector)
        pvcs = await resource.list_pvcs(label_selector or None)
        volumes = [TargetVolume(name=pvc.metadata.name, pvc=pvc) for pvc in pvcs]
        return sorted(volumes, key=lambda v: v.name)
    raise TargetConfigurationError(
        "target must specify either pvcName or selector"
    )


def requested_size(pvc: V1PersistentVolumeClaim) -> Optional[int]:
    """Bytes requested in the PVC spec."""
    resources = pvc.spec.resources if pvc.spec else None
    requests = (resources.requests if resources else None) or {}
    storage = requests.get("storage")
    return parse_quantity(storage) if storage is not None else None


def capacity_size(pvc: V1PersistentVolumeClaim) -> Optional[int]:
    """Bytes actually provisioned, falling back to the requested size."""
    capacity = (pvc.status.capacity if pvc.status else None) or {}
    storage = capacity.get("storage")
    if storage is not None:
        return parse_quantity(storage)
    return requested_size(pvc)
