from datetime import datetime
from typing import Optional
from volscaler.types.base import BaseModel
from volscaler.types.models import VolumeStatus

# Per-volume reasons written to status.volumes[].reason
BELOW_THRESHOLD = "BelowThreshold"
EXPANDED = "Expanded"
EXPAND_FAILED = "ExpandFailed"
NOT_FOUND = "NotFound"
METRICS_UNAVAILABLE = "MetricsUnavailable"
KUBERNETES_ERROR = "KubernetesError"

# Safety gate reasons
ALREADY_RESIZING = "AlreadyResizing"
COOLDOWN_ACTIVE = "CooldownActive"
MAX_SIZE_REACHED = "MaxSizeReached"
NOT_EXPANDABLE = "NotExpandable"
VOLUME_UNHEALTHY = "VolumeUnhealthy"

# Gate reasons that are also posted as warning events on the policy
WARNING_GATE_REASONS = (MAX_SIZE_REACHED, NOT_EXPANDABLE, VOLUME_UNHEALTHY)


class GateDecision(BaseModel):
    """Result of the safety checks for one volume."""

    passed: bool
    reason: Optional[str]
    message: Optional[str]

    @classmethod
    def allow(cls) -> "GateDecision":
        return cls(passed=True, reason=None, message=None)

    @classmethod
    def deny(cls, reason: str, message: str) -> "GateDecision":
        return cls(passed=False, reason=reason, message=message)


class VolumeOutcome(BaseModel):
    """What happened to one volume during a pass."""

    name: str
    reason: str
    message: Optional[str] = None
    usage_percent: Optional[float] = None
    usage_bytes: Optional[int] = None
    current_size: Optional[int] = None
    last_scale_time: Optional[datetime] = None
    last_scale_size: Optional[int] = None
    #: PVC does not exist (named target only)
    missing: bool = False
    metrics_failed: bool = False
    scaled: bool = False

    def to_status(self) -> VolumeStatus:
        return VolumeStatus(
            name=self.name,
            usage_percent=None if self.usage_percent is None else int(round(self.usage_percent)),
            usage_bytes=None if self.usage_bytes is None else int(self.usage_bytes),
            current_size=self.current_size,
            last_scale_time=self.last_scale_time,
            last_scale_size=self.last_scale_size,
            reason=self.reason,
            message=self.message,
        )
