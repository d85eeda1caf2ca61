from datetime import datetime
from typing import Dict, List, Optional
from volscaler.types.base import BaseModel


class VolumeStatus(BaseModel):
    """Observed state of one PVC, rewritten on every pass."""

    name: str
    usage_percent: Optional[int]
    usage_bytes: Optional[int]
    current_size: Optional[int]
    last_scale_time: Optional[datetime]
    last_scale_size: Optional[int]
    reason: Optional[str]
    message: Optional[str]


class VolumeAutoscalerStatus(BaseModel):
    conditions: List[Dict]
    volumes: List[VolumeStatus]
    last_poll_time: Optional[datetime]
    observed_generation: Optional[int]
    total_scale_events: int
