from typing import List, Mapping, Optional
from volscaler.types.base import BaseModel


class PrometheusSample(BaseModel):
    metric: Mapping[str, str]
    timestamp: float
    value: float


class PrometheusQueryData(BaseModel):
    result_type: str
    result: List[PrometheusSample]


class PrometheusResponse(BaseModel):
    """Body of a Prometheus HTTP API `/api/v1/query` response."""

    status: str
    error: Optional[str]
    error_type: Optional[str]
    data: Optional[PrometheusQueryData]


class VolumeMetrics(BaseModel):
    """Point-in-time usage of one PVC as reported by the kubelet."""

    used_bytes: float
    capacity_bytes: float
    health_abnormal: bool
    inodes_used: Optional[float]
    inodes_total: Optional[float]

    @property
    def usage_percent(self) -> float:
        return self.used_bytes / self.capacity_bytes * 100

    @property
    def inode_usage_percent(self) -> Optional[float]:
        if not self.inodes_total or self.inodes_used is None:
            return None
        return self.inodes_used / self.inodes_total * 100
