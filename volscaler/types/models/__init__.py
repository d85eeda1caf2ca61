from .volumeautoscaler_spec import (
    LabelSelectorRequirement,
    LabelSelector,
    VolumeAutoscalerTarget,
    PVCNameTarget,
    SelectorTarget,
    VolumeAutoscalerSpec,
)
from .volumeautoscaler_status import VolumeStatus, VolumeAutoscalerStatus
from .prometheus import (
    PrometheusSample,
    PrometheusQueryData,
    PrometheusResponse,
    VolumeMetrics,
)

__all__ = [
    "LabelSelectorRequirement",
    "LabelSelector",
    "VolumeAutoscalerTarget",
    "PVCNameTarget",
    "SelectorTarget",
    "VolumeAutoscalerSpec",
    "VolumeStatus",
    "VolumeAutoscalerStatus",
    "PrometheusSample",
    "PrometheusQueryData",
    "PrometheusResponse",
    "VolumeMetrics",
]
