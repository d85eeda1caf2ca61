from .volumeautoscaler_spec import (
    LabelSelectorRequirementSchema,
    LabelSelectorSchema,
    VolumeAutoscalerTargetSchema,
    VolumeAutoscalerSpecSchema,
)
from .volumeautoscaler_status import VolumeStatusSchema, VolumeAutoscalerStatusSchema
from .prometheus import (
    PrometheusSampleSchema,
    PrometheusQueryDataSchema,
    PrometheusResponseSchema,
)

__all__ = [
    "LabelSelectorRequirementSchema",
    "LabelSelectorSchema",
    "VolumeAutoscalerTargetSchema",
    "VolumeAutoscalerSpecSchema",
    "VolumeStatusSchema",
    "VolumeAutoscalerStatusSchema",
    "PrometheusSampleSchema",
    "PrometheusQueryDataSchema",
    "PrometheusResponseSchema",
]
