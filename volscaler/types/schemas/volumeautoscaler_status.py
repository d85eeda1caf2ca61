from marshmallow import fields, post_dump
from volscaler.types.base import BaseSchema
from volscaler.types.models import VolumeStatus, VolumeAutoscalerStatus
from volscaler.types.schemas.fields import Quantity


class VolumeStatusSchema(BaseSchema):
    __model__ = VolumeStatus

    name = fields.Str(data_key="name", required=True)
    usage_percent = fields.Int(data_key="usagePercent", allow_none=True, load_default=None)
    usage_bytes = fields.Int(data_key="usageBytes", allow_none=True, load_default=None)
    current_size = Quantity(data_key="currentSize", allow_none=True, load_default=None)
    last_scale_time = fields.AwareDateTime(
        data_key="lastScaleTime", allow_none=True, load_default=None
    )
    last_scale_size = Quantity(
        data_key="lastScaleSize", allow_none=True, load_default=None
    )
    reason = fields.Str(data_key="reason", allow_none=True, load_default=None)
    message = fields.Str(data_key="message", allow_none=True, load_default=None)

    @post_dump
    def drop_empty(self, data, **kwargs):
        return {k: v for k, v in data.items() if v is not None}


class VolumeAutoscalerStatusSchema(BaseSchema):
    __model__ = VolumeAutoscalerStatus

    conditions = fields.List(
        fields.Dict(), data_key="conditions", allow_none=True, load_default=list
    )
    volumes = fields.List(
        fields.Nested(VolumeStatusSchema()),
        data_key="volumes",
        allow_none=True,
        load_default=list,
    )
    last_poll_time = fields.AwareDateTime(
        data_key="lastPollTime", allow_none=True, load_default=None
    )
    observed_generation = fields.Int(
        data_key="observedGeneration", allow_none=True, load_default=None
    )
    total_scale_events = fields.Int(
        data_key="totalScaleEvents", allow_none=True, load_default=0
    )

    @post_dump
    def drop_empty(self, data, **kwargs):
        return {k: v for k, v in data.items() if v is not None}
