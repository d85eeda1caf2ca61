from marshmallow import fields, pre_load, ValidationError
from volscaler.types.base import BaseSchema
from volscaler.types.models import (
    PrometheusSample,
    PrometheusQueryData,
    PrometheusResponse,
)


class PrometheusSampleSchema(BaseSchema):
    """One element of an instant vector: `{"metric": {...}, "value": [ts, "v"]}`."""

    __model__ = PrometheusSample

    metric = fields.Dict(
        keys=fields.Str(), values=fields.Str(), data_key="metric", load_default=dict
    )
    timestamp = fields.Float(data_key="timestamp", required=True)
    value = fields.Float(data_key="value", required=True)

    @pre_load
    def unpack_value(self, data, **kwargs):
        if not isinstance(data, dict):
            raise ValidationError("Sample must be an object.")
        pair = data.get("value")
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ValidationError("Sample value must be a [timestamp, value] pair.")
        return {**data, "timestamp": pair[0], "value": pair[1]}


class PrometheusQueryDataSchema(BaseSchema):
    __model__ = PrometheusQueryData

    result_type = fields.Str(data_key="resultType", required=True)
    result = fields.List(
        fields.Nested(PrometheusSampleSchema()), data_key="result", load_default=list
    )


class PrometheusResponseSchema(BaseSchema):
    __model__ = PrometheusResponse

    status = fields.Str(data_key="status", required=True)
    error = fields.Str(data_key="error", allow_none=True, load_default=None)
    error_type = fields.Str(data_key="errorType", allow_none=True, load_default=None)
    data = fields.Nested(
        PrometheusQueryDataSchema(), data_key="data", allow_none=True, load_default=None
    )
