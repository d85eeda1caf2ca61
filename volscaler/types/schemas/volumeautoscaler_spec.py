from marshmallow import (
    fields,
    pre_load,
    post_load,
    validate,
    validates,
    validates_schema,
    ValidationError,
)
from volscaler.types.base import BaseSchema
from volscaler.types.models import (
    LabelSelectorRequirement,
    LabelSelector,
    PVCNameTarget,
    SelectorTarget,
    VolumeAutoscalerSpec,
)
from volscaler.types.schemas.fields import Duration, Quantity
from volscaler.utils.quantity import parse_quantity

SELECTOR_OPERATORS = ("In", "NotIn", "Exists", "DoesNotExist")

DEFAULT_THRESHOLD_PERCENT = 80
DEFAULT_INCREASE_PERCENT = 20
DEFAULT_MIN_INCREASE = parse_quantity("1Gi")
DEFAULT_POLL_INTERVAL_SECONDS = 60.0
DEFAULT_COOLDOWN_SECONDS = 300.0

# Alternative spellings accepted for a few spec fields.
FIELD_ALIASES = {
    "usageThresholdPercent": "thresholdPercent",
    "minIncrease": "increaseMinimum",
    "metricsEndpoint": "prometheusURL",
}


class LabelSelectorRequirementSchema(BaseSchema):
    __model__ = LabelSelectorRequirement

    key = fields.Str(data_key="key", required=True)
    operator = fields.Str(
        data_key="operator", required=True, validate=validate.OneOf(SELECTOR_OPERATORS)
    )
    values = fields.List(fields.Str(), data_key="values", load_default=None)

    @validates_schema
    def validate_values(self, data, **kwargs):
        operator, values = data.get("operator"), data.get("values")
        if operator in ("In", "NotIn") and not values:
            raise ValidationError(
                f"Operator {operator} requires a non-empty values list.", "values"
            )
        if operator in ("Exists", "DoesNotExist") and values:
            raise ValidationError(
                f"Operator {operator} does not accept values.", "values"
            )


class LabelSelectorSchema(BaseSchema):
    __model__ = LabelSelector

    match_labels = fields.Dict(
        keys=fields.Str(),
        values=fields.Str(),
        data_key="matchLabels",
        allow_none=True,
        load_default=None,
    )
    match_expressions = fields.List(
        fields.Nested(LabelSelectorRequirementSchema()),
        data_key="matchExpressions",
        allow_none=True,
        load_default=None,
    )


class VolumeAutoscalerTargetSchema(BaseSchema):
    """Either a single PVC by name, or a label selector. Never both."""

    pvc_name = fields.Str(data_key="pvcName", allow_none=True, load_default=None)
    selector = fields.Nested(
        LabelSelectorSchema(), data_key="selector", allow_none=True, load_default=None
    )

    @validates_schema
    def validate_single_variant(self, data, **kwargs):
        has_name = bool(data.get("pvc_name"))
        has_selector = data.get("selector") is not None
        if has_name and has_selector:
            raise ValidationError(
                "target must specify either pvcName or selector, not both."
            )
        if not has_name and not has_selector:
            raise ValidationError("target must specify either pvcName or selector.")

    @post_load
    def make_object(self, data, **kwargs):
        if data.get("pvc_name"):
            return PVCNameTarget(name=data["pvc_name"])
        return SelectorTarget(selector=data["selector"])


class VolumeAutoscalerSpecSchema(BaseSchema):
    __model__ = VolumeAutoscalerSpec

    target = fields.Nested(
        VolumeAutoscalerTargetSchema(), data_key="target", required=True
    )
    threshold_percent = fields.Float(
        data_key="thresholdPercent",
        load_default=DEFAULT_THRESHOLD_PERCENT,
        validate=validate.Range(min=0, max=100, min_inclusive=False),
    )
    increase_percent = fields.Float(
        data_key="increasePercent",
        load_default=DEFAULT_INCREASE_PERCENT,
        validate=validate.Range(min=0, min_inclusive=False),
    )
    min_increase = Quantity(data_key="increaseMinimum", load_default=DEFAULT_MIN_INCREASE)
    max_size = Quantity(data_key="maxSize", required=True)
    poll_interval = Duration(
        data_key="pollInterval", load_default=DEFAULT_POLL_INTERVAL_SECONDS
    )
    cooldown_period = Duration(
        data_key="cooldownPeriod", load_default=DEFAULT_COOLDOWN_SECONDS
    )
    inode_threshold_percent = fields.Float(
        data_key="inodeThresholdPercent",
        load_default=0,
        validate=validate.Range(min=0, max=100),
    )
    metrics_endpoint = fields.Url(
        data_key="prometheusURL",
        require_tld=False,
        allow_none=True,
        load_default=None,
    )

    @pre_load
    def resolve_aliases(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for alias, canonical in FIELD_ALIASES.items():
            if alias in data:
                value = data.pop(alias)
                data.setdefault(canonical, value)
        return data

    @validates("min_increase")
    def validate_min_increase(self, value, **kwargs):
        if value < 0:
            raise ValidationError("increaseMinimum must not be negative.")

    @validates("max_size")
    def validate_max_size(self, value, **kwargs):
        if value <= 0:
            raise ValidationError("maxSize must be greater than zero.")

    @validates("poll_interval")
    def validate_poll_interval(self, value, **kwargs):
        if value <= 0:
            raise ValidationError("pollInterval must be greater than zero.")

    @validates("cooldown_period")
    def validate_cooldown_period(self, value, **kwargs):
        if value < 0:
            raise ValidationError("cooldownPeriod must not be negative.")
