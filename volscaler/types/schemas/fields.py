from marshmallow import fields, ValidationError
from volscaler.utils.quantity import format_quantity, parse_duration, parse_quantity


class Quantity(fields.Field):
    """Kubernetes quantity on the wire, bytes (int) in the model."""

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            return parse_quantity(value)
        except ValueError as e:
            raise ValidationError(str(e))

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return format_quantity(value)


class Duration(fields.Field):
    """Go-style duration on the wire ("60s", "5m"), seconds (float) in the model."""

    def _deserialize(self, value, attr, data, **kwargs):
        try:
            return parse_duration(value)
        except ValueError as e:
            raise ValidationError(str(e))

    def _serialize(self, value, attr, obj, **kwargs):
        if value is None:
            return None
        return f"{int(value)}s" if float(value).is_integer() else f"{value}s"
