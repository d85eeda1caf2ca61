"""Unit tests for VolumeAutoscaler spec and status schemas."""

from datetime import datetime, timezone

import pytest
from marshmallow import ValidationError

from volscaler.types.models import (
    PVCNameTarget,
    SelectorTarget,
    VolumeAutoscalerStatus,
    VolumeStatus,
)
from volscaler.types.schemas import (
    PrometheusResponseSchema,
    VolumeAutoscalerSpecSchema,
    VolumeAutoscalerStatusSchema,
)

GI = 1024**3


def load_spec(**overrides):
    spec = {"target": {"pvcName": "data-0"}, "maxSize": "100Gi"}
    spec.update(overrides)
    return VolumeAutoscalerSpecSchema().load(spec)


class TestVolumeAutoscalerSpecSchema:
    def test_defaults(self):
        """Optional fields take their documented defaults."""
        spec = load_spec()
        assert isinstance(spec.target, PVCNameTarget)
        assert spec.target.name == "data-0"
        assert spec.threshold_percent == 80
        assert spec.increase_percent == 20
        assert spec.min_increase == GI
        assert spec.max_size == 100 * GI
        assert spec.poll_interval == 60.0
        assert spec.cooldown_period == 300.0
        assert spec.inode_threshold_percent == 0
        assert spec.metrics_endpoint is None

    def test_wire_names_and_units(self):
        """Quantities become bytes and durations become seconds."""
        spec = load_spec(
            thresholdPercent=90,
            increasePercent=50,
            increaseMinimum="5Gi",
            pollInterval="5m",
            cooldownPeriod="1h",
            prometheusURL="http://prometheus.monitoring:9090",
        )
        assert spec.threshold_percent == 90
        assert spec.increase_percent == 50
        assert spec.min_increase == 5 * GI
        assert spec.poll_interval == 300.0
        assert spec.cooldown_period == 3600.0
        assert spec.metrics_endpoint == "http://prometheus.monitoring:9090"

    def test_aliases(self):
        """Alternative field names are accepted."""
        spec = load_spec(
            usageThresholdPercent=70,
            minIncrease="2Gi",
            metricsEndpoint="http://vm.monitoring:8428",
        )
        assert spec.threshold_percent == 70
        assert spec.min_increase == 2 * GI
        assert spec.metrics_endpoint == "http://vm.monitoring:8428"

    def test_selector_target(self):
        """A selector target becomes a SelectorTarget."""
        spec = load_spec(
            target={
                "selector": {
                    "matchLabels": {"app": "db"},
                    "matchExpressions": [
                        {"key": "tier", "operator": "In", "values": ["hot", "warm"]}
                    ],
                }
            }
        )
        assert isinstance(spec.target, SelectorTarget)
        assert spec.target.selector.match_labels == {"app": "db"}
        assert spec.target.selector.match_expressions[0].values == ["hot", "warm"]

    @pytest.mark.parametrize(
        "target",
        [
            {},
            {"pvcName": "data-0", "selector": {"matchLabels": {"app": "db"}}},
        ],
    )
    def test_target_needs_exactly_one_variant(self, target):
        """Neither or both of pvcName and selector are rejected."""
        with pytest.raises(ValidationError):
            load_spec(target=target)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"thresholdPercent": 0},
            {"thresholdPercent": 101},
            {"increasePercent": 0},
            {"increaseMinimum": "-1Gi"},
            {"maxSize": "0"},
            {"maxSize": "lots"},
            {"pollInterval": "0s"},
            {"pollInterval": "soon"},
            {"cooldownPeriod": "-5"},
            {"inodeThresholdPercent": 150},
        ],
    )
    def test_invalid_values(self, overrides):
        """Out-of-range and malformed values are rejected."""
        with pytest.raises(ValidationError):
            load_spec(**overrides)

    def test_max_size_is_required(self):
        """maxSize has no default."""
        with pytest.raises(ValidationError) as exc:
            VolumeAutoscalerSpecSchema().load({"target": {"pvcName": "data-0"}})
        assert "maxSize" in exc.value.messages

    @pytest.mark.parametrize(
        "expression",
        [
            {"key": "tier", "operator": "In"},
            {"key": "tier", "operator": "Exists", "values": ["x"]},
            {"key": "tier", "operator": "Matches", "values": ["x"]},
        ],
    )
    def test_invalid_selector_expressions(self, expression):
        """Operators and values must agree."""
        with pytest.raises(ValidationError):
            load_spec(target={"selector": {"matchExpressions": [expression]}})


class TestVolumeAutoscalerStatusSchema:
    def test_dump_uses_wire_names_and_quantities(self):
        """Sizes are written as quantities and empty fields are left out."""
        scaled_at = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
        status = VolumeAutoscalerStatus(
            conditions=[],
            volumes=[
                VolumeStatus(
                    name="data-0",
                    usage_percent=85,
                    usage_bytes=int(8.5 * GI),
                    current_size=10 * GI,
                    last_scale_time=scaled_at,
                    last_scale_size=12 * GI,
                    reason="Expanded",
                    message=None,
                )
            ],
            last_poll_time=scaled_at,
            observed_generation=3,
            total_scale_events=1,
        )
        payload = VolumeAutoscalerStatusSchema().dump(status)
        volume = payload["volumes"][0]
        assert volume["currentSize"] == "10Gi"
        assert volume["lastScaleSize"] == "12Gi"
        assert volume["usagePercent"] == 85
        assert "message" not in volume
        assert payload["observedGeneration"] == 3
        assert payload["totalScaleEvents"] == 1

    def test_load_written_status(self):
        """A status written by the operator loads back."""
        status = VolumeAutoscalerStatusSchema().load(
            {
                "volumes": [
                    {
                        "name": "data-0",
                        "currentSize": "10Gi",
                        "lastScaleTime": "2026-10-18T12:00:00Z",
                        "lastScaleSize": "12Gi",
                        "reason": "Expanded",
                    }
                ],
                "totalScaleEvents": 4,
            }
        )
        assert status.volumes[0].last_scale_size == 12 * GI
        assert status.volumes[0].last_scale_time == datetime(
            2026, 10, 18, 12, 0, tzinfo=timezone.utc
        )
        assert status.total_scale_events == 4
        assert status.conditions == []

    def test_empty_status(self):
        """A policy without status yet loads with empty defaults."""
        status = VolumeAutoscalerStatusSchema().load({})
        assert status.volumes == []
        assert status.total_scale_events == 0


class TestPrometheusResponseSchema:
    def test_vector_response(self):
        """Instant vector samples are unpacked into timestamp and value."""
        response = PrometheusResponseSchema().load(
            {
                "status": "success",
                "data": {
                    "resultType": "vector",
                    "result": [
                        {"metric": {"persistentvolumeclaim": "data-0"}, "value": [1760788800.5, "42"]}
                    ],
                },
            }
        )
        sample = response.data.result[0]
        assert sample.value == 42.0
        assert sample.timestamp == 1760788800.5
        assert sample.metric == {"persistentvolumeclaim": "data-0"}

    def test_malformed_sample(self):
        """A sample without a [timestamp, value] pair is rejected."""
        with pytest.raises(ValidationError):
            PrometheusResponseSchema().load(
                {
                    "status": "success",
                    "data": {"resultType": "vector", "result": [{"value": "42"}]},
                }
            )
