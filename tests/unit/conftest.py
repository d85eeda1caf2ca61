"""Fakes shared by the unit tests.

PVCs and storage classes are plain namespaces carrying only the attributes
the controller reads, so the tests do not depend on the generated model
classes of a particular kubernetes_asyncio release.
"""

import logging
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

from volscaler.controller import EventRecorder
from volscaler.sensors import OperatorSensor
from volscaler.types.models import VolumeMetrics
from volscaler.types.settings import Settings

GI = 1024**3
NOW = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


def make_pvc(
    name,
    capacity="10Gi",
    requested=None,
    storage_class="standard",
    conditions=None,
):
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, namespace="default"),
        spec=SimpleNamespace(
            resources=SimpleNamespace(requests={"storage": requested or capacity}),
            storage_class_name=storage_class,
        ),
        status=SimpleNamespace(
            capacity={"storage": capacity} if capacity else None,
            conditions=[
                SimpleNamespace(type=cond_type, status=status)
                for cond_type, status in (conditions or [])
            ],
        ),
    )


def make_storage_class(allow_volume_expansion=True):
    return SimpleNamespace(allow_volume_expansion=allow_volume_expansion)


def make_metrics(used_bytes, capacity_bytes, health_abnormal=False, inodes_used=None, inodes_total=None):
    return VolumeMetrics(
        used_bytes=used_bytes,
        capacity_bytes=capacity_bytes,
        health_abnormal=health_abnormal,
        inodes_used=inodes_used,
        inodes_total=inodes_total,
    )


def make_policy(spec, status=None, name="data", namespace="default", generation=1):
    body = {
        "apiVersion": "autoscaling.volume-autoscaler.io/v1alpha1",
        "kind": "VolumeAutoscaler",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "generation": generation,
            "uid": "b7c1e0c4-0000-4000-8000-000000000001",
        },
        "spec": spec,
    }
    if status is not None:
        body["status"] = status
    return body


class FakeResource:
    """Stands in for `VolumeAutoscaler`; every API call is an AsyncMock."""

    def __init__(self, body=None, pvcs=None, storage_class=None):
        self.name = (body or {}).get("metadata", {}).get("name", "data")
        self.namespace = (body or {}).get("metadata", {}).get("namespace", "default")
        self.logger = logging.getLogger("tests.fake_resource")
        pvcs = {p.metadata.name: p for p in (pvcs or [])}
        self.fetch = AsyncMock(return_value=body)
        self.fetch_pvc = AsyncMock(side_effect=lambda name: pvcs.get(name))
        self.list_pvcs = AsyncMock(return_value=list(pvcs.values()))
        self.fetch_pvc_storage_class = AsyncMock(
            return_value=storage_class if storage_class is not None else make_storage_class()
        )
        self.patch_pvc_storage = AsyncMock()
        self.patch_status = AsyncMock()
        self.close = AsyncMock()

    def factory(self, name, namespace, logger=None):
        return self

    @property
    def status_payload(self):
        return self.patch_status.call_args[0][0]


@pytest.fixture
def settings():
    return Settings(
        default_metrics_endpoint="http://prometheus.test:9090",
        metrics_retry_seconds=30.0,
    )


@pytest.fixture
def metrics_client():
    client = Mock()
    client.fetch_volume_metrics = AsyncMock()
    return client


@pytest.fixture
def registry(metrics_client):
    registry = Mock()
    registry.get = AsyncMock(return_value=metrics_client)
    return registry


@pytest.fixture
def events():
    return Mock(spec=EventRecorder)


@pytest.fixture
def sensor():
    return Mock(spec=OperatorSensor)
