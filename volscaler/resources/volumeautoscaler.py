import logging
from functools import cached_property
from logging import Logger
from typing import Any, Dict, List, Optional
from kubernetes_asyncio.client import (
    CoreV1Api,
    CustomObjectsApi,
    StorageV1Api,
    V1PersistentVolumeClaim,
    V1StorageClass,
)
from kubernetes_asyncio.client.api_client import ApiClient
from volscaler.types.settings import Settings
from volscaler.utils.quantity import format_quantity
from volscaler.resources.base import BaseResource


class VolumeAutoscaler(BaseResource):
    """VolumeAutoscaler kubernetes resource and the PVCs it manages."""

    logger: Logger
    conf: Settings = Settings()
    shared_api_client: ApiClient = None  # Shared across all VolumeAutoscaler instances

    KIND = "VolumeAutoscaler"
    GROUP_NAME = "autoscaling.volume-autoscaler.io"
    GROUP_VERSION = "v1alpha1"
    PLURAL_NAME = "volumeautoscalers"

    _api_client: ApiClient = None

    def __init__(self, name: str, namespace: str, logger: Optional[Logger] = None):
        super().__init__(name=name, namespace=namespace)
        self.logger = logger or logging.getLogger(__name__)

    @property
    def request_timeout(self) -> float:
        return self.conf.kubernetes_request_timeout_seconds

    @property
    def api_client(self) -> ApiClient:
        if self.shared_api_client is not None:
            return self.shared_api_client
        if self._api_client is None:
            self._api_client = ApiClient()
        return self._api_client

    @cached_property
    def core_v1_api(self) -> CoreV1Api:
        return CoreV1Api(self.api_client)

    @cached_property
    def storage_v1_api(self) -> StorageV1Api:
        return StorageV1Api(self.api_client)

    @cached_property
    def custom_objects_api(self) -> CustomObjectsApi:
        return CustomObjectsApi(self.api_client)

    async def fetch(self) -> Optional[Dict[str, Any]]:
        """Latest body of this VolumeAutoscaler, or None if it was deleted."""
        return await self.get_custom_object(
            self.custom_objects_api,
            self.namespace,
            self.GROUP_NAME,
            self.GROUP_VERSION,
            self.PLURAL_NAME,
            self.name,
            request_timeout=self.request_timeout,
        )

    async def patch_status(self, status: Dict[str, Any]) -> Dict[str, Any]:
        return await self.patch_custom_object_status(
            self.custom_objects_api,
            self.namespace,
            self.GROUP_NAME,
            self.GROUP_VERSION,
            self.PLURAL_NAME,
            self.name,
            status,
            request_timeout=self.request_timeout,
        )

    async def fetch_pvc(self, name: str) -> Optional[V1PersistentVolumeClaim]:
        return await self.fetch_persistent_volume_claim(
            self.core_v1_api, name, self.namespace, request_timeout=self.request_timeout
        )

    async def list_pvcs(self, label_selector: Optional[str] = None) -> List[V1PersistentVolumeClaim]:
        return await self.list_persistent_volume_claims(
            self.core_v1_api,
            self.namespace,
            label_selector=label_selector,
            request_timeout=self.request_timeout,
        )

    async def fetch_pvc_storage_class(self, name: str) -> Optional[V1StorageClass]:
        return await self.fetch_storage_class(
            self.storage_v1_api, name, request_timeout=self.request_timeout
        )

    async def patch_pvc_storage(self, name: str, size: int) -> V1PersistentVolumeClaim:
        """Merge-patch the requested storage of a PVC. Nothing else is touched."""
        body = {"spec": {"resources": {"requests": {"storage": format_quantity(size)}}}}
        self.logger.debug(f"Patching PersistentVolumeClaim {self.namespace}/{name}: {body}")
        return await self.patch_persistent_volume_claim(
            self.core_v1_api,
            name,
            self.namespace,
            body,
            request_timeout=self.request_timeout,
        )

    async def close(self) -> None:
        """Close the private API client, if this instance created one."""
        if self._api_client is not None:
            await self._api_client.close()
            self._api_client = None
