from typing import Any, Dict, List, Optional
from kubernetes_asyncio.client import (
    ApiException,
    CoreV1Api,
    CustomObjectsApi,
    StorageV1Api,
    V1PersistentVolumeClaim,
    V1StorageClass,
)
from volscaler.utils.errors import not_found_error

MERGE_PATCH = "application/merge-patch+json"


class BaseResource:
    """Base resource model."""

    _name: str
    _namespace: str

    def __init__(self, name: str, namespace: str):
        self._name = name
        self._namespace = namespace

    @property
    def name(self) -> str:
        return self._name

    @property
    def namespace(self) -> str:
        return self._namespace

    async def fetch_persistent_volume_claim(
        self,
        core_v1_api: CoreV1Api,
        name: str,
        namespace: str,
        request_timeout: Optional[float] = None,
    ) -> Optional[V1PersistentVolumeClaim]:
        """Retrieve the latest state of a PVC, or None if it does not exist."""
        try:
            return await core_v1_api.read_namespaced_persistent_volume_claim(
                name=name, namespace=namespace, _request_timeout=request_timeout
            )
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def list_persistent_volume_claims(
        self,
        core_v1_api: CoreV1Api,
        namespace: str,
        label_selector: Optional[str] = None,
        request_timeout: Optional[float] = None,
    ) -> List[V1PersistentVolumeClaim]:
        kwargs = {"namespace": namespace, "_request_timeout": request_timeout}
        if label_selector:
            kwargs["label_selector"] = label_selector
        result = await core_v1_api.list_namespaced_persistent_volume_claim(**kwargs)
        return list(result.items or [])

    async def patch_persistent_volume_claim(
        self,
        core_v1_api: CoreV1Api,
        name: str,
        namespace: str,
        body: Dict[str, Any],
        request_timeout: Optional[float] = None,
    ) -> V1PersistentVolumeClaim:
        return await core_v1_api.patch_namespaced_persistent_volume_claim(
            name=name,
            namespace=namespace,
            body=body,
            _content_type=MERGE_PATCH,
            _request_timeout=request_timeout,
        )

    async def fetch_storage_class(
        self,
        storage_v1_api: StorageV1Api,
        name: str,
        request_timeout: Optional[float] = None,
    ) -> Optional[V1StorageClass]:
        try:
            return await storage_v1_api.read_storage_class(
                name=name, _request_timeout=request_timeout
            )
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def get_custom_object(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        group: str,
        version: str,
        plural: str,
        name: str,
        request_timeout: Optional[float] = None,
    ) -> Optional[Dict[str, Any]]:
        try:
            return await custom_objects_api.get_namespaced_custom_object(
                group=group,
                version=version,
                namespace=namespace,
                plural=plural,
                name=name,
                _request_timeout=request_timeout,
            )
        except ApiException as ex:
            if not_found_error(ex):
                return None
            raise

    async def patch_custom_object_status(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        group: str,
        version: str,
        plural: str,
        name: str,
        status: Dict[str, Any],
        request_timeout: Optional[float] = None,
    ) -> Dict[str, Any]:
        return await custom_objects_api.patch_namespaced_custom_object_status(
            group=group,
            version=version,
            namespace=namespace,
            plural=plural,
            name=name,
            body={"status": status},
            _content_type=MERGE_PATCH,
            _request_timeout=request_timeout,
        )
