import asyncio
import json
import aiohttp
import kubernetes_asyncio

_NOT_FOUND = "notfound"
_CONFLICT = "conflict"


class AutoscalerError(Exception):
    """Base class for volume autoscaler errors."""


class TargetConfigurationError(AutoscalerError):
    """The policy target names neither (or both) a PVC and a selector.

    Retrying does not help until the VolumeAutoscaler spec is corrected.
    """


class MetricsUnavailableError(AutoscalerError):
    """Volume metrics could not be read from the metrics endpoint."""

    def __init__(self, message: str, query: str = None):
        super().__init__(message)
        self.query = query


class ExpandError(AutoscalerError):
    """The PVC capacity patch was rejected or could not be sent."""


def _reason(ex: kubernetes_asyncio.client.ApiException) -> str:
    try:
        err = json.loads(ex.body) if ex.body else {}
    except (json.JSONDecodeError, TypeError):
        return ""
    return str(err.get("reason", "")).lower()


def not_found_error(ex: Exception) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 404 or _reason(ex) == _NOT_FOUND


def conflict_error(ex: Exception) -> bool:
    if not isinstance(ex, kubernetes_asyncio.client.ApiException):
        return False
    return ex.status == 409 or _reason(ex) == _CONFLICT


def describe_api_exception(ex: kubernetes_asyncio.client.ApiException) -> str:
    """Render an ApiException as a short, serializable message."""
    error_msg = f"Kubernetes API error ({ex.status}): {ex.reason}"
    try:
        if ex.body:
            body = json.loads(ex.body)
            if "message" in body:
                error_msg = f"{error_msg} - {body['message']}"
    except (json.JSONDecodeError, AttributeError, TypeError):
        pass
    return error_msg


#: What a single Kubernetes API call can raise besides an HTTP error answer
KUBERNETES_ERRORS = (
    kubernetes_asyncio.client.ApiException,
    aiohttp.ClientError,
    asyncio.TimeoutError,
)


def describe_kubernetes_error(ex: Exception) -> str:
    """Render any of `KUBERNETES_ERRORS` as a short message."""
    if isinstance(ex, kubernetes_asyncio.client.ApiException):
        return describe_api_exception(ex)
    if isinstance(ex, asyncio.TimeoutError):
        return "Kubernetes API request timed out"
    return f"Kubernetes API unreachable: {ex}"
