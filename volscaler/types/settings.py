import os
from typing import Any

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Metrics endpoint used when a VolumeAutoscaler does not set prometheusURL
DEFAULT_METRICS_ENDPOINT = str(
    _getenv(
        "DEFAULT_METRICS_ENDPOINT", "http://prometheus.monitoring.svc.cluster.local:9090"
    )
)

#: Upper bound in seconds for a single metrics query
METRICS_QUERY_TIMEOUT_SECONDS = float(_getenv("METRICS_QUERY_TIMEOUT_SECONDS", 10.0))

#: Seconds to wait before retrying when every volume failed its metrics query
METRICS_RETRY_SECONDS = float(_getenv("METRICS_RETRY_SECONDS", 30.0))

#: Upper bound in seconds for Kubernetes API calls made during a pass
KUBERNETES_REQUEST_TIMEOUT_SECONDS = float(
    _getenv("KUBERNETES_REQUEST_TIMEOUT_SECONDS", 10.0)
)

#: Maximum number of kopf workers handling events concurrently
WORKER_LIMIT = int(_getenv("WORKER_LIMIT", 4))

#: Port of the /metrics endpoint exposing the operator's own counters
METRICS_PORT = int(_getenv("METRICS_PORT", 8000))

#: Serve the admission webhook that validates VolumeAutoscaler specs
ADMISSION_WEBHOOK_ENABLED = bool(_getenv("ADMISSION_WEBHOOK_ENABLED", False))

#: Port and host of the admission webhook server
ADMISSION_WEBHOOK_PORT = int(_getenv("ADMISSION_WEBHOOK_PORT", 9443))
ADMISSION_WEBHOOK_HOST = _getenv("ADMISSION_WEBHOOK_HOST", None)


class Settings:
    """Operator settings"""

    default_metrics_endpoint: str = DEFAULT_METRICS_ENDPOINT
    metrics_query_timeout_seconds: float = METRICS_QUERY_TIMEOUT_SECONDS
    metrics_retry_seconds: float = METRICS_RETRY_SECONDS
    kubernetes_request_timeout_seconds: float = KUBERNETES_REQUEST_TIMEOUT_SECONDS
    worker_limit: int = WORKER_LIMIT
    metrics_port: int = METRICS_PORT
    admission_webhook_enabled: bool = ADMISSION_WEBHOOK_ENABLED
    admission_webhook_port: int = ADMISSION_WEBHOOK_PORT
    admission_webhook_host: str = ADMISSION_WEBHOOK_HOST

    def __init__(
        self,
        *args,
        default_metrics_endpoint: str = None,
        metrics_query_timeout_seconds: float = None,
        metrics_retry_seconds: float = None,
        kubernetes_request_timeout_seconds: float = None,
        worker_limit: int = None,
        metrics_port: int = None,
        admission_webhook_enabled: bool = None,
        admission_webhook_port: int = None,
        admission_webhook_host: str = None,
        **kwargs,
    ):
        if default_metrics_endpoint is not None:
            self.default_metrics_endpoint = default_metrics_endpoint

        if metrics_query_timeout_seconds is not None:
            self.metrics_query_timeout_seconds = metrics_query_timeout_seconds

        if metrics_retry_seconds is not None:
            self.metrics_retry_seconds = metrics_retry_seconds

        if kubernetes_request_timeout_seconds is not None:
            self.kubernetes_request_timeout_seconds = (
                kubernetes_request_timeout_seconds
            )

        if worker_limit is not None:
            self.worker_limit = worker_limit

        if metrics_port is not None:
            self.metrics_port = metrics_port

        if admission_webhook_enabled is not None:
            self.admission_webhook_enabled = admission_webhook_enabled

        if admission_webhook_port is not None:
            self.admission_webhook_port = admission_webhook_port

        if admission_webhook_host is not None:
            self.admission_webhook_host = admission_webhook_host
