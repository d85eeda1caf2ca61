import kopf
import logging
import volscaler.handlers.probes as probes
import volscaler.handlers.volumeautoscaler as volumeautoscaler
from volscaler.controller import Reconciler
from volscaler.resources import VolumeAutoscaler
from volscaler.types.settings import Settings
from volscaler.web import MetricsClientRegistry
from volscaler.sensors import init_metrics_server, SensorDelegate, PrometheusMonitor
from kubernetes_asyncio import config
from kubernetes_asyncio.client.api_client import ApiClient


# Configure Kopf settings
@kopf.on.startup()
async def setup(
    settings: kopf.OperatorSettings, memo: kopf.Memo, logger: logging.Logger, **kwargs
):
    # Load Kubernetes config - try in-cluster first (for production), then local kubeconfig (for dev)
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.info("In-cluster config not found, trying local kubeconfig")
        try:
            await config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    memo.conf = Settings()
    VolumeAutoscaler.conf = memo.conf

    # Create a shared ApiClient for all resources to prevent connection leaks
    shared_client = ApiClient()
    VolumeAutoscaler.shared_api_client = shared_client
    logger.info("Shared Kubernetes API client initialized")

    # Metrics clients are created per endpoint on first use
    memo.registry = MetricsClientRegistry(timeout=memo.conf.metrics_query_timeout_seconds)

    # Initialize sensor infrastructure
    sensor_delegate = SensorDelegate()
    sensor_delegate.add(PrometheusMonitor())
    memo.sensor = sensor_delegate
    logger.info("Sensor infrastructure initialized with PrometheusMonitor")

    memo.reconciler = Reconciler(
        registry=memo.registry,
        settings=memo.conf,
        sensor=sensor_delegate,
    )

    # Initialize Prometheus metrics server
    try:
        init_metrics_server(memo.conf.metrics_port)
    except Exception as e:
        logger.error(f"Failed to start metrics server: {e}")
        # Don't fail operator startup if metrics server fails
        logger.warning("Continuing without metrics server")

    if memo.conf.admission_webhook_enabled:
        settings.admission.server = kopf.WebhookServer(
            port=memo.conf.admission_webhook_port,
            host=memo.conf.admission_webhook_host,
        )
        settings.admission.managed = f"{VolumeAutoscaler.PLURAL_NAME}.{VolumeAutoscaler.GROUP_NAME}"
        logger.info(
            f"Admission webhook enabled on port {memo.conf.admission_webhook_port}"
        )

    # Limit the number of concurrent workers to prevent flooding the API
    settings.batching.worker_limit = memo.conf.worker_limit

    # Post events to the Kubernetes API for logging >= Warning
    settings.posting.enabled = True
    settings.posting.level = logging.WARNING


@kopf.on.cleanup()
async def cleanup(memo: kopf.Memo, logger: logging.Logger, **kwargs):
    """Cleanup handler for operator shutdown."""
    logger.info("Shutting down operator...")

    registry = getattr(memo, "registry", None)
    if registry is not None:
        await registry.close()
        logger.info("Metrics clients closed")

    if VolumeAutoscaler.shared_api_client is not None:
        await VolumeAutoscaler.shared_api_client.close()
        VolumeAutoscaler.shared_api_client = None
        logger.info("Shared API client closed")

    logger.info("Operator shutdown complete")


__all__ = [
    "probes",
    "volumeautoscaler",
]
