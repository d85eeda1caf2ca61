import asyncio
import kopf
import logging
from logging import Logger
from typing import Dict
from marshmallow import ValidationError
from volscaler.controller import Reconciler
from volscaler.controller.reconciler import format_validation_error
from volscaler.resources import VolumeAutoscaler
from volscaler.types.schemas import VolumeAutoscalerSpecSchema
from volscaler.types.schemas.volumeautoscaler_spec import DEFAULT_POLL_INTERVAL_SECONDS

KIND = VolumeAutoscaler.KIND
GROUP = VolumeAutoscaler.GROUP_NAME

# One wake-up event per policy, keyed by namespace/name
wakeups: Dict[str, asyncio.Event] = {}


class TimerLogFilter(logging.Filter):
    def filter(self, record):
        """Timer logs are noisy so we filter them out."""
        return "Timer " not in record.getMessage()


kopf_logger = logging.getLogger("kopf.objects")
kopf_logger.addFilter(TimerLogFilter())


def policy_key(namespace: str, name: str) -> str:
    return f"{namespace}/{name}"


def request_reconciliation(namespace: str, name: str) -> None:
    """Wake the polling daemon of a policy so it runs a pass right away."""
    wakeups.setdefault(policy_key(namespace, name), asyncio.Event()).set()


async def wait_for_next_pass(key: str, delay: float, stopped) -> bool:
    """Sleep until ``delay`` elapses, the policy is woken, or the daemon stops.

    Returns True if the policy was woken.
    """
    event = wakeups.setdefault(key, asyncio.Event())
    woken = asyncio.ensure_future(event.wait())
    stopping = asyncio.ensure_future(stopped.wait())
    try:
        await asyncio.wait(
            {woken, stopping}, timeout=delay, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        woken.cancel()
        stopping.cancel()
    was_woken = event.is_set()
    event.clear()
    return was_woken


@kopf.on.update(group=GROUP, kind=KIND, field="spec")
def on_spec_update(name, namespace, logger: Logger, **kwargs):
    """Run a pass as soon as the spec changes.

    Created and resumed policies need no wake-up: their daemon starts with a pass.
    """
    logger.debug(f"Requesting reconciliation of {KIND}/{name}.")
    request_reconciliation(namespace, name)


@kopf.on.delete(group=GROUP, kind=KIND, optional=True)
def on_delete(name, namespace, status, memo: kopf.Memo, **kwargs):
    """Forget the wake-up event and the per-volume metrics of a deleted policy."""
    wakeups.pop(policy_key(namespace, name), None)
    sensor = getattr(memo, "sensor", None)
    if sensor is None:
        return
    for volume in (status or {}).get("volumes") or []:
        sensor.on_volume_removed(name, namespace, volume["name"])


@kopf.daemon(group=GROUP, kind=KIND, cancellation_timeout=10.0)
async def poll_volumes(
    name, namespace, memo: kopf.Memo, logger: Logger, stopped, **kwargs
):
    """Reconcile the policy once per poll interval until it is deleted.

    Each iteration runs one pass and then sleeps for the delay the pass
    asked for. A spec change wakes the daemon early.
    """
    reconciler: Reconciler = memo.reconciler
    key = policy_key(namespace, name)
    trigger_source = "resume"
    while not stopped:
        result = await reconciler.reconcile(
            namespace, name, logger=logger, stopped=stopped, trigger_source=trigger_source
        )
        if stopped:
            break
        delay = result.requeue_after if result else DEFAULT_POLL_INTERVAL_SECONDS
        woken = await wait_for_next_pass(key, delay, stopped)
        trigger_source = "spec_change" if woken else "poll"
    logger.info(f"Stopped polling volumes of {KIND}/{name}.")


@kopf.on.validate(group=GROUP, kind=KIND, id="validate-spec")
def validate_spec(spec, **kwargs):
    """Reject specs that would only produce InvalidTarget at reconcile time."""
    try:
        VolumeAutoscalerSpecSchema().load(dict(spec or {}))
    except ValidationError as e:
        raise kopf.AdmissionError(format_validation_error(e))
