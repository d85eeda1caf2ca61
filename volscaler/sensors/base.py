"""Hooks the reconciler calls while it works through a policy.

Every hook is a no-op here; a backend overrides only the ones it records.
``on_reconcile_start`` may return a state object which is handed back to
``on_reconcile_complete`` for the same pass.
"""

from typing import Dict, Optional, Any


class OperatorSensor:
    """Base sensor for volume autoscaler monitoring.

    Hooks fall into two groups: the reconcile pass as a whole, and the
    individual volumes inside it (usage samples, resizes, skipped resizes
    and partial failures).

    Example:
        class SlowPassSensor(OperatorSensor):
            def on_reconcile_start(self, name, namespace, generation, trigger_source):
                return time.monotonic()

            def on_reconcile_complete(self, name, namespace, state, success, error=None):
                if time.monotonic() - state > 30:
                    logger.warning(f"Slow pass over {namespace}/{name}")
    """

    def on_reconcile_start(
        self,
        name: str,
        namespace: str,
        generation: int,
        trigger_source: str,
    ) -> Optional[Dict[str, Any]]:
        """Called when a reconcile pass begins.

        Args:
            name: VolumeAutoscaler resource name
            namespace: Kubernetes namespace
            generation: Resource generation number (0 if not yet known)
            trigger_source: What started the pass (poll, spec_change, resume)

        Returns:
            Optional state passed to on_reconcile_complete
        """
        return None

    def on_reconcile_complete(
        self,
        name: str,
        namespace: str,
        state: Optional[Dict[str, Any]],
        success: bool,
        error: Optional[Exception] = None,
    ) -> None:
        """Called when a reconcile pass ends, ``success`` False on an unexpected error."""

    def on_volume_usage(
        self,
        name: str,
        namespace: str,
        pvc_name: str,
        usage_percent: float,
    ) -> None:
        """Called after a usage sample was read for a PVC."""

    def on_scale_event(
        self,
        name: str,
        namespace: str,
        pvc_name: str,
        old_size: int,
        new_size: int,
    ) -> None:
        """Called after a PVC's requested storage was raised.

        Sizes are in bytes: ``old_size`` is the capacity before the patch,
        ``new_size`` the request that was written.
        """

    def on_scale_skipped(
        self,
        name: str,
        namespace: str,
        pvc_name: str,
        reason: str,
    ) -> None:
        """Called when a PVC over its threshold was held back by a safety check."""

    def on_poll_error(
        self,
        name: str,
        namespace: str,
        reason: str,
    ) -> None:
        """Called when part of a pass failed.

        ``reason`` is one of prometheus_query, patch_pvc, kubernetes_api,
        status_update or configuration.
        """

    def on_volume_removed(
        self,
        name: str,
        namespace: str,
        pvc_name: str,
    ) -> None:
        """Called when a PVC is no longer a target of the policy, or the policy is gone."""
