from .reconciler import Reconciler, ReconcileResult
from .reporter import EventRecorder
from .outcome import VolumeOutcome, GateDecision

__all__ = ["Reconciler", "ReconcileResult", "EventRecorder", "VolumeOutcome", "GateDecision"]
