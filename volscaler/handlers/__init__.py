from . import probes, volumeautoscaler

__all__ = ["probes", "volumeautoscaler"]
