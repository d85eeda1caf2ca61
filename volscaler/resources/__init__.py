from .volumeautoscaler import VolumeAutoscaler

__all__ = ["VolumeAutoscaler"]
