"""Audio capture and pitch sampling."""

from .buffer import SampleRingBuffer
from .pitch_sampler import DetectedPitchSlot, PitchSampler

__all__ = ["SampleRingBuffer", "DetectedPitchSlot", "PitchSampler"]
