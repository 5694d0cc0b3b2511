"""Core components for the Stave Practice application."""

# Import interfaces for easier access
from .interfaces import (
    IAudioCapture,
    IPitchEstimator,
    IStaveRenderer,
)

__all__ = ["IAudioCapture", "IPitchEstimator", "IStaveRenderer"]
