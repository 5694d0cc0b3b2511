"""Stave Practice: scrolling-stave note practice with live pitch detection."""

__version__ = "0.1.0"
