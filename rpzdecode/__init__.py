"""Decode .rpz inertial-unit telemetry packets, apply the calibration model and write text tables."""

__version__ = "0.1.0"
__all__ = ["packets", "model", "sums", "config", "report"]