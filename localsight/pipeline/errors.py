"""Exceptions raised by the detection pipeline."""

from __future__ import annotations


class LocalSightError(RuntimeError):
    """Base class for pipeline errors."""


class InvalidFrame(LocalSightError):
    """Raised when a frame has a zero (or negative) dimension."""


class EngineUnavailable(LocalSightError):
    """Raised when the inference engine has not been initialized yet."""


class InferenceFailure(LocalSightError):
    """Raised when the engine call errors or returns malformed output."""


class ResourceAcquisitionFailure(LocalSightError):
    """Raised when a frame source cannot be opened."""


class MonitorInitError(LocalSightError):
    """Raised when monitor initialization fails."""
