"""Core components for Tempered Tuner: errors, interfaces, config, events."""

from .errors import TunerError, InputError, PresetValidationError, CaptureError

__all__ = ["TunerError", "InputError", "PresetValidationError", "CaptureError"]
