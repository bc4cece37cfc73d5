"""Exception types raised by Tempered Tuner components."""


class TunerError(Exception):
    """Base class for all Tempered Tuner errors."""


class InputError(TunerError, ValueError):
    """Raised when a caller passes malformed input across a component boundary.

    Examples are an empty audio block, a non-positive sample rate, or a
    non-finite frequency handed to the note mapper.
    """


class PresetValidationError(TunerError, ValueError):
    """Raised when a preset cannot be repaired into a usable one."""


class CaptureError(TunerError):
    """Raised when the audio capture device cannot be opened or read."""
