"""Tempered Tuner - autocorrelation pitch detection with custom temperaments."""

from .core.errors import TunerError, InputError, PresetValidationError, CaptureError
from .note_types import (
    ChromaticNote,
    AudioFrame,
    NoPitch,
    Detected,
    NoteReading,
    TuningResult,
    NO_READING,
)
from .audio.framer import SignalFramer, make_frame
from .audio.pitch_estimator import PitchEstimator
from .music.note_mapper import NoteMapper
from .music.temperament import TemperamentModel, BUILTIN_TEMPERAMENTS
from .presets import Preset, make_preset, preset_from_dict, InMemoryPresetStore
from .services.tuning_pipeline import BandFilter, TuningPipeline, TuningSettings, compose
from .services.tuning_service import TuningService

__version__ = "0.1.0"

__all__ = [
    "TunerError",
    "InputError",
    "PresetValidationError",
    "CaptureError",
    "ChromaticNote",
    "AudioFrame",
    "NoPitch",
    "Detected",
    "NoteReading",
    "TuningResult",
    "NO_READING",
    "SignalFramer",
    "make_frame",
    "PitchEstimator",
    "NoteMapper",
    "TemperamentModel",
    "BUILTIN_TEMPERAMENTS",
    "Preset",
    "make_preset",
    "preset_from_dict",
    "InMemoryPresetStore",
    "BandFilter",
    "TuningPipeline",
    "TuningSettings",
    "compose",
    "TuningService",
]
