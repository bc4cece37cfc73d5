"""Compose the estimator, note mapper and temperament into tuning readings."""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Optional

from ..audio.pitch_estimator import PitchEstimator
from ..core.errors import InputError
from ..core.interfaces import IPitchEstimator
from ..logger import get_logger
from ..music.note_mapper import NoteMapper
from ..music.temperament import NoteKey, Temperament, TemperamentModel
from ..note_types import (
    AudioFrame,
    NO_READING,
    Detected,
    NoPitch,
    PitchEstimate,
    Reading,
    TuningResult,
)
from ..presets import DEFAULT_A4, Preset, make_preset, validate_preset

logger = get_logger(__name__)


@dataclass(frozen=True)
class TuningSettings:
    """The temperament and reference pitch used for one frame."""

    temperament: Temperament
    a4: float


class BandFilter:
    """Discard estimates outside the musically plausible band.

    Bounds are exclusive. Rejected estimates are not errors; the frame simply
    produces no reading.
    """

    DEFAULT_MIN_FREQUENCY: ClassVar[float] = 30.0  # Hz
    DEFAULT_MAX_FREQUENCY: ClassVar[float] = 2500.0  # Hz

    def __init__(
        self,
        min_frequency: float = DEFAULT_MIN_FREQUENCY,
        max_frequency: float = DEFAULT_MAX_FREQUENCY,
    ) -> None:
        if not min_frequency < max_frequency:
            raise ValueError(
                f"min_frequency ({min_frequency}) must be below max_frequency ({max_frequency})"
            )
        self.min_frequency = float(min_frequency)
        self.max_frequency = float(max_frequency)

    def accepts(self, frequency: float) -> bool:
        return self.min_frequency < frequency < self.max_frequency

    def apply(self, estimate: PitchEstimate) -> PitchEstimate:
        """Pass ``estimate`` through, or return the estimator's NoPitch for out-of-band values."""
        if isinstance(estimate, Detected) and not self.accepts(estimate.frequency):
            logger.debug(
                f"Discarding {estimate.frequency:.1f} Hz outside "
                f"{self.min_frequency:.0f}-{self.max_frequency:.0f} Hz"
            )
            return NoPitch
        return estimate


def compose(
    estimate: PitchEstimate,
    temperament: Temperament,
    a4: float,
    mapper: Optional[NoteMapper] = None,
    timestamp: float = 0.0,
) -> Reading:
    """Turn an estimate into a reading under the given temperament and A4.

    ``adjusted_cents`` is the raw deviation minus the temperament's offset for
    the detected note, so a note played exactly at its tempered pitch reads 0.
    """
    if not isinstance(estimate, Detected):
        return NO_READING

    reading = (mapper or NoteMapper()).map(estimate.frequency, a4)
    offset = temperament.get(reading.note, 0.0)
    return TuningResult(
        note=reading.note,
        frequency=estimate.frequency,
        raw_cents=reading.raw_cents,
        adjusted_cents=reading.raw_cents - offset,
        octave=reading.octave,
        timestamp=timestamp,
    )


class TuningPipeline:
    """Per-frame estimation, band filtering, note mapping and temperament adjustment.

    The temperament model and reference pitch are read together as one
    :class:`TuningSettings` snapshot per frame. Changing both at once (as
    :meth:`load_preset` does) happens under the same lock, so a frame never
    mixes an old reference pitch with a new temperament.
    """

    def __init__(
        self,
        estimator: Optional[IPitchEstimator] = None,
        mapper: Optional[NoteMapper] = None,
        band_filter: Optional[BandFilter] = None,
        temperament: Optional[TemperamentModel] = None,
        a4: float = DEFAULT_A4,
    ) -> None:
        """Initialize the pipeline.

        Args:
            estimator: Pitch estimator, or None for a default :class:`PitchEstimator`
            mapper: Note mapper, or None for a default one
            band_filter: Post-filter for estimates, or None for 30-2500 Hz
            temperament: Caller-owned temperament model, or None for equal temperament
            a4: Reference pitch in Hz
        """
        self._estimator = estimator or PitchEstimator()
        self._mapper = mapper or NoteMapper()
        self._band_filter = band_filter or BandFilter()
        self._temperament = temperament or TemperamentModel()
        self._lock = threading.Lock()
        self._a4 = self._check_a4(a4)

    @staticmethod
    def _check_a4(a4: float) -> float:
        # Any positive finite value; 415-466 Hz is a host UI range only
        try:
            value = float(a4)
        except (TypeError, ValueError):
            raise InputError(f"Reference pitch must be a number, got {a4!r}")
        if not math.isfinite(value) or value <= 0:
            raise InputError(f"Reference pitch must be positive and finite, got {a4!r}")
        return value

    @property
    def estimator(self) -> IPitchEstimator:
        return self._estimator

    @property
    def band_filter(self) -> BandFilter:
        return self._band_filter

    @property
    def temperament(self) -> TemperamentModel:
        return self._temperament

    @property
    def a4(self) -> float:
        with self._lock:
            return self._a4

    def settings(self) -> TuningSettings:
        """Consistent snapshot of the current temperament and A4."""
        with self._lock:
            return TuningSettings(temperament=self._temperament.snapshot(), a4=self._a4)

    def set_a4(self, a4: float) -> None:
        value = self._check_a4(a4)
        with self._lock:
            self._a4 = value
        logger.info(f"Reference pitch set to {value:g} Hz")

    def set_offset(self, note: NoteKey, offset: float) -> None:
        self._temperament.set(note, offset)

    def set_temperament(self, mapping: Mapping[Any, Any]) -> None:
        with self._lock:
            self._temperament.replace_all(mapping)

    def load_preset(self, preset: Preset) -> None:
        """Apply a preset's temperament and A4 together."""
        preset = validate_preset(preset)
        with self._lock:
            self._temperament.replace_all(preset.temperament)
            self._a4 = preset.a4
        logger.info(f"Loaded preset {preset.name!r} (A4={preset.a4:g} Hz)")

    def current_preset(self, name: str) -> Preset:
        """Capture the current settings as a preset called ``name``."""
        settings = self.settings()
        return make_preset(name, settings.temperament, settings.a4)

    def process(self, frame: AudioFrame, timestamp: float = 0.0) -> Reading:
        """Run one frame through the pipeline."""
        settings = self.settings()
        estimate = self._band_filter.apply(self._estimator.estimate(frame))
        reading = compose(
            estimate, settings.temperament, settings.a4, self._mapper, timestamp
        )
        if reading:
            logger.debug(
                f"{reading.name}: {reading.frequency:.1f} Hz, raw {reading.raw_cents:+.0f}, "
                f"adjusted {reading.adjusted_cents:+.1f} cents"
            )
        return reading
