"""Map frequencies to the nearest chromatic note and a deviation in cents."""

from __future__ import annotations

import math
from typing import ClassVar

from ..core.errors import InputError
from ..logger import get_logger
from ..note_types import ChromaticNote, NoteReading

logger = get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding towards +inf."""
    return int(math.floor(value + 0.5))


def _require_positive(name: str, value: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InputError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(number) or number <= 0:
        raise InputError(f"{name} must be positive and finite, got {value!r}")
    return number


class NoteMapper:
    """Convert a frequency and reference pitch into a :class:`NoteReading`.

    Semitone distances are measured from the reference A4, so A sits at index
    9 of the C-rooted cycle and every octave of the reference maps back to A
    with zero cents.
    """

    A4_INDEX: ClassVar[int] = 9  # A within the C-rooted cycle
    A4_MIDI: ClassVar[int] = 69

    def map(self, frequency: float, a4: float) -> NoteReading:
        """Find the nearest equal-tempered note to ``frequency``.

        Args:
            frequency: Frequency in Hz, finite and positive
            a4: Reference pitch for A4 in Hz, finite and positive

        Returns:
            The nearest note, its signed deviation in whole cents (within
            [-50, 50]) and its octave in scientific pitch notation

        Raises:
            InputError: If either argument is not a finite positive number
        """
        frequency = _require_positive("Frequency", frequency)
        a4 = _require_positive("Reference pitch", a4)

        semitones_from_a4 = 12 * math.log2(frequency / a4)
        nearest = round_half_up(semitones_from_a4)
        note = ChromaticNote.from_index(nearest + self.A4_INDEX)

        nearest_frequency = a4 * 2 ** (nearest / 12)
        raw_cents = round_half_up(1200 * math.log2(frequency / nearest_frequency))

        octave = (self.A4_MIDI + nearest) // 12 - 1
        return NoteReading(note=note, raw_cents=float(raw_cents), octave=octave)

    def note_name(self, frequency: float, a4: float = 440.0, use_flats: bool = False) -> str:
        """Note name with octave in scientific pitch notation, e.g. 'A4' or 'Bb3'."""
        reading = self.map(frequency, a4)
        label = reading.note.flat_label if use_flats else reading.note.label
        return f"{label}{reading.octave}"

    def note_frequency(self, note: ChromaticNote, octave: int, a4: float = 440.0) -> float:
        """Equal-tempered frequency of ``note`` in ``octave`` for reference ``a4``."""
        a4 = _require_positive("Reference pitch", a4)
        semitones = (octave + 1) * 12 + ChromaticNote.parse(note).index - self.A4_MIDI
        return a4 * 2 ** (semitones / 12)
