"""Type definitions for the Tempered Tuner project."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union

import numpy as np

from .core.errors import InputError


class ChromaticNote(Enum):
    """The twelve pitch classes of the chromatic scale, ordered from C."""

    C = "C"
    C_SHARP = "C#"
    D = "D"
    D_SHARP = "D#"
    E = "E"
    F = "F"
    F_SHARP = "F#"
    G = "G"
    G_SHARP = "G#"
    A = "A"
    A_SHARP = "A#"
    B = "B"

    @property
    def index(self) -> int:
        """Position in the cycle, C=0 through B=11."""
        return list(ChromaticNote).index(self)

    @property
    def label(self) -> str:
        """Sharp spelling, e.g. 'C#'."""
        return self.value

    @property
    def flat_label(self) -> str:
        """Flat spelling for accidentals, e.g. 'Db'; naturals are unchanged."""
        return _SHARP_TO_FLAT.get(self.value, self.value)

    @classmethod
    def from_index(cls, index: int) -> "ChromaticNote":
        """Return the note at ``index``, wrapping around the 12-note cycle."""
        return list(cls)[int(index) % 12]

    @classmethod
    def parse(cls, name: Union[str, "ChromaticNote"]) -> "ChromaticNote":
        """Parse a note name such as 'A', 'c#', 'Bb' or 'F♯'.

        Octave digits are not accepted. Enharmonic spellings resolve to the
        sharp member (e.g. 'Db' -> C_SHARP, 'Cb' -> B).

        Raises:
            InputError: If the name is not a recognisable note.
        """
        if isinstance(name, ChromaticNote):
            return name
        if not isinstance(name, str) or not name.strip():
            raise InputError(f"Invalid note name: {name!r}")

        text = name.strip()
        letter = text[0].upper()
        accidental = text[1:]
        if letter not in _NATURALS:
            raise InputError(f"Invalid note name: {name!r}")

        index = _NATURALS[letter]
        if accidental in ("#", "♯"):
            index += 1
        elif accidental in ("b", "♭"):
            index -= 1
        elif accidental:
            raise InputError(f"Invalid note name: {name!r}")
        return cls.from_index(index)

    def __str__(self):
        return self.value


# Position of each natural letter within the C-rooted cycle
_NATURALS: Dict[str, int] = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}
_SHARP_TO_FLAT: Dict[str, str] = {
    "C#": "Db",
    "D#": "Eb",
    "F#": "Gb",
    "G#": "Ab",
    "A#": "Bb",
}


@dataclass(frozen=True, eq=False)
class AudioFrame:
    """One block of mono audio handed to the pitch estimator.

    Build these with :func:`tempered_tuner.audio.framer.make_frame`, which
    validates the input and freezes the sample buffer.
    """

    samples: np.ndarray  # 1-D float32, read-only
    sample_rate: float  # Hz, positive

    def __len__(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration(self) -> float:
        """Length of the frame in seconds."""
        return len(self) / self.sample_rate


class _NoPitch:
    """Sentinel for frames where no fundamental could be estimated."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "NoPitch"


NoPitch = _NoPitch()


@dataclass(frozen=True)
class Detected:
    """A fundamental frequency estimate for one frame."""

    frequency: float  # Hz, positive

    def __bool__(self):
        return True


PitchEstimate = Union[_NoPitch, Detected]


@dataclass(frozen=True)
class NoteReading:
    """Nearest equal-tempered note for a frequency."""

    note: ChromaticNote
    raw_cents: float  # Signed deviation from the nearest semitone
    octave: int  # Scientific pitch notation, A4 = 440 Hz at the default reference

    @property
    def name(self) -> str:
        return f"{self.note.label}{self.octave}"


@dataclass(frozen=True)
class TuningResult:
    """What the display layer receives for a frame with a detected pitch."""

    note: ChromaticNote
    frequency: float  # Hz
    raw_cents: float  # Deviation from equal temperament
    adjusted_cents: float  # raw_cents minus the temperament offset for note
    octave: int
    timestamp: float = 0.0  # Seconds, as supplied by the capture source

    @property
    def name(self) -> str:
        return f"{self.note.label}{self.octave}"

    def is_in_tune(self, tolerance_cents: float = 5.0) -> bool:
        """True when the adjusted deviation is within ``tolerance_cents``."""
        return abs(self.adjusted_cents) <= tolerance_cents


class _NoReading:
    """Sentinel surfaced to listeners when a frame yields nothing to show."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "NoReading"


NO_READING = _NoReading()

Reading = Union[TuningResult, _NoReading]
