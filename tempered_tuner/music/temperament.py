"""Per-note cents offsets that redefine which pitch counts as in tune."""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple, Union

from ..core.errors import InputError
from ..logger import get_logger
from ..note_types import ChromaticNote

logger = get_logger(__name__)

NoteKey = Union[ChromaticNote, str]
Temperament = Mapping[ChromaticNote, float]

# Offsets from equal temperament in cents, C-rooted, wolf fifth between G# and Eb
BUILTIN_TEMPERAMENTS: Dict[str, Dict[str, float]] = {
    "equal": {
        "C": 0.0, "C#": 0.0, "D": 0.0, "D#": 0.0, "E": 0.0, "F": 0.0,
        "F#": 0.0, "G": 0.0, "G#": 0.0, "A": 0.0, "A#": 0.0, "B": 0.0,
    },
    "pythagorean": {
        "C": 0.0, "C#": 13.7, "D": 3.9, "D#": -5.9, "E": 7.8, "F": -2.0,
        "F#": 11.7, "G": 2.0, "G#": 15.6, "A": 5.9, "A#": -3.9, "B": 9.8,
    },
    "meantone": {
        "C": 0.0, "C#": -24.0, "D": -6.8, "D#": 10.3, "E": -13.7, "F": 3.4,
        "F#": -20.5, "G": -3.4, "G#": -27.4, "A": -10.3, "A#": 6.8, "B": -17.1,
    },
    "werckmeister3": {
        "C": 0.0, "C#": -9.8, "D": -7.8, "D#": -5.9, "E": -9.8, "F": -2.0,
        "F#": -11.7, "G": -3.9, "G#": -7.8, "A": -11.7, "A#": -3.9, "B": -7.8,
    },
}


def normalize_temperament(
    mapping: Mapping[Any, Any], strict: bool = True
) -> Dict[ChromaticNote, float]:
    """Build a total 12-note offset table from a possibly partial mapping.

    Keys may be :class:`ChromaticNote` members or note names ('C#', 'Db').
    Notes absent from ``mapping`` get an offset of 0.

    Args:
        mapping: Note -> cents offset
        strict: If False, unrecognised keys are logged and skipped instead of
            raising

    Raises:
        InputError: On an unrecognised key (strict mode) or a non-numeric offset
    """
    table = {note: 0.0 for note in ChromaticNote}
    for key, value in mapping.items():
        try:
            note = ChromaticNote.parse(key)
        except InputError:
            if strict:
                raise
            logger.warning(f"Ignoring unknown note in temperament: {key!r}")
            continue
        try:
            table[note] = float(value)
        except (TypeError, ValueError):
            raise InputError(f"Offset for {note.label} must be a number, got {value!r}")
    return table


class TemperamentModel:
    """A mutable, always-total mapping from the 12 notes to cents offsets.

    Every mutation builds a new table and swaps it in under a lock, so a
    :meth:`snapshot` taken on one thread is never seen half-updated by
    another.
    """

    def __init__(self, offsets: Optional[Mapping[Any, Any]] = None) -> None:
        """Initialize the model.

        Args:
            offsets: Initial offsets; missing notes default to 0
        """
        self._lock = threading.Lock()
        self._offsets: Mapping[ChromaticNote, float] = MappingProxyType(
            normalize_temperament(offsets or {})
        )

    @classmethod
    def builtin(
        cls, name: str, anchor: Optional[NoteKey] = None
    ) -> "TemperamentModel":
        """Create a model from one of :data:`BUILTIN_TEMPERAMENTS`.

        Args:
            name: Temperament name, e.g. 'werckmeister3'
            anchor: If given, shift all offsets so this note's offset is 0

        Raises:
            ValueError: If the name is not a built-in temperament
        """
        key = name.strip().lower()
        if key not in BUILTIN_TEMPERAMENTS:
            raise ValueError(
                f"Unknown temperament: {name}. "
                f"Choose from: {', '.join(sorted(BUILTIN_TEMPERAMENTS))}"
            )
        model = cls(BUILTIN_TEMPERAMENTS[key])
        if anchor is not None:
            shift = model.get(anchor)
            model.replace_all({note: offset - shift for note, offset in model.items()})
        return model

    def get(self, note: NoteKey) -> float:
        """Offset for ``note`` in cents; 0.0 for anything that is not a note."""
        try:
            key = ChromaticNote.parse(note)
        except InputError:
            logger.debug(f"Offset lookup for unknown note {note!r}, using 0")
            return 0.0
        return self._offsets.get(key, 0.0)

    def set(self, note: NoteKey, offset: float) -> None:
        """Set the offset for one note, leaving the others unchanged."""
        key = ChromaticNote.parse(note)
        try:
            value = float(offset)
        except (TypeError, ValueError):
            raise InputError(f"Offset for {key.label} must be a number, got {offset!r}")
        with self._lock:
            updated = dict(self._offsets)
            updated[key] = value
            self._offsets = MappingProxyType(updated)
        logger.debug(f"Temperament offset {key.label} = {value:+.2f} cents")

    def replace_all(self, mapping: Mapping[Any, Any]) -> None:
        """Replace every offset at once; notes missing from ``mapping`` become 0."""
        table = MappingProxyType(normalize_temperament(mapping))
        with self._lock:
            self._offsets = table
        logger.debug("Temperament replaced")

    def reset(self) -> None:
        """Return to equal temperament."""
        self.replace_all({})

    def snapshot(self) -> Temperament:
        """A read-only view of the current offsets that later updates do not touch."""
        with self._lock:
            return self._offsets

    def items(self) -> Iterator[Tuple[ChromaticNote, float]]:
        return iter(self.snapshot().items())

    def to_dict(self) -> Dict[str, float]:
        """Offsets keyed by sharp note name, ready for JSON."""
        return {note.label: offset for note, offset in self.items()}

    def __repr__(self):
        offsets = ", ".join(f"{label}={value:+g}" for label, value in self.to_dict().items())
        return f"TemperamentModel({offsets})"
