"""Named bundles of a temperament and a reference pitch.

Durable storage belongs to the host. This module defines the record that
crosses that boundary, the repair/validation applied before a preset is used,
and an in-memory store that implements :class:`IPresetStore`.
"""

from __future__ import annotations

import math
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from .core.errors import InputError, PresetValidationError
from .core.interfaces import IPresetStore
from .logger import get_logger
from .music.temperament import Temperament, normalize_temperament
from .note_types import ChromaticNote

logger = get_logger(__name__)

DEFAULT_A4 = 440.0


@dataclass(frozen=True)
class Preset:
    """A named temperament plus reference pitch. Build with :func:`make_preset`."""

    name: str
    temperament: Temperament = field(
        default_factory=lambda: MappingProxyType({note: 0.0 for note in ChromaticNote})
    )
    a4: float = DEFAULT_A4

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form with note names as keys, ready for JSON."""
        return {
            "name": self.name,
            "temperament": {note.label: offset for note, offset in self.temperament.items()},
            "a4": self.a4,
        }


def _validate_a4(a4: Any) -> float:
    try:
        value = float(a4)
    except (TypeError, ValueError):
        raise PresetValidationError(f"Preset a4 must be a number, got {a4!r}")
    if not math.isfinite(value) or value <= 0:
        raise PresetValidationError(f"Preset a4 must be positive and finite, got {a4!r}")
    return value


def make_preset(name: str, temperament: Mapping[Any, Any], a4: Any) -> Preset:
    """Validate and repair the parts of a preset.

    Notes missing from ``temperament`` are filled with 0. Unknown note keys
    are dropped with a warning.

    Raises:
        PresetValidationError: For an empty name, a non-finite or non-positive
            ``a4``, or a non-numeric offset
    """
    if not isinstance(name, str) or not name.strip():
        raise PresetValidationError(f"Preset name must be a non-empty string, got {name!r}")

    try:
        table = normalize_temperament(temperament or {}, strict=False)
    except InputError as e:
        raise PresetValidationError(f"Preset {name!r}: {e}") from e

    missing = [note.label for note in ChromaticNote if not _has_note(temperament or {}, note)]
    if missing:
        logger.info(f"Preset {name!r} missing offsets for {', '.join(missing)}; using 0")

    return Preset(name=name, temperament=MappingProxyType(table), a4=_validate_a4(a4))


def _has_note(mapping: Mapping[Any, Any], note: ChromaticNote) -> bool:
    for key in mapping:
        try:
            if ChromaticNote.parse(key) is note:
                return True
        except InputError:
            continue
    return False


def validate_preset(preset: Preset) -> Preset:
    """Return a repaired copy of a preset that may have been built by hand."""
    return make_preset(preset.name, preset.temperament, preset.a4)


def preset_from_dict(data: Mapping[str, Any]) -> Preset:
    """Build a preset from its plain-dict form (see :meth:`Preset.to_dict`).

    Raises:
        PresetValidationError: If required fields are missing or invalid
    """
    if not isinstance(data, Mapping):
        raise PresetValidationError(f"Preset must be a mapping, got {type(data).__name__}")
    if "name" not in data:
        raise PresetValidationError("Preset is missing 'name'")
    temperament = data.get("temperament") or {}
    if not isinstance(temperament, Mapping):
        raise PresetValidationError(f"Preset {data['name']!r}: temperament must be a mapping")
    return make_preset(data["name"], temperament, data.get("a4", DEFAULT_A4))


class InMemoryPresetStore(IPresetStore):
    """Process-local preset store; a save under an existing name replaces it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._presets: Dict[str, Preset] = {}

    def save(self, preset: Preset) -> None:
        preset = validate_preset(preset)
        with self._lock:
            replaced = preset.name in self._presets
            self._presets[preset.name] = preset
        logger.info(f"{'Replaced' if replaced else 'Saved'} preset {preset.name!r}")

    def load(self, name: str) -> Optional[Preset]:
        with self._lock:
            return self._presets.get(name)

    def list_names(self) -> List[str]:
        with self._lock:
            return list(self._presets)

    def delete(self, name: str) -> bool:
        with self._lock:
            removed = self._presets.pop(name, None) is not None
        if removed:
            logger.info(f"Deleted preset {name!r}")
        return removed
