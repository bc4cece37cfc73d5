"""Note mapping and temperaments."""

from .note_mapper import NoteMapper
from .temperament import TemperamentModel, BUILTIN_TEMPERAMENTS

__all__ = ["NoteMapper", "TemperamentModel", "BUILTIN_TEMPERAMENTS"]
