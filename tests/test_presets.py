import math
import unittest

import pytest

from tempered_tuner.core.errors import PresetValidationError
from tempered_tuner.note_types import ChromaticNote
from tempered_tuner.presets import (
    InMemoryPresetStore,
    Preset,
    make_preset,
    preset_from_dict,
    validate_preset,
)


class TestMakePreset(unittest.TestCase):
    def test_total_temperament(self):
        offsets = {note.label: float(i) for i, note in enumerate(ChromaticNote)}
        preset = make_preset("ramp", offsets, 440.0)
        self.assertEqual(preset.temperament[ChromaticNote.B], 11.0)
        self.assertEqual(len(preset.temperament), 12)

    def test_missing_notes_are_filled_with_zero(self):
        preset = make_preset("sparse", {"A": 2.0, "Eb": -1.0}, 432)
        self.assertEqual(preset.temperament[ChromaticNote.A], 2.0)
        self.assertEqual(preset.temperament[ChromaticNote.D_SHARP], -1.0)
        self.assertEqual(preset.temperament[ChromaticNote.C], 0.0)
        self.assertEqual(preset.a4, 432.0)

    def test_unknown_notes_are_dropped(self):
        preset = make_preset("typo", {"H": 5.0, "B": 1.0}, 440.0)
        self.assertEqual(preset.temperament[ChromaticNote.B], 1.0)
        self.assertNotIn("H", preset.to_dict()["temperament"])

    def test_preset_is_immutable(self):
        preset = make_preset("fixed", {}, 440.0)
        with self.assertRaises(TypeError):
            preset.temperament[ChromaticNote.A] = 1.0

    def test_invalid_name(self):
        for name in ("", "   ", None):
            with self.assertRaises(PresetValidationError):
                make_preset(name, {}, 440.0)

    def test_non_numeric_offset(self):
        with self.assertRaises(PresetValidationError):
            make_preset("bad", {"A": "sharp"}, 440.0)

    def test_validation_error_is_a_value_error(self):
        with self.assertRaises(ValueError):
            make_preset("bad", {}, 0)


@pytest.mark.parametrize("a4", [0, -415.0, math.nan, math.inf, "A", None])
def test_invalid_a4(a4):
    with pytest.raises(PresetValidationError):
        make_preset("bad", {}, a4)


class TestDictForm(unittest.TestCase):
    def test_round_trip(self):
        preset = make_preset("werck", {"A": -11.7, "C#": -9.8}, 415.0)
        restored = preset_from_dict(preset.to_dict())
        self.assertEqual(restored.name, preset.name)
        self.assertEqual(restored.a4, preset.a4)
        self.assertEqual(dict(restored.temperament), dict(preset.temperament))

    def test_to_dict_uses_note_names(self):
        data = make_preset("named", {"Bb": 3.0}, 440.0).to_dict()
        self.assertEqual(data["temperament"]["A#"], 3.0)
        self.assertEqual(data["a4"], 440.0)

    def test_defaults(self):
        preset = preset_from_dict({"name": "bare"})
        self.assertEqual(preset.a4, 440.0)
        self.assertTrue(all(offset == 0.0 for offset in preset.temperament.values()))

    def test_invalid_dicts(self):
        for data in ({}, {"name": "x", "temperament": [1, 2]}, ["name"], {"name": "x", "a4": "loud"}):
            with self.assertRaises(PresetValidationError):
                preset_from_dict(data)

    def test_validate_hand_built_preset(self):
        preset = validate_preset(Preset(name="hand", temperament={"A": 1}, a4=440))
        self.assertEqual(preset.temperament[ChromaticNote.A], 1.0)
        self.assertEqual(len(preset.temperament), 12)


class TestInMemoryPresetStore(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryPresetStore()

    def test_save_and_load(self):
        self.store.save(make_preset("one", {"A": 1.0}, 440.0))
        self.assertEqual(self.store.load("one").temperament[ChromaticNote.A], 1.0)
        self.assertIsNone(self.store.load("two"))

    def test_last_write_wins(self):
        self.store.save(make_preset("same", {}, 440.0))
        self.store.save(make_preset("same", {}, 415.0))
        self.assertEqual(self.store.load("same").a4, 415.0)
        self.assertEqual(self.store.list_names(), ["same"])

    def test_list_names_in_insertion_order(self):
        for name in ("b", "a", "c"):
            self.store.save(make_preset(name, {}, 440.0))
        self.assertEqual(self.store.list_names(), ["b", "a", "c"])

    def test_delete(self):
        self.store.save(make_preset("gone", {}, 440.0))
        self.assertTrue(self.store.delete("gone"))
        self.assertFalse(self.store.delete("gone"))
        self.assertEqual(self.store.list_names(), [])

    def test_save_rejects_invalid_preset(self):
        with self.assertRaises(PresetValidationError):
            self.store.save(Preset(name="bad", a4=-1.0))
        self.assertEqual(self.store.list_names(), [])


if __name__ == "__main__":
    unittest.main()
