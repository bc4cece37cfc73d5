import threading
import unittest

import pytest

from tempered_tuner.core.errors import InputError
from tempered_tuner.music.temperament import (
    BUILTIN_TEMPERAMENTS,
    TemperamentModel,
    normalize_temperament,
)
from tempered_tuner.note_types import ChromaticNote


class TestTemperamentModel(unittest.TestCase):
    def test_defaults_to_zero_for_every_note(self):
        model = TemperamentModel()
        for note in ChromaticNote:
            self.assertEqual(model.get(note), 0.0)

    def test_set_only_affects_one_note(self):
        model = TemperamentModel()
        model.set(ChromaticNote.E, -13.7)

        self.assertEqual(model.get(ChromaticNote.E), -13.7)
        for note in ChromaticNote:
            if note is not ChromaticNote.E:
                self.assertEqual(model.get(note), 0.0)

    def test_accepts_note_names(self):
        model = TemperamentModel()
        model.set("Db", 3.5)
        self.assertEqual(model.get(ChromaticNote.C_SHARP), 3.5)
        self.assertEqual(model.get("c#"), 3.5)

    def test_unknown_lookup_defaults_to_zero(self):
        model = TemperamentModel({"A": 4})
        self.assertEqual(model.get("H"), 0.0)
        self.assertEqual(model.get(None), 0.0)

    def test_set_rejects_unknown_note(self):
        with self.assertRaises(InputError):
            TemperamentModel().set("H", 1.0)

    def test_set_rejects_non_numeric_offset(self):
        with self.assertRaises(InputError):
            TemperamentModel().set("A", "sharp")

    def test_offsets_beyond_ui_range_are_kept(self):
        model = TemperamentModel()
        model.set("E", 120.0)
        model.set("F", -75.5)
        self.assertEqual(model.get("E"), 120.0)
        self.assertEqual(model.get("F"), -75.5)

    def test_replace_all_round_trip(self):
        mapping = {note: float(i) - 5.5 for i, note in enumerate(ChromaticNote)}
        model = TemperamentModel()
        model.replace_all(mapping)
        for note, offset in mapping.items():
            self.assertEqual(model.get(note), offset)

    def test_replace_all_fills_missing_notes(self):
        model = TemperamentModel({"C": 5, "G": 2})
        model.replace_all({"A": -3})
        self.assertEqual(model.get("A"), -3.0)
        self.assertEqual(model.get("C"), 0.0)
        self.assertEqual(model.get("G"), 0.0)
        self.assertEqual(len(model.snapshot()), 12)

    def test_snapshot_is_isolated_from_later_updates(self):
        model = TemperamentModel()
        snapshot = model.snapshot()
        model.set("A", 5.0)
        self.assertEqual(snapshot[ChromaticNote.A], 0.0)
        self.assertEqual(model.snapshot()[ChromaticNote.A], 5.0)

    def test_snapshot_is_read_only(self):
        snapshot = TemperamentModel().snapshot()
        with self.assertRaises(TypeError):
            snapshot[ChromaticNote.A] = 1.0

    def test_reset(self):
        model = TemperamentModel({"A": 4, "B": -2})
        model.reset()
        self.assertTrue(all(offset == 0.0 for _, offset in model.items()))

    def test_to_dict_uses_sharp_names_in_order(self):
        model = TemperamentModel({"Bb": 1.5})
        offsets = model.to_dict()
        self.assertEqual(list(offsets), [note.label for note in ChromaticNote])
        self.assertEqual(offsets["A#"], 1.5)


class TestBuiltinTemperaments(unittest.TestCase):
    def test_all_builtins_are_total(self):
        for name, offsets in BUILTIN_TEMPERAMENTS.items():
            self.assertEqual(len(normalize_temperament(offsets)), 12, name)

    def test_equal_is_all_zero(self):
        model = TemperamentModel.builtin("equal")
        self.assertTrue(all(offset == 0.0 for _, offset in model.items()))

    def test_werckmeister(self):
        model = TemperamentModel.builtin("Werckmeister3")
        self.assertEqual(model.get("C"), 0.0)
        self.assertEqual(model.get("A"), -11.7)

    def test_anchor_shifts_offsets(self):
        model = TemperamentModel.builtin("werckmeister3", anchor="A")
        self.assertEqual(model.get("A"), 0.0)
        self.assertAlmostEqual(model.get("C"), 11.7)
        self.assertAlmostEqual(model.get("F#"), 0.0)

    def test_unknown_builtin(self):
        with self.assertRaises(ValueError):
            TemperamentModel.builtin("kirnberger")


class TestNormalize(unittest.TestCase):
    def test_strict_rejects_unknown_keys(self):
        with self.assertRaises(InputError):
            normalize_temperament({"X": 1})

    def test_lenient_skips_unknown_keys(self):
        table = normalize_temperament({"X": 1, "D": 2}, strict=False)
        self.assertEqual(table[ChromaticNote.D], 2.0)
        self.assertEqual(len(table), 12)


def test_readers_never_see_a_partial_replacement():
    model = TemperamentModel()
    stop = threading.Event()
    torn = []

    def writer():
        value = 0
        while not stop.is_set():
            value += 1
            model.replace_all({note: float(value) for note in ChromaticNote})

    def reader():
        for _ in range(2000):
            values = set(model.snapshot().values())
            if len(values) != 1:
                torn.append(values)

    threads = [threading.Thread(target=writer) for _ in range(2)]
    for thread in threads:
        thread.start()
    try:
        reader()
    finally:
        stop.set()
        for thread in threads:
            thread.join()

    assert torn == []


@pytest.mark.parametrize("name", ["C", "c", "B#", "Dbb"])
def test_parse_edge_cases(name):
    if name == "Dbb":
        with pytest.raises(InputError):
            ChromaticNote.parse(name)
    else:
        assert isinstance(ChromaticNote.parse(name), ChromaticNote)


if __name__ == "__main__":
    unittest.main()
