import math
import unittest

import pytest

from tempered_tuner.core.errors import InputError
from tempered_tuner.music.note_mapper import NoteMapper, round_half_up
from tempered_tuner.note_types import ChromaticNote


class TestReferencePitch(unittest.TestCase):
    def setUp(self):
        self.mapper = NoteMapper()

    def test_a4_is_a_with_zero_cents(self):
        reading = self.mapper.map(440.0, 440.0)
        self.assertEqual(reading.note, ChromaticNote.A)
        self.assertEqual(reading.raw_cents, 0)
        self.assertEqual(reading.octave, 4)

    def test_any_reference_maps_to_a(self):
        for a4 in (415.0, 432.0, 442.0, 466.0, 500.0, 100.0):
            reading = self.mapper.map(a4, a4)
            self.assertEqual(reading.note, ChromaticNote.A, a4)
            self.assertEqual(reading.raw_cents, 0, a4)

    def test_octave_up_and_down(self):
        up = self.mapper.map(880.0, 440.0)
        self.assertEqual((up.note, up.raw_cents, up.octave), (ChromaticNote.A, 0, 5))

        down = self.mapper.map(220.0, 440.0)
        self.assertEqual((down.note, down.raw_cents, down.octave), (ChromaticNote.A, 0, 3))

    def test_octave_of_other_references(self):
        reading = self.mapper.map(2 * 415.0, 415.0)
        self.assertEqual(reading.note, ChromaticNote.A)
        self.assertEqual(reading.raw_cents, 0)


class TestNearestNote(unittest.TestCase):
    def setUp(self):
        self.mapper = NoteMapper()

    def test_middle_c(self):
        reading = self.mapper.map(261.63, 440.0)
        self.assertEqual(reading.note, ChromaticNote.C)
        self.assertEqual(reading.octave, 4)
        self.assertEqual(reading.raw_cents, 0)

    def test_octave_boundary(self):
        self.assertEqual(self.mapper.note_name(246.94), "B3")
        self.assertEqual(self.mapper.note_name(261.63), "C4")

    def test_sharps_and_flats(self):
        self.assertEqual(self.mapper.note_name(277.18), "C#4")
        self.assertEqual(self.mapper.note_name(277.18, use_flats=True), "Db4")
        self.assertEqual(self.mapper.note_name(466.16, use_flats=True), "Bb4")
        self.assertEqual(self.mapper.note_name(329.63, use_flats=True), "E4")

    def test_low_e_string(self):
        self.assertEqual(self.mapper.note_name(82.41), "E2")

    def test_sharp_deviation(self):
        reading = self.mapper.map(445.0, 440.0)
        self.assertEqual(reading.note, ChromaticNote.A)
        self.assertEqual(reading.raw_cents, 20)

    def test_flat_deviation(self):
        reading = self.mapper.map(430.0, 440.0)
        self.assertEqual(reading.note, ChromaticNote.A)
        self.assertEqual(reading.raw_cents, -40)

    def test_rounds_to_next_semitone_past_half_way(self):
        reading = self.mapper.map(453.0, 440.0)
        self.assertEqual(reading.note, ChromaticNote.A_SHARP)
        self.assertEqual(reading.raw_cents, -50)

    def test_reference_shifts_note_boundaries(self):
        # At A4=415, 440 Hz sits one semitone (plus about a cent) above A
        reading = self.mapper.map(440.0, 415.0)
        self.assertEqual(reading.note, ChromaticNote.A_SHARP)
        self.assertEqual(reading.raw_cents, 1)

    def test_note_frequency(self):
        self.assertAlmostEqual(
            self.mapper.note_frequency(ChromaticNote.C, 4), 261.6256, places=3
        )
        self.assertAlmostEqual(self.mapper.note_frequency("A", 3, a4=432.0), 216.0)


@pytest.mark.parametrize("frequency", [27.5, 55.0, 100.0, 261.63, 333.3, 1234.5, 3000.0])
@pytest.mark.parametrize("a4", [415.0, 440.0, 466.0])
def test_mapping_is_octave_periodic(frequency, a4):
    mapper = NoteMapper()
    low = mapper.map(frequency, a4)
    high = mapper.map(2 * frequency, a4)

    assert low.note == high.note
    assert high.octave == low.octave + 1


@pytest.mark.parametrize("frequency", [30.0, 97.0, 440.0, 451.0, 1999.0])
def test_cents_stay_within_half_semitone(frequency):
    assert -50 <= NoteMapper().map(frequency, 440.0).raw_cents <= 50


@pytest.mark.parametrize("bad", [0.0, -440.0, math.nan, math.inf, "A4", None])
def test_rejects_invalid_frequency(bad):
    with pytest.raises(InputError):
        NoteMapper().map(bad, 440.0)


@pytest.mark.parametrize("bad", [0.0, -1.0, math.nan, math.inf])
def test_rejects_invalid_reference(bad):
    with pytest.raises(InputError):
        NoteMapper().map(440.0, bad)


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(1.5) == 2
    assert round_half_up(2.5) == 3
    assert round_half_up(-0.5) == 0
    assert round_half_up(-0.6) == -1


if __name__ == "__main__":
    unittest.main()
