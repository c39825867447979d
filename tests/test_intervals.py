import unittest

import polyphon.chords
import polyphon.errors
import polyphon.intervals
import polyphon.scale


class ScaleRegistryTests (unittest.TestCase):

	"""
	Tests for the mode registry and custom scales.
	"""

	def test_mode_aliases_share_offsets (self) -> None:

		"""
		Alias names should resolve to the same registry entry.
		"""

		self.assertEqual(polyphon.intervals.get_scale_offsets("major"), polyphon.intervals.get_scale_offsets("ionian"))
		self.assertEqual(polyphon.intervals.get_scale_offsets("minor"), [0, 2, 3, 5, 7, 8, 10])


	def test_scale_pitch_classes (self) -> None:

		self.assertEqual(polyphon.intervals.scale_pitch_classes(9, "aeolian"), [9, 11, 0, 2, 4, 5, 7])


	def test_unknown_mode_raises (self) -> None:

		with self.assertRaises(polyphon.errors.ConfigurationError):
			polyphon.intervals.get_scale_offsets("hypermixolydian")


	def test_register_scale (self) -> None:

		"""
		A registered scale should be usable as a mode name.
		"""

		polyphon.intervals.register_scale("hirajoshi", [0, 2, 3, 7, 8])
		scale = polyphon.scale.Scale.from_key("D", "hirajoshi")

		self.assertEqual(scale.pitch_classes(), [2, 4, 5, 9, 10])


	def test_invalid_offsets_raise (self) -> None:

		for offsets in ([], [2, 4, 7], [0, 4, 4], [0, 7, 5], [0, 5, 12]):
			with self.subTest(offsets=offsets):
				with self.assertRaises(polyphon.errors.ConfigurationError):
					polyphon.intervals.validate_offsets(offsets)


class ScaleTests (unittest.TestCase):

	def setUp (self) -> None:

		self.c_major = polyphon.scale.Scale.from_key("C", "major")


	def test_degree_to_pitch_crosses_octaves (self) -> None:

		self.assertEqual(self.c_major.degree_to_pitch(0, 60), 60)
		self.assertEqual(self.c_major.degree_to_pitch(4, 60), 67)
		self.assertEqual(self.c_major.degree_to_pitch(-1, 60), 59)
		self.assertEqual(self.c_major.degree_to_pitch(9, 60), 76)


	def test_degree_of_pitch_class (self) -> None:

		self.assertEqual(self.c_major.degree_of_pitch_class(4), 2)
		self.assertEqual(self.c_major.degree_of_pitch_class(16), 2)
		self.assertIsNone(self.c_major.degree_of_pitch_class(1))


	def test_tonic_near (self) -> None:

		"""
		The closest tonic wins; a tritone tie goes down.
		"""

		self.assertEqual(self.c_major.tonic_near(62), 60)
		self.assertEqual(self.c_major.tonic_near(70), 72)
		self.assertEqual(self.c_major.tonic_near(66), 60)


	def test_diatonic_triads (self) -> None:

		qualities = [self.c_major.chord_on_degree(d).quality for d in range(7)]

		self.assertEqual(qualities, ["major", "minor", "minor", "major", "major", "minor", "diminished"])


	def test_sevenths_and_degree_wrap (self) -> None:

		g7 = self.c_major.chord_on_degree(4, size=4)

		self.assertEqual((g7.root_pc, g7.quality, g7.degree), (7, "dominant_7th", 4))
		self.assertEqual(self.c_major.chord_on_degree(-1).degree, 6)


	def test_harmonic_minor_dominant_is_major (self) -> None:

		a_harmonic = polyphon.scale.Scale.from_key("A", "harmonic_minor")

		self.assertEqual(a_harmonic.chord_on_degree(4).name(), "E")


	def test_custom_scale (self) -> None:

		scale = polyphon.scale.Scale.custom("G", [0, 3, 5, 7, 10])

		self.assertEqual(len(scale), 5)
		self.assertEqual(scale.degree_pitch_class(5), 7)


	def test_bad_custom_scale_raises (self) -> None:

		with self.assertRaises(polyphon.errors.ConfigurationError):
			polyphon.scale.Scale.custom("C", [0, 4, 2])


	def test_sonority_on_any_scale (self) -> None:

		"""Stacked degrees give a named chord when one matches, a custom shape otherwise."""

		self.assertEqual(self.c_major.sonority_on_degree(0).name(), "C")
		self.assertEqual(self.c_major.sonority_on_degree(4, size=4).name(), "G7")

		hirajoshi_like = polyphon.scale.Scale.custom("C", [0, 2, 3, 7, 8])
		sonority = hirajoshi_like.sonority_on_degree(0)

		self.assertEqual(sonority.quality, polyphon.chords.CUSTOM_QUALITY)
		self.assertEqual(sonority.intervals(), (0, 3, 8))
		self.assertEqual(sonority.name(), "C(0,3,8)")

		with self.assertRaises(polyphon.errors.ConfigurationError):
			hirajoshi_like.chord_on_degree(0)
