"""Scales as ordered pitch-class offsets from a tonic.

A :class:`Scale` turns scale degrees into MIDI pitches. Degrees are plain
integers that run past the ends of the scale: with a seven-note scale, degree
7 is the tonic an octave up and degree -1 is the leading tone below. This is
what lets melodic code move by degree steps without caring about octaves.
"""

import dataclasses
import typing

import polyphon.chords
import polyphon.errors
import polyphon.intervals


@dataclasses.dataclass(frozen=True)
class Scale:

	"""An immutable scale: tonic pitch class plus strictly increasing offsets within one octave."""

	tonic_pc: int
	offsets: typing.Tuple[int, ...]
	name: str = "custom"

	def __post_init__ (self) -> None:

		if not 0 <= self.tonic_pc < 12:
			raise polyphon.errors.ConfigurationError(f"Tonic pitch class must be 0-11, got {self.tonic_pc}")

		polyphon.intervals.validate_offsets(self.offsets)


	@classmethod
	def from_key (cls, key: str, mode: str = "major") -> "Scale":

		"""Build a scale from a key name and mode (e.g. ``Scale.from_key("A", "minor")``)."""

		key_pc = polyphon.chords.key_name_to_pc(key)
		offsets = polyphon.intervals.get_scale_offsets(mode)

		return cls(tonic_pc=key_pc, offsets=tuple(offsets), name=mode)


	@classmethod
	def custom (cls, key: str, offsets: typing.Sequence[int]) -> "Scale":

		"""Build a scale from explicit offsets."""

		return cls(tonic_pc=polyphon.chords.key_name_to_pc(key), offsets=tuple(offsets))


	def __len__ (self) -> int:

		return len(self.offsets)


	def pitch_classes (self) -> typing.List[int]:

		"""Return the scale's pitch classes in degree order."""

		return [(self.tonic_pc + offset) % 12 for offset in self.offsets]


	def degree_pitch_class (self, degree: int) -> int:

		"""Return the pitch class of any (possibly negative) degree."""

		return (self.tonic_pc + self.offsets[degree % len(self.offsets)]) % 12


	def tonic_near (self, reference: int) -> int:

		"""Return the MIDI pitch of the tonic closest to ``reference`` (ties resolve downward)."""

		offset = (self.tonic_pc - reference) % 12
		if offset >= 6:
			offset -= 12

		return reference + offset


	def degree_to_pitch (self, degree: int, tonic_pitch: int) -> int:

		"""
		Map a degree to a MIDI pitch, counting from the tonic at ``tonic_pitch``.

		Example:
			```python
			c_major = Scale.from_key("C", "major")
			c_major.degree_to_pitch(0, 60)   # → 60
			c_major.degree_to_pitch(4, 60)   # → 67
			c_major.degree_to_pitch(-1, 60)  # → 59
			c_major.degree_to_pitch(9, 60)   # → 76
			```
		"""

		octave_shift, index = divmod(degree, len(self.offsets))

		return tonic_pitch + 12 * octave_shift + self.offsets[index]


	def degree_of_pitch_class (self, pc: int) -> typing.Optional[int]:

		"""Return the degree (0..len-1) whose pitch class is ``pc``, or None if it is not in the scale."""

		pcs = self.pitch_classes()

		if pc % 12 not in pcs:
			return None

		return pcs.index(pc % 12)


	def chord_on_degree (self, degree: int, size: int = 3) -> polyphon.chords.Chord:

		"""
		Stack scale thirds on a degree and return the resulting chord.

		``size`` 3 gives triads, 4 gives sevenths. The quality is read off the
		stacked intervals, so in C major degree 4 gives G major (or G7 with
		``size=4``).

		Raises:
			ConfigurationError: If the stacked notes do not form a known chord
				quality (scales without a tertian structure, e.g. pentatonics).
		"""

		if size < 1:
			raise polyphon.errors.ConfigurationError("Chord size must be positive")

		root_pc = self.degree_pitch_class(degree)
		stacked = [self.degree_pitch_class(degree + 2 * i) for i in range(size)]
		intervals = [(pc - root_pc) % 12 for pc in stacked]
		quality = polyphon.chords.quality_from_intervals(intervals)

		return polyphon.chords.Chord(root_pc=root_pc, quality=quality, degree=degree % len(self.offsets))


	def sonority_on_degree (self, degree: int, size: int = 3) -> polyphon.chords.Chord:

		"""
		Stack every other scale degree on ``degree``, for any scale.

		Returns the named chord when the stack matches a known quality and a
		``"custom"`` chord otherwise, so pentatonic and other non-tertian
		scales still have a sonority to voice.

		Example:
			```python
			Scale.from_key("C", "major").sonority_on_degree(0).name()       # "C"
			Scale.custom("C", [0, 2, 3, 7, 8]).sonority_on_degree(0).name() # "C(0,3,8)"
			```
		"""

		if size < 1:
			raise polyphon.errors.ConfigurationError("Chord size must be positive")

		root_pc = self.degree_pitch_class(degree)
		shape = tuple(sorted({(self.degree_pitch_class(degree + 2 * i) - root_pc) % 12 for i in range(size)}))

		try:
			quality = polyphon.chords.quality_from_intervals(shape)
		except polyphon.errors.ConfigurationError:
			return polyphon.chords.Chord(root_pc=root_pc, quality=polyphon.chords.CUSTOM_QUALITY, degree=degree % len(self.offsets), shape=shape)

		return polyphon.chords.Chord(root_pc=root_pc, quality=quality, degree=degree % len(self.offsets))
