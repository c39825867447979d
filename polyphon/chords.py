"""Pitch helpers and the ``Chord`` type.

Module-level constants:
- `NOTE_NAME_TO_PC`: Maps note names (e.g., `"C"`, `"F#"`, `"Bb"`) to pitch classes (0-11)
- `PC_TO_NOTE_NAME`: Maps pitch classes to note names
- `CHORD_INTERVALS`: Maps chord quality names to interval lists (semitones from root)
- `CHORD_SUFFIX`: Maps chord quality names to human-readable suffixes (e.g., `"m"`, `"7"`)

Pitches are plain MIDI note numbers (0-127, 60 = middle C). A pitch's class is
``pitch % 12`` and its octave follows the MIDI convention where C4 = 60.
"""

import dataclasses
import typing

import polyphon.errors


MIN_PITCH = 0
MAX_PITCH = 127

NOTE_NAME_TO_PC: typing.Dict[str, int] = {
	"C": 0,
	"C#": 1,
	"Db": 1,
	"D": 2,
	"D#": 3,
	"Eb": 3,
	"E": 4,
	"F": 5,
	"F#": 6,
	"Gb": 6,
	"G": 7,
	"G#": 8,
	"Ab": 8,
	"A": 9,
	"A#": 10,
	"Bb": 10,
	"B": 11,
}

PC_TO_NOTE_NAME: typing.List[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


def key_name_to_pc (key_name: str) -> int:

	"""Validate a key name and return its pitch class (0–11).

	Raises:
		ConfigurationError: If the key name is not recognised.

	Example:
		```python
		key_name_to_pc("C")   # → 0
		key_name_to_pc("Bb")  # → 10
		```
	"""

	if key_name not in NOTE_NAME_TO_PC:
		raise polyphon.errors.ConfigurationError(
			f"Unknown key name: {key_name!r}. Expected e.g. 'C', 'F#', 'Bb'."
		)

	return NOTE_NAME_TO_PC[key_name]


def pitch_class (pitch: int) -> int:

	"""Return the pitch class (0-11) of a MIDI pitch."""

	return pitch % 12


def octave (pitch: int) -> int:

	"""Return the octave number of a MIDI pitch (60 → 4)."""

	return pitch // 12 - 1


def note_name (pitch: int) -> str:

	"""Return a readable name such as ``"C4"`` or ``"F#2"``."""

	return f"{PC_TO_NOTE_NAME[pitch_class(pitch)]}{octave(pitch)}"


def validate_pitch_range (low: int, high: int) -> None:

	"""Raise ConfigurationError unless ``MIN_PITCH <= low <= high <= MAX_PITCH``."""

	if low < MIN_PITCH or high > MAX_PITCH or low > high:
		raise polyphon.errors.ConfigurationError(
			f"Pitch range must satisfy {MIN_PITCH} <= low <= high <= {MAX_PITCH}, got [{low}, {high}]"
		)


CHORD_INTERVALS: typing.Dict[str, typing.Tuple[int, ...]] = {
	"major": (0, 4, 7),
	"minor": (0, 3, 7),
	"diminished": (0, 3, 6),
	"augmented": (0, 4, 8),
	"dominant_7th": (0, 4, 7, 10),
	"major_7th": (0, 4, 7, 11),
	"minor_7th": (0, 3, 7, 10),
	"half_diminished_7th": (0, 3, 6, 10),
	"diminished_7th": (0, 3, 6, 9),
	"minor_major_7th": (0, 3, 7, 11),
	"augmented_major_7th": (0, 4, 8, 11),
	"sus2": (0, 2, 7),
	"sus4": (0, 5, 7),
}

CHORD_SUFFIX: typing.Dict[str, str] = {
	"major": "",
	"minor": "m",
	"diminished": "dim",
	"augmented": "+",
	"dominant_7th": "7",
	"major_7th": "maj7",
	"minor_7th": "m7",
	"half_diminished_7th": "m7b5",
	"diminished_7th": "dim7",
	"minor_major_7th": "m(maj7)",
	"augmented_major_7th": "+maj7",
	"sus2": "sus2",
	"sus4": "sus4",
}

_QUALITY_BY_INTERVALS: typing.Dict[typing.Tuple[int, ...], str] = {
	intervals: quality for quality, intervals in CHORD_INTERVALS.items()
}


def quality_from_intervals (intervals: typing.Sequence[int]) -> str:

	"""Name the chord quality for a root-relative interval set.

	Raises:
		ConfigurationError: If the intervals do not match a known quality.
	"""

	key = tuple(sorted({i % 12 for i in intervals}))

	if key not in _QUALITY_BY_INTERVALS:
		raise polyphon.errors.ConfigurationError(f"No chord quality matches intervals {list(key)}")

	return _QUALITY_BY_INTERVALS[key]


# Quality of a chord whose intervals are given explicitly rather than looked up.
CUSTOM_QUALITY = "custom"


@dataclasses.dataclass(frozen=True)
class Chord:

	"""
	A chord as a root pitch class and quality.

	``degree`` records the scale degree the chord was built on (0 = tonic)
	when it came from a scale, and is ``None`` for free-standing chords.
	A ``"custom"`` chord carries its own root-relative ``shape`` instead of a
	named quality (e.g. thirds stacked in a pentatonic scale).
	"""

	root_pc: int
	quality: str
	degree: typing.Optional[int] = None
	shape: typing.Tuple[int, ...] = ()

	def __post_init__ (self) -> None:

		if self.quality == CUSTOM_QUALITY:
			if not self.shape or self.shape[0] != 0 or list(self.shape) != sorted(set(self.shape)) or self.shape[-1] > 11:
				raise polyphon.errors.ConfigurationError(f"Custom chord shape must rise strictly from 0 within an octave, got {list(self.shape)}")

		elif self.quality not in CHORD_INTERVALS:
			raise polyphon.errors.ConfigurationError(f"Unknown chord quality: {self.quality}")

		if not 0 <= self.root_pc < 12:
			raise polyphon.errors.ConfigurationError(f"Root pitch class must be 0-11, got {self.root_pc}")


	def intervals (self) -> typing.Tuple[int, ...]:

		"""Return the chord intervals in semitones above the root."""

		if self.quality == CUSTOM_QUALITY:
			return self.shape

		return CHORD_INTERVALS[self.quality]


	def pitch_classes (self) -> typing.FrozenSet[int]:

		"""Return the set of pitch classes sounding in this chord."""

		return frozenset((self.root_pc + i) % 12 for i in self.intervals())


	def contains (self, pitch: int) -> bool:

		"""True when the pitch's class is a chord tone."""

		return pitch % 12 in self.pitch_classes()


	def root_near (self, reference: int) -> int:

		"""
		Return the MIDI note of this chord's root closest to ``reference``.

		Ties (a tritone away) resolve downward.

		Example:
			```python
			Chord(root_pc=4, quality="major").root_near(60)  # → 64
			Chord(root_pc=4, quality="major").root_near(69)  # → 64
			```
		"""

		offset = (self.root_pc - reference) % 12
		if offset >= 6:
			offset -= 12

		return reference + offset


	def tones (self, reference: int) -> typing.List[int]:

		"""Return root-position MIDI notes built on the root nearest to ``reference``."""

		root = self.root_near(reference)

		return [root + interval for interval in self.intervals()]


	def name (self) -> str:

		"""Return a human-friendly chord name such as ``"Am"`` or ``"G7"``."""

		if self.quality == CUSTOM_QUALITY:
			return f"{PC_TO_NOTE_NAME[self.root_pc]}(" + ",".join(str(i) for i in self.shape) + ")"

		return f"{PC_TO_NOTE_NAME[self.root_pc]}{CHORD_SUFFIX[self.quality]}"


def fit_to_range (pitch: int, low: int, high: int, strict: bool = False) -> int:

	"""
	Move a pitch into ``[low, high]`` by whole octaves.

	Picks the in-range octave closest to the original pitch. When no octave
	of the pitch class lies in the range, either raises (``strict``) or
	clamps the original pitch to the nearest range boundary.

	Raises:
		RangeExhaustionError: When ``strict`` and no octave fits.

	Example:
		```python
		fit_to_range(48, 60, 72)   # → 60
		fit_to_range(67, 60, 64)   # → 64 (no G in range, clamped)
		```
	"""

	if low <= pitch <= high:
		return pitch

	candidates = [p for p in range(pitch % 12, MAX_PITCH + 1, 12) if low <= p <= high]

	if candidates:
		return min(candidates, key=lambda p: abs(p - pitch))

	if strict:
		raise polyphon.errors.RangeExhaustionError(pitch, low, high)

	return max(low, min(high, pitch))
