"""Chord voicings and voice-leading smoothing.

A voicing is a concrete list of MIDI pitches for a chord. Voice leading
changes only the voicing, never the chord: for each new chord it picks the
inversion and octave that keeps a shared tone, or failing that the root,
within a small distance of the previous chord, and moves as little as
possible overall.
"""

import typing

import polyphon.chords


# Largest distance (semitones) an anchoring tone may sit from the previous chord.
DEFAULT_ANCHOR_DISTANCE = 2


def invert_chord (intervals: typing.Sequence[int], inversion: int) -> typing.List[int]:

	"""Rotate chord intervals into an inversion, re-zeroed on the new bass note.

	Example:
		```python
		invert_chord([0, 4, 7], 1)  # [0, 3, 8]  - first inversion
		invert_chord([0, 4, 7], 2)  # [0, 5, 9]  - second inversion
		```
	"""

	n = len(intervals)

	if n == 0:
		return []

	inversion %= n
	rotated = list(intervals[inversion:]) + [i + 12 for i in intervals[:inversion]]

	return [i - rotated[0] for i in rotated]


def candidate_voicings (chord: polyphon.chords.Chord, low: int, high: int) -> typing.List[typing.List[int]]:

	"""Every inversion of ``chord`` at every octave that fits entirely inside ``[low, high]``."""

	intervals = list(chord.intervals())
	candidates: typing.List[typing.List[int]] = []

	for inversion in range(len(intervals)):

		shape = invert_chord(intervals, inversion)
		bass_pc = (chord.root_pc + intervals[inversion]) % 12
		bass = bass_pc

		while bass + shape[-1] <= high:
			if bass >= low:
				candidates.append([bass + i for i in shape])
			bass += 12

	return candidates


def _movement (candidate: typing.Sequence[int], previous: typing.Sequence[int]) -> int:

	"""Total distance from each new tone to its nearest previous tone."""

	return sum(min(abs(tone - p) for p in previous) for tone in candidate)


def _anchor_distance (candidate: typing.Sequence[int], previous: typing.Sequence[int], chord: polyphon.chords.Chord) -> int:

	"""Distance from the best anchoring tone (a common tone, else the root) to the previous chord."""

	previous_pcs = {p % 12 for p in previous}
	common = [tone for tone in candidate if tone % 12 in previous_pcs]
	anchors = common or [tone for tone in candidate if tone % 12 == chord.root_pc]

	return min(min(abs(tone - p) for p in previous) for tone in anchors)


def voice_chord (
	chord: polyphon.chords.Chord,
	low: int,
	high: int,
	previous: typing.Optional[typing.Sequence[int]] = None,
	anchor_distance: int = DEFAULT_ANCHOR_DISTANCE
) -> typing.List[int]:

	"""
	Choose a voicing of ``chord`` inside ``[low, high]``.

	Without a previous voicing this is the root-position voicing nearest the
	middle of the range. With one, candidates whose anchor tone stays within
	``anchor_distance`` semitones of the previous chord are preferred, and
	among those the one with the least total movement wins.

	If the range is too narrow for any complete voicing, each tone is fitted
	into the range on its own (duplicates removed).
	"""

	candidates = candidate_voicings(chord, low, high)

	if not candidates:
		centre = (low + high) // 2
		return sorted({polyphon.chords.fit_to_range(tone, low, high) for tone in chord.tones(centre)})

	if not previous:
		centre = (low + high) / 2.0
		return min(candidates, key=lambda c: (c[0] % 12 != chord.root_pc, abs(sum(c) / len(c) - centre)))

	anchored = [c for c in candidates if _anchor_distance(c, previous, chord) <= anchor_distance]
	pool = anchored or candidates

	return min(pool, key=lambda c: (_movement(c, previous), c[0]))


class VoiceLeadingState:

	"""Remembers the previous voicing so successive chords can be voiced smoothly.

	Example:
		```python
		state = VoiceLeadingState(low=48, high=72)
		state.next(Chord(0, "major"))   # root position near the middle of the range
		state.next(Chord(5, "major"))   # F major voiced to keep C close by
		```
	"""

	def __init__ (self, low: int, high: int, smooth: bool = True, anchor_distance: int = DEFAULT_ANCHOR_DISTANCE) -> None:

		polyphon.chords.validate_pitch_range(low, high)

		self.low = low
		self.high = high
		self.smooth = smooth
		self.anchor_distance = anchor_distance
		self.previous_voicing: typing.Optional[typing.List[int]] = None

	def next (self, chord: polyphon.chords.Chord) -> typing.List[int]:

		"""Voice ``chord`` and remember the result."""

		previous = self.previous_voicing if self.smooth else None
		voicing = voice_chord(chord, self.low, self.high, previous, self.anchor_distance)
		self.previous_voicing = voicing

		return voicing
