"""Bounded timing and velocity jitter.

The humanizer gives a track small random imperfections without breaking its
structure:

- Events sharing a start time move together, so chords stay chords.
- Each start-time group moves by less than half the gap to its neighbouring
  groups, so the track order never changes.
- Nothing moves before beat 0, and nothing ends after ``end_limit``
  (normally the beat budget).
- On monophonic tracks a note is shortened if needed so it still ends
  before the next note starts.

Timing offsets are exact fractions built from the random draw, so the
ordering guarantee is not left to float rounding.
"""

import collections
import fractions
import logging
import random
import typing

import polyphon.constants.velocity
import polyphon.errors
import polyphon.track


logger = logging.getLogger(__name__)

_HALF = fractions.Fraction(1, 2)

VelocityBounds = typing.Callable[[int], typing.Tuple[int, int]]


class Humanizer:

	"""
	Applies bounded random offsets to event starts and velocities.

	Parameters:
		timing: Largest start offset in beats (0 disables timing jitter).
		velocity: Largest velocity change (0 disables velocity jitter).
		velocity_low: Lowest velocity a jittered note may take.
		velocity_high: Highest velocity a jittered note may take.

	Example:
		```python
		humanizer = Humanizer(timing=0.02, velocity=6)
		loose = humanizer.apply(track, rng, end_limit=budget.beats)
		```
	"""

	def __init__ (
		self,
		timing: float = 0.02,
		velocity: int = 6,
		velocity_low: int = polyphon.constants.velocity.MIN_VELOCITY,
		velocity_high: int = polyphon.constants.velocity.MAX_VELOCITY
	) -> None:

		if timing < 0:
			raise polyphon.errors.ConfigurationError("Timing jitter cannot be negative")

		if velocity < 0:
			raise polyphon.errors.ConfigurationError("Velocity jitter cannot be negative")

		if not polyphon.constants.velocity.MIN_VELOCITY <= velocity_low <= velocity_high <= polyphon.constants.velocity.MAX_VELOCITY:
			raise polyphon.errors.ConfigurationError(f"Invalid velocity bounds [{velocity_low}, {velocity_high}]")

		self.timing = fractions.Fraction(repr(float(timing)))
		self.velocity = int(velocity)
		self.velocity_low = velocity_low
		self.velocity_high = velocity_high


	def apply (
		self,
		track: polyphon.track.Track,
		rng: random.Random,
		end_limit: typing.Optional[fractions.Fraction] = None,
		velocity_bounds: typing.Optional[VelocityBounds] = None
	) -> polyphon.track.Track:

		"""
		Return a new, humanized copy of ``track``.

		Parameters:
			track: The track to loosen.
			rng: Random generator for offsets and velocity changes.
			end_limit: Latest beat any note may end on.
			velocity_bounds: Maps a pitch to the ``(low, high)`` velocity range
				its notes must keep; tighter than the humanizer's own bounds.
		"""

		if not track.events:
			return track

		groups: typing.Dict[fractions.Fraction, typing.List[polyphon.track.NoteEvent]] = collections.OrderedDict()

		for event in track.events:
			groups.setdefault(event.start, []).append(event)

		starts = list(groups)
		shifted: typing.List[polyphon.track.NoteEvent] = []

		for index, start in enumerate(starts):

			members = groups[start]
			offset = self._offset(starts, index, members, rng, end_limit)

			for event in members:
				shifted.append(polyphon.track.NoteEvent(
					pitch = event.pitch,
					start = start + offset,
					duration = event.duration,
					velocity = self._jitter_velocity(event, rng, velocity_bounds)
				))

		if not track.polyphonic:
			shifted = self._remove_overlaps(shifted, track.role)

		return track.with_events(shifted)


	def _offset (
		self,
		starts: typing.Sequence[fractions.Fraction],
		index: int,
		members: typing.Sequence[polyphon.track.NoteEvent],
		rng: random.Random,
		end_limit: typing.Optional[fractions.Fraction]
	) -> fractions.Fraction:

		"""Draw a start offset for one start-time group, bounded by its neighbours."""

		if self.timing == 0:
			return fractions.Fraction(0)

		start = starts[index]
		early = min(self.timing, start)
		late = self.timing

		if index > 0:
			early = min(early, (start - starts[index - 1]) * _HALF)

		if index + 1 < len(starts):
			late = min(late, (starts[index + 1] - start) * _HALF)

		if end_limit is not None:
			latest_end = max(event.end for event in members)
			late = max(fractions.Fraction(0), min(late, end_limit - latest_end))

		# random() < 1, so the late bound is never reached and neighbours cannot meet.
		u = fractions.Fraction(rng.random())

		if rng.random() < 0.5:
			return -early * u

		return late * u


	def _jitter_velocity (
		self,
		event: polyphon.track.NoteEvent,
		rng: random.Random,
		velocity_bounds: typing.Optional[VelocityBounds]
	) -> int:

		if self.velocity == 0:
			return event.velocity

		delta = rng.randint(-self.velocity, self.velocity)
		low, high = self.velocity_low, self.velocity_high

		if velocity_bounds is not None:
			note_low, note_high = velocity_bounds(event.pitch)
			low, high = max(low, note_low), min(high, note_high)

		return max(low, min(high, event.velocity + delta))


	def _remove_overlaps (self, events: typing.List[polyphon.track.NoteEvent], role: str) -> typing.List[polyphon.track.NoteEvent]:

		"""Shorten notes that would run into the next note's new start."""

		result = list(events)

		for i in range(len(result) - 1):

			current = result[i]
			following_start = result[i + 1].start

			if current.end > following_start:
				logger.debug(f"Humanize shortened a {role} note at beat {current.start}")
				result[i] = polyphon.track.NoteEvent(
					pitch = current.pitch,
					start = current.start,
					duration = following_start - current.start,
					velocity = current.velocity
				)

		return result
