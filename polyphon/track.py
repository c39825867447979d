"""Note events and tracks.

Both types are frozen. Later stages such as humanization never edit an event.
They build new events and new tracks. Times are exact beat fractions
measured from the shared start of the piece.
"""

import dataclasses
import fractions
import typing

import polyphon.chords
import polyphon.constants.velocity
import polyphon.errors


@dataclasses.dataclass(frozen=True)
class NoteEvent:

	"""A sounding note: MIDI pitch, start and duration in beats, and velocity."""

	pitch: int
	start: fractions.Fraction
	duration: fractions.Fraction
	velocity: int

	def __post_init__ (self) -> None:

		if not polyphon.chords.MIN_PITCH <= self.pitch <= polyphon.chords.MAX_PITCH:
			raise polyphon.errors.ConfigurationError(f"Pitch out of range: {self.pitch}")

		if self.start < 0:
			raise polyphon.errors.ConfigurationError(f"Note start cannot be negative: {self.start}")

		if self.duration <= 0:
			raise polyphon.errors.ConfigurationError(f"Note duration must be positive: {self.duration}")

		if not polyphon.constants.velocity.MIN_VELOCITY <= self.velocity <= polyphon.constants.velocity.MAX_VELOCITY:
			raise polyphon.errors.ConfigurationError(f"Velocity out of range: {self.velocity}")


	@property
	def end (self) -> fractions.Fraction:

		return self.start + self.duration


@dataclasses.dataclass(frozen=True)
class Track:

	"""
	The ordered note events of one instrument role.

	Parameters:
		role: Name of the instrument role that produced the track.
		events: Note events ordered by start time.
		length_beats: Realised span of the track, rests included. The beat
			budget constrains this value.
		channel: MIDI channel (0-15) the track is exported on.
		polyphonic: Whether events may overlap (chords, drums).
		priority: Export tie-break for simultaneous onsets; lower sorts first.
	"""

	role: str
	events: typing.Tuple[NoteEvent, ...]
	length_beats: fractions.Fraction
	channel: int = 0
	polyphonic: bool = False
	priority: int = 0

	def __post_init__ (self) -> None:

		if not 0 <= self.channel <= 15:
			raise polyphon.errors.ConfigurationError(f"MIDI channel must be 0-15, got {self.channel}")

		for previous, current in zip(self.events, self.events[1:]):

			if current.start < previous.start:
				raise ValueError(f"Track {self.role!r} events are not ordered by start time")

			if not self.polyphonic and current.start < previous.end:
				raise ValueError(f"Track {self.role!r} is monophonic but events overlap at beat {current.start}")


	def end_beat (self) -> fractions.Fraction:

		"""Return the latest event end (0 for an empty track)."""

		return max((event.end for event in self.events), default=fractions.Fraction(0))


	def sounding_beats (self) -> fractions.Fraction:

		"""Return the summed duration of all events."""

		return sum((event.duration for event in self.events), fractions.Fraction(0))


	def with_events (self, events: typing.Iterable[NoteEvent]) -> "Track":

		"""Return a copy of this track holding different events."""

		return dataclasses.replace(self, events=tuple(events))
