"""Rhythm generation against a beat budget.

:class:`RhythmGenerator` fills a target number of beats with durations
drawn from a weighted :class:`DurationTable`. It never overshoots. When a draw
would overshoot, the largest duration that still fits is used instead. When
nothing fits, the last slot is cut to exactly the beats that remain and the
sequence ends. So every rhythm ends exactly on the target, or less than one
quantization unit short of it.

Durations are exact fractions of a beat, so triplets and dotted values add up
without float drift.
"""

import dataclasses
import fractions
import logging
import math
import random
import typing

import polyphon.constants.durations
import polyphon.errors
import polyphon.sequence_utils


logger = logging.getLogger(__name__)

REST = "rest"


@dataclasses.dataclass(frozen=True)
class DurationOption:

	"""One weighted entry of a duration table. Rest options consume time without sounding."""

	duration: fractions.Fraction
	weight: float
	rest: bool = False


@dataclasses.dataclass(frozen=True)
class Slot:

	"""A rhythmic slot: a duration in beats that either sounds a note or is a rest."""

	duration: fractions.Fraction
	rest: bool = False


class DurationTable:

	"""
	A weighted set of allowed durations.

	Example:
		```python
		table = DurationTable.from_mapping({
			"quarter": 0.4,
			"eighth": 0.3,
			"dotted_eighth": 0.1,
			"rest": 0.2,
		})
		```
	"""

	def __init__ (self, options: typing.Sequence[DurationOption]) -> None:

		if not options:
			raise polyphon.errors.ConfigurationError("Duration table cannot be empty")

		for option in options:
			if option.duration <= 0:
				raise polyphon.errors.ConfigurationError(f"Durations must be positive, got {option.duration}")
			if option.weight < 0:
				raise polyphon.errors.ConfigurationError(f"Duration weights cannot be negative, got {option.weight}")

		if sum(option.weight for option in options) <= 0:
			raise polyphon.errors.ConfigurationError("Duration table has zero total weight")

		self.options: typing.Tuple[DurationOption, ...] = tuple(options)


	@classmethod
	def from_mapping (cls, mapping: typing.Mapping[typing.Any, float]) -> "DurationTable":

		"""
		Build a table from ``{duration: weight}``.

		Keys are anything :func:`~polyphon.constants.durations.parse_duration`
		accepts. ``"rest"`` is a rest as long as the shortest note in the
		table; ``"rest_<duration>"`` (e.g. ``"rest_half"``) gives it an
		explicit length.
		"""

		notes: typing.List[DurationOption] = []
		rests: typing.List[typing.Tuple[typing.Optional[fractions.Fraction], float]] = []

		for key, weight in mapping.items():

			name = key.strip().lower() if isinstance(key, str) else None

			try:
				if name == REST:
					rests.append((None, weight))
				elif name is not None and name.startswith(REST + "_"):
					rests.append((polyphon.constants.durations.parse_duration(name[len(REST) + 1:]), weight))
				else:
					notes.append(DurationOption(duration=polyphon.constants.durations.parse_duration(key), weight=weight))
			except ValueError as exc:
				raise polyphon.errors.ConfigurationError(str(exc)) from exc

		default_rest: typing.Optional[fractions.Fraction] = min((o.duration for o in notes), default=None)
		options = list(notes)

		for duration, weight in rests:
			if duration is None:
				if default_rest is None:
					raise polyphon.errors.ConfigurationError("A plain 'rest' entry needs at least one note duration in the table")
				duration = default_rest
			options.append(DurationOption(duration=duration, weight=weight, rest=True))

		return cls(options)


	def live_options (self) -> typing.List[DurationOption]:

		"""Options with positive weight, the only ones that can be drawn."""

		return [option for option in self.options if option.weight > 0]


	def shortest (self) -> fractions.Fraction:

		"""Return the shortest drawable duration."""

		return min(option.duration for option in self.live_options())


	def draw (self, rng: random.Random) -> DurationOption:

		"""Draw one option by weight."""

		return polyphon.sequence_utils.weighted_choice([(option, option.weight) for option in self.options], rng)


# Default tables per instrument role.
MELODY_TABLE = {"quarter": 0.4, "eighth": 0.3, "dotted_eighth": 0.1, "rest": 0.2}
BASS_TABLE = {"half": 0.3, "quarter": 0.5, "eighth": 0.2}
ARPEGGIO_TABLE = {"eighth": 0.7, "sixteenth": 0.2, "quarter": 0.1}


class RhythmGenerator:

	"""Fills a beat budget with slots drawn from a duration table."""

	def __init__ (self, table: DurationTable, min_unit: fractions.Fraction) -> None:

		if min_unit <= 0:
			raise polyphon.errors.ConfigurationError("Minimum quantization unit must be positive")

		self.table = table
		self.min_unit = min_unit


	def generate (self, target_beats: fractions.Fraction, rng: random.Random) -> typing.List[Slot]:

		"""
		Return slots whose durations sum to ``target_beats`` (or up to one unit less).

		Parameters:
			target_beats: Beats to fill.
			rng: Random generator for the duration draws.
		"""

		if target_beats < 0:
			raise polyphon.errors.ConfigurationError("Target beats cannot be negative")

		live = self.table.live_options()
		slots: typing.List[Slot] = []
		remaining = fractions.Fraction(target_beats)

		while remaining >= self.min_unit:

			option = self.table.draw(rng)

			if option.duration <= remaining:
				slots.append(Slot(duration=option.duration, rest=option.rest))
				remaining -= option.duration
				continue

			fitting = [o for o in live if o.duration <= remaining]

			if fitting:
				# Largest fitting duration; among equals prefer a sounding note.
				substitute = max(fitting, key=lambda o: (o.duration, not o.rest))
				slots.append(Slot(duration=substitute.duration, rest=substitute.rest))
				remaining -= substitute.duration
				continue

			# Nothing fits: cut the draw to exactly what is left and stop.
			slots.append(Slot(duration=remaining, rest=option.rest))
			remaining = fractions.Fraction(0)

		if remaining > 0:
			logger.debug(f"Rhythm finished {remaining} beats short of {target_beats} (below one unit)")

		return slots


def total_beats (slots: typing.Sequence[Slot]) -> fractions.Fraction:

	"""Return the summed duration of a slot list."""

	return sum((slot.duration for slot in slots), fractions.Fraction(0))


def slot_starts (slots: typing.Sequence[Slot], offset: fractions.Fraction = fractions.Fraction(0)) -> typing.List[fractions.Fraction]:

	"""Return the start beat of every slot."""

	starts: typing.List[fractions.Fraction] = []
	position = fractions.Fraction(offset)

	for slot in slots:
		starts.append(position)
		position += slot.duration

	return starts


def strong_positions (slots: typing.Sequence[Slot]) -> typing.List[bool]:

	"""
	Flag the slots that fall on a strong rhythmic position.

	A slot is strong when it is the first slot starting inside a beat: the
	very first slot, and any slot whose start lies in a later beat than the
	previous slot's start.
	"""

	flags: typing.List[bool] = []
	previous_beat: typing.Optional[int] = None

	for start in slot_starts(slots):
		beat = math.floor(start)
		flags.append(previous_beat is None or beat != previous_beat)
		previous_beat = beat

	return flags
