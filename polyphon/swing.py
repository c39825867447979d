"""Swing and syncopation passes over rhythm slots.

Both passes only move time between neighbouring slots, so the total length of
any window they touch is unchanged. A rhythm that met its beat budget before
the pass still meets it afterwards.
"""

import fractions
import random
import typing

import polyphon.errors
import polyphon.rhythm


def apply_swing (
	slots: typing.Sequence[polyphon.rhythm.Slot],
	rng: random.Random,
	probability: float = 1.0,
	ratio: fractions.Fraction = fractions.Fraction(2)
) -> typing.List[polyphon.rhythm.Slot]:

	"""
	Turn eligible even pairs into long-short pairs.

	A pair is eligible when two adjacent slots have the same duration ``d``
	(at most half a beat) and the first starts on a multiple of ``2d``. The
	pair becomes ``(2d * ratio / (ratio + 1), 2d / (ratio + 1))``. With the
	default 2:1 ratio, two straight eighths become a triplet quarter plus a
	triplet eighth.

	Parameters:
		slots: Input slots (not modified).
		rng: Random generator deciding which eligible pairs swing.
		probability: Chance (0.0–1.0) that an eligible pair is swung.
		ratio: Long-to-short ratio of the swung pair.
	"""

	if ratio <= 0:
		raise polyphon.errors.ConfigurationError("Swing ratio must be positive")

	if not 0.0 <= probability <= 1.0:
		raise polyphon.errors.ConfigurationError("Swing probability must be between 0 and 1")

	ratio = fractions.Fraction(ratio)
	result: typing.List[polyphon.rhythm.Slot] = []
	position = fractions.Fraction(0)
	i = 0

	while i < len(slots):

		slot = slots[i]

		if i + 1 < len(slots):
			following = slots[i + 1]
			pair_length = slot.duration * 2
			eligible = (
				following.duration == slot.duration
				and slot.duration <= fractions.Fraction(1, 2)
				and position % pair_length == 0
			)

			if eligible and rng.random() < probability:
				long = pair_length * ratio / (ratio + 1)
				result.append(polyphon.rhythm.Slot(duration=long, rest=slot.rest))
				result.append(polyphon.rhythm.Slot(duration=pair_length - long, rest=following.rest))
				position += pair_length
				i += 2
				continue

		result.append(slot)
		position += slot.duration
		i += 1

	return result


def apply_syncopation (
	slots: typing.Sequence[polyphon.rhythm.Slot],
	rng: random.Random,
	probability: float = 0.25,
	offset: fractions.Fraction = fractions.Fraction(1, 4)
) -> typing.List[polyphon.rhythm.Slot]:

	"""
	Anticipate on-beat slots by a sub-beat offset.

	A slot that starts exactly on a beat may be pulled ``offset`` beats
	earlier: the slot before it gives up ``offset`` beats and this slot gains
	them. The previous slot must be longer than ``offset`` so it stays
	positive.
	"""

	if offset <= 0 or offset >= 1:
		raise polyphon.errors.ConfigurationError("Syncopation offset must be between 0 and 1 beat (exclusive)")

	if not 0.0 <= probability <= 1.0:
		raise polyphon.errors.ConfigurationError("Syncopation probability must be between 0 and 1")

	result = list(slots)
	starts = polyphon.rhythm.slot_starts(slots)

	for i in range(1, len(result)):

		if starts[i].denominator != 1:
			continue

		previous = result[i - 1]

		if previous.duration <= offset:
			continue

		if rng.random() >= probability:
			continue

		result[i - 1] = polyphon.rhythm.Slot(duration=previous.duration - offset, rest=previous.rest)
		result[i] = polyphon.rhythm.Slot(duration=result[i].duration + offset, rest=result[i].rest)

	return result
