"""Beat-based duration constants.

All values are exact ``fractions.Fraction`` beats, where 1 = one quarter note.
Keeping durations rational lets a run hit its beat budget exactly, even when
triplets are involved::

    import polyphon.constants.durations as dur

    dur.TRIPLET_EIGHTH * 3 == dur.QUARTER   # True, no float residue

Duration tables in configuration files may name values instead of giving
numbers: ``"quarter"``, ``"dotted_eighth"``, ``"triplet_quarter"``, ``"3/8"``,
``0.75`` and so on (see :func:`parse_duration`).
"""

import fractions
import typing


Beats = fractions.Fraction

THIRTYSECOND = fractions.Fraction(1, 8)
SIXTEENTH = fractions.Fraction(1, 4)
EIGHTH = fractions.Fraction(1, 2)
QUARTER = fractions.Fraction(1)
HALF = fractions.Fraction(2)
WHOLE = fractions.Fraction(4)


def dotted (value: fractions.Fraction) -> fractions.Fraction:

	"""Return the dotted form of a duration (one and a half times as long)."""

	return value * fractions.Fraction(3, 2)


def triplet (value: fractions.Fraction) -> fractions.Fraction:

	"""Return the triplet form of a duration (three in the time of two)."""

	return value * fractions.Fraction(2, 3)


DOTTED_SIXTEENTH = dotted(SIXTEENTH)
DOTTED_EIGHTH = dotted(EIGHTH)
DOTTED_QUARTER = dotted(QUARTER)
DOTTED_HALF = dotted(HALF)
TRIPLET_EIGHTH = triplet(EIGHTH)
TRIPLET_QUARTER = triplet(QUARTER)


NAMED_DURATIONS: typing.Dict[str, fractions.Fraction] = {
	"thirtysecond": THIRTYSECOND,
	"sixteenth": SIXTEENTH,
	"eighth": EIGHTH,
	"quarter": QUARTER,
	"half": HALF,
	"whole": WHOLE,
}


def parse_duration (value: typing.Union[str, int, float, fractions.Fraction]) -> fractions.Fraction:

	"""Convert a duration given as a name, ratio string, or number into exact beats.

	Names may carry a ``dotted_`` or ``triplet_`` prefix. Floats are read via
	their decimal text so ``0.1`` becomes ``1/10``, not the nearest binary float.

	Example:
		```python
		parse_duration("dotted_eighth")   # Fraction(3, 4)
		parse_duration("1/3")             # Fraction(1, 3)
		parse_duration(0.5)               # Fraction(1, 2)
		```
	"""

	if isinstance(value, fractions.Fraction):
		result = value

	elif isinstance(value, bool):
		raise ValueError(f"Not a duration: {value!r}")

	elif isinstance(value, int):
		result = fractions.Fraction(value)

	elif isinstance(value, float):
		result = fractions.Fraction(repr(value))

	else:
		name = value.strip().lower()

		if name.startswith("dotted_"):
			result = dotted(parse_duration(name[len("dotted_"):]))

		elif name.startswith("triplet_"):
			result = triplet(parse_duration(name[len("triplet_"):]))

		elif name in NAMED_DURATIONS:
			result = NAMED_DURATIONS[name]

		else:
			try:
				result = fractions.Fraction(name)
			except ValueError:
				raise ValueError(f"Unknown duration: {value!r}") from None

	if result <= 0:
		raise ValueError(f"Duration must be positive, got {value!r}")

	return result
