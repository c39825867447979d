"""Export resolution constants.

Exported files use **480 ticks per quarter note** unless configured otherwise.
One tick (``1 / PPQ`` beats) is also the smallest quantization unit the
beat budget is measured against.
"""

import fractions


DEFAULT_PPQ = 480

# Standard MIDI files store the division in 15 bits.
MAX_PPQ = 0x7FFF


def tick_unit (ppq: int) -> fractions.Fraction:

	"""Return the length of one tick in beats."""

	return fractions.Fraction(1, ppq)
